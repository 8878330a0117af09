# core.py
# Stateless core logic for the 4x4 tile-merging puzzle.
# Every function here returns a new grid and never mutates its input.

from enum import Enum
from typing import Tuple, List, Optional, Protocol, Union
import random

from errors import InvalidDirection

GRID_SIZE = 4
WIN_TILE = 2048
SPAWN_TWO_PROBABILITY = 0.9

Row = Tuple[int, ...]
Grid = Tuple[Row, ...]
Position = Tuple[int, int]


class GameProgressState(Enum):
    """Represents the current progress state of the game."""
    IDLE = "IDLE"
    PLAYING = "PLAYING"
    WON = "WON"
    LOST = "LOST"


class DIRECTION(Enum):
    """Represents the possible move directions."""
    UP = "UP"
    DOWN = "DOWN"
    LEFT = "LEFT"
    RIGHT = "RIGHT"


# Number of 90-degree clockwise rotations that turn each direction into a left slide.
ROTATIONS = {
    DIRECTION.LEFT: 0,
    DIRECTION.DOWN: 1,
    DIRECTION.RIGHT: 2,
    DIRECTION.UP: 3,
}


def parse_direction(value: Union[DIRECTION, str]) -> DIRECTION:
    """
    Resolves a direction from an enum member or a case-insensitive name.
    Args:
        value: A DIRECTION member or a string such as "up" or "LEFT".
    Returns:
        DIRECTION: The matching direction.
    Raises:
        InvalidDirection: If the value names none of the four directions.
    """
    if isinstance(value, DIRECTION):
        return value
    if isinstance(value, str):
        try:
            return DIRECTION[value.strip().upper()]
        except KeyError:
            pass
    raise InvalidDirection(f"Invalid direction: {value!r}")


# --- Randomness ---

class RandomSource(Protocol):
    def next_int(self, bound: int) -> int:
        ...

    def next_float(self) -> float:
        ...


class SeededRandomSource:
    """RandomSource backed by random.Random; pass a seed for reproducible games."""

    def __init__(self, seed: Optional[int] = None):
        self.rng = random.Random(seed)

    def next_int(self, bound: int) -> int:
        return self.rng.randrange(bound)

    def next_float(self) -> float:
        return self.rng.random()


# --- Grid Helper Functions ---

def empty_grid() -> Grid:
    """Returns a 4x4 grid of empty (0-value) cells."""
    return tuple((0,) * GRID_SIZE for _ in range(GRID_SIZE))


def to_grid(rows) -> Grid:
    """Freezes any row-major nested sequence into an immutable grid."""
    return tuple(tuple(int(v) for v in row) for row in rows)


def is_valid_tile(value: int) -> bool:
    return value >= 2 and (value & (value - 1)) == 0


def validate_grid(grid) -> Grid:
    """
    Checks that a grid is 4x4 and holds only empty cells or powers of two >= 2.
    Args:
        grid: Any row-major nested sequence of ints.
    Returns:
        Grid: The validated grid as an immutable tuple of tuples.
    Raises:
        ValueError: If the shape or any tile value is invalid.
    """
    if len(grid) != GRID_SIZE or not all(len(row) == GRID_SIZE for row in grid):
        raise ValueError(f"Grid must be a {GRID_SIZE}x{GRID_SIZE} matrix.")
    frozen = to_grid(grid)
    for row in frozen:
        for value in row:
            if value != 0 and not is_valid_tile(value):
                raise ValueError(f"Invalid tile value {value}; tiles must be powers of two >= 2.")
    return frozen


def get_empty_cells(grid: Grid) -> List[Position]:
    """
    Get coordinates of empty (0-value) cells in row-major order.
    Args:
        grid (Grid): The grid to check.
    Returns:
        List[Position]: List of (row, col) tuples for empty cells.
    """
    return [
        (r, c)
        for r in range(GRID_SIZE)
        for c in range(GRID_SIZE)
        if grid[r][c] == 0
    ]


def is_full(grid: Grid) -> bool:
    return all(value != 0 for row in grid for value in row)


def max_tile(grid: Grid) -> int:
    return max(max(row) for row in grid)


def place_tile(grid: Grid, position: Position, value: int) -> Grid:
    """Returns a copy of the grid with `value` written at `position`."""
    row, col = position
    rows = [list(r) for r in grid]
    rows[row][col] = value
    return to_grid(rows)


# --- Tile Spawning ---

def draw_tile_value(rng: RandomSource) -> int:
    return 2 if rng.next_float() < SPAWN_TWO_PROBABILITY else 4


def add_random_tile(grid: Grid, rng: RandomSource) -> Tuple[Grid, Optional[Position], int]:
    """
    Adds a new tile (90% chance of 2, 10% chance of 4) to a uniformly chosen empty cell.
    The cell is drawn first, then the value.
    Args:
        grid (Grid): The current grid.
        rng (RandomSource): Source of the two random draws.
    Returns:
        Tuple[Grid, Optional[Position], int]: The new grid, the position that received
                                              the tile and its value. When the grid is
                                              full, the same grid, None and 0.
    """
    empty_cells = get_empty_cells(grid)
    if not empty_cells:
        return grid, None, 0

    position = empty_cells[rng.next_int(len(empty_cells))]
    value = draw_tile_value(rng)
    return place_tile(grid, position, value), position, value


def initialize_grid(rng: RandomSource) -> Grid:
    """Creates a fresh grid holding two starting tiles in distinct cells."""
    grid, _, _ = add_random_tile(empty_grid(), rng)
    grid, _, _ = add_random_tile(grid, rng)
    return grid


# --- Line Manipulation (Core Move Logic Helpers) ---

def slide_and_merge_line(line: Row) -> Tuple[Row, int]:
    """
    Slides a single line to the left and merges equal neighbours in one forward pass.
    A tile produced by a merge is never merged again in the same move, so
    (2, 2, 2, 2) becomes (4, 4, 0, 0) and (2, 2, 2, 0) becomes (4, 2, 0, 0).
    Args:
        line (Row): The line to process.
    Returns:
        Tuple[Row, int]: The processed line and the sum of the merged tiles.
    """
    packed = [value for value in line if value != 0]
    merged: List[int] = []
    score_increase = 0
    i = 0
    while i < len(packed):
        if i + 1 < len(packed) and packed[i] == packed[i + 1]:
            merged_value = packed[i] * 2
            merged.append(merged_value)
            score_increase += merged_value
            i += 2  # next tile was consumed
        else:
            merged.append(packed[i])
            i += 1
    merged += [0] * (len(line) - len(merged))
    return tuple(merged), score_increase


# --- Grid Transformations ---

def rotate_clockwise(grid: Grid) -> Grid:
    """
    Rotates a grid 90 degrees clockwise into a freshly allocated grid.
    Args:
        grid (Grid): The grid to rotate.
    Returns:
        Grid: A new rotated grid.
    """
    n = len(grid)
    return tuple(
        tuple(grid[n - 1 - c][r] for c in range(n))
        for r in range(n)
    )


def rotate_times(grid: Grid, times: int) -> Grid:
    for _ in range(times % 4):
        grid = rotate_clockwise(grid)
    return grid


# --- Core Game Move Processing ---

def slide_left(grid: Grid) -> Tuple[Grid, int]:
    """Applies slide_and_merge_line to every row of the grid."""
    rows = []
    total_score_increase = 0
    for row in grid:
        new_row, score_from_row = slide_and_merge_line(row)
        rows.append(new_row)
        total_score_increase += score_from_row
    return tuple(rows), total_score_increase


def process_move(grid: Grid, direction: DIRECTION) -> Tuple[Grid, int, bool]:
    """
    Resolves a move in the given direction without side effects or randomness.
    The grid is rotated so the move becomes a left slide, slid, then rotated back.
    Args:
        grid (Grid): The current grid.
        direction (DIRECTION): The direction to move.
    Returns:
        Tuple[Grid, int, bool]:
            - The new grid after the move.
            - The score gained from merges in this move.
            - Whether any cell differs from the input grid.
    Raises:
        InvalidDirection: If direction is not a DIRECTION member.
    """
    if not isinstance(direction, DIRECTION):
        direction = parse_direction(direction)

    rotations = ROTATIONS[direction]
    slid, score_gained = slide_left(rotate_times(grid, rotations))
    new_grid = rotate_times(slid, (4 - rotations) % 4)
    return new_grid, score_gained, new_grid != grid


def legal_directions(grid: Grid) -> List[DIRECTION]:
    """Directions whose move would change the grid."""
    return [d for d in DIRECTION if process_move(grid, d)[2]]


# --- Game State Checks ---

def check_for_win(grid: Grid, win_tile: int = WIN_TILE) -> bool:
    """
    Check whether any tile has reached the win threshold.
    Args:
        grid (Grid): The grid.
        win_tile (int): The tile value that signifies a win. Default is 2048.
    Returns:
        bool: True if some tile is >= win_tile.
    """
    return any(value >= win_tile for row in grid for value in row)


def has_adjacent_pair(grid: Grid) -> bool:
    """True if two horizontally or vertically adjacent cells hold equal tiles."""
    n = len(grid)
    for r in range(n):
        for c in range(n):
            value = grid[r][c]
            if value == 0:
                continue
            if r + 1 < n and grid[r + 1][c] == value:
                return True
            if c + 1 < n and grid[r][c + 1] == value:
                return True
    return False


def is_lost(grid: Grid) -> bool:
    """
    A grid is lost when it has no empty cell and no equal adjacent pair,
    which is exactly when no direction can move it.
    """
    return is_full(grid) and not has_adjacent_pair(grid)


def determine_game_status(
    grid: Grid,
    win_acknowledged: bool = False,
    win_tile: int = WIN_TILE,
) -> GameProgressState:
    """
    Decides the state that follows an accepted move.
    Args:
        grid (Grid): The grid after the move and spawn.
        win_acknowledged (bool): True once the player chose to keep playing past a win;
                                 WON is then never reported again for this session.
        win_tile (int): The win threshold. Default is 2048.
    Returns:
        GameProgressState: WON, LOST or PLAYING.
    """
    if not win_acknowledged and check_for_win(grid, win_tile):
        return GameProgressState.WON
    if is_lost(grid):
        return GameProgressState.LOST
    return GameProgressState.PLAYING
