# engine.py
# Stateful orchestration of one game session on top of the stateless core.

from __future__ import annotations

import logging
import threading
from concurrent.futures import Executor, Future
from contextlib import contextmanager
from dataclasses import dataclass
from typing import Iterator, Optional, Union

from best_score_store import DEFAULT_BEST_SCORE_KEY, BestScoreStore, InMemoryStore
from core import (
    DIRECTION,
    WIN_TILE,
    GameProgressState,
    Grid,
    RandomSource,
    SeededRandomSource,
    add_random_tile,
    determine_game_status,
    initialize_grid,
    is_lost,
    parse_direction,
    process_move,
    validate_grid,
)
from errors import EngineBusy, IllegalContinuation, SessionTerminated

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class GameSnapshot:
    """Read-only view of a session handed to the host UI."""

    grid: Grid
    score: int
    best_score: int
    state: GameProgressState
    moved: bool = False


class BestScoreTracker:
    """Keeps the best score in memory and mirrors improvements to a store.

    The stored value is read once, at construction. Storage failures are
    logged and never raised: a missing or unparseable value reads as 0 and
    a failed write is dropped. With an executor, writes are fire-and-forget.
    One tracker may be shared by several engines; updates are serialized so
    the stored value never goes down.
    """

    def __init__(
        self,
        store: BestScoreStore,
        key: str = DEFAULT_BEST_SCORE_KEY,
        executor: Optional[Executor] = None,
    ):
        self.store = store
        self.key = key
        self.executor = executor
        self._lock = threading.RLock()
        self.best_score = self._load()

    def _load(self) -> int:
        try:
            raw = self.store.get(self.key)
        except Exception:
            logger.warning("Best score unavailable for %r; starting from 0", self.key, exc_info=True)
            return 0
        if raw is None:
            return 0
        try:
            value = int(raw)
        except (TypeError, ValueError):
            logger.warning("Ignoring unparseable best score %r for %r", raw, self.key)
            return 0
        if value < 0:
            logger.warning("Ignoring negative best score %r for %r", value, self.key)
            return 0
        return value

    def record(self, score: int) -> int:
        """Raises the best score to `score` if it is higher and persists it."""
        with self._lock:
            if score > self.best_score:
                self.best_score = score
                self._persist(score)
            return self.best_score

    def _persist(self, value: int) -> None:
        if self.executor is not None:
            future = self.executor.submit(self.store.set, self.key, value)
            future.add_done_callback(self._log_write_failure)
            return
        try:
            self.store.set(self.key, value)
        except Exception:
            logger.warning("Failed to save best score %d for %r", value, self.key, exc_info=True)

    def _log_write_failure(self, future: Future) -> None:
        exc = future.exception()
        if exc is not None:
            logger.warning("Failed to save best score for %r: %s", self.key, exc)


class Game2048Engine:
    """Public API for one 4x4 session: new_game, move, continue_after_win, snapshot.

    Randomness comes from an injected RandomSource and the best score from an
    injected store, so a seeded source and an InMemoryStore make games fully
    reproducible. Pass `tracker` to share one best score between engines;
    `store`, `best_score_key` and `executor` are then ignored.
    """

    def __init__(
        self,
        store: Optional[BestScoreStore] = None,
        rng: Optional[RandomSource] = None,
        win_tile: int = WIN_TILE,
        best_score_key: str = DEFAULT_BEST_SCORE_KEY,
        executor: Optional[Executor] = None,
        tracker: Optional[BestScoreTracker] = None,
    ):
        self.rng = rng if rng is not None else SeededRandomSource()
        self.win_tile = win_tile
        if tracker is None:
            tracker = BestScoreTracker(
                store if store is not None else InMemoryStore(),
                key=best_score_key,
                executor=executor,
            )
        self.tracker = tracker
        self._busy = False
        self.new_game()

    # --- Accessors ---

    @property
    def grid(self) -> Grid:
        return self._grid

    @property
    def score(self) -> int:
        return self._score

    @property
    def best_score(self) -> int:
        return self.tracker.best_score

    @property
    def state(self) -> GameProgressState:
        return self._state

    @property
    def busy(self) -> bool:
        return self._busy

    def snapshot(self, moved: bool = False) -> GameSnapshot:
        return GameSnapshot(
            grid=self._grid,
            score=self._score,
            best_score=self.tracker.best_score,
            state=self._state,
            moved=moved,
        )

    # --- Operations ---

    @contextmanager
    def hold(self) -> Iterator[None]:
        """Holds the busy flag; any move() issued meanwhile is rejected with EngineBusy."""
        if self._busy:
            raise EngineBusy("A move is still in progress")
        self._busy = True
        try:
            yield
        finally:
            self._busy = False

    def new_game(self) -> GameSnapshot:
        self._grid = initialize_grid(self.rng)
        self._score = 0
        self._state = GameProgressState.IDLE
        self._win_acknowledged = False
        logger.info("New game started")
        return self.snapshot()

    def load_grid(self, grid, score: int = 0) -> GameSnapshot:
        """Replaces the session with an exact position, e.g. for replays or tests.

        Unlike new_game(), which starts in IDLE, the loaded position is treated as
        a game already under way: it starts in PLAYING, or in WON or LOST when the
        position already qualifies.
        """
        frozen = validate_grid(grid)
        if score < 0:
            raise ValueError("Score must be non-negative.")
        with self.hold():
            self._grid = frozen
            self._score = score
            self._win_acknowledged = False
            self._state = determine_game_status(frozen, False, self.win_tile)
            self.tracker.record(score)
        return self.snapshot()

    def move(self, direction: Union[DIRECTION, str]) -> GameSnapshot:
        direction = parse_direction(direction)
        if self._state == GameProgressState.LOST:
            raise SessionTerminated("The game is over; start a new game")

        with self.hold():
            moved_grid, score_delta, moved = process_move(self._grid, direction)
            if not moved:
                logger.debug("Move %s ignored; grid unchanged", direction.name)
                return self.snapshot(moved=False)

            new_grid, position, value = add_random_tile(moved_grid, self.rng)
            new_state = determine_game_status(
                new_grid,
                win_acknowledged=self._win_acknowledged,
                win_tile=self.win_tile,
            )
            logger.debug(
                "Move %s: +%d, spawned %d at %s", direction.name, score_delta, value, position
            )

            if new_state != self._state:
                if new_state == GameProgressState.WON:
                    logger.info("Win tile %d reached with score %d", self.win_tile, self._score + score_delta)
                elif new_state == GameProgressState.LOST:
                    logger.info("Game lost with score %d", self._score + score_delta)

            self._grid = new_grid
            self._score += score_delta
            self._state = new_state
            if score_delta > 0 or new_state in (GameProgressState.WON, GameProgressState.LOST):
                self.tracker.record(self._score)

        return self.snapshot(moved=True)

    def continue_after_win(self) -> GameSnapshot:
        """Resumes play after a win; WON is not reported again this session."""
        if self._state != GameProgressState.WON:
            raise IllegalContinuation(f"Cannot continue from state {self._state.name}")
        self._win_acknowledged = True
        if is_lost(self._grid):
            self._state = GameProgressState.LOST
            logger.info("Game lost with score %d", self._score)
            self.tracker.record(self._score)
        else:
            self._state = GameProgressState.PLAYING
        return self.snapshot()
