from __future__ import annotations

from typing import Iterable, List, Optional

import pytest


class ScriptedRandom:
    """RandomSource that replays fixed draws.

    Once a script runs out, next_int picks the last candidate (the bottom-right-most
    empty cell for spawns) and next_float returns 0.0 (a 2 tile).
    """

    def __init__(self, ints: Optional[Iterable[int]] = None, floats: Optional[Iterable[float]] = None):
        self.ints: List[int] = list(ints or [])
        self.floats: List[float] = list(floats or [])
        self.calls = 0

    def next_int(self, bound: int) -> int:
        self.calls += 1
        if not self.ints:
            return bound - 1
        value = self.ints.pop(0)
        assert 0 <= value < bound, f"scripted int {value} out of range [0, {bound})"
        return value

    def next_float(self) -> float:
        self.calls += 1
        if not self.floats:
            return 0.0
        return self.floats.pop(0)


@pytest.fixture()
def scripted():
    return ScriptedRandom


# Checkerboard of 2/4: full, and no equal neighbours anywhere.
LOST_GRID = (
    (2, 4, 2, 4),
    (4, 2, 4, 2),
    (2, 4, 2, 4),
    (4, 2, 4, 2),
)


@pytest.fixture()
def lost_grid():
    return LOST_GRID
