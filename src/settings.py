# settings.py
# Environment-driven configuration shared by the API and the CLI driver.

from __future__ import annotations

import os
from dataclasses import dataclass
from typing import Optional

from best_score_store import DEFAULT_BEST_SCORE_KEY
from core import WIN_TILE


@dataclass(frozen=True)
class Settings:
    win_tile: int = WIN_TILE
    best_score_key: str = DEFAULT_BEST_SCORE_KEY
    redis_url: Optional[str] = None
    rate_limit: str = "100/minute"
    log_level: str = "INFO"
    max_games: int = 1000


def _int_env(name: str, default: int) -> int:
    raw = os.environ.get(name)
    if raw is None or raw.strip() == "":
        return default
    try:
        return int(raw)
    except ValueError as e:
        raise ValueError(f"{name} must be an integer, got {raw!r}") from e


def load_settings() -> Settings:
    win_tile = _int_env("GAME2048_WIN_TILE", WIN_TILE)
    if win_tile < 2:
        raise ValueError("GAME2048_WIN_TILE must be at least 2")
    max_games = _int_env("GAME2048_MAX_GAMES", 1000)
    if max_games < 1:
        raise ValueError("GAME2048_MAX_GAMES must be at least 1")
    return Settings(
        win_tile=win_tile,
        best_score_key=os.environ.get("GAME2048_BEST_SCORE_KEY", DEFAULT_BEST_SCORE_KEY),
        redis_url=os.environ.get("REDIS_URL") or None,
        rate_limit=os.environ.get("GAME2048_RATE_LIMIT", "100/minute"),
        log_level=os.environ.get("GAME2048_LOG_LEVEL", "INFO").upper(),
        max_games=max_games,
    )
