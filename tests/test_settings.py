from __future__ import annotations

import pytest

from settings import load_settings


@pytest.fixture(autouse=True)
def _clean_env(monkeypatch: pytest.MonkeyPatch) -> None:
    for name in (
        "GAME2048_WIN_TILE",
        "GAME2048_BEST_SCORE_KEY",
        "REDIS_URL",
        "GAME2048_RATE_LIMIT",
        "GAME2048_LOG_LEVEL",
        "GAME2048_MAX_GAMES",
    ):
        monkeypatch.delenv(name, raising=False)


def test_defaults():
    s = load_settings()
    assert s.win_tile == 2048
    assert s.best_score_key == "2048BestScore"
    assert s.redis_url is None
    assert s.rate_limit == "100/minute"
    assert s.log_level == "INFO"
    assert s.max_games == 1000


def test_environment_overrides(monkeypatch: pytest.MonkeyPatch):
    monkeypatch.setenv("GAME2048_WIN_TILE", "64")
    monkeypatch.setenv("REDIS_URL", "redis://localhost:6379/1")
    monkeypatch.setenv("GAME2048_LOG_LEVEL", "debug")
    s = load_settings()
    assert s.win_tile == 64
    assert s.redis_url == "redis://localhost:6379/1"
    assert s.log_level == "DEBUG"


@pytest.mark.parametrize("raw", ["abc", "1"])
def test_invalid_win_tile(monkeypatch: pytest.MonkeyPatch, raw):
    monkeypatch.setenv("GAME2048_WIN_TILE", raw)
    with pytest.raises(ValueError):
        load_settings()


def test_max_games_override(monkeypatch: pytest.MonkeyPatch):
    monkeypatch.setenv("GAME2048_MAX_GAMES", "5")
    assert load_settings().max_games == 5
    monkeypatch.setenv("GAME2048_MAX_GAMES", "0")
    with pytest.raises(ValueError):
        load_settings()
