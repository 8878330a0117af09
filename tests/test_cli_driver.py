from __future__ import annotations

import cli_driver
from core import GameProgressState
from engine import Game2048Engine


def _scripted_input(*commands):
    pending = list(commands)

    def _read(prompt: str) -> str:
        if not pending:
            raise EOFError
        return pending.pop(0)

    return _read


def test_run_plays_moves_and_quits(scripted, capsys):
    engine = Game2048Engine(rng=scripted())
    final = cli_driver.run(engine, _scripted_input("d", "x", "s", "q"))

    out = capsys.readouterr().out
    assert final.score == 4
    assert final.state == GameProgressState.PLAYING
    assert "Invalid input" in out
    assert "Move did not change the board" in out
    assert "Quitting game." in out
    assert "--- Final Board State ---" in out


def test_run_reports_rejected_commands(scripted, capsys):
    engine = Game2048Engine(rng=scripted())
    cli_driver.run(engine, _scripted_input("c"))

    out = capsys.readouterr().out
    assert "Cannot continue from state IDLE" in out


def test_run_starts_new_game(lost_grid, capsys):
    engine = Game2048Engine()
    engine.load_grid(lost_grid)
    final = cli_driver.run(engine, _scripted_input("w", "n", "q"))

    out = capsys.readouterr().out
    assert "GAME OVER!" in out
    assert "The game is over" in out
    assert final.state == GameProgressState.IDLE
    assert final.score == 0


def test_display_board_state_marks_empty_cells(scripted, capsys):
    engine = Game2048Engine(rng=scripted())
    cli_driver.display_board_state(engine.snapshot())
    out = capsys.readouterr().out
    assert "Score: 0  Best: 0" in out
    assert ".\t.\t2\t2" in out
