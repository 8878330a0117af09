# cli_driver.py
# This file is intended to be run to play the 2048 game on the CLI

import logging
from typing import Callable, Optional

from best_score_store import BestScoreStore, InMemoryStore, create_redis_store
from core import DIRECTION, GameProgressState
from engine import Game2048Engine, GameSnapshot
from errors import GameError
from settings import load_settings

logger = logging.getLogger(__name__)

DIRECTION_KEYS = {'W': DIRECTION.UP, 'A': DIRECTION.LEFT, 'S': DIRECTION.DOWN, 'D': DIRECTION.RIGHT}


def run(engine: Game2048Engine, read_input: Callable[[str], str] = input) -> GameSnapshot:
    """Reads commands until the player quits; returns the final snapshot."""
    snapshot = engine.snapshot()
    display_board_state(snapshot)

    while True:
        if snapshot.state == GameProgressState.LOST:
            prompt = "No more moves. N for a new game, Q to quit: "
        elif snapshot.state == GameProgressState.WON:
            prompt = "You won! C to keep playing, N for a new game, Q to quit: "
        else:
            prompt = "Enter move (W/A/S/D for Up/Left/Down/Right, N new game, Q to quit): "

        try:
            command = read_input(prompt).strip().upper()
        except EOFError:
            command = 'Q'

        if command == 'Q':
            print("Quitting game.")
            break

        try:
            if command == 'N':
                snapshot = engine.new_game()
            elif command == 'C':
                snapshot = engine.continue_after_win()
            elif command in DIRECTION_KEYS:
                snapshot = engine.move(DIRECTION_KEYS[command])
                if not snapshot.moved:
                    print("Move did not change the board. Try a different direction.")
            else:
                print("Invalid input. Use W, A, S, D.")
                continue
        except GameError as e:
            logger.debug("Rejected command %r: %s", command, e)
            print(str(e))
            continue

        display_board_state(snapshot)

    print("\n--- Final Board State ---")
    display_board_state(snapshot)
    return snapshot


# --- Display Function (Example of external usage) ---
def display_board_state(snapshot: GameSnapshot):
    """Prints the board, scores, and game status to the console."""
    print(f"\nScore: {snapshot.score}  Best: {snapshot.best_score}")
    status_message = {
        GameProgressState.IDLE: "Status: IDLE",
        GameProgressState.PLAYING: "Status: PLAYING",
        GameProgressState.WON: "YOU WON!",
        GameProgressState.LOST: "GAME OVER!"
    }
    print(status_message.get(snapshot.state, f"Status: {snapshot.state.name}"))

    for row in snapshot.grid:
        print("\t".join(str(v) if v else "." for v in row))
    print("-" * (len(snapshot.grid) * 6))


def main(store: Optional[BestScoreStore] = None):
    settings = load_settings()
    logging.basicConfig(level=settings.log_level)
    if store is None:
        store = create_redis_store(settings.redis_url) if settings.redis_url else InMemoryStore()
    engine = Game2048Engine(
        store=store,
        win_tile=settings.win_tile,
        best_score_key=settings.best_score_key,
    )
    run(engine)


if __name__ == "__main__":
    main()
