import logging
import threading
from collections import OrderedDict
from typing import List, Optional, Tuple
from uuid import UUID, uuid4

from fastapi import Depends, FastAPI, HTTPException, Request, Response
from pydantic import BaseModel, Field
from slowapi import Limiter, _rate_limit_exceeded_handler
from slowapi.util import get_remote_address
from slowapi.errors import RateLimitExceeded

import core
from best_score_store import BestScoreStore, InMemoryStore, create_redis_store
from engine import BestScoreTracker, Game2048Engine, GameSnapshot
from errors import EngineBusy, IllegalContinuation, InvalidDirection, SessionTerminated
from settings import Settings, load_settings

settings = load_settings()
logging.basicConfig(level=settings.log_level)
logger = logging.getLogger(__name__)

# Initialize the rate limiter
limiter = Limiter(key_func=get_remote_address)
app = FastAPI(
    title="2048 Game API",
    description="Play the 4x4 tile-merging puzzle. "\
                "Each game lives on the server; the best score is shared by all games.",
    version="2.0.0"
)
app.state.limiter = limiter
app.add_exception_handler(RateLimitExceeded, _rate_limit_exceeded_handler)


class GameRegistry:
    """In-process registry of running games sharing one best-score tracker.

    At most `settings.max_games` games are kept; creating one more evicts the
    least recently used game.
    """

    def __init__(self, store: BestScoreStore, settings: Settings):
        self.store = store
        self.settings = settings
        self.tracker = BestScoreTracker(store, key=settings.best_score_key)
        self.games: "OrderedDict[UUID, Game2048Engine]" = OrderedDict()
        self._lock = threading.Lock()

    def create(self) -> Tuple[UUID, Game2048Engine]:
        game_id = uuid4()
        engine = Game2048Engine(win_tile=self.settings.win_tile, tracker=self.tracker)
        with self._lock:
            self.games[game_id] = engine
            while len(self.games) > self.settings.max_games:
                evicted, _ = self.games.popitem(last=False)
                logger.info("Evicted game %s", evicted)
        return game_id, engine

    def require(self, game_id: UUID) -> Game2048Engine:
        with self._lock:
            engine = self.games.get(game_id)
            if engine is not None:
                self.games.move_to_end(game_id)
        if engine is None:
            raise HTTPException(status_code=404, detail="Game not found")
        return engine

    def remove(self, game_id: UUID) -> None:
        with self._lock:
            engine = self.games.pop(game_id, None)
        if engine is None:
            raise HTTPException(status_code=404, detail="Game not found")


def _create_store(s: Settings) -> BestScoreStore:
    if s.redis_url:
        logger.info("Persisting best scores in Redis")
        return create_redis_store(s.redis_url)
    return InMemoryStore()


_registry = GameRegistry(_create_store(settings), settings)


def get_registry() -> GameRegistry:
    return _registry

# --- Pydantic Models for API requests and responses ---

class GameStateData(BaseModel):
    """Represents the complete state of a game instance."""
    game_id: UUID = Field(..., description="Identifier to use for further moves.")
    board: List[List[int]] = Field(..., description="The 4 x 4 grid, row-major; 0 is an empty cell.")
    score: int = Field(..., ge=0, description="Current score of the game.")
    best_score: int = Field(..., ge=0, description="Best score recorded so far.")
    progress: core.GameProgressState = Field(
        ...,
        description="Current progress state of the game (IDLE, PLAYING, WON, LOST)."
    )
    max_tile: int = Field(..., ge=0, description="Highest tile on the board.")
    win_tile: int = Field(..., gt=0, description="The tile value required to win.")


class MoveRequestData(BaseModel):
    """Data required to make a move."""
    direction: str = Field(
        ...,
        description="Direction of the move (UP, DOWN, LEFT, RIGHT), case-insensitive."
    )


class MoveResponseData(GameStateData):
    """Response after a move, including the new game state and move effectiveness."""
    move_was_effective: bool = Field(
        ...,
        description="True if the move resulted in a change to the board state, False otherwise."
    )
    message: Optional[str] = Field(
        default=None,
        description="An optional message, e.g. if a move was ignored or the game ended."
    )


def _state_fields(game_id: UUID, snapshot: GameSnapshot, win_tile: int) -> dict:
    return dict(
        game_id=game_id,
        board=[list(row) for row in snapshot.grid],
        score=snapshot.score,
        best_score=snapshot.best_score,
        progress=snapshot.state,
        max_tile=core.max_tile(snapshot.grid),
        win_tile=win_tile,
    )

# --- API Endpoints ---
# Plain (non-async) handlers: best-score store I/O is blocking, so FastAPI
# runs them in its threadpool.

@app.post("/game/new", response_model=GameStateData, summary="Start a New 2048 Game")
@limiter.limit(settings.rate_limit)
def start_new_game(request: Request, registry: GameRegistry = Depends(get_registry)):
    """
    Starts a new game with two random tiles on an otherwise empty 4 x 4 grid.

    Returns the game id together with the initial state (score 0, progress IDLE).
    """
    game_id, engine = registry.create()
    return GameStateData(**_state_fields(game_id, engine.snapshot(), engine.win_tile))


@app.get("/game/{game_id}", response_model=GameStateData, summary="Get a Game's State")
@limiter.limit(settings.rate_limit)
def get_game(request: Request, game_id: UUID, registry: GameRegistry = Depends(get_registry)):
    engine = registry.require(game_id)
    return GameStateData(**_state_fields(game_id, engine.snapshot(), engine.win_tile))


@app.post("/game/{game_id}/move", response_model=MoveResponseData, summary="Make a Move in the Game")
@limiter.limit(settings.rate_limit)
def make_move(
    request: Request,
    game_id: UUID,
    request_data: MoveRequestData,
    registry: GameRegistry = Depends(get_registry),
):
    """
    Processes a player's move in the game.

    The server will:
    1. Slide and merge the tiles in the requested direction.
    2. If the move changed the board, add a new random tile (2 or 4).
    3. Determine the new game status (PLAYING, WON, LOST).

    Returns the updated game state, whether the move was effective, and an optional message.
    """
    engine = registry.require(game_id)
    try:
        snapshot = engine.move(request_data.direction)
    except InvalidDirection as e:
        raise HTTPException(status_code=400, detail=str(e))
    except (SessionTerminated, EngineBusy) as e:
        raise HTTPException(status_code=409, detail=str(e))

    message_for_client: Optional[str] = None
    if not snapshot.moved:
        message_for_client = "Move was not effective; board state unchanged by slide."
    elif snapshot.state == core.GameProgressState.WON:
        message_for_client = "Congratulations! You won!"
    elif snapshot.state == core.GameProgressState.LOST:
        message_for_client = "Game Over. No more valid moves."

    return MoveResponseData(
        **_state_fields(game_id, snapshot, engine.win_tile),
        move_was_effective=snapshot.moved,
        message=message_for_client,
    )


@app.post("/game/{game_id}/continue", response_model=GameStateData, summary="Keep Playing After a Win")
@limiter.limit(settings.rate_limit)
def continue_game(request: Request, game_id: UUID, registry: GameRegistry = Depends(get_registry)):
    engine = registry.require(game_id)
    try:
        snapshot = engine.continue_after_win()
    except IllegalContinuation as e:
        raise HTTPException(status_code=409, detail=str(e))
    return GameStateData(**_state_fields(game_id, snapshot, engine.win_tile))


@app.delete("/game/{game_id}", status_code=204, summary="Discard a Game")
@limiter.limit(settings.rate_limit)
def delete_game(request: Request, game_id: UUID, registry: GameRegistry = Depends(get_registry)):
    """Frees a finished or abandoned game. The shared best score is kept."""
    registry.remove(game_id)
    return Response(status_code=204)
