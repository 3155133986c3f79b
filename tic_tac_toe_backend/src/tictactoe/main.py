import logging
from typing import List, Optional

from fastapi import APIRouter, Depends, FastAPI, Request, Response
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from .config import settings
from .coordinator import MatchCoordinator
from .core import GameStore
from .errors import Conflict, GameError, NotFound
from .leaderboard import LeaderboardAggregator
from .models import (
    CreateGameRequest,
    ErrorResponse,
    Game,
    GameStatus,
    JoinGameRequest,
    MoveRequest,
    MoveResponse,
    Player,
    PlayerCreateRequest,
    PlayerStatsRecord,
    PlayerUpdateRequest,
    RunSummary,
)
from .players import PlayerStore

# Configure logging
logging.basicConfig(
    level=settings.LOG_LEVEL,
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
)
logger = logging.getLogger(__name__)

ERROR_RESPONSES = {400: {"model": ErrorResponse}, 404: {"model": ErrorResponse}, 409: {"model": ErrorResponse}}

games_router = APIRouter(prefix="/games", tags=["game"], responses=ERROR_RESPONSES)
players_router = APIRouter(prefix="/players", tags=["player"], responses=ERROR_RESPONSES)
leaderboard_router = APIRouter(tags=["leaderboard"])


def get_coordinator(request: Request) -> MatchCoordinator:
    return request.app.state.coordinator


def get_player_store(request: Request) -> PlayerStore:
    return request.app.state.players


def get_aggregator(request: Request) -> LeaderboardAggregator:
    return request.app.state.leaderboard


##---- Game routes ----##

# PUBLIC_INTERFACE
@games_router.get("", response_model=List[Game], summary="List games")
def list_games(status: Optional[GameStatus] = None, coordinator: MatchCoordinator = Depends(get_coordinator)):
    """List every game, optionally filtered by status."""
    return coordinator.list_games(status)


# PUBLIC_INTERFACE
@games_router.post("/create", response_model=Game, status_code=201, summary="Create game")
def create_game(request: CreateGameRequest, coordinator: MatchCoordinator = Depends(get_coordinator)):
    """Create an empty game waiting for two players."""
    return coordinator.create_game(request.name)


# PUBLIC_INTERFACE
@games_router.get("/{game_id}", response_model=Game, summary="Get game")
def get_game(game_id: str, coordinator: MatchCoordinator = Depends(get_coordinator)):
    return coordinator.get_game(game_id)


# PUBLIC_INTERFACE
@games_router.post("/{game_id}/join", response_model=Game, summary="Join game")
def join_game(game_id: str, request: JoinGameRequest, coordinator: MatchCoordinator = Depends(get_coordinator)):
    """Add a registered player to a waiting game. The second join starts the game."""
    return coordinator.add_player_to_game(game_id, request.player)


# PUBLIC_INTERFACE
@games_router.post("/{game_id}/moves", response_model=MoveResponse, summary="Make a move")
def make_move(game_id: str, request: MoveRequest, coordinator: MatchCoordinator = Depends(get_coordinator)):
    """Play a move. Returns the updated game and its move log."""
    game = coordinator.make_move(game_id, request.player_id, request.row, request.col)
    return MoveResponse(game=game, move=game.moves)


# PUBLIC_INTERFACE
@games_router.delete("/{game_id}", status_code=204, summary="Delete game")
def delete_game(game_id: str, coordinator: MatchCoordinator = Depends(get_coordinator)):
    """Delete a game that is not currently active."""
    coordinator.delete_game(game_id)
    return Response(status_code=204)


##---- Player routes ----##

# PUBLIC_INTERFACE
@players_router.get("", response_model=List[Player], summary="List players by wins")
def list_players(players: PlayerStore = Depends(get_player_store)):
    return players.get_all_players()


# PUBLIC_INTERFACE
@players_router.post("/create", response_model=Player, status_code=201, summary="Register player")
def create_player(request: PlayerCreateRequest, players: PlayerStore = Depends(get_player_store)):
    return players.create_player(request.name, request.email)


# PUBLIC_INTERFACE
@players_router.get("/allstats", response_model=List[PlayerStatsRecord], summary="All player stats")
def get_all_player_stats(players: PlayerStore = Depends(get_player_store)):
    return players.get_all_player_stats()


# PUBLIC_INTERFACE
@players_router.get("/{player_id}", response_model=Player, summary="Get player")
def get_player(player_id: str, players: PlayerStore = Depends(get_player_store)):
    return players.get_player(player_id)


# PUBLIC_INTERFACE
@players_router.patch("/{player_id}", response_model=Player, summary="Update player info")
def update_player(player_id: str, request: PlayerUpdateRequest, players: PlayerStore = Depends(get_player_store)):
    return players.update_player_info(player_id, name=request.name, email=request.email)


# PUBLIC_INTERFACE
@players_router.delete("/{player_id}", status_code=204, summary="Delete player")
def delete_player(player_id: str, players: PlayerStore = Depends(get_player_store)):
    players.delete_player(player_id)
    return Response(status_code=204)


##---- Leaderboard ----##

# PUBLIC_INTERFACE
@leaderboard_router.get("/leaderboard", response_model=RunSummary, summary="Leaderboard and run totals")
def get_leaderboard(aggregator: LeaderboardAggregator = Depends(get_aggregator)):
    """Players ranked by wins, then by fewest moves per win."""
    return aggregator.summary()


##---- Error handling ----##

def _status_for(exc: GameError) -> int:
    if isinstance(exc, NotFound):
        return 404
    if isinstance(exc, Conflict):
        return 409
    return 400


async def game_error_handler(request: Request, exc: GameError):
    logger.warning("%s %s rejected: %s (%s)", request.method, request.url.path, exc.message, exc.code)
    return JSONResponse(status_code=_status_for(exc), content={"error": exc.message})


async def validation_error_handler(request: Request, exc: RequestValidationError):
    errors = exc.errors()
    if errors:
        first = errors[0]
        field = ".".join(str(part) for part in first.get("loc", ()) if part != "body")
        message = f"{field}: {first.get('msg')}" if field else str(first.get("msg"))
    else:
        message = "Invalid request"
    logger.warning("%s %s rejected: %s", request.method, request.url.path, message)
    return JSONResponse(status_code=400, content={"error": message})


async def http_error_handler(request: Request, exc: StarletteHTTPException):
    return JSONResponse(status_code=exc.status_code, content={"error": str(exc.detail)})


# PUBLIC_INTERFACE
def create_app(game_store: Optional[GameStore] = None, player_store: Optional[PlayerStore] = None) -> FastAPI:
    """Build the HTTP app around a fresh (or supplied) pair of stores."""
    game_store = game_store or GameStore()
    player_store = player_store or PlayerStore()

    application = FastAPI(
        title="Tic Tac Toe API",
        description="In-memory Tic Tac Toe engine: players, games, moves, stats and leaderboard.",
        version="0.2.0",
        openapi_tags=[
            {"name": "game", "description": "Create, join and play games"},
            {"name": "player", "description": "Player registry and stats"},
            {"name": "leaderboard", "description": "Current leaderboard"},
        ],
    )
    application.add_middleware(
        CORSMiddleware,
        allow_origins=settings.CORS_ORIGINS,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    application.state.games = game_store
    application.state.players = player_store
    application.state.coordinator = MatchCoordinator(game_store, player_store)
    application.state.leaderboard = LeaderboardAggregator(player_store, game_store)

    application.add_exception_handler(GameError, game_error_handler)
    application.add_exception_handler(RequestValidationError, validation_error_handler)
    application.add_exception_handler(StarletteHTTPException, http_error_handler)

    @application.get("/", tags=["health"])
    def health_check():
        """Health check route for backend"""
        return {"message": "Healthy"}

    application.include_router(games_router)
    application.include_router(players_router)
    application.include_router(leaderboard_router)
    return application


app = create_app()


# PUBLIC_INTERFACE
def run():
    """Serve the app with uvicorn on ``TTT_HOST``:``TTT_PORT``."""
    import uvicorn

    logger.info("Starting Tic Tac Toe API on %s:%d", settings.HOST, settings.PORT)
    uvicorn.run("tictactoe.main:app", host=settings.HOST, port=settings.PORT, log_level=settings.LOG_LEVEL.lower())


if __name__ == "__main__":
    run()
