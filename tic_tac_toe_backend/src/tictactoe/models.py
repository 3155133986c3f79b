from pydantic import BaseModel, ConfigDict, Field, EmailStr
from typing import List, Optional
from enum import Enum
from datetime import datetime, timezone


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


Board = List[List[Optional[int]]]


class GameStatus(str, Enum):
    """Game status enumeration"""
    WAITING = "waiting"
    ACTIVE = "active"
    COMPLETED = "completed"


class GameResult(str, Enum):
    """Terminal result of a completed game"""
    WIN = "win"
    DRAW = "draw"


class Outcome(str, Enum):
    """Per-player outcome of a completed game, used for stats"""
    WIN = "win"
    LOSS = "loss"
    DRAW = "draw"


# PUBLIC_INTERFACE
class PlayerStats(BaseModel):
    """Running statistics of a registered player."""
    games_played: int = Field(0, alias="gamesPlayed", description="Completed games the player took part in.")
    games_won: int = Field(0, alias="gamesWon")
    games_lost: int = Field(0, alias="gamesLost")
    games_tied: int = Field(0, alias="gamesTied")
    total_moves: int = Field(0, alias="totalMoves", description="Moves made across all completed games.")
    win_rate: float = Field(0, alias="winRate", description="Percentage of games won, 0 when no games played.")
    efficiency: float = Field(0, description="Average moves per win (lower is better), 0 when no wins.")

    model_config = ConfigDict(populate_by_name=True)


# PUBLIC_INTERFACE
class Player(BaseModel):
    """A registered player. Markers are assigned per game, never here."""
    id: str
    name: str
    email: str
    stats: PlayerStats = Field(default_factory=PlayerStats)
    created_at: datetime = Field(default_factory=utcnow, alias="createdAt")
    updated_at: datetime = Field(default_factory=utcnow, alias="updatedAt")

    model_config = ConfigDict(populate_by_name=True)


# PUBLIC_INTERFACE
class PlayerStatsRecord(PlayerStats):
    """Flattened player identity plus stats; the read model for rankings."""
    player_id: str = Field(..., alias="playerId")
    player_name: str = Field(..., alias="playerName")


# PUBLIC_INTERFACE
class GamePlayer(BaseModel):
    """Snapshot of a player as joined to one game, carrying its marker (1 or 2)."""
    id: str
    name: str
    email: str
    marker: int = Field(..., ge=1, le=2)

    model_config = ConfigDict(populate_by_name=True)


# PUBLIC_INTERFACE
class Move(BaseModel):
    """A recorded move. Immutable once created."""
    id: str
    game_id: str = Field(..., alias="gameId")
    player_id: str = Field(..., alias="playerId")
    row: int
    col: int
    timestamp: datetime = Field(default_factory=utcnow)

    model_config = ConfigDict(frozen=True, populate_by_name=True)


# PUBLIC_INTERFACE
class Game(BaseModel):
    """Full state of one game."""
    id: str
    name: str = ""
    board: Board
    status: GameStatus = GameStatus.WAITING
    result: Optional[GameResult] = Field(None, description="Set once the game is completed.")
    players: List[GamePlayer] = Field(default_factory=list)
    current_player_id: Optional[str] = Field(None, alias="currentPlayerId")
    winner_id: Optional[str] = Field(None, alias="winnerId")
    created_at: datetime = Field(default_factory=utcnow, alias="createdAt")
    updated_at: datetime = Field(default_factory=utcnow, alias="updatedAt")
    moves: List[Move] = Field(default_factory=list)

    model_config = ConfigDict(populate_by_name=True)

    def player(self, player_id: str) -> Optional[GamePlayer]:
        for p in self.players:
            if p.id == player_id:
                return p
        return None

    def opponent_of(self, player_id: str) -> Optional[GamePlayer]:
        for p in self.players:
            if p.id != player_id:
                return p
        return None


# PUBLIC_INTERFACE
class LeaderboardEntry(BaseModel):
    player_id: str = Field(..., alias="playerId")
    player_name: str = Field(..., alias="playerName")
    wins: int
    win_rate: float = Field(..., alias="winRate")
    efficiency: float

    model_config = ConfigDict(populate_by_name=True)


# PUBLIC_INTERFACE
class RunSummary(BaseModel):
    """Leaderboard plus aggregates over every completed game."""
    completed_games: int = Field(..., alias="completedGames")
    total_moves: int = Field(..., alias="totalMoves")
    average_moves_per_game: float = Field(..., alias="averageMovesPerGame")
    leaderboard: List[LeaderboardEntry]

    model_config = ConfigDict(populate_by_name=True)


# PUBLIC_INTERFACE
class CreateGameRequest(BaseModel):
    """Request model to create a new game."""
    name: Optional[str] = Field(None, description="Optional game name (max 50 chars once trimmed).")


# PUBLIC_INTERFACE
class PlayerRef(BaseModel):
    """Reference to a registered player; only the id is used for lookup."""
    id: str = Field(..., description="Registered player ID.")
    name: Optional[str] = None
    email: Optional[str] = None


# PUBLIC_INTERFACE
class JoinGameRequest(BaseModel):
    """Request model to add a registered player to a game."""
    player: PlayerRef


# PUBLIC_INTERFACE
class MoveRequest(BaseModel):
    """Request model for making a move."""
    player_id: str = Field(..., alias="playerId", description="ID of the player making the move.")
    row: int = Field(..., description="Row in board, 0-based.")
    col: int = Field(..., description="Col in board, 0-based.")

    model_config = ConfigDict(populate_by_name=True)


# PUBLIC_INTERFACE
class MoveResponse(BaseModel):
    """Response after a move: the updated game and its move log."""
    game: Game
    move: List[Move]


# PUBLIC_INTERFACE
class PlayerCreateRequest(BaseModel):
    """Request model for player registration."""
    name: str = Field(..., description="Display name (1-50 chars once trimmed).")
    email: EmailStr = Field(..., description="Unique email, compared case-insensitively.")


# PUBLIC_INTERFACE
class PlayerUpdateRequest(BaseModel):
    """Request model for administrative player updates."""
    name: Optional[str] = None
    email: Optional[EmailStr] = None


# PUBLIC_INTERFACE
class ErrorResponse(BaseModel):
    error: str
