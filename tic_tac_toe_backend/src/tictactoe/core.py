import logging
import threading
import uuid
from typing import Dict, List, Optional

from .config import settings
from .errors import (
    ActiveGame,
    DuplicatePlayer,
    GameFull,
    InvalidState,
    NameTooLong,
    NotFound,
    Occupied,
    OutOfBounds,
    UnknownPlayer,
    WrongTurn,
)
from .models import Board, Game, GamePlayer, GameResult, GameStatus, Move, Player, utcnow

logger = logging.getLogger(__name__)

ONGOING = "ongoing"


# PUBLIC_INTERFACE
def create_empty_board(size: int) -> Board:
    return [[None for _ in range(size)] for _ in range(size)]


def _lines(board: Board) -> List[List[Optional[int]]]:
    size = len(board)
    lines = []
    # Rows and columns
    for i in range(size):
        lines.append(board[i])
        lines.append([board[r][i] for r in range(size)])
    # Diagonals
    lines.append([board[i][i] for i in range(size)])
    lines.append([board[i][size - 1 - i] for i in range(size)])
    return lines


# PUBLIC_INTERFACE
def has_complete_line(board: Board, marker: int) -> bool:
    """True if any row, column or diagonal is entirely ``marker``."""
    return any(all(cell == marker for cell in line) for line in _lines(board))


# PUBLIC_INTERFACE
def is_board_full(board: Board) -> bool:
    return all(cell is not None for row in board for cell in row)


# PUBLIC_INTERFACE
def check_outcome(board: Board, marker: int) -> str:
    """Classify the board after ``marker`` moved: 'win', 'draw' or 'ongoing'.

    Only the marker that just moved can have completed a line, so the other
    marker is never tested.
    """
    if has_complete_line(board, marker):
        return GameResult.WIN.value
    if is_board_full(board):
        return GameResult.DRAW.value
    return ONGOING


def _as_coordinate(value, size: int) -> int:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise OutOfBounds("Row/col must be integers")
    if isinstance(value, float):
        if not value.is_integer():
            raise OutOfBounds("Row/col must be integers")
        value = int(value)
    if value < 0 or value >= size:
        raise OutOfBounds("Cell coordinates are out of bounds")
    return value


class GameStore:
    """In-memory registry of games.

    Each game has its own re-entrant lock; ``join`` and ``move`` run inside
    it. Both work on a private copy that replaces the stored game only once
    the change is complete, and every game handed out is a deep copy, so
    readers never observe a half-applied move. The coordinator holds
    ``lock_for(game_id)`` when it needs several calls to act as one.
    """

    def __init__(self, board_size: Optional[int] = None, max_name_length: Optional[int] = None):
        self.board_size = board_size or settings.BOARD_SIZE
        self.max_name_length = max_name_length or settings.MAX_GAME_NAME_LENGTH
        self._games: Dict[str, Game] = {}
        self._locks: Dict[str, threading.RLock] = {}
        self._lock = threading.RLock()

    def lock_for(self, game_id: str) -> threading.RLock:
        """The game's lock; exists from ``create_game`` until ``delete``."""
        with self._lock:
            lock = self._locks.get(game_id)
        if lock is None:
            raise NotFound(f"Game not found: {game_id}")
        return lock

    def _editable(self, game_id: str) -> Game:
        return self.get_game(game_id)

    def _commit(self, game: Game) -> Game:
        with self._lock:
            self._games[game.id] = game
            return game.model_copy(deep=True)

    # PUBLIC_INTERFACE
    def create_game(self, name: Optional[str] = None) -> Game:
        """Create an empty game in the waiting state."""
        cleaned = (name or "").strip()
        if len(cleaned) > self.max_name_length:
            raise NameTooLong("Game name is too long")
        game = Game(id=str(uuid.uuid4()), name=cleaned, board=create_empty_board(self.board_size))
        with self._lock:
            self._games[game.id] = game
            self._locks[game.id] = threading.RLock()
            snapshot = game.model_copy(deep=True)
        logger.info("Created game %r with ID %s", game.name, game.id)
        return snapshot

    def get_by_id(self, game_id: str) -> Optional[Game]:
        with self._lock:
            game = self._games.get(game_id)
            return game.model_copy(deep=True) if game is not None else None

    # PUBLIC_INTERFACE
    def get_game(self, game_id: str) -> Game:
        game = self.get_by_id(game_id)
        if game is None:
            raise NotFound(f"Game not found: {game_id}")
        return game

    # PUBLIC_INTERFACE
    def get_all(self, status: Optional[GameStatus] = None) -> List[Game]:
        if status is not None:
            status = GameStatus(status)
        with self._lock:
            return [
                g.model_copy(deep=True)
                for g in self._games.values()
                if status is None or g.status == status
            ]

    def get_active(self) -> List[Game]:
        return self.get_all(GameStatus.ACTIVE)

    # PUBLIC_INTERFACE
    def join(self, game_id: str, player: Player) -> Game:
        """Admit ``player`` into the game; the second join starts it."""
        with self.lock_for(game_id):
            game = self._editable(game_id)
            if len(game.players) >= 2:
                raise GameFull("Game is full")
            if game.status != GameStatus.WAITING:
                raise InvalidState("Game is in progress, not accepting new players")
            if game.player(player.id) is not None:
                raise DuplicatePlayer("Player already in the game")
            email = player.email.strip().lower()
            if any(p.email.strip().lower() == email for p in game.players):
                raise DuplicatePlayer("Another player with the same email is already in this game")

            marker = 1 if not game.players else 2
            game.players.append(GamePlayer(id=player.id, name=player.name, email=player.email, marker=marker))
            if len(game.players) == 2:
                game.status = GameStatus.ACTIVE
                game.current_player_id = game.players[0].id
            game.updated_at = utcnow()
            logger.info("Player %s joined game %s with marker %d", player.id, game.id, marker)
            return self._commit(game)

    # PUBLIC_INTERFACE
    def move(self, game_id: str, player_id: str, row, col) -> Game:
        """Place the current player's marker at (row, col) and settle the outcome."""
        with self.lock_for(game_id):
            game = self._editable(game_id)
            if game.status != GameStatus.ACTIVE:
                raise InvalidState("Game is not active")
            if game.current_player_id != player_id:
                raise WrongTurn("It's not your turn yet!")
            size = len(game.board)
            row = _as_coordinate(row, size)
            col = _as_coordinate(col, size)
            if game.board[row][col] is not None:
                raise Occupied("Cell is already occupied")
            mover = game.player(player_id)
            if mover is None:
                raise UnknownPlayer("Player not found in this game")

            game.board[row][col] = mover.marker
            game.moves.append(Move(
                id=str(uuid.uuid4()),
                game_id=game.id,
                player_id=mover.id,
                row=row,
                col=col,
            ))
            logger.debug("Game %s: player %s marked (%d, %d)", game.id, mover.id, row, col)

            outcome = check_outcome(game.board, mover.marker)
            if outcome == GameResult.WIN.value:
                game.status = GameStatus.COMPLETED
                game.result = GameResult.WIN
                game.winner_id = mover.id
                game.current_player_id = None
                logger.info("Game %s completed, winner %s", game.id, mover.id)
            elif outcome == GameResult.DRAW.value:
                game.status = GameStatus.COMPLETED
                game.result = GameResult.DRAW
                game.winner_id = None
                game.current_player_id = None
                logger.info("Game %s completed in a draw", game.id)
            else:
                opponent = game.opponent_of(mover.id)
                game.current_player_id = opponent.id if opponent else None
            game.updated_at = utcnow()
            return self._commit(game)

    # PUBLIC_INTERFACE
    def delete(self, game_id: str) -> None:
        with self.lock_for(game_id):
            game = self.get_game(game_id)
            if game.status == GameStatus.ACTIVE:
                raise ActiveGame("Cannot delete an active game")
            with self._lock:
                del self._games[game_id]
                del self._locks[game_id]
        logger.info("Deleted game %r with ID %s", game.name, game_id)

    @staticmethod
    def count_player_moves(game: Game, player_id: str) -> int:
        return sum(1 for m in game.moves if m.player_id == player_id)
