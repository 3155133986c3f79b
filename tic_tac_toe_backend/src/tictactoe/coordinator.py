"""Cross-entity orchestration between games and players.

GameStore and PlayerStore each guard their own invariants. The coordinator
owns the ones that span both: a player may sit in only one active game at a
time, and a completed game is folded into both players' stats exactly once.
"""

import logging
from typing import List, Optional

from .config import settings
from .core import GameStore
from .errors import (
    ActiveGame,
    DuplicatePlayer,
    GameFull,
    NotFound,
    OutOfBounds,
    PlayerAlreadyActive,
)
from .models import Game, GameResult, GameStatus, Outcome
from .players import PlayerStore

logger = logging.getLogger(__name__)


def _player_id(player_ref) -> Optional[str]:
    if isinstance(player_ref, str):
        return player_ref
    if isinstance(player_ref, dict):
        return player_ref.get("id")
    return getattr(player_ref, "id", None)


class MatchCoordinator:

    def __init__(self, game_store: GameStore, player_store: PlayerStore, board_size: Optional[int] = None):
        self.games = game_store
        self.players = player_store
        self.board_size = board_size or settings.BOARD_SIZE

    # PUBLIC_INTERFACE
    def create_game(self, name: Optional[str] = None) -> Game:
        return self.games.create_game(name)

    # PUBLIC_INTERFACE
    def get_game(self, game_id: str) -> Game:
        game = self.games.get_game(game_id)
        logger.debug("Fetched game %r (status: %s) with ID %s", game.name, game.status.value, game.id)
        return game

    # PUBLIC_INTERFACE
    def list_games(self, status: Optional[GameStatus] = None) -> List[Game]:
        games = self.games.get_all(status)
        logger.debug("Fetched %d games", len(games))
        return games

    # PUBLIC_INTERFACE
    def add_player_to_game(self, game_id: str, player_ref) -> Game:
        """Admit a registered player into a waiting game.

        ``player_ref`` is a player id, a mapping with an ``id`` key or any
        object with an ``id`` attribute. Players are never created here.
        """
        game = self.games.get_game(game_id)
        if len(game.players) >= 2:
            raise GameFull("Game is full")
        player_id = _player_id(player_ref)
        player = self.players.get_by_id(player_id) if player_id else None
        if player is None:
            raise NotFound("Player not found")

        with self.players.lock_for(player.id), self.games.lock_for(game_id):
            game = self.games.get_game(game_id)
            if game.player(player.id) is not None:
                raise DuplicatePlayer("Player already in the game")
            for other in self.games.get_active():
                if other.id != game_id and other.player(player.id) is not None:
                    raise PlayerAlreadyActive("Player is already in another active game")
            game = self.games.join(game_id, player)
        logger.info("Player %s added to game %r", player.name, game.name)
        return game

    # PUBLIC_INTERFACE
    def make_move(self, game_id: str, player_id: str, row, col) -> Game:
        """Apply a move and, if it ends the game, record both players' stats."""
        for value in (row, col):
            if isinstance(value, (int, float)) and not isinstance(value, bool):
                if value < 0 or value >= self.board_size:
                    raise OutOfBounds("Cell coordinates are out of bounds")

        with self.games.lock_for(game_id):
            game = self.games.move(game_id, player_id, row, col)
            if game.status == GameStatus.COMPLETED:
                self._record_outcome(game)
        return game

    def _record_outcome(self, game: Game) -> None:
        if game.result == GameResult.WIN:
            updates = [(game.winner_id, Outcome.WIN, self.games.count_player_moves(game, game.winner_id))]
            loser = game.opponent_of(game.winner_id)
            if loser is not None:
                updates.append((loser.id, Outcome.LOSS, self.games.count_player_moves(game, loser.id)))
            logger.info("Game %r completed, winner is %s", game.name, game.winner_id)
        else:
            updates = [
                (p.id, Outcome.DRAW, self.games.count_player_moves(game, p.id))
                for p in game.players
            ]
            logger.info("Game %r completed in a draw", game.name)
        self.players.update_stats_for_game(updates)

    # PUBLIC_INTERFACE
    def delete_game(self, game_id: str) -> None:
        with self.games.lock_for(game_id):
            game = self.games.get_game(game_id)
            if game.status == GameStatus.ACTIVE:
                raise ActiveGame("Cannot delete an active game")
            self.games.delete(game_id)
