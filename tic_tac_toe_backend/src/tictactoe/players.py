import logging
import re
import threading
import uuid
from typing import Dict, Iterable, List, Optional, Tuple

from .config import settings
from .errors import DuplicateEmail, InvalidArgument, InvalidEmail, InvalidName, NotFound
from .models import Outcome, Player, PlayerStatsRecord, utcnow

logger = logging.getLogger(__name__)

EMAIL_RE = re.compile(r"^[^\s@]+@[^\s@]+\.[^\s@]+$")

StatsUpdate = Tuple[str, Outcome, int]


# PUBLIC_INTERFACE
def normalize_email(email: str) -> str:
    return email.strip().lower()


def calculate_win_rate(games_won: int, games_played: int) -> float:
    return games_won / games_played * 100 if games_played > 0 else 0


def calculate_efficiency(total_moves: int, games_won: int) -> float:
    return total_moves / games_won if games_won > 0 else 0


class PlayerStore:
    """In-memory player registry with running per-player statistics."""

    def __init__(self, max_name_length: Optional[int] = None, max_email_length: Optional[int] = None):
        self.max_name_length = max_name_length or settings.MAX_PLAYER_NAME_LENGTH
        self.max_email_length = max_email_length or settings.MAX_EMAIL_LENGTH
        self._players: Dict[str, Player] = {}
        self._locks: Dict[str, threading.Lock] = {}
        self._lock = threading.RLock()

    def _clean_name(self, name) -> str:
        cleaned = name.strip() if isinstance(name, str) else ""
        if not cleaned or len(cleaned) > self.max_name_length:
            raise InvalidName(
                f"Invalid name. Name is required and must be less than {self.max_name_length} characters."
            )
        return cleaned

    def _clean_email(self, email) -> str:
        if not isinstance(email, str) or not email.strip() or not EMAIL_RE.match(email.strip()):
            raise InvalidEmail("Invalid email")
        cleaned = normalize_email(email)
        if len(cleaned) > self.max_email_length:
            raise InvalidEmail("Email is too long")
        return cleaned

    # PUBLIC_INTERFACE
    def create_player(self, name: str, email: str) -> Player:
        """Register a player with zeroed stats. Emails are unique case-insensitively."""
        cleaned_name = self._clean_name(name)
        cleaned_email = self._clean_email(email)
        with self._lock:
            if self.get_by_email(cleaned_email) is not None:
                raise DuplicateEmail("Email already in use. Choose another email.")
            player = Player(id=str(uuid.uuid4()), name=cleaned_name, email=cleaned_email)
            self._players[player.id] = player
            self._locks[player.id] = threading.Lock()
        logger.info("Registered player %s (%s)", player.id, player.name)
        return player

    def lock_for(self, player_id: str) -> threading.Lock:
        """Admission lock for a registered player, dropped with the player."""
        with self._lock:
            lock = self._locks.get(player_id)
        if lock is None:
            raise NotFound("Player not found")
        return lock

    def get_by_id(self, player_id: str) -> Optional[Player]:
        with self._lock:
            return self._players.get(player_id)

    # PUBLIC_INTERFACE
    def get_player(self, player_id: str) -> Player:
        player = self.get_by_id(player_id)
        if player is None:
            raise NotFound("Player not found")
        return player

    def get_by_email(self, email: str) -> Optional[Player]:
        email = normalize_email(email)
        with self._lock:
            for player in self._players.values():
                if player.email == email:
                    return player
        return None

    def _validate_update(self, player_id: str, outcome, moves) -> Tuple[Player, Outcome, int]:
        player = self.get_by_id(player_id)
        if player is None:
            raise NotFound("Player not found")
        if isinstance(moves, bool) or not isinstance(moves, int) or moves < 0:
            raise InvalidArgument("Invalid moves")
        try:
            outcome = Outcome(outcome)
        except ValueError:
            raise InvalidArgument(f"Invalid outcome: {outcome}")
        return player, outcome, moves

    @staticmethod
    def _apply(player: Player, outcome: Outcome, moves: int) -> Player:
        stats = player.stats
        stats.games_played += 1
        stats.total_moves += moves
        if outcome == Outcome.WIN:
            stats.games_won += 1
        elif outcome == Outcome.LOSS:
            stats.games_lost += 1
        else:
            stats.games_tied += 1
        stats.win_rate = calculate_win_rate(stats.games_won, stats.games_played)
        stats.efficiency = calculate_efficiency(stats.total_moves, stats.games_won)
        player.updated_at = utcnow()
        logger.info("Updated stats for player %s: %s after %d moves", player.id, outcome.value, moves)
        return player

    # PUBLIC_INTERFACE
    def update_stats_per_game(self, player_id: str, outcome: Outcome, moves_this_game: int) -> Player:
        """Fold one completed game into the player's running stats."""
        with self._lock:
            player, outcome, moves = self._validate_update(player_id, outcome, moves_this_game)
            return self._apply(player, outcome, moves)

    # PUBLIC_INTERFACE
    def update_stats_for_game(self, updates: Iterable[StatsUpdate]) -> List[Player]:
        """Apply several per-game updates atomically.

        Every update is validated before any is applied, and the store lock is
        held throughout, so either all players are updated or none are.
        """
        with self._lock:
            validated = [self._validate_update(*update) for update in updates]
            return [self._apply(*entry) for entry in validated]

    # PUBLIC_INTERFACE
    def get_all_players(self) -> List[Player]:
        """All players by wins, descending; ties keep registration order."""
        with self._lock:
            players = list(self._players.values())
        return sorted(players, key=lambda p: p.stats.games_won, reverse=True)

    # PUBLIC_INTERFACE
    def get_all_player_stats(self) -> List[PlayerStatsRecord]:
        with self._lock:
            return [
                PlayerStatsRecord(player_id=p.id, player_name=p.name, **p.stats.model_dump())
                for p in self._players.values()
            ]

    # PUBLIC_INTERFACE
    def update_player_info(self, player_id: str, name: Optional[str] = None, email: Optional[str] = None) -> Player:
        with self._lock:
            player = self.get_player(player_id)
            cleaned_name = self._clean_name(name) if name is not None else None
            cleaned_email = self._clean_email(email) if email is not None else None
            if cleaned_email is not None:
                existing = self.get_by_email(cleaned_email)
                if existing is not None and existing.id != player_id:
                    raise DuplicateEmail("Email already in use. Choose another email.")
            if cleaned_name is not None:
                player.name = cleaned_name
            if cleaned_email is not None:
                player.email = cleaned_email
            player.updated_at = utcnow()
        logger.info("Updated player info for %s", player_id)
        return player

    # PUBLIC_INTERFACE
    def delete_player(self, player_id: str) -> None:
        with self._lock:
            self.get_player(player_id)
            del self._players[player_id]
            del self._locks[player_id]
        logger.info("Deleted player %s", player_id)
