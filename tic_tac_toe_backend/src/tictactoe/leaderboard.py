from typing import Iterable, List

from .core import GameStore
from .models import GameStatus, LeaderboardEntry, PlayerStatsRecord, RunSummary
from .players import PlayerStore


# PUBLIC_INTERFACE
def build_leaderboard(stats: Iterable[PlayerStatsRecord]) -> List[LeaderboardEntry]:
    """Rank players who have played: most wins first, then fewest moves per win."""
    ranked = sorted(
        (s for s in stats if s.games_played > 0),
        key=lambda s: (-s.games_won, s.efficiency),
    )
    return [
        LeaderboardEntry(
            player_id=s.player_id,
            player_name=s.player_name,
            wins=s.games_won,
            win_rate=round(s.win_rate, 2),
            efficiency=round(s.efficiency, 2),
        )
        for s in ranked
    ]


# PUBLIC_INTERFACE
def summarize(stats: Iterable[PlayerStatsRecord], completed_games: int) -> RunSummary:
    stats = list(stats)
    total_moves = sum(s.total_moves for s in stats)
    return RunSummary(
        completed_games=completed_games,
        total_moves=total_moves,
        average_moves_per_game=total_moves / completed_games if completed_games > 0 else 0,
        leaderboard=build_leaderboard(stats),
    )


class LeaderboardAggregator:
    """Read-only view over the stores; every call recomputes from current state."""

    def __init__(self, player_store: PlayerStore, game_store: GameStore):
        self.players = player_store
        self.games = game_store

    # PUBLIC_INTERFACE
    def leaderboard(self) -> List[LeaderboardEntry]:
        return build_leaderboard(self.players.get_all_player_stats())

    # PUBLIC_INTERFACE
    def summary(self) -> RunSummary:
        completed = len(self.games.get_all(GameStatus.COMPLETED))
        return summarize(self.players.get_all_player_stats(), completed)
