"""In-memory Tic Tac Toe engine: games, players, stats and leaderboard."""

from .coordinator import MatchCoordinator
from .core import GameStore
from .leaderboard import LeaderboardAggregator
from .players import PlayerStore

__all__ = ["GameStore", "PlayerStore", "MatchCoordinator", "LeaderboardAggregator"]
