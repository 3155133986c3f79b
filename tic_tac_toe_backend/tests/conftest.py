import os
import sys
import pytest

# Ensure the src directory (containing the `tictactoe` package) is on sys.path
CURRENT_DIR = os.path.dirname(__file__)
SRC_ROOT = os.path.abspath(os.path.join(CURRENT_DIR, '..', 'src'))
if SRC_ROOT not in sys.path:
    sys.path.insert(0, SRC_ROOT)

from fastapi.testclient import TestClient  # noqa: E402

from tictactoe.coordinator import MatchCoordinator  # noqa: E402
from tictactoe.core import GameStore  # noqa: E402
from tictactoe.main import create_app  # noqa: E402
from tictactoe.players import PlayerStore  # noqa: E402

# Draw: X O X / X O O / O X X, with Alice as X (marker 1)
DRAW_SEQUENCE = [
    ('alice', 0, 0), ('bob', 0, 1),
    ('alice', 0, 2), ('bob', 1, 1),
    ('alice', 1, 0), ('bob', 1, 2),
    ('alice', 2, 1), ('bob', 2, 0),
    ('alice', 2, 2),
]

# Alice completes the top row on her third move
TOP_ROW_WIN_SEQUENCE = [
    ('alice', 0, 0), ('bob', 1, 0),
    ('alice', 0, 1), ('bob', 1, 1),
    ('alice', 0, 2),
]


@pytest.fixture()
def game_store():
    return GameStore(board_size=3)


@pytest.fixture()
def player_store():
    return PlayerStore()


@pytest.fixture()
def coordinator(game_store, player_store):
    return MatchCoordinator(game_store, player_store, board_size=3)


@pytest.fixture()
def alice(player_store):
    return player_store.create_player('Alice', 'alice@mail.com')


@pytest.fixture()
def bob(player_store):
    return player_store.create_player('Bob', 'bob@mail.com')


@pytest.fixture()
def carol(player_store):
    return player_store.create_player('Carol', 'carol@mail.com')


@pytest.fixture()
def active_game(coordinator, alice, bob):
    game = coordinator.create_game('Friendly')
    coordinator.add_player_to_game(game.id, alice)
    return coordinator.add_player_to_game(game.id, bob)


@pytest.fixture()
def play(coordinator, alice, bob):
    """Play a sequence of (who, row, col) moves through the coordinator."""
    ids = {'alice': alice.id, 'bob': bob.id}

    def _play(game_id, sequence):
        game = None
        for who, row, col in sequence:
            game = coordinator.make_move(game_id, ids[who], row, col)
        return game

    return _play


@pytest.fixture()
def client():
    return TestClient(create_app())
