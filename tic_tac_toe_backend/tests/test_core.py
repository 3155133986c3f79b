import pytest
from pydantic import ValidationError

from tictactoe.core import GameStore, check_outcome, create_empty_board, has_complete_line, is_board_full
from tictactoe.errors import (
    ActiveGame,
    DuplicatePlayer,
    GameFull,
    InvalidState,
    NameTooLong,
    NotFound,
    Occupied,
    OutOfBounds,
    WrongTurn,
)
from tictactoe.models import Game, GamePlayer, GameResult, GameStatus, Move, Player, PlayerStats

from conftest import DRAW_SEQUENCE, TOP_ROW_WIN_SEQUENCE


def _started(game_store, alice, bob):
    game = game_store.create_game('Match')
    game_store.join(game.id, alice)
    return game_store.join(game.id, bob)


def _replay(game_store, game_id, sequence, alice, bob):
    ids = {'alice': alice.id, 'bob': bob.id}
    game = None
    for who, row, col in sequence:
        game = game_store.move(game_id, ids[who], row, col)
    return game


def test_board_helpers():
    board = create_empty_board(3)
    assert board == [[None] * 3 for _ in range(3)]
    assert not is_board_full(board)

    board[0][2] = board[1][1] = board[2][0] = 2
    assert has_complete_line(board, 2)
    assert not has_complete_line(board, 1)
    assert check_outcome(board, 2) == 'win'
    assert check_outcome(board, 1) == 'ongoing'

    full = [[1, 2, 1], [1, 2, 2], [2, 1, 1]]
    assert is_board_full(full)
    assert check_outcome(full, 1) == 'draw'


def test_create_game_defaults(game_store):
    game = game_store.create_game('  Lunch break  ')
    assert game.name == 'Lunch break'
    assert game.status == GameStatus.WAITING
    assert game.players == [] and game.moves == []
    assert game.current_player_id is None and game.winner_id is None
    stored = game_store.get_by_id(game.id)
    assert stored is not game
    assert stored.model_dump() == game.model_dump()
    assert game_store.create_game().name == ''


def test_create_game_rejects_long_name(game_store):
    with pytest.raises(NameTooLong):
        game_store.create_game('x' * 51)
    assert game_store.create_game('x' * 50).name == 'x' * 50
    assert len(game_store.get_all()) == 1


def test_join_assigns_markers_and_activates(game_store, alice, bob):
    game = game_store.create_game()
    game = game_store.join(game.id, alice)
    assert game.status == GameStatus.WAITING
    assert game.players[0].marker == 1

    game = game_store.join(game.id, bob)
    assert game.status == GameStatus.ACTIVE
    assert [p.marker for p in game.players] == [1, 2]
    assert game.current_player_id == alice.id


def test_join_errors(game_store, alice, bob, carol):
    with pytest.raises(NotFound):
        game_store.join('missing', alice)

    game = game_store.create_game()
    game_store.join(game.id, alice)
    with pytest.raises(DuplicatePlayer):
        game_store.join(game.id, alice)

    twin = Player(id='other-id', name='Alice Again', email='  ALICE@mail.com ')
    with pytest.raises(DuplicatePlayer):
        game_store.join(game.id, twin)

    game_store.join(game.id, bob)
    with pytest.raises(GameFull):
        game_store.join(game.id, carol)


def test_join_rejected_for_non_waiting_game(game_store, alice, bob):
    game = _started(game_store, alice, bob)
    game_store._games[game.id].players.pop()  # corrupted roster, so only the status check applies
    with pytest.raises(InvalidState):
        game_store.join(game.id, bob)


def test_move_validation_order(game_store, alice, bob):
    game = game_store.create_game()
    game_store.join(game.id, alice)
    with pytest.raises(InvalidState):
        game_store.move(game.id, alice.id, 0, 0)
    game_store.join(game.id, bob)

    with pytest.raises(NotFound):
        game_store.move('missing', alice.id, 0, 0)
    with pytest.raises(WrongTurn):
        game_store.move(game.id, bob.id, 0, 0)
    with pytest.raises(OutOfBounds):
        game_store.move(game.id, alice.id, 3, 0)
    with pytest.raises(OutOfBounds):
        game_store.move(game.id, alice.id, 0, -1)
    with pytest.raises(OutOfBounds):
        game_store.move(game.id, alice.id, 0.5, 1)
    with pytest.raises(OutOfBounds):
        game_store.move(game.id, alice.id, '1', 1)

    game_store.move(game.id, alice.id, 1.0, 1)
    with pytest.raises(Occupied):
        game_store.move(game.id, bob.id, 1, 1)
    assert game_store.get_game(game.id).board[1][1] == 1


def test_moves_fill_one_cell_and_alternate(game_store, alice, bob):
    game = _started(game_store, alice, bob)
    ids = {'alice': alice.id, 'bob': bob.id}
    for who, row, col in DRAW_SEQUENCE[:-1]:
        before = [r[:] for r in game.board]
        mover = game.current_player_id
        assert mover == ids[who]
        game = game_store.move(game.id, mover, row, col)

        changed = [(r, c) for r in range(3) for c in range(3) if before[r][c] != game.board[r][c]]
        assert changed == [(row, col)]
        assert before[row][col] is None
        assert game.current_player_id != mover
        assert game.current_player_id in (alice.id, bob.id)

    assert len(game.moves) == len(DRAW_SEQUENCE) - 1
    assert game.moves[0].player_id == alice.id
    assert (game.moves[1].row, game.moves[1].col) == (0, 1)


def test_top_row_win(game_store, alice, bob):
    game = _started(game_store, alice, bob)
    game = _replay(game_store, game.id, TOP_ROW_WIN_SEQUENCE, alice, bob)
    assert game.status == GameStatus.COMPLETED
    assert game.result == GameResult.WIN
    assert game.winner_id == alice.id
    assert game.current_player_id is None
    assert game.board[0] == [1, 1, 1]
    assert GameStore.count_player_moves(game, alice.id) == 3
    assert GameStore.count_player_moves(game, bob.id) == 2


@pytest.mark.parametrize('sequence', [
    # Bob fills the middle column
    [('alice', 0, 0), ('bob', 0, 1), ('alice', 2, 2), ('bob', 1, 1), ('alice', 0, 2), ('bob', 2, 1)],
    # Alice fills the main diagonal
    [('alice', 0, 0), ('bob', 0, 1), ('alice', 1, 1), ('bob', 0, 2), ('alice', 2, 2)],
    # Alice fills the anti-diagonal
    [('alice', 0, 2), ('bob', 0, 0), ('alice', 1, 1), ('bob', 0, 1), ('alice', 2, 0)],
])
def test_column_and_diagonal_wins(game_store, alice, bob, sequence):
    game = _started(game_store, alice, bob)
    game = _replay(game_store, game.id, sequence, alice, bob)
    winner = alice.id if sequence[-1][0] == 'alice' else bob.id
    assert game.result == GameResult.WIN
    assert game.winner_id == winner
    marker = game.player(winner).marker
    assert has_complete_line(game.board, marker)


def test_full_board_without_line_is_draw(game_store, alice, bob):
    game = _started(game_store, alice, bob)
    game = _replay(game_store, game.id, DRAW_SEQUENCE, alice, bob)
    assert game.status == GameStatus.COMPLETED
    assert game.result == GameResult.DRAW
    assert game.winner_id is None
    assert is_board_full(game.board)
    assert not has_complete_line(game.board, 1)
    assert not has_complete_line(game.board, 2)


def test_completed_game_rejects_moves_and_joins(game_store, alice, bob, carol):
    game = _started(game_store, alice, bob)
    _replay(game_store, game.id, TOP_ROW_WIN_SEQUENCE, alice, bob)
    with pytest.raises(InvalidState):
        game_store.move(game.id, bob.id, 2, 2)
    with pytest.raises(GameFull):
        game_store.join(game.id, carol)


def test_queries_and_delete(game_store, alice, bob):
    waiting = game_store.create_game('waiting')
    active = _started(game_store, alice, bob)

    assert [g.id for g in game_store.get_all()] == [waiting.id, active.id]
    assert [g.id for g in game_store.get_all(GameStatus.WAITING)] == [waiting.id]
    assert [g.id for g in game_store.get_all('active')] == [active.id]
    assert [g.id for g in game_store.get_active()] == [active.id]

    with pytest.raises(ActiveGame):
        game_store.delete(active.id)
    game_store.delete(waiting.id)
    assert game_store.get_by_id(waiting.id) is None
    with pytest.raises(NotFound):
        game_store.delete(waiting.id)
    with pytest.raises(NotFound):
        game_store.get_game(waiting.id)


def test_larger_board_needs_full_line(alice, bob):
    store = GameStore(board_size=4)
    game = store.create_game()
    store.join(game.id, alice)
    store.join(game.id, bob)
    sequence = [('alice', 0, 0), ('bob', 1, 0), ('alice', 0, 1), ('bob', 1, 1), ('alice', 0, 2), ('bob', 1, 2)]
    game = _replay(store, game.id, sequence, alice, bob)
    assert game.status == GameStatus.ACTIVE
    game = store.move(game.id, alice.id, 0, 3)
    assert game.winner_id == alice.id


def test_unknown_ids_do_not_leave_locks_behind(game_store, alice, bob):
    game = _started(game_store, alice, bob)
    assert set(game_store._locks) == {game.id}

    for _ in range(50):
        with pytest.raises(NotFound):
            game_store.move('bogus', alice.id, 0, 0)
        with pytest.raises(NotFound):
            game_store.join('bogus', alice)
        with pytest.raises(NotFound):
            game_store.delete('bogus')
        with pytest.raises(NotFound):
            game_store.lock_for('bogus')
    assert set(game_store._locks) == {game.id}

    game = _replay(game_store, game.id, DRAW_SEQUENCE, alice, bob)
    game_store.delete(game.id)
    assert game_store._locks == {}


def test_returned_games_are_snapshots(game_store, alice, bob):
    game = _started(game_store, alice, bob)
    game.board[0][0] = 2
    game.players.clear()
    game.status = GameStatus.COMPLETED

    stored = game_store.get_game(game.id)
    assert stored.board[0][0] is None
    assert [p.id for p in stored.players] == [alice.id, bob.id]
    assert stored.status == GameStatus.ACTIVE

    listed = game_store.get_all()[0]
    listed.moves.append(None)
    assert game_store.get_game(game.id).moves == []


def test_rejected_move_leaves_stored_game_unchanged(game_store, alice, bob):
    game = _started(game_store, alice, bob)
    before = game_store.get_game(game.id).model_dump()
    with pytest.raises(OutOfBounds):
        game_store.move(game.id, alice.id, 0, 9)
    with pytest.raises(WrongTurn):
        game_store.move(game.id, bob.id, 0, 0)
    assert game_store.get_game(game.id).model_dump() == before


def test_models_accept_field_names_and_aliases(game_store, alice, bob):
    for model in (Game, GamePlayer, Move, Player, PlayerStats):
        assert model.model_config['populate_by_name'] is True

    move = Move(id='m1', gameId='g1', player_id='p1', row=0, col=2)
    assert (move.game_id, move.player_id) == ('g1', 'p1')
    assert move.model_dump(by_alias=True)['playerId'] == 'p1'
    with pytest.raises(ValidationError):
        move.row = 1

    game = _replay(game_store, _started(game_store, alice, bob).id, TOP_ROW_WIN_SEQUENCE[:1], alice, bob)
    with pytest.raises(ValidationError):
        game.moves[0].col = 1
