"""Unit tests for Tic-Tac-Toe board state and turn handling."""

import random

import pytest

from boards import make_board
from tictactoe.ai import HeuristicAI
from tictactoe.game import (
    NEAR_WIN_PATTERNS,
    WIN_PATTERNS,
    Board,
    Move,
    Player,
    Status,
    TicTacToeGame,
)

# O X O / O X X / X O O
DRAW_HUMAN = (0, 2, 3, 7, 8)
DRAW_COMPUTER = (1, 4, 5, 6)


def seeded_game(seed: int = 0, **kwargs) -> TicTacToeGame:
    return TicTacToeGame(ai=HeuristicAI(rng=random.Random(seed)), **kwargs)


def game_in_state(state: str) -> TicTacToeGame:
    if state == "won":
        game = seeded_game(board=make_board(human=(0, 1), computer=(3, 4)))
        game.apply_human_move(2)
    elif state == "draw":
        board = make_board(human=DRAW_HUMAN[:-1], computer=DRAW_COMPUTER)
        game = seeded_game(board=board)
        game.apply_human_move(8)
    else:
        game = seeded_game()
        game.apply_human_move(0)
        game.computer_turn()
    return game


def test_initial_state_is_empty_and_in_progress():
    game = seeded_game()
    assert game.board.empty_cells() == list(range(9))
    assert game.status is Status.IN_PROGRESS
    assert game.current_player is Player.HUMAN
    assert game.winner is None


def test_near_win_patterns_cover_every_pair():
    assert len(NEAR_WIN_PATTERNS) == 24
    for (a, b), target in NEAR_WIN_PATTERNS:
        assert tuple(sorted((a, b, target))) in WIN_PATTERNS


@pytest.mark.parametrize("pattern", WIN_PATTERNS)
@pytest.mark.parametrize("player", list(Player))
def test_has_win_for_every_pattern(pattern, player):
    board = Board()
    for index in pattern:
        board.place(Move(player, index))
    assert board.has_win(player)
    assert not board.has_win(player.opponent)
    assert board.winning_pattern(player) == pattern


def test_two_in_a_row_is_not_a_win():
    board = make_board(human=(0, 1), computer=(2,))
    assert not board.has_win(Player.HUMAN)
    assert not board.has_win(Player.COMPUTER)


def test_full_board_without_line_is_draw():
    board = make_board(human=DRAW_HUMAN, computer=DRAW_COMPUTER)
    assert board.is_draw()
    assert not board.has_win(Player.HUMAN)
    assert not board.has_win(Player.COMPUTER)


def test_partial_board_is_not_draw():
    board = make_board(human=(0,), computer=(4,))
    assert not board.is_draw()


def test_place_rejects_occupied_and_out_of_range_cells():
    board = make_board(human=(0,))
    assert not board.place(Move(Player.COMPUTER, 0))
    assert not board.place(Move(Player.COMPUTER, 9))
    assert not board.place(Move(Player.COMPUTER, -1))
    assert board.marks() == ["O"] + [""] * 8


@pytest.mark.parametrize("index", [-1, 9])
def test_is_occupied_rejects_off_board_index(index):
    board = make_board(computer=(8,))
    with pytest.raises(IndexError):
        board.is_occupied(index)


def test_human_move_hands_turn_to_computer():
    game = seeded_game()
    result = game.apply_human_move(0)
    assert result.accepted
    assert result.outcome.status is Status.IN_PROGRESS
    assert game.current_player is Player.COMPUTER

    result = game.computer_turn()
    assert result.accepted
    assert result.index == 4
    assert game.current_player is Player.HUMAN


def test_move_on_occupied_cell_is_ignored():
    game = seeded_game()
    game.apply_human_move(0)
    game.computer_turn()
    before = game.board.marks()

    result = game.apply_human_move(4)

    assert not result.accepted
    assert game.board.marks() == before
    assert game.current_player is Player.HUMAN


@pytest.mark.parametrize("index", [-1, 9])
def test_out_of_range_move_is_ignored(index):
    game = seeded_game()
    assert not game.apply_human_move(index).accepted
    assert game.board.empty_cells() == list(range(9))


def test_human_cannot_move_on_computer_turn():
    game = seeded_game()
    game.apply_human_move(0)
    assert not game.apply_human_move(1).accepted
    assert game.board.empty_cells() == list(range(1, 9))


def test_computer_turn_ignored_on_human_turn():
    game = seeded_game()
    assert not game.computer_turn().accepted
    assert game.board.empty_cells() == list(range(9))


def test_computer_completes_its_line():
    game = seeded_game(
        board=make_board(human=(3, 4), computer=(0, 1)),
        current_player=Player.COMPUTER,
    )
    result = game.computer_turn()
    assert result.index == 2
    assert result.outcome.status is Status.WON
    assert game.winner is Player.COMPUTER


def test_last_cell_produces_draw():
    game = game_in_state("draw")
    assert game.status is Status.DRAW
    assert game.winner is None
    assert game.is_terminal
    assert game.history[-1] == Move(Player.HUMAN, 8)


@pytest.mark.parametrize(
    "state, expected",
    [("won", Status.WON), ("draw", Status.DRAW)],
)
def test_terminal_game_ignores_moves(state, expected):
    game = game_in_state(state)
    outcome = game.outcome
    before = game.board.marks()
    empty = game.board.empty_cells()

    assert not game.apply_human_move(empty[0] if empty else 0).accepted
    assert not game.computer_turn().accepted
    assert game.board.marks() == before
    assert game.outcome == outcome
    assert game.status is expected


@pytest.mark.parametrize("state", ["won", "draw", "in_progress"])
def test_restart_clears_board_from_any_state(state):
    game = game_in_state(state)

    assert game.restart() is Player.COMPUTER
    assert game.board.empty_cells() == list(range(9))
    assert game.status is Status.IN_PROGRESS
    assert game.winner is None
    assert game.history == []
    assert game.current_player is Player.COMPUTER


def test_restart_alternates_first_player():
    game = seeded_game()

    assert game.restart() is Player.COMPUTER
    assert not game.apply_human_move(0).accepted
    assert game.computer_turn().index == 4

    assert game.restart() is Player.HUMAN
    assert game.board.empty_cells() == list(range(9))
    assert game.current_player is Player.HUMAN
    assert game.apply_human_move(0).accepted


@pytest.mark.parametrize("seed", range(10))
def test_top_row_scenario_reports_win_only_when_complete(seed):
    game = seeded_game(seed)
    outcomes = []
    for index in (0, 1, 2):
        result = game.apply_human_move(index)
        outcomes.append(result.outcome)
        if game.is_terminal:
            break
        result = game.computer_turn()
        outcomes.append(result.outcome)
        if game.is_terminal:
            break

    human_top_row = game.board.cells_of(Player.HUMAN) >= {0, 1, 2}
    assert (game.winner is Player.HUMAN) == human_top_row
    assert all(not outcome.is_terminal for outcome in outcomes[:-1])
    # The computer takes the center, then blocks 2 after seeing 0 and 1
    assert game.board.slots[2] == Move(Player.COMPUTER, 2)
    assert not human_top_row


@pytest.mark.parametrize("seed", range(20))
def test_full_games_end_in_consistent_state(seed):
    rng = random.Random(seed)
    game = seeded_game(seed)
    while not game.is_terminal:
        if game.current_player is Player.HUMAN:
            game.apply_human_move(rng.choice(game.board.empty_cells()))
        else:
            game.computer_turn()

    board = game.board
    assert not (board.has_win(Player.HUMAN) and board.has_win(Player.COMPUTER))
    if game.status is Status.DRAW:
        assert board.is_draw()
        assert not board.has_win(Player.HUMAN)
        assert not board.has_win(Player.COMPUTER)
    else:
        assert board.has_win(game.winner)
    assert len(game.history) == 9 - len(board.empty_cells())
