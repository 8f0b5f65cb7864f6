import numpy as np
import pytest

from tests.conftest import StubRng
from ttt_promo.domain.board import COMPUTER_MARK, PLAYER_MARK, empty_board, empty_cells, evaluate_board
from ttt_promo.domain.search import (
    DIFFICULTY_SETTINGS,
    Difficulty,
    choose_move,
    get_best_move,
    minimax,
    resolve_difficulty,
    score_board,
)

WINNING_CHANCE = ["O", "O", None, "X", "X", None, None, None, None]
MUST_BLOCK = ["X", "X", None, None, "O", None, None, None, None]
DRAWN = ["X", "O", "X", "X", "O", "O", "O", "X", "X"]


class TestScoreBoard:
    def test_empty_board_is_neutral(self):
        assert score_board(empty_board()) == 0

    def test_counts_open_lines_for_the_computer(self):
        """Line 0-1-2 holds two O (+3); lines 0-3-6, 0-4-8 and 1-4-7 hold one O (+1 each)."""
        board = ["O", "O", None, None, None, None, None, None, None]

        assert score_board(board) == 6

    def test_mixed_lines_score_nothing(self):
        """O in the corner and X in the centre: 2 open O lines, 3 open X lines."""
        board = ["O", None, None, None, "X", None, None, None, None]

        assert score_board(board) == -1

    def test_is_symmetric_between_sides(self):
        board = ["X", "X", None, None, "O", None, None, None, None]
        swapped = [{"X": "O", "O": "X"}.get(cell) for cell in board]

        assert score_board(board) == -score_board(swapped)


class TestMinimax:
    def test_computer_win_prefers_fewer_plies(self):
        board = ["O", "O", "O", "X", "X", None, None, None, None]

        assert minimax(board, 2, False) == 8

    def test_player_win_is_negative(self):
        board = ["X", "X", "X", "O", "O", None, None, None, None]

        assert minimax(board, 3, True) == -7

    def test_draw_is_zero(self):
        assert minimax(DRAWN, 4, True) == 0

    def test_depth_cap_returns_static_score(self):
        board = ["O", "O", None, None, None, None, None, None, None]

        assert minimax(board, 3, False, max_depth=3) == score_board(board)

    def test_does_not_mutate_board(self):
        board = list(MUST_BLOCK)

        minimax(board, 0, True)
        get_best_move(board)

        assert board == MUST_BLOCK


class TestGetBestMove:
    def test_takes_a_winning_move(self):
        assert get_best_move(WINNING_CHANCE) == 2

    def test_blocks_an_immediate_loss(self):
        assert get_best_move(MUST_BLOCK) == 2

    def test_full_board_has_no_move(self):
        assert get_best_move(DRAWN) is None

    def test_ties_keep_the_lowest_index(self):
        """Every opening move draws under perfect play, so the first cell wins the tie."""
        assert get_best_move(empty_board()) == 0


class TestChooseMove:
    @pytest.mark.parametrize("difficulty", ["normal", "hard", Difficulty.hard])
    def test_takes_a_winning_move(self, difficulty):
        assert choose_move(WINNING_CHANCE, difficulty) == 2

    def test_easy_takes_a_winning_move_without_blunder(self):
        assert choose_move(WINNING_CHANCE, "easy", rng=StubRng(0.99)) == 2

    @pytest.mark.parametrize("difficulty", ["normal", "hard"])
    def test_blocks_an_immediate_loss(self, difficulty):
        assert choose_move(MUST_BLOCK, difficulty) == 2

    def test_easy_blunder_plays_a_random_empty_cell(self):
        rng = StubRng(0.1, pick=-1)

        move = choose_move(WINNING_CHANCE, "easy", rng=rng)

        assert move == 8

    def test_easy_blunder_with_numpy_generator_stays_on_empty_cells(self):
        rng = np.random.default_rng(7)
        board = ["X", None, "O", None, "X", None, None, None, None]

        for _ in range(50):
            assert board[choose_move(board, "easy", rng=rng)] is None

    @pytest.mark.parametrize("difficulty", ["easy", "normal", "hard"])
    def test_full_board_has_no_move(self, difficulty):
        assert choose_move(DRAWN, difficulty, rng=StubRng(0.0)) is None

    def test_unknown_difficulty_plays_as_normal(self):
        assert resolve_difficulty("impossible") == Difficulty.normal
        assert choose_move(MUST_BLOCK, "impossible") == 2

    def test_rejects_malformed_board(self):
        with pytest.raises(ValueError):
            choose_move(["X"] * 4, "hard")

    def test_difficulty_settings(self):
        assert DIFFICULTY_SETTINGS[Difficulty.easy].blunder_rate == 0.25
        assert DIFFICULTY_SETTINGS[Difficulty.normal].max_depth == 3
        assert DIFFICULTY_SETTINGS[Difficulty.hard].max_depth is None


def assert_hard_never_loses(board, player_to_move):
    outcome = evaluate_board(board)
    if outcome is not None:
        assert outcome.winner != PLAYER_MARK, board
        return

    if player_to_move:
        for index in empty_cells(board):
            next_board = list(board)
            next_board[index] = PLAYER_MARK
            assert_hard_never_loses(next_board, False)
    else:
        next_board = list(board)
        next_board[choose_move(board, "hard")] = COMPUTER_MARK
        assert_hard_never_loses(next_board, True)


class TestHardNeverLoses:
    def test_when_player_starts(self):
        assert_hard_never_loses(empty_board(), player_to_move=True)

    def test_when_computer_starts(self):
        assert_hard_never_loses(empty_board(), player_to_move=False)
