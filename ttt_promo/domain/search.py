"""Computer opponent: minimax search layered with a difficulty policy.

The computer (COMPUTER_MARK) is the maximizing side. Scores of finished
boards are 10 - depth for a computer win and depth - 10 for a player win, so
faster wins and slower losses are preferred. When a depth cap is set the
search stops there and falls back to score_board as a static evaluation.
"""

from enum import Enum
from functools import lru_cache
from typing import NamedTuple, Optional, Tuple

import numpy as np

from ttt_promo.domain.board import (
    COMPUTER_MARK,
    PLAYER_MARK,
    WINNING_COMBOS,
    Board,
    empty_cells,
    evaluate_board,
    validate_board,
)

WIN_SCORE = 10
LINE_INDEX = np.array(WINNING_COMBOS)


class Difficulty(str, Enum):
    easy = "easy"
    normal = "normal"
    hard = "hard"


class DifficultyPolicy(NamedTuple):
    blunder_rate: float
    max_depth: Optional[int]


DIFFICULTY_SETTINGS = {
    Difficulty.easy: DifficultyPolicy(blunder_rate=0.25, max_depth=None),
    Difficulty.normal: DifficultyPolicy(blunder_rate=0.0, max_depth=3),
    Difficulty.hard: DifficultyPolicy(blunder_rate=0.0, max_depth=None),
}


def resolve_difficulty(difficulty) -> Difficulty:
    """Map a difficulty name to Difficulty; unknown names play as normal."""
    try:
        return Difficulty(difficulty)
    except ValueError:
        return Difficulty.normal


def score_board(board: Board) -> int:
    """Static evaluation used when a capped search runs out of depth.

    Lines holding marks of only one side score +3/-3 with two marks and
    +1/-1 with one mark. Positive values favour the computer.

    Args:
        board (Board): 9 cells

    Returns:
        int: Sum over all 8 lines
    """
    values = np.array(
        [1 if cell == COMPUTER_MARK else -1 if cell == PLAYER_MARK else 0 for cell in board]
    )
    lines = values[LINE_INDEX]
    computer_count = (lines == 1).sum(axis=1)
    player_count = (lines == -1).sum(axis=1)

    computer_only = player_count == 0
    player_only = computer_count == 0
    score = (
        3 * ((computer_count == 2) & computer_only)
        + ((computer_count == 1) & computer_only)
        - 3 * ((player_count == 2) & player_only)
        - ((player_count == 1) & player_only)
    )
    return int(score.sum())


def _place(board: Tuple, index: int, mark: str) -> Tuple:
    return board[:index] + (mark,) + board[index + 1:]


@lru_cache(maxsize=None)
def _minimax(board: Tuple, depth: int, is_maximizing: bool, max_depth: Optional[int]) -> int:
    outcome = evaluate_board(board)
    if outcome is not None:
        if outcome.is_draw:
            return 0
        return WIN_SCORE - depth if outcome.winner == COMPUTER_MARK else depth - WIN_SCORE

    if max_depth is not None and depth >= max_depth:
        return score_board(board)

    mark = COMPUTER_MARK if is_maximizing else PLAYER_MARK
    scores = [
        _minimax(_place(board, index, mark), depth + 1, not is_maximizing, max_depth)
        for index in empty_cells(board)
    ]
    return max(scores) if is_maximizing else min(scores)


def minimax(board: Board, depth: int, is_maximizing: bool, max_depth: Optional[int] = None) -> int:
    """Value of board for the computer with the given side to move.

    Args:
        board (Board): 9 cells, not modified
        depth (int): Plies already played below the root move
        is_maximizing (bool): True when the computer moves next
        max_depth (Optional[int]): Depth at which score_board replaces the search. None searches to the end

    Returns:
        int: Minimax value
    """
    return _minimax(tuple(board), depth, is_maximizing, max_depth)


def get_best_move(board: Board, max_depth: Optional[int] = None) -> Optional[int]:
    """Return the empty cell with the strictly greatest minimax value.

    Ties keep the first (lowest) index. None if the board is full.
    """
    root = tuple(board)
    best_score = -np.inf
    move = None

    for index in empty_cells(root):
        score = _minimax(_place(root, index, COMPUTER_MARK), 0, False, max_depth)
        if score > best_score:
            best_score = score
            move = index

    return move


def get_random_move(board: Board, rng: np.random.Generator) -> Optional[int]:
    available = empty_cells(board)
    if not available:
        return None
    return int(rng.choice(available))


def choose_move(
    board: Board,
    difficulty="normal",
    rng: Optional[np.random.Generator] = None,
) -> Optional[int]:
    """Pick the computer's next cell under the given difficulty.

    Easy plays a uniformly random empty cell with probability 0.25 and full
    minimax otherwise. Normal searches 3 plies deep. Hard searches to the end
    and never loses. The board must not be finished already.

    Args:
        board (Board): 9 cells, not modified
        difficulty (Difficulty | str): "easy", "normal" or "hard"
        rng (Optional[np.random.Generator]): Source of blunders. A fresh default_rng() if omitted

    Returns:
        Optional[int]: Cell index 0..8, or None when no cell is empty
    """
    validate_board(board)
    policy = DIFFICULTY_SETTINGS[resolve_difficulty(difficulty)]

    if policy.blunder_rate > 0:
        if rng is None:
            rng = np.random.default_rng()
        if rng.random() < policy.blunder_rate:
            return get_random_move(board, rng)

    return get_best_move(board, policy.max_depth)
