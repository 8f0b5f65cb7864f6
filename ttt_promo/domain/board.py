"""Board rules that are independent from HTTP and the promo stores.

A board is a sequence of 9 cells, row by row. Each cell is None (empty),
PLAYER_MARK or COMPUTER_MARK.
"""

from dataclasses import dataclass
from typing import Optional, Sequence, Tuple

PLAYER_MARK = "X"
COMPUTER_MARK = "O"
BOARD_SIZE = 9

# Order matters: the first matching line is reported.
WINNING_COMBOS: Tuple[Tuple[int, int, int], ...] = (
    (0, 1, 2),
    (3, 4, 5),
    (6, 7, 8),
    (0, 3, 6),
    (1, 4, 7),
    (2, 5, 8),
    (0, 4, 8),
    (2, 4, 6),
)

Cell = Optional[str]
Board = Sequence[Cell]


@dataclass(frozen=True)
class Outcome:
    """Terminal state of a board. Ongoing games have no Outcome at all."""

    winner: Optional[str]
    combo: Optional[Tuple[int, int, int]]
    is_draw: bool

    def to_dict(self) -> dict:
        return {
            "winner": self.winner,
            "combo": list(self.combo) if self.combo is not None else None,
            "isDraw": self.is_draw,
        }


def empty_board() -> list:
    return [None] * BOARD_SIZE


def validate_board(board: Board) -> None:
    """Raise ValueError unless board has 9 cells holding known marks."""
    if len(board) != BOARD_SIZE:
        raise ValueError(f"board must have {BOARD_SIZE} cells, got {len(board)}")
    for cell in board:
        if cell not in (None, PLAYER_MARK, COMPUTER_MARK):
            raise ValueError(f"unknown mark: {cell!r}")


def empty_cells(board: Board) -> list:
    return [index for index, value in enumerate(board) if not value]


def evaluate_board(board: Board) -> Optional[Outcome]:
    """Return the Outcome of a finished board, or None while play continues.

    Args:
        board (Board): 9 cells, not modified

    Returns:
        Optional[Outcome]: Win for the first line (in WINNING_COMBOS order) holding
        three equal marks, Draw for a full board, None otherwise
    """
    for combo in WINNING_COMBOS:
        a, b, c = combo
        if board[a] and board[a] == board[b] == board[c]:
            return Outcome(winner=board[a], combo=combo, is_draw=False)

    if all(board):
        return Outcome(winner=None, combo=None, is_draw=True)

    return None
