from ttt_promo.domain.board import Outcome
from ttt_promo.play import describe_outcome, get_parser, render_board


class TestTerminalFrontEnd:
    def test_render_board_numbers_empty_cells(self):
        board = ["X", None, None, None, "O", None, None, None, None]

        assert render_board(board) == "X | 2 | 3\n---------\n4 | O | 6\n---------\n7 | 8 | 9"

    def test_describe_outcome(self):
        win = Outcome(winner="X", combo=(0, 1, 2), is_draw=False)
        loss = Outcome(winner="O", combo=(0, 1, 2), is_draw=False)
        draw = Outcome(winner=None, combo=None, is_draw=True)

        assert "12345" in describe_outcome(win, "12345", False)
        assert "unavailable" in describe_outcome(win, None, True)
        assert "computer won" in describe_outcome(loss, None, False)
        assert describe_outcome(draw, None, False).startswith("Draw")

    def test_parser_defaults(self):
        args = get_parser().parse_args([])

        assert args.difficulty == "normal"
        assert args.computer_starts is False
        assert args.server is None
