import argparse
import asyncio
from contextlib import AsyncExitStack
from typing import Optional

from ttt_promo.domain.board import Outcome, PLAYER_MARK
from ttt_promo.domain.search import Difficulty
from ttt_promo.domain.session_controller import THINK_DELAY_SECONDS, GameSessionController, GameState
from ttt_promo.services.result_client import HttpResultReporter


def render_board(board) -> str:
    cells = [value or str(index + 1) for index, value in enumerate(board)]
    rows = [" | ".join(cells[row * 3:row * 3 + 3]) for row in range(3)]
    return "\n---------\n".join(rows)


def describe_outcome(outcome: Outcome, promo_code: Optional[str], report_failed: bool) -> str:
    if outcome.is_draw:
        return "Draw. Play again?"
    if outcome.winner != PLAYER_MARK:
        return "The computer won this time. Play again?"
    if promo_code:
        return f"You won! Your discount code: {promo_code}"
    if report_failed:
        return "You won! Promo code unavailable, try later."
    return "You won!"


async def read_cell(prompt: str) -> Optional[int]:
    line = await asyncio.to_thread(input, prompt)
    line = line.strip().lower()
    if line in ("q", "quit"):
        return None
    if not line.isdigit():
        return -1
    return int(line) - 1


async def play(args: argparse.Namespace) -> None:
    async with AsyncExitStack() as stack:
        reporter = None
        if args.server:
            reporter = await stack.enter_async_context(HttpResultReporter(args.server, args.init_data))

        controller = GameSessionController(
            difficulty=args.difficulty,
            computer_starts=args.computer_starts,
            think_delay=args.think_delay,
            reporter=reporter,
        )
        controller.start()

        while True:
            await controller.wait_idle()
            print(render_board(controller.board), end="\n\n")

            if controller.state == GameState.game_over:
                print(describe_outcome(controller.outcome, controller.promo_code, controller.report_failed))
                again = await asyncio.to_thread(input, "Play again? [y/N] ")
                if again.strip().lower() != "y":
                    return
                controller.reset()
                continue

            index = await read_cell("Your move (1-9, q to quit): ")
            if index is None:
                return
            if not controller.click(index):
                print("That cell is not available.")


def get_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Tic-tac-toe against the computer")
    parser.add_argument("--difficulty", type=str, choices=[d.value for d in Difficulty], default="normal")
    parser.add_argument("--computer-starts", action="store_true", help="Let the computer move first")
    parser.add_argument("--think-delay", type=float, default=THINK_DELAY_SECONDS, help="Seconds before the computer moves")
    parser.add_argument("--server", type=str, help="Base URL of the promo server, e.g. http://localhost:3000")
    parser.add_argument("--init-data", type=str, help="Telegram WebApp init data to authenticate with")
    return parser


if __name__ == "__main__":
    parser = get_parser()
    asyncio.run(play(parser.parse_args()))
