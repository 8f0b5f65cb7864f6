"""Turn order for one player against the computer opponent.

The controller owns the board and moves between three states:

    AWAITING_PLAYER_MOVE --click--> COMPUTER_THINKING --move--> AWAITING_PLAYER_MOVE
             |                              |
             +----------> GAME_OVER <------+

The computer's turn runs as an asyncio task after a think delay so it can be
cancelled by reset(). Finished games are reported through an optional
reporter coroutine: a player win as "win", a computer win as "loss". Draws
stay local.
"""

import asyncio
import logging
from enum import Enum
from typing import Awaitable, Callable, List, Optional

import numpy as np
from uuid6 import uuid7

from ttt_promo.domain.board import (
    BOARD_SIZE,
    COMPUTER_MARK,
    PLAYER_MARK,
    Outcome,
    empty_board,
    evaluate_board,
)
from ttt_promo.domain.search import Difficulty, choose_move, resolve_difficulty

THINK_DELAY_SECONDS = 0.42

Reporter = Callable[[str, str], Awaitable[dict]]


class GameState(str, Enum):
    awaiting_player_move = "awaiting_player_move"
    computer_thinking = "computer_thinking"
    game_over = "game_over"


def new_event_id() -> str:
    return str(uuid7())


class GameSessionController:
    def __init__(
        self,
        difficulty: Difficulty = Difficulty.normal,
        computer_starts: bool = False,
        think_delay: float = THINK_DELAY_SECONDS,
        reporter: Optional[Reporter] = None,
        rng: Optional[np.random.Generator] = None,
        event_id_factory: Callable[[], str] = new_event_id,
    ):
        self.difficulty: Difficulty = resolve_difficulty(difficulty)
        self.computer_starts = computer_starts
        self.think_delay = think_delay
        self.reporter = reporter
        self.rng = rng if rng is not None else np.random.default_rng()
        self.event_id_factory = event_id_factory

        self.board: List[Optional[str]] = empty_board()
        # The computer moves first once start() queues its turn.
        self.state: GameState = (
            GameState.computer_thinking if computer_starts else GameState.awaiting_player_move
        )
        self.outcome: Optional[Outcome] = None
        self.promo_code: Optional[str] = None
        self.report_failed = False
        self._game_number = 0
        self._computer_task: Optional[asyncio.Task] = None
        self._report_task: Optional[asyncio.Task] = None

    def start(self) -> None:
        """Enter the initial state. Must run inside an event loop when the computer starts."""
        self.reset()

    def reset(self) -> None:
        """Cancel any pending computer turn and begin a fresh game."""
        self._cancel_computer_turn()
        self._game_number += 1
        self.board = empty_board()
        self.outcome = None
        self.promo_code = None
        self.report_failed = False

        if self.computer_starts:
            self._queue_computer_move()
        else:
            self.state = GameState.awaiting_player_move

    def set_difficulty(self, difficulty) -> None:
        self.difficulty = resolve_difficulty(difficulty)
        self.reset()

    def set_computer_starts(self, computer_starts: bool) -> None:
        self.computer_starts = computer_starts
        self.reset()

    def click(self, index: int) -> bool:
        """Place the player's mark. Returns False when the click is ignored."""
        if self.state != GameState.awaiting_player_move:
            return False
        if not 0 <= index < BOARD_SIZE or self.board[index]:
            return False

        self.board[index] = PLAYER_MARK
        outcome = evaluate_board(self.board)
        if outcome is not None:
            self._end_game(outcome)
        else:
            self._queue_computer_move()
        return True

    async def wait_idle(self) -> None:
        """Wait for the pending computer turn and result report, if any."""
        while True:
            pending = [
                task
                for task in (self._computer_task, self._report_task)
                if task is not None and not task.done()
            ]
            if not pending:
                return
            await asyncio.gather(*pending, return_exceptions=True)

    def _queue_computer_move(self) -> None:
        self._cancel_computer_turn()
        self.state = GameState.computer_thinking
        self._computer_task = asyncio.get_running_loop().create_task(self._computer_turn())

    def _cancel_computer_turn(self) -> None:
        if self._computer_task is not None and not self._computer_task.done():
            self._computer_task.cancel()
        self._computer_task = None

    async def _computer_turn(self) -> None:
        if self.think_delay > 0:
            await asyncio.sleep(self.think_delay)
        if self.state != GameState.computer_thinking:
            return
        self.make_computer_move()

    def make_computer_move(self) -> None:
        """Play the computer's move now; difficulty is read at this point."""
        move = choose_move(self.board, self.difficulty, self.rng)
        if move is not None:
            self.board[move] = COMPUTER_MARK

        outcome = evaluate_board(self.board)
        if outcome is not None:
            self._end_game(outcome)
        else:
            self.state = GameState.awaiting_player_move

    def _end_game(self, outcome: Outcome) -> None:
        self.state = GameState.game_over
        self.outcome = outcome
        logging.info(f"Game over: {outcome.to_dict()}")

        if outcome.is_draw or self.reporter is None:
            return
        result = "win" if outcome.winner == PLAYER_MARK else "loss"
        self._report_task = asyncio.get_running_loop().create_task(self._report(result, self._game_number))

    async def _report(self, result: str, game_number: int) -> None:
        try:
            response = await self.reporter(result, self.event_id_factory())
        except Exception as e:
            # The player only ever sees "promo code unavailable".
            logging.warning(f"Failed to report {result}: {e}")
            if game_number == self._game_number:
                self.report_failed = True
            return
        if game_number != self._game_number:
            return
        if result == "win":
            self.promo_code = response.get("code")
