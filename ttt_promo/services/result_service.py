"""Result reporting use case.

- Routers parse HTTP and resolve the session, then call this module.
- This layer owns the promo ledger, the idempotency cache and the
  notification queue; it never touches FastAPI objects.
"""

import logging
from datetime import datetime
from typing import Callable, List, Optional, Tuple

from pydantic import ValidationError

from ttt_promo.exceptions import InvalidPayloadError
from ttt_promo.models.dc_models import GameResultModel, ResultPayloadModel, ResultResponseModel
from ttt_promo.services.idempotency import IdempotencyCache
from ttt_promo.services.notifier import ChatId, NotificationQueue
from ttt_promo.services.promo_ledger import PromoLedger

LOSS_MESSAGE = "Loss. Play again?"


def win_message(code: str) -> str:
    return f"Victory! Promo code issued: {code}"


def parse_result_payload(data) -> ResultPayloadModel:
    """Validate a decoded request body

    Raises:
        InvalidPayloadError: result is not win/loss/draw or eventId is not a 6-64 character string
    """
    if not isinstance(data, dict):
        raise InvalidPayloadError("Invalid payload")
    try:
        return ResultPayloadModel.model_validate(data)
    except ValidationError as e:
        logging.info(f"Rejected result payload: {e.error_count()} error(s)")
        raise InvalidPayloadError("Invalid payload")


class ResultService:
    def __init__(
        self,
        ledger: PromoLedger,
        idempotency: IdempotencyCache,
        notifications: Optional[NotificationQueue] = None,
    ):
        self.ledger = ledger
        self.idempotency = idempotency
        self.notifications = notifications

    @classmethod
    def create(
        cls,
        notifications: Optional[NotificationQueue] = None,
        clock: Callable[[], datetime] = datetime.now,
    ) -> "ResultService":
        return cls(PromoLedger(clock=clock), IdempotencyCache(clock=clock), notifications)

    def prune_expired(self) -> None:
        try:
            self.idempotency.prune()
            self.ledger.prune()
        except Exception as e:
            logging.error(f"Failed to prune expired entries: {e}")

    def report_result(
        self,
        payload: ResultPayloadModel,
        session_key: str,
        chat_id: Optional[ChatId] = None,
    ) -> Tuple[dict, List[Tuple[str, ChatId]]]:
        """Apply a reported game result for a session

        Args:
            payload (ResultPayloadModel): Validated result and optional eventId
            session_key (str): Resolved session key
            chat_id (Optional[ChatId]): Notification destination for this session

        Raises:
            LedgerExhaustedError: A win needed a new code and none was available

        Returns:
            Tuple[dict, List[Tuple[str, ChatId]]]: Response payload, and the
            notifications to send once the response is committed. Replayed
            responses carry no notifications.
        """
        outbox: List[Tuple[str, ChatId]] = []

        def compute() -> dict:
            response = ResultResponseModel()
            message = None
            if payload.result == GameResultModel.win:
                response.code = self.ledger.issue_or_reuse(session_key)
                message = win_message(response.code)
            elif payload.result == GameResultModel.loss:
                message = LOSS_MESSAGE

            if message and chat_id:
                outbox.append((message, chat_id))
            return response.model_dump(exclude_none=True)

        response = self.idempotency.with_idempotency(payload.event_id, compute)
        return response, outbox

    async def dispatch(self, outbox: List[Tuple[str, ChatId]]) -> None:
        if self.notifications is None:
            return
        for text, chat_id in outbox:
            self.notifications.enqueue(text, chat_id)
