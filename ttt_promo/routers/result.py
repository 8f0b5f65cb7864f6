import json
import logging

from fastapi import APIRouter, BackgroundTasks, Depends, Request, Response

from ttt_promo.authentication.session_identity import resolve_session
from ttt_promo.exceptions import InvalidPayloadError
from ttt_promo.load_secrets import MAX_BODY_BYTES
from ttt_promo.services.result_service import ResultService, parse_result_payload

result_router = APIRouter()


def declared_body_too_large(request: Request) -> bool:
    """True when Content-Length already announces a body above the limit."""
    content_length = request.headers.get("content-length")
    if content_length is None or not content_length.isdigit():
        return False
    return int(content_length) > MAX_BODY_BYTES


def get_result_service(request: Request) -> ResultService:
    return request.app.state.result_service


class ResultAPI:
    @staticmethod
    @result_router.get("/healthz")
    async def health_check():
        return {"status": "ok"}

    @staticmethod
    @result_router.post("/api/result")
    async def submit_result(
        request: Request,
        response: Response,
        background_tasks: BackgroundTasks,
        service: ResultService = Depends(get_result_service),
    ):
        """Record a finished game and return the promo code for a win.

        Notifications are queued as a background task, after the response is sent.
        """
        if declared_body_too_large(request):
            raise InvalidPayloadError("Invalid payload")
        body = await request.body()
        if len(body) > MAX_BODY_BYTES:
            raise InvalidPayloadError("Invalid payload")
        try:
            data = json.loads(body)
        except ValueError:
            raise InvalidPayloadError("Invalid payload")
        payload = parse_result_payload(data)

        service.prune_expired()
        session = resolve_session(request, response)

        result, outbox = service.report_result(payload, session.session_key, session.chat_id)
        logging.info(f"result: {payload.result.value} session: {session.session_key}")
        background_tasks.add_task(service.dispatch, outbox)
        return result
