import logging
from contextlib import asynccontextmanager

import uvicorn
from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from ttt_promo.exceptions import InvalidPayloadError, LedgerExhaustedError, SessionResolutionError
from ttt_promo.load_secrets import log_level, port
from ttt_promo.models.dc_models import ErrorResponseModel
from ttt_promo.routers import result
from ttt_promo.services.notifier import NotificationQueue, TelegramNotifier
from ttt_promo.services.result_service import ResultService

logging.basicConfig(level=log_level)


@asynccontextmanager
async def lifespan(app):
    """Build the in-memory promo stores and start the notification worker.
    This function is called to start the server.
    """
    notifications = NotificationQueue(TelegramNotifier())
    app.state.result_service = ResultService.create(notifications)
    notifications.start()
    try:
        yield
    finally:
        await notifications.stop()
        logging.info("Stop Server")


app = FastAPI(lifespan=lifespan)
app.include_router(result.result_router)


def error_response(status_code: int, message: str) -> JSONResponse:
    return JSONResponse(status_code=status_code, content=ErrorResponseModel(message=message).model_dump())


@app.exception_handler(InvalidPayloadError)
async def invalid_payload_handler(request: Request, exc: InvalidPayloadError):
    return error_response(400, "Invalid payload")


@app.exception_handler(SessionResolutionError)
async def session_resolution_handler(request: Request, exc: SessionResolutionError):
    return error_response(401, exc.message)


@app.exception_handler(LedgerExhaustedError)
async def ledger_exhausted_handler(request: Request, exc: LedgerExhaustedError):
    logging.error(f"Failed to process result: {exc}")
    return error_response(500, "Internal error")


@app.exception_handler(Exception)
async def unexpected_error_handler(request: Request, exc: Exception):
    logging.error(f"Failed to process result: {exc!r}")
    return error_response(500, "Internal error")


@app.middleware("http")
async def add_security_headers(request: Request, call_next):
    response = await call_next(request)
    response.headers["X-Content-Type-Options"] = "nosniff"
    response.headers["X-Frame-Options"] = "DENY"
    response.headers["Referrer-Policy"] = "no-referrer"
    return response


if __name__ == "__main__":
    uvicorn.run(app, host="0.0.0.0", port=port)
