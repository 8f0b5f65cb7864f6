import hashlib
import hmac
import json
import logging
import secrets
import time
from dataclasses import dataclass
from typing import Optional, Union
from urllib.parse import parse_qsl

from fastapi import Request, Response
from uuid6 import uuid7

from ttt_promo import load_secrets
from ttt_promo.exceptions import SessionResolutionError

INIT_DATA_HEADER = "X-TG-INIT-DATA"
SESSION_COOKIE = "sid"


@dataclass(frozen=True)
class SessionIdentity:
    session_key: str  # opaque key for the promo ledger
    chat_id: Optional[Union[int, str]]  # where notifications for this session go


def validate_init_data(
    init_data: str,
    token: str,
    max_age_seconds: float = load_secrets.INIT_DATA_MAX_AGE.total_seconds(),
    now: Optional[float] = None,
) -> dict:
    """Check the signature and age of Telegram WebApp init data

    Args:
        init_data (str): Raw query string from the X-TG-INIT-DATA header
        token (str): Bot token that signed the data
        max_age_seconds (float): Maximum allowed age of auth_date
        now (Optional[float]): Current unix time. time.time() if omitted

    Raises:
        SessionResolutionError: Malformed, unsigned, forged or expired init data

    Returns:
        dict: The signed fields, without the hash
    """
    try:
        params = dict(parse_qsl(init_data, keep_blank_values=True, strict_parsing=True))
    except ValueError:
        raise SessionResolutionError("Invalid Telegram init data")

    received_hash = params.pop("hash", None)
    if not received_hash:
        raise SessionResolutionError("Invalid Telegram init data")

    data_check_string = "\n".join(f"{key}={value}" for key, value in sorted(params.items()))
    secret_key = hmac.new(b"WebAppData", token.encode(), hashlib.sha256).digest()
    computed_hash = hmac.new(secret_key, data_check_string.encode(), hashlib.sha256).hexdigest()
    if not secrets.compare_digest(computed_hash, received_hash):
        raise SessionResolutionError("Invalid Telegram init data")

    try:
        auth_date = int(params.get("auth_date", ""))
    except ValueError:
        raise SessionResolutionError("Invalid Telegram init data")
    if now is None:
        now = time.time()
    if now - auth_date > max_age_seconds:
        raise SessionResolutionError("Invalid Telegram init data")

    return params


def get_telegram_user(request: Request) -> Optional[dict]:
    init_data = request.headers.get(INIT_DATA_HEADER, "")
    if not init_data:
        return None

    if not load_secrets.bot_token:
        logging.error("Missing TELEGRAM_BOT_TOKEN or TELEGRAM_TOKEN")
        raise SessionResolutionError("Invalid Telegram init data")

    params = validate_init_data(init_data, load_secrets.bot_token)
    user_json = params.get("user")
    if not user_json:
        return None
    try:
        user = json.loads(user_json)
    except json.JSONDecodeError:
        raise SessionResolutionError("Invalid Telegram init data")
    if not isinstance(user, dict) or "id" not in user:
        raise SessionResolutionError("Invalid Telegram init data")
    return user


def get_session_id(request: Request, response: Response) -> str:
    """Return the anonymous cookie session, issuing a new one if needed."""
    sid = request.cookies.get(SESSION_COOKIE)
    if not sid:
        sid = str(uuid7())
        response.set_cookie(
            SESSION_COOKIE,
            sid,
            httponly=True,
            samesite="lax",
            secure=load_secrets.app_env == "production",
            max_age=int(load_secrets.PROMO_TTL.total_seconds()),
        )
    return sid


def resolve_session(request: Request, response: Response) -> SessionIdentity:
    """Resolve who reported a result

    Telegram users are identified by their signed init data. Anonymous cookie
    sessions are allowed only when ALLOW_FALLBACK_CHAT_ID is enabled.

    Raises:
        SessionResolutionError: Invalid init data, or none while fallback is disabled

    Returns:
        SessionIdentity: Ledger key and notification destination
    """
    try:
        tg_user = get_telegram_user(request)
    except SessionResolutionError as e:
        logging.warning(f"Invalid Telegram init data: {e.message}")
        raise

    if tg_user is None and not load_secrets.allow_fallback_chat_id:
        raise SessionResolutionError("Telegram init data required")

    if tg_user is not None:
        return SessionIdentity(session_key=f"tg:{tg_user['id']}", chat_id=tg_user["id"])
    return SessionIdentity(
        session_key=get_session_id(request, response),
        chat_id=load_secrets.fallback_chat_id,
    )
