"""In-memory promo ledger.

- One code per session per cooldown window.
- Codes are unique across the global code index while they are retained.
- Expiry is lazy: entries are dropped on read or by prune(), never on a timer.
"""

import logging
import secrets
from datetime import datetime, timedelta
from typing import Callable, Dict, Optional

from ttt_promo.exceptions import LedgerExhaustedError
from ttt_promo.load_secrets import PROMO_TTL, SESSION_COOLDOWN
from ttt_promo.models.schema_models import IssuedCodeSchema, SessionPromoSchema

CODE_MIN = 10000
CODE_MAX = 99999
MAX_CODE_ATTEMPTS = 20

_system_random = secrets.SystemRandom()


def draw_code() -> str:
    return str(_system_random.randint(CODE_MIN, CODE_MAX))


class PromoLedger:
    def __init__(
        self,
        clock: Callable[[], datetime] = datetime.now,
        code_factory: Callable[[], str] = draw_code,
        promo_ttl: timedelta = PROMO_TTL,
        cooldown: timedelta = SESSION_COOLDOWN,
        max_attempts: int = MAX_CODE_ATTEMPTS,
    ):
        self.clock = clock
        self.code_factory = code_factory
        self.promo_ttl = promo_ttl
        self.cooldown = cooldown
        self.max_attempts = max_attempts
        self.issued_by_session: Dict[str, SessionPromoSchema] = {}
        self.issued_codes: Dict[str, IssuedCodeSchema] = {}

    def get_session_promo(self, session_id: str) -> Optional[str]:
        """Return the session's code while it is inside the cooldown window

        Args:
            session_id (str): Resolved session key

        Returns:
            Optional[str]: The cached code, or None when a new one may be issued
        """
        entry = self.issued_by_session.get(session_id)
        if entry is None:
            return None

        age = self.clock() - entry.created_at
        if age > self.promo_ttl:
            del self.issued_by_session[session_id]
            return None
        if age < self.cooldown:
            return entry.code
        return None

    def generate_unique_code(self) -> str:
        for _ in range(self.max_attempts):
            code = self.code_factory()
            if code not in self.issued_codes:
                return code
        logging.error(f"No unique promo code after {self.max_attempts} attempts")
        raise LedgerExhaustedError("Failed to generate unique promo code")

    def issue_or_reuse(self, session_id: str) -> str:
        """Return the session's current code, minting a new one when allowed

        Args:
            session_id (str): Resolved session key

        Raises:
            LedgerExhaustedError: Every drawn code was already issued

        Returns:
            str: 5-digit promo code
        """
        existing_code = self.get_session_promo(session_id)
        if existing_code is not None:
            return existing_code

        code = self.generate_unique_code()
        created_at = self.clock()
        self.issued_codes[code] = IssuedCodeSchema(session_id=session_id, created_at=created_at)
        self.issued_by_session[session_id] = SessionPromoSchema(code=code, created_at=created_at)
        logging.info(f"Issued promo code for session {session_id}")
        return code

    def prune(self) -> None:
        """Delete every entry older than the promo TTL."""
        now = self.clock()
        for code, entry in list(self.issued_codes.items()):
            if now - entry.created_at > self.promo_ttl:
                del self.issued_codes[code]
        for session_id, entry in list(self.issued_by_session.items()):
            if now - entry.created_at > self.promo_ttl:
                del self.issued_by_session[session_id]
