import logging
from datetime import datetime, timedelta
from typing import Callable, Dict, Optional

from ttt_promo.load_secrets import EVENT_TTL
from ttt_promo.models.schema_models import ProcessedEventSchema


class IdempotencyCache:
    """Responses of already processed result reports, keyed by client eventId."""

    def __init__(self, clock: Callable[[], datetime] = datetime.now, ttl: timedelta = EVENT_TTL):
        self.clock = clock
        self.ttl = ttl
        self.processed_events: Dict[str, ProcessedEventSchema] = {}

    def get(self, event_id: str) -> Optional[dict]:
        entry = self.processed_events.get(event_id)
        if entry is None:
            return None
        if self.clock() - entry.created_at > self.ttl:
            del self.processed_events[event_id]
            return None
        return entry.response

    def with_idempotency(self, event_id: Optional[str], compute: Callable[[], dict]) -> dict:
        """Run compute at most once per event_id within the retention window

        Args:
            event_id (Optional[str]): Client token. None disables caching
            compute (Callable[[], dict]): Produces the response payload

        Returns:
            dict: The cached response for a repeated event_id, otherwise compute()
        """
        if event_id is None:
            return compute()

        cached = self.get(event_id)
        if cached is not None:
            logging.info(f"Replaying cached response for event {event_id}")
            return cached

        response = compute()
        self.processed_events[event_id] = ProcessedEventSchema(created_at=self.clock(), response=response)
        return response

    def prune(self) -> None:
        now = self.clock()
        for event_id, entry in list(self.processed_events.items()):
            if now - entry.created_at > self.ttl:
                del self.processed_events[event_id]
