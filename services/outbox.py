# services/outbox.py

"""
In-process notification outbox.

Routes enqueue a RequestEvent only after the store has accepted the write.
Dispatch happens afterwards (BackgroundTasks, then the scheduler for
retries), so a failing webhook can never undo or block a committed change.
Entries are keyed by `request_id:version:kind`; enqueueing the same event
twice is a no-op.
"""

from threading import Lock
from typing import Callable, Dict, List, Optional

from pydantic import BaseModel, Field

from core.config import settings
from core.logging_config import logger
from core.notifications import notify_request_event

Sink = Callable[[str, dict], bool]


class RequestEvent(BaseModel):
    request_id: str
    version: int
    kind: str
    payload: dict = Field(default_factory=dict)

    @property
    def idempotency_key(self) -> str:
        return f"{self.request_id}:{self.version}:{self.kind}"


class OutboxEntry:
    """An event plus its delivery bookkeeping."""

    def __init__(self, event: RequestEvent):
        self.event = event
        self.attempts = 0
        self.delivered = False
        self.last_error: Optional[str] = None


class NotificationOutbox:
    """
    Thread-safe pending queue.

    Delivery runs outside the lock; an entry is only marked delivered
    once the sink returns.
    """

    def __init__(self, sink: Sink = notify_request_event, max_attempts: Optional[int] = None):
        self._sink = sink
        self._max_attempts = max_attempts or settings.OUTBOX_MAX_ATTEMPTS
        self._entries: Dict[str, OutboxEntry] = {}
        self._lock = Lock()

    def enqueue(self, event: RequestEvent) -> bool:
        """Returns False when this exact event was already queued."""
        with self._lock:
            if event.idempotency_key in self._entries:
                return False
            self._entries[event.idempotency_key] = OutboxEntry(event)
            return True

    def pending(self) -> List[RequestEvent]:
        with self._lock:
            return [
                e.event for e in self._entries.values()
                if not e.delivered and e.attempts < self._max_attempts
            ]

    def entry(self, idempotency_key: str) -> Optional[OutboxEntry]:
        with self._lock:
            return self._entries.get(idempotency_key)

    def dispatch_pending(self) -> dict:
        """Try every undelivered entry once. Returns counts for logging."""
        delivered = failed = 0

        for event in self.pending():
            key = event.idempotency_key
            try:
                self._sink(event.kind, {"request_id": event.request_id, **event.payload})
            except Exception as e:
                failed += 1
                with self._lock:
                    entry = self._entries[key]
                    entry.attempts += 1
                    entry.last_error = str(e)
                    exhausted = entry.attempts >= self._max_attempts
                if exhausted:
                    logger.error(f"Outbox giving up on {key} after {self._max_attempts} attempts: {e}")
                else:
                    logger.warning(f"Outbox delivery failed for {key}: {e}")
                continue

            delivered += 1
            with self._lock:
                entry = self._entries[key]
                entry.attempts += 1
                entry.delivered = True

        if delivered or failed:
            logger.info(f"Outbox dispatch: {delivered} delivered, {failed} failed")
        return {"delivered": delivered, "failed": failed}

    def purge_settled(self) -> int:
        """Drop entries that are delivered or out of attempts."""
        with self._lock:
            done = [
                k for k, e in self._entries.items()
                if e.delivered or e.attempts >= self._max_attempts
            ]
            for key in done:
                del self._entries[key]
            return len(done)

    def flush(self) -> dict:
        """One dispatch pass followed by a purge, so the queue stays bounded."""
        counts = self.dispatch_pending()
        self.purge_settled()
        return counts


# Global instance
outbox = NotificationOutbox()
