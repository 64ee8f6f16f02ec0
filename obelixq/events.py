"""Ledger events.

The ledger publishes one event per committed mutation (reservation or status
change). Subscribers such as the notification dispatcher hook in here, so the
ledger never depends on how messages are delivered.
"""
import threading
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Callable, Dict, List, Optional

from obelixq.logging_config import get_logger
from obelixq.models import Appointment, AppointmentStatus

logger = get_logger(__name__)


class EventKind(str, Enum):
    RESERVED = "reserved"
    STATUS_CHANGED = "status_changed"


@dataclass(frozen=True)
class LedgerEvent:
    """
    A committed change to one appointment.

    Events are delivered after the ledger releases its lock, so two changes
    racing on the same appointment may arrive out of order. ``sequence``
    is the commit order (0 when unknown); subscribers that care compare it.
    """
    kind: EventKind
    appointment: Appointment
    previous_status: Optional[AppointmentStatus] = None
    sequence: int = 0
    occurred_at: datetime = field(default_factory=datetime.now)


EventHandler = Callable[[LedgerEvent], None]


class EventBus:
    """
    Synchronous publish/subscribe for ledger events.

    Events: multiple handlers per kind (1:N), plus catch-all handlers.
    A failing handler is logged and skipped; the mutation it reacts to
    has already been committed.
    """

    def __init__(self):
        self._handlers: Dict[Optional[EventKind], List[EventHandler]] = {}
        self._lock = threading.Lock()

    def subscribe(self, handler: EventHandler, kind: Optional[EventKind] = None) -> None:
        """
        Register a handler.

        Args:
            handler: Callable receiving the event
            kind: Only deliver events of this kind; None means all events
        """
        with self._lock:
            self._handlers.setdefault(kind, []).append(handler)
        logger.debug("event_handler_registered", kind=kind.value if kind else "*")

    def unsubscribe(self, handler: EventHandler, kind: Optional[EventKind] = None) -> None:
        with self._lock:
            handlers = self._handlers.get(kind, [])
            if handler in handlers:
                handlers.remove(handler)

    def publish(self, event: LedgerEvent) -> None:
        with self._lock:
            handlers = list(self._handlers.get(event.kind, [])) + list(self._handlers.get(None, []))

        for handler in handlers:
            try:
                handler(event)
            except Exception:
                logger.exception(
                    "event_handler_failed",
                    kind=event.kind.value,
                    appointment_id=event.appointment.id,
                    handler=getattr(handler, "__qualname__", repr(handler)),
                )
