"""Appointment notifications.

Turns ledger events into messages for the marketplace bots:
- new booking -> business owner and customer
- confirmed -> customer reminder
- completed -> review request (reputation bot)
- cancelled -> customer and business owner

Delivery goes through a ``sender(recipient_id, text)`` callable so a WhatsApp
or push gateway can be plugged in. The default sender only logs.
"""
import threading
from dataclasses import dataclass
from typing import Callable, Dict, List, Optional

from obelixq.catalog import CatalogLookup
from obelixq.events import EventBus, EventKind, LedgerEvent
from obelixq.logging_config import get_logger
from obelixq.models import AppointmentStatus

logger = get_logger(__name__)

Sender = Callable[[str, str], None]


@dataclass(frozen=True)
class Notification:
    recipient_id: str
    text: str


def log_sender(recipient_id: str, text: str) -> None:
    logger.info("notification_sent", recipient_id=recipient_id, text=text)


class NotificationDispatcher:
    """Subscribes to the event bus and delivers one message per recipient."""

    def __init__(self, catalog: CatalogLookup, sender: Optional[Sender] = None):
        self.catalog = catalog
        self.sender = sender or log_sender
        self._last_sequence: Dict[str, int] = {}
        self._lock = threading.Lock()

    def attach(self, bus: EventBus) -> None:
        bus.subscribe(self.handle)

    def build(self, event: LedgerEvent) -> List[Notification]:
        """
        Compose the messages for one event.

        Args:
            event: Ledger event

        Returns:
            Notifications to deliver (may be empty)
        """
        appointment = event.appointment
        business = self.catalog.find_business(appointment.business_id)
        user = self.catalog.find_user(appointment.user_id)

        business_name = business.name if business else appointment.business_id
        customer_name = user.full_name if user else "there"
        owner_id = business.owner_id if business else None
        when = f"{appointment.scheduled_at:%Y-%m-%d %H:%M}"

        notifications = []

        if event.kind == EventKind.RESERVED:
            notifications.append(Notification(
                appointment.user_id,
                f"Hi {customer_name}, your booking at {business_name} for {when} was received "
                f"and is waiting for confirmation.",
            ))
            if owner_id:
                notifications.append(Notification(
                    owner_id,
                    f"New booking request for {when} (appointment {appointment.id}).",
                ))
            return notifications

        status = appointment.status
        if status == AppointmentStatus.CONFIRMED:
            notifications.append(Notification(
                appointment.user_id,
                f"Hi {customer_name}, {business_name} confirmed your appointment on {when}.",
            ))
        elif status == AppointmentStatus.COMPLETED:
            notifications.append(Notification(
                appointment.user_id,
                f"Thanks for visiting {business_name}, {customer_name}! How was it? Leave a review.",
            ))
        elif status == AppointmentStatus.CANCELLED:
            notifications.append(Notification(
                appointment.user_id,
                f"Your appointment at {business_name} on {when} was cancelled.",
            ))
            if owner_id:
                notifications.append(Notification(
                    owner_id,
                    f"Appointment {appointment.id} on {when} was cancelled; the slot is free again.",
                ))

        return notifications

    def _is_stale(self, event: LedgerEvent) -> bool:
        # A newer change of the same appointment was already announced
        if not event.sequence:
            return False
        with self._lock:
            last = self._last_sequence.get(event.appointment.id, 0)
            if event.sequence < last:
                return True
            self._last_sequence[event.appointment.id] = event.sequence
            return False

    def handle(self, event: LedgerEvent) -> None:
        if self._is_stale(event):
            logger.info(
                "stale_event_skipped",
                appointment_id=event.appointment.id,
                sequence=event.sequence,
            )
            return

        errors = []

        for notification in self.build(event):
            try:
                self.sender(notification.recipient_id, notification.text)
            except Exception as e:
                # Best-effort: keep sending to the other recipients
                logger.warning(
                    "notification_failed",
                    recipient_id=notification.recipient_id,
                    error=f"{type(e).__name__}: {e}",
                )
                errors.append(notification.recipient_id)

        if errors:
            raise RuntimeError(f"Failed to notify some recipients: {', '.join(errors)}")
