"""Booking ledger: the single source of truth for appointments.

Responsibilities:
- Admit or reject new appointments (no double-booking of a business slot)
- Execute status transitions (confirm, complete, cancel)
- Compute available slots for a business day
- Join appointments with their business/service/user at read time

Pattern: three indexes guarded by one lock.
- slot index: (business_id, scheduled_at) -> id, active appointments only
- id index: id -> Appointment
- user index: user_id -> [id, ...]
Check-then-insert in ``reserve_slot`` runs entirely inside the lock.
"""
import itertools
import threading
import uuid
from datetime import date, datetime
from typing import Callable, Dict, List, Optional, Tuple

from obelixq.availability import candidate_slots_for
from obelixq.catalog import CatalogLookup
from obelixq.events import EventBus, EventKind, LedgerEvent
from obelixq.logging_config import get_logger
from obelixq.models import Appointment, AppointmentDetail, AppointmentStatus, to_local_naive
from obelixq.results import ErrorKind, LedgerIntegrityError, Result

logger = get_logger(__name__)

SlotKey = Tuple[str, datetime]


VALID_TRANSITIONS: Dict[AppointmentStatus, List[AppointmentStatus]] = {
    AppointmentStatus.PENDING: [
        AppointmentStatus.CONFIRMED,
        AppointmentStatus.CANCELLED,
    ],
    AppointmentStatus.CONFIRMED: [
        AppointmentStatus.COMPLETED,
        AppointmentStatus.CANCELLED,
    ],
    # Terminal states
    AppointmentStatus.COMPLETED: [],
    AppointmentStatus.CANCELLED: [],
}


def validate_transition(current: AppointmentStatus, intended: AppointmentStatus) -> bool:
    """
    Check whether a status transition is legal.

    Args:
        current: Current appointment status
        intended: Requested status

    Returns:
        True if the transition is allowed
    """
    return intended in VALID_TRANSITIONS.get(current, [])


class BookingLedger:
    """In-memory appointment ledger.

    Build one per process and pass it to every caller.
    """

    def __init__(
        self,
        catalog: CatalogLookup,
        event_bus: Optional[EventBus] = None,
        strict_transitions: bool = True,
        clock: Callable[[], datetime] = datetime.now,
        id_factory: Callable[[], str] = lambda: str(uuid.uuid4()),
    ):
        """
        Args:
            catalog: Business/service/user lookups
            event_bus: Receives one event per committed mutation
            strict_transitions: Reject transitions outside VALID_TRANSITIONS.
                When False any status may follow any other.
            clock: Source of created_at/updated_at
            id_factory: Appointment id generator
        """
        self.catalog = catalog
        self.event_bus = event_bus or EventBus()
        self.strict_transitions = strict_transitions
        self._clock = clock
        self._new_id = id_factory

        self._lock = threading.Lock()
        self._by_id: Dict[str, Appointment] = {}
        self._by_slot: Dict[SlotKey, str] = {}
        self._by_user: Dict[str, List[str]] = {}
        # Commit order of mutations, stamped on events under the lock
        self._sequence = itertools.count(1)

    # ------------------------------------------------------------------
    # Mutations
    # ------------------------------------------------------------------

    def reserve_slot(
        self,
        user_id: str,
        business_id: str,
        service_id: str,
        scheduled_at: datetime,
        notes: Optional[str] = None,
    ) -> Result[Appointment]:
        """
        Create a pending appointment if the business slot is free.

        Args:
            user_id: Customer id (not validated here)
            business_id: Business id (not validated here)
            service_id: Service id (not validated here)
            scheduled_at: Exact start instant; exclusivity key with business_id
            notes: Free text

        Returns:
            Result with the new Appointment, or SLOT_UNAVAILABLE
        """
        scheduled_at = to_local_naive(scheduled_at)
        key = (business_id, scheduled_at)

        with self._lock:
            if key in self._by_slot:
                logger.info(
                    "slot_conflict",
                    business_id=business_id,
                    scheduled_at=scheduled_at.isoformat(),
                    holder=self._by_slot[key],
                )
                return Result.fail(
                    ErrorKind.SLOT_UNAVAILABLE,
                    f"Slot {scheduled_at:%Y-%m-%d %H:%M} is no longer available for business {business_id}",
                )

            now = self._clock()
            appointment = Appointment(
                id=self._new_id(),
                user_id=user_id,
                business_id=business_id,
                service_id=service_id,
                scheduled_at=scheduled_at,
                status=AppointmentStatus.PENDING,
                notes=notes,
                created_at=now,
                updated_at=now,
            )
            if appointment.id in self._by_id:
                raise LedgerIntegrityError(f"Duplicate appointment id generated: {appointment.id}")

            self._by_id[appointment.id] = appointment
            self._by_slot[key] = appointment.id
            self._by_user.setdefault(user_id, []).append(appointment.id)
            sequence = next(self._sequence)

        logger.info(
            "slot_reserved",
            appointment_id=appointment.id,
            business_id=business_id,
            user_id=user_id,
            scheduled_at=scheduled_at.isoformat(),
        )
        self.event_bus.publish(LedgerEvent(
            kind=EventKind.RESERVED,
            appointment=appointment,
            sequence=sequence,
            occurred_at=now,
        ))
        return Result.ok(appointment)

    def transition_status(self, appointment_id: str, new_status: AppointmentStatus) -> Result[Appointment]:
        """
        Replace an appointment with a copy carrying ``new_status``.

        Args:
            appointment_id: Appointment to update
            new_status: Requested status

        Returns:
            Result with the updated Appointment, NOT_FOUND, or
            INVALID_TRANSITION (strict mode only)
        """
        with self._lock:
            current = self._by_id.get(appointment_id)
            if current is None:
                return Result.fail(ErrorKind.NOT_FOUND, f"Appointment '{appointment_id}' not found")

            if self.strict_transitions and not validate_transition(current.status, new_status):
                return Result.fail(
                    ErrorKind.INVALID_TRANSITION,
                    f"Cannot change appointment {appointment_id} from {current.status.value} to {new_status.value}",
                )

            if not current.status.is_active and new_status.is_active and current.slot_key in self._by_slot:
                return Result.fail(
                    ErrorKind.SLOT_UNAVAILABLE,
                    f"Cannot reactivate appointment {appointment_id}: its slot was booked again",
                )

            now = self._clock()
            updated = current.model_copy(update={"status": new_status, "updated_at": now})
            self._reindex_slot(current, updated)
            self._by_id[appointment_id] = updated
            sequence = next(self._sequence)

        logger.info(
            "status_changed",
            appointment_id=appointment_id,
            previous=current.status.value,
            status=new_status.value,
        )
        self.event_bus.publish(
            LedgerEvent(
                kind=EventKind.STATUS_CHANGED,
                appointment=updated,
                previous_status=current.status,
                sequence=sequence,
                occurred_at=now,
            )
        )
        return Result.ok(updated)

    def cancel(self, appointment_id: str) -> Result[Appointment]:
        """Cancel an appointment. The record stays; its slot is freed."""
        return self.transition_status(appointment_id, AppointmentStatus.CANCELLED)

    def _reindex_slot(self, current: Appointment, updated: Appointment) -> None:
        # Caller holds self._lock
        key = current.slot_key
        holder = self._by_slot.get(key)

        if current.status.is_active and holder != current.id:
            raise LedgerIntegrityError(
                f"Slot index out of sync for appointment {current.id}: held by {holder}"
            )

        if current.status.is_active and not updated.status.is_active:
            del self._by_slot[key]
        elif not current.status.is_active and updated.status.is_active:
            # Permissive mode only
            self._by_slot[key] = current.id

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------

    def get(self, appointment_id: str) -> Optional[Appointment]:
        with self._lock:
            return self._by_id.get(appointment_id)

    def list_by_user(self, user_id: str) -> List[Appointment]:
        """All appointments of a user, latest ``scheduled_at`` first."""
        with self._lock:
            appointments = [self._by_id[i] for i in self._by_user.get(user_id, [])]
        return sorted(appointments, key=lambda a: a.scheduled_at, reverse=True)

    def list_by_user_and_status(self, user_id: str, status: AppointmentStatus) -> List[Appointment]:
        return [a for a in self.list_by_user(user_id) if a.status == status]

    def get_detail(self, appointment_id: str) -> Result[AppointmentDetail]:
        """
        Join an appointment with its business, service and user.

        Returns:
            Result with AppointmentDetail, or NOT_FOUND if any part is missing
        """
        appointment = self.get(appointment_id)
        if appointment is None:
            return Result.fail(ErrorKind.NOT_FOUND, f"Appointment '{appointment_id}' not found")

        business = self.catalog.find_business(appointment.business_id)
        if business is None:
            return Result.fail(ErrorKind.NOT_FOUND, f"Business '{appointment.business_id}' not found")

        service = self.catalog.find_service(appointment.service_id)
        if service is None:
            return Result.fail(ErrorKind.NOT_FOUND, f"Service '{appointment.service_id}' not found")

        user = self.catalog.find_user(appointment.user_id)
        if user is None:
            return Result.fail(ErrorKind.NOT_FOUND, f"User '{appointment.user_id}' not found")

        return Result.ok(
            AppointmentDetail(appointment=appointment, business=business, service=service, user=user)
        )

    def is_slot_available(self, business_id: str, scheduled_at: datetime) -> bool:
        with self._lock:
            return (business_id, to_local_naive(scheduled_at)) not in self._by_slot

    def list_available_slots(self, business_id: str, day: date) -> List[datetime]:
        """
        Free half-hour slots of a business on one day, ascending.

        Args:
            business_id: Business whose opening hours bound the day
            day: Calendar day

        Returns:
            Ascending list of free slot datetimes; empty for an unknown business
        """
        business = self.catalog.find_business(business_id)
        if business is None:
            return []

        candidates = candidate_slots_for(business, day)
        with self._lock:
            return [slot for slot in candidates if (business_id, slot) not in self._by_slot]

    def __len__(self) -> int:
        with self._lock:
            return len(self._by_id)
