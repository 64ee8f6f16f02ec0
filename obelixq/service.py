"""Booking orchestration.

Sits between callers (HTTP API, scripts) and the ledger:
- validates input and reports VALIDATION failures
- resolves business/service/user through the catalog (NOT_FOUND)
- applies the simulated network latency outside the ledger's lock
"""
import time
from datetime import date, datetime
from typing import Callable, List, Optional

from obelixq import config
from obelixq.availability import TimeFilter, TimeOfDay, candidate_slots_for
from obelixq.catalog import CatalogLookup
from obelixq.ledger import BookingLedger
from obelixq.logging_config import get_logger
from obelixq.models import Appointment, AppointmentDetail, AppointmentStatus, to_local_naive
from obelixq.results import ErrorKind, Result

logger = get_logger(__name__)


class BookingService:
    """Use cases of the booking flow."""

    def __init__(
        self,
        ledger: BookingLedger,
        catalog: CatalogLookup,
        simulated_latency_ms: int = 0,
        clock: Callable[[], datetime] = datetime.now,
    ):
        self.ledger = ledger
        self.catalog = catalog
        self.simulated_latency_ms = simulated_latency_ms
        self._clock = clock
        self._time_filter = TimeFilter()

    def _simulate_latency(self) -> None:
        if self.simulated_latency_ms > 0:
            time.sleep(self.simulated_latency_ms / 1000)

    def book(
        self,
        user_id: str,
        business_id: str,
        service_id: str,
        scheduled_at: Optional[datetime],
        notes: Optional[str] = None,
    ) -> Result[Appointment]:
        """
        Validate a booking request and reserve the slot.

        Args:
            user_id: Customer id
            business_id: Business id
            service_id: Service id (must belong to the business)
            scheduled_at: Requested slot start
            notes: Optional free text

        Returns:
            Result with the pending Appointment, or VALIDATION / NOT_FOUND /
            SLOT_UNAVAILABLE
        """
        self._simulate_latency()

        missing = [
            name for name, value in (
                ("user_id", user_id),
                ("business_id", business_id),
                ("service_id", service_id),
                ("scheduled_at", scheduled_at),
            )
            if value is None or (isinstance(value, str) and not value.strip())
        ]
        if missing:
            return Result.fail(ErrorKind.VALIDATION, f"Missing required field(s): {', '.join(missing)}")

        scheduled_at = to_local_naive(scheduled_at)
        if notes is not None:
            notes = notes.strip() or None

        user = self.catalog.find_user(user_id)
        if user is None:
            return Result.fail(ErrorKind.NOT_FOUND, f"User '{user_id}' not found")

        business = self.catalog.find_business(business_id)
        if business is None or not business.is_active:
            return Result.fail(ErrorKind.NOT_FOUND, f"Business '{business_id}' not found")

        service = self.catalog.find_service(service_id)
        if service is None or not service.is_active or service.business_id != business_id:
            return Result.fail(
                ErrorKind.NOT_FOUND,
                f"Service '{service_id}' not found for business '{business_id}'",
            )

        if scheduled_at < self._clock():
            return Result.fail(ErrorKind.VALIDATION, "Appointment time must be in the future")

        if scheduled_at not in candidate_slots_for(business, scheduled_at.date()):
            return Result.fail(
                ErrorKind.VALIDATION,
                f"{scheduled_at:%H:%M} is not a bookable slot. Slots start every "
                f"{config.SLOT_DURATION_MINUTES} minutes between {business.opening_time} "
                f"and {business.closing_time}",
            )

        return self.ledger.reserve_slot(user_id, business_id, service_id, scheduled_at, notes)

    def available_slots(
        self,
        business_id: str,
        day: date,
        time_of_day: TimeOfDay = TimeOfDay.ANY,
    ) -> Result[List[datetime]]:
        """
        Free slots of a business day that are still in the future.

        Returns:
            Result with ascending slots (possibly empty), or NOT_FOUND
        """
        self._simulate_latency()

        business = self.catalog.find_business(business_id)
        if business is None or not business.is_active:
            return Result.fail(ErrorKind.NOT_FOUND, f"Business '{business_id}' not found")

        now = self._clock()
        slots = [s for s in self.ledger.list_available_slots(business_id, day) if s > now]
        return Result.ok(self._time_filter.filter_by_time_of_day(slots, time_of_day))

    def alternatives(self, business_id: str, scheduled_at: datetime) -> List[datetime]:
        """Next free slots on the same day, offered after a conflict."""
        scheduled_at = to_local_naive(scheduled_at)
        result = self.available_slots(business_id, scheduled_at.date())
        if not result.success:
            return []
        return [s for s in result.value if s >= scheduled_at][:config.MAX_ALTERNATIVE_SLOTS]

    def appointments_for(self, user_id: str, status: Optional[AppointmentStatus] = None) -> List[Appointment]:
        self._simulate_latency()
        if status is None:
            return self.ledger.list_by_user(user_id)
        return self.ledger.list_by_user_and_status(user_id, status)

    def detail(self, appointment_id: str) -> Result[AppointmentDetail]:
        self._simulate_latency()
        return self.ledger.get_detail(appointment_id)

    def change_status(self, appointment_id: str, status: AppointmentStatus) -> Result[Appointment]:
        self._simulate_latency()
        return self.ledger.transition_status(appointment_id, status)

    def confirm(self, appointment_id: str) -> Result[Appointment]:
        return self.change_status(appointment_id, AppointmentStatus.CONFIRMED)

    def complete(self, appointment_id: str) -> Result[Appointment]:
        return self.change_status(appointment_id, AppointmentStatus.COMPLETED)

    def cancel(self, appointment_id: str) -> Result[Appointment]:
        self._simulate_latency()
        return self.ledger.cancel(appointment_id)
