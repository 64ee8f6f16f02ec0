"""Slot generation and time-of-day filtering.

Candidate slots are every HH:00 and HH:30 boundary for hours in
[opening hour, closing hour) on one calendar day, ascending. Only the hour of
the opening/closing time is used, so "09:30" opens at 09:00.
"""
from datetime import date, datetime, time
from enum import Enum
from typing import Iterable, List

from obelixq import config
from obelixq.models import Business


class TimeOfDay(str, Enum):
    """Time of day preferences."""
    MORNING = "morning"  # Before 12:00
    AFTERNOON = "afternoon"  # 12:00 and after
    ANY = "any"


def generate_candidate_slots(day: date, opening_hour: int, closing_hour: int) -> List[datetime]:
    """
    Enumerate every half-hour boundary of a business day.

    Args:
        day: Calendar day
        opening_hour: First hour (inclusive)
        closing_hour: Last hour (exclusive)

    Returns:
        Ascending list of naive local datetimes; empty if closing <= opening

    Example:
        generate_candidate_slots(date(2025, 3, 3), 9, 11)
        -> 09:00, 09:30, 10:00, 10:30 on 2025-03-03
    """
    slots = []
    for hour in range(opening_hour, closing_hour):
        for minute in config.SLOT_MINUTES:
            slots.append(datetime.combine(day, time(hour=hour, minute=minute)))
    return slots


def candidate_slots_for(business: Business, day: date) -> List[datetime]:
    """Candidate slots bounded by a business's opening hours."""
    return generate_candidate_slots(day, business.opening_hour, business.closing_hour)


class TimeFilter:
    """Filter availability slots by time of day."""

    MORNING_CUTOFF = config.MORNING_CUTOFF_HOUR

    def filter_by_time_of_day(
        self,
        slots: Iterable[datetime],
        preference: TimeOfDay
    ) -> List[datetime]:
        """
        Filter slots by time of day preference.

        Args:
            slots: Available slots
            preference: Morning, afternoon, or any

        Returns:
            Filtered slots, order preserved
        """
        if preference == TimeOfDay.ANY:
            return list(slots)

        filtered = []
        for slot in slots:
            if preference == TimeOfDay.MORNING and slot.hour < self.MORNING_CUTOFF:
                filtered.append(slot)
            elif preference == TimeOfDay.AFTERNOON and slot.hour >= self.MORNING_CUTOFF:
                filtered.append(slot)

        return filtered

    @staticmethod
    def format_time_12h(slot: datetime) -> str:
        """Render a slot as 12h clock text, e.g. "2:30 PM"."""
        period = "AM" if slot.hour < 12 else "PM"
        hour_12 = slot.hour if slot.hour <= 12 else slot.hour - 12
        hour_12 = 12 if hour_12 == 0 else hour_12
        return f"{hour_12}:{slot.minute:02d} {period}"
