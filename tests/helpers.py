"""Test helpers: a fixed clock and slot constructors."""
from datetime import date, datetime

# Fixed "now" so past/future checks are deterministic
NOW = datetime(2030, 1, 1, 8, 0)
BOOKING_DAY = date(2030, 1, 7)


def at(hour: int, minute: int = 0, day: date = BOOKING_DAY) -> datetime:
    """Slot start on the booking day."""
    return datetime(day.year, day.month, day.day, hour, minute)
