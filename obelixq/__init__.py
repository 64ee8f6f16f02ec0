"""ObelixQ booking core.

Appointment ledger, slot availability and the thin layers around them
(orchestration, events, HTTP API).
"""
from obelixq.ledger import BookingLedger
from obelixq.models import Appointment, AppointmentDetail, AppointmentStatus
from obelixq.results import ErrorKind, Result

__version__ = "0.3.0"

__all__ = [
    "Appointment",
    "AppointmentDetail",
    "AppointmentStatus",
    "BookingLedger",
    "ErrorKind",
    "Result",
]
