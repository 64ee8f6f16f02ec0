"""Domain models for the booking core.

Appointment is immutable: every status change produces a copy
(``model_copy(update=...)``) that replaces the stored record.
Business, Service and User are collaborator records; the ledger only reads them.
"""
from datetime import datetime, time
from enum import Enum
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator


class AppointmentStatus(str, Enum):
    """Appointment lifecycle states."""
    PENDING = "pending"  # Just created, waiting for the business
    CONFIRMED = "confirmed"
    COMPLETED = "completed"  # Service rendered
    CANCELLED = "cancelled"

    @property
    def display_name(self) -> str:
        return self.value.capitalize()

    @property
    def is_active(self) -> bool:
        """Active appointments hold their slot."""
        return self is not AppointmentStatus.CANCELLED


class BusinessCategory(str, Enum):
    """Business categories shown in the marketplace filter."""
    BARBERSHOP = "barbershop"
    SPA = "spa"
    LAWYER = "lawyer"
    CONSULTANT = "consultant"
    DENTIST = "dentist"
    PSYCHOLOGIST = "psychologist"
    VETERINARY = "veterinary"
    MECHANIC = "mechanic"
    OTHER = "other"


def parse_clock(value: str) -> time:
    """Parse a local wall-clock "HH:MM" string."""
    try:
        hour, minute = (int(part) for part in value.split(":"))
        return time(hour=hour, minute=minute)
    except (ValueError, TypeError) as e:
        raise ValueError(f"Invalid time '{value}'. Use HH:MM (e.g., 09:00)") from e


def to_local_naive(value: datetime) -> datetime:
    """Slots are local wall-clock times; drop any offset after converting."""
    if value.tzinfo is not None:
        return value.astimezone().replace(tzinfo=None)
    return value


class Business(BaseModel):
    """A business that offers services and receives appointments."""
    model_config = ConfigDict(frozen=True)

    id: str = Field(..., min_length=1)
    name: str = Field(..., min_length=1, max_length=200)
    description: str = ""
    category: BusinessCategory = BusinessCategory.OTHER
    phone: str = ""
    email: str = ""
    address: str = ""
    city: str = ""
    opening_time: str = Field(..., description="Local opening time, HH:MM")
    closing_time: str = Field(..., description="Local closing time, HH:MM")
    working_days: List[str] = Field(default_factory=list)
    owner_id: Optional[str] = None
    is_active: bool = True

    @field_validator("opening_time", "closing_time")
    @classmethod
    def validate_clock(cls, v: str) -> str:
        parse_clock(v)
        return v

    @property
    def opening_hour(self) -> int:
        return parse_clock(self.opening_time).hour

    @property
    def closing_hour(self) -> int:
        return parse_clock(self.closing_time).hour


class Service(BaseModel):
    """A service offered by one business."""
    model_config = ConfigDict(frozen=True)

    id: str = Field(..., min_length=1)
    business_id: str = Field(..., min_length=1)
    name: str = Field(..., min_length=1, max_length=100)
    description: str = ""
    price: float = Field(..., ge=0)
    duration_minutes: int = Field(..., gt=0, le=480)
    is_active: bool = True


class User(BaseModel):
    """A marketplace customer. Contact data is what the notifiers need."""
    model_config = ConfigDict(frozen=True)

    id: str = Field(..., min_length=1)
    full_name: str = Field(..., min_length=1)
    email: str = ""
    phone: str = ""


class Appointment(BaseModel):
    """A booking of one service at one business, starting at ``scheduled_at``."""
    model_config = ConfigDict(frozen=True)

    id: str
    user_id: str
    business_id: str
    service_id: str
    scheduled_at: datetime
    status: AppointmentStatus = AppointmentStatus.PENDING
    notes: Optional[str] = None
    created_at: datetime
    updated_at: datetime

    @property
    def slot_key(self):
        return (self.business_id, self.scheduled_at)


class AppointmentDetail(BaseModel):
    """Appointment joined at read time with its business, service and user."""
    model_config = ConfigDict(frozen=True)

    appointment: Appointment
    business: Business
    service: Service
    user: User
