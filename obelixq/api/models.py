"""Pydantic models for API request/response validation."""
from datetime import datetime
from typing import Any, List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

from obelixq.models import Appointment, AppointmentStatus, to_local_naive


class CreateAppointmentRequest(BaseModel):
    """Request schema for POST /appointments."""
    user_id: str = Field(..., min_length=1, max_length=100)
    business_id: str = Field(..., min_length=1, max_length=100)
    service_id: str = Field(..., min_length=1, max_length=100)
    scheduled_at: datetime = Field(
        ...,
        description="Slot start, ISO 8601 local time",
        examples=["2025-12-15T10:30:00"]
    )
    notes: Optional[str] = Field(None, max_length=500)

    @field_validator("scheduled_at")
    @classmethod
    def normalize_scheduled_at(cls, v: datetime) -> datetime:
        return to_local_naive(v)

    model_config = ConfigDict(
        json_schema_extra={
            "example": {
                "user_id": "user-001",
                "business_id": "biz-001",
                "service_id": "srv-001",
                "scheduled_at": "2025-12-15T10:30:00",
                "notes": "First visit"
            }
        }
    )


class StatusUpdateRequest(BaseModel):
    """Request schema for PATCH /appointments/<id>/status."""
    status: AppointmentStatus

    @field_validator("status", mode="before")
    @classmethod
    def lowercase_status(cls, v: Any) -> Any:
        # Same casing rules as the ?status= filter
        return v.lower() if isinstance(v, str) else v

    model_config = ConfigDict(
        json_schema_extra={"example": {"status": "confirmed"}}
    )


class AppointmentResponse(BaseModel):
    success: bool = True
    appointment: Appointment
    message: Optional[str] = None


class SlotsResponse(BaseModel):
    success: bool = True
    business_id: str
    date: str
    available_slots: List[str]
    total_slots: int


class ErrorResponse(BaseModel):
    """Error response schema."""
    success: bool = False
    error: str = Field(..., description="Error message")
    code: Optional[str] = Field(None, description="Error code")
    detail: Optional[Any] = Field(None, description="Detailed error information")
    alternatives: Optional[List[str]] = Field(None, description="Free slots offered after a conflict")

    model_config = ConfigDict(
        json_schema_extra={
            "example": {
                "success": False,
                "error": "Slot 2025-12-15 10:30 is no longer available for business biz-001",
                "code": "SLOT_UNAVAILABLE"
            }
        }
    )
