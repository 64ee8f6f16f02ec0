"""Tests for API request models."""
from datetime import datetime, timedelta, timezone

import pytest
from pydantic import ValidationError

from obelixq.api.models import CreateAppointmentRequest, StatusUpdateRequest
from obelixq.models import AppointmentStatus, to_local_naive


def test_naive_datetime_untouched():
    value = datetime(2030, 1, 7, 9, 30)
    assert to_local_naive(value) is value


def test_aware_datetime_converted_to_local():
    aware = datetime(2030, 1, 7, 9, 30, tzinfo=timezone(timedelta(hours=3)))

    result = to_local_naive(aware)

    assert result.tzinfo is None
    assert result == aware.astimezone().replace(tzinfo=None)


def test_create_request_parses_iso_string():
    payload = CreateAppointmentRequest.model_validate({
        "user_id": "user-1",
        "business_id": "biz-1",
        "service_id": "srv-1",
        "scheduled_at": "2030-01-07T09:30:00",
    })

    assert payload.scheduled_at == datetime(2030, 1, 7, 9, 30)
    assert payload.notes is None


@pytest.mark.parametrize("data", [
    {"business_id": "biz-1", "service_id": "srv-1", "scheduled_at": "2030-01-07T09:30:00"},
    {"user_id": "", "business_id": "biz-1", "service_id": "srv-1", "scheduled_at": "2030-01-07T09:30:00"},
    {"user_id": "user-1", "business_id": "biz-1", "service_id": "srv-1", "scheduled_at": "tomorrow"},
])
def test_create_request_rejects_bad_input(data):
    with pytest.raises(ValidationError):
        CreateAppointmentRequest.model_validate(data)


def test_status_request():
    assert StatusUpdateRequest.model_validate({"status": "confirmed"}).status == AppointmentStatus.CONFIRMED

    with pytest.raises(ValidationError):
        StatusUpdateRequest.model_validate({"status": "archived"})


@pytest.mark.parametrize("raw", ["CONFIRMED", "Confirmed"])
def test_status_request_ignores_case(raw):
    assert StatusUpdateRequest.model_validate({"status": raw}).status == AppointmentStatus.CONFIRMED
