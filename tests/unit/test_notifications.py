"""Tests for appointment notifications."""
from unittest.mock import Mock

import pytest

from obelixq.events import EventKind, LedgerEvent
from obelixq.models import AppointmentStatus
from obelixq.notifications import NotificationDispatcher
from tests.helpers import at


@pytest.fixture
def sender():
    return Mock()


@pytest.fixture
def dispatcher(catalog, event_bus, sender):
    dispatcher = NotificationDispatcher(catalog, sender=sender)
    dispatcher.attach(event_bus)
    return dispatcher


def recipients(sender):
    return [c.args[0] for c in sender.call_args_list]


def test_new_booking_notifies_customer_and_owner(ledger, dispatcher, sender):
    ledger.reserve_slot("user-1", "biz-1", "srv-1", at(9))

    assert recipients(sender) == ["user-1", "owner-1"]
    customer_text = sender.call_args_list[0].args[1]
    assert "Ana Torres" in customer_text
    assert "Test Barbers" in customer_text
    assert "2030-01-07 09:00" in customer_text


def test_business_without_owner_only_notifies_customer(ledger, dispatcher, sender):
    ledger.reserve_slot("user-1", "biz-2", "srv-2", at(14))

    assert recipients(sender) == ["user-1"]


def test_confirmation_and_completion_messages(ledger, dispatcher, sender):
    appointment = ledger.reserve_slot("user-1", "biz-1", "srv-1", at(9)).value
    sender.reset_mock()

    ledger.transition_status(appointment.id, AppointmentStatus.CONFIRMED)
    ledger.transition_status(appointment.id, AppointmentStatus.COMPLETED)

    texts = [c.args[1] for c in sender.call_args_list]
    assert recipients(sender) == ["user-1", "user-1"]
    assert "confirmed" in texts[0]
    assert "review" in texts[1]


def test_cancellation_notifies_both_sides(ledger, dispatcher, sender):
    appointment = ledger.reserve_slot("user-1", "biz-1", "srv-1", at(9)).value
    sender.reset_mock()

    ledger.cancel(appointment.id)

    assert recipients(sender) == ["user-1", "owner-1"]
    assert all("cancelled" in c.args[1] for c in sender.call_args_list)


def test_delivery_failure_keeps_sending_then_raises(catalog, ledger, sender):
    sender.side_effect = [RuntimeError("whatsapp down"), None]
    dispatcher = NotificationDispatcher(catalog, sender=sender)
    appointment = ledger.reserve_slot("user-1", "biz-1", "srv-1", at(9)).value
    event = LedgerEvent(kind=EventKind.RESERVED, appointment=appointment)

    with pytest.raises(RuntimeError, match="user-1"):
        dispatcher.handle(event)

    assert sender.call_count == 2


def test_missing_user_still_produces_message(catalog, ledger, dispatcher, sender):
    catalog.remove_user("user-1")

    ledger.reserve_slot("user-1", "biz-1", "srv-1", at(9))

    assert "Hi there" in sender.call_args_list[0].args[1]


def test_out_of_order_event_is_not_announced(catalog, ledger, sender):
    dispatcher = NotificationDispatcher(catalog, sender=sender)
    appointment = ledger.reserve_slot("user-1", "biz-1", "srv-1", at(9)).value
    confirmed = appointment.model_copy(update={"status": AppointmentStatus.CONFIRMED})
    cancelled = appointment.model_copy(update={"status": AppointmentStatus.CANCELLED})

    # Cancellation committed second but delivered first
    dispatcher.handle(LedgerEvent(kind=EventKind.STATUS_CHANGED, appointment=cancelled, sequence=3))
    dispatcher.handle(LedgerEvent(kind=EventKind.STATUS_CHANGED, appointment=confirmed, sequence=2))

    texts = [c.args[1] for c in sender.call_args_list]
    assert len(texts) == 2
    assert all("cancelled" in text for text in texts)
