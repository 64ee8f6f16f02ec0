"""Tests for slot generation and time-of-day filtering."""
from datetime import date, datetime

import pytest

from obelixq.availability import TimeFilter, TimeOfDay, generate_candidate_slots
from tests.helpers import BOOKING_DAY, at


@pytest.fixture
def time_filter():
    return TimeFilter()


def test_nine_to_eleven_gives_four_slots():
    assert generate_candidate_slots(BOOKING_DAY, 9, 11) == [at(9), at(9, 30), at(10), at(10, 30)]


def test_closing_hour_is_exclusive():
    slots = generate_candidate_slots(BOOKING_DAY, 17, 18)
    assert slots == [at(17), at(17, 30)]


def test_closed_business_has_no_slots():
    assert generate_candidate_slots(BOOKING_DAY, 10, 10) == []
    assert generate_candidate_slots(BOOKING_DAY, 12, 9) == []


def test_slots_are_on_the_requested_day():
    day = date(2031, 2, 28)
    slots = generate_candidate_slots(day, 8, 18)

    assert len(slots) == 20
    assert all(slot.date() == day for slot in slots)
    assert slots == sorted(slots)


def test_filter_morning(time_filter):
    slots = [at(9), at(11, 30), at(12), at(15, 30)]
    assert time_filter.filter_by_time_of_day(slots, TimeOfDay.MORNING) == [at(9), at(11, 30)]


def test_filter_afternoon(time_filter):
    slots = [at(9), at(11, 30), at(12), at(15, 30)]
    assert time_filter.filter_by_time_of_day(slots, TimeOfDay.AFTERNOON) == [at(12), at(15, 30)]


def test_filter_any_returns_everything(time_filter):
    slots = [at(9), at(12)]
    assert time_filter.filter_by_time_of_day(slots, TimeOfDay.ANY) == slots


@pytest.mark.parametrize("slot,expected", [
    (datetime(2030, 1, 7, 0, 30), "12:30 AM"),
    (datetime(2030, 1, 7, 9, 0), "9:00 AM"),
    (datetime(2030, 1, 7, 12, 0), "12:00 PM"),
    (datetime(2030, 1, 7, 14, 30), "2:30 PM"),
])
def test_format_time_12h(slot, expected):
    assert TimeFilter.format_time_12h(slot) == expected
