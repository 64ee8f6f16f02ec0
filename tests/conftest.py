"""Shared test fixtures."""
import pytest

from obelixq.catalog import InMemoryCatalog
from obelixq.events import EventBus
from obelixq.ledger import BookingLedger
from obelixq.models import Business, Service, User
from obelixq.service import BookingService
from tests.helpers import NOW


@pytest.fixture
def clock():
    return lambda: NOW


@pytest.fixture
def catalog() -> InMemoryCatalog:
    """Catalog with one business open 09:00-11:00."""
    catalog = InMemoryCatalog()
    catalog.add_business(Business(
        id="biz-1",
        name="Test Barbers",
        opening_time="09:00",
        closing_time="11:00",
        owner_id="owner-1",
    ))
    catalog.add_business(Business(
        id="biz-2",
        name="Other Shop",
        opening_time="14:00",
        closing_time="16:00",
    ))
    catalog.add_service(Service(
        id="srv-1",
        business_id="biz-1",
        name="Haircut",
        price=25.0,
        duration_minutes=30,
    ))
    catalog.add_service(Service(
        id="srv-2",
        business_id="biz-2",
        name="Massage",
        price=80.0,
        duration_minutes=60,
    ))
    catalog.add_user(User(id="user-1", full_name="Ana Torres", phone="555-1001"))
    catalog.add_user(User(id="user-2", full_name="Ben Carter", phone="555-1002"))
    return catalog


@pytest.fixture
def event_bus() -> EventBus:
    return EventBus()


@pytest.fixture
def ledger(catalog, event_bus, clock) -> BookingLedger:
    return BookingLedger(catalog, event_bus=event_bus, clock=clock)


@pytest.fixture
def booking_service(ledger, catalog, clock) -> BookingService:
    return BookingService(ledger, catalog, clock=clock)
