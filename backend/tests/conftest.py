"""
Pytest fixtures for casinobar backend tests.

Provides test database setup, a seeded venue, services wired to a
controllable clock, and the Flask test client.
"""

from datetime import datetime, timedelta

import pytest
from casinobar import create_app
from casinobar.extensions import db
from casinobar.models import Venue
from casinobar.services.draft_store import SqlDraftStore
from casinobar.services.inventory_service import InventoryService
from casinobar.services.shift_service import ShiftService
from casinobar.services.soft_drinks_service import SoftDrinksService
from casinobar.services.staff_service import StaffService
from casinobar.services.storage import SqlLedgerStore


VENUE_ID = "spezia"


class FakeClock:
    """Callable clock; tests move it forward explicitly."""

    def __init__(self, now: datetime):
        self.now = now

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs) -> datetime:
        self.now = self.now + timedelta(**kwargs)
        return self.now


@pytest.fixture(scope='session')
def app():
    """Create application for testing."""
    app = create_app({
        'TESTING': True,
        'SQLALCHEMY_DATABASE_URI': 'sqlite:///:memory:',
        'SQLALCHEMY_TRACK_MODIFICATIONS': False,
        'LOG_LEVEL': 'DEBUG',
    })

    with app.app_context():
        db.create_all()
        yield app
        db.drop_all()


@pytest.fixture(scope='function')
def client(app):
    """Create test client."""
    return app.test_client()


@pytest.fixture(scope='function')
def db_session(app):
    """Create fresh database for each test."""
    with app.app_context():
        # Clear all data but keep schema
        meta = db.metadata
        for table in reversed(meta.sorted_tables):
            db.session.execute(table.delete())
        db.session.commit()

        yield db.session

        # Cleanup after test
        db.session.rollback()


@pytest.fixture(scope='function')
def clock():
    """Fixed at 2026-03-14 20:00 UTC (15:00 in Bogotá)."""
    return FakeClock(datetime(2026, 3, 14, 20, 0, 0))


@pytest.fixture(scope='function')
def store(db_session):
    return SqlLedgerStore(db_session)


@pytest.fixture(scope='function')
def drafts(db_session):
    return SqlDraftStore(db_session)


@pytest.fixture(scope='function')
def venue(store):
    """Create the Spezia venue."""
    venue = Venue(id=VENUE_ID, name="Spezia")
    store.upsert_venue(venue)
    return venue


@pytest.fixture(scope='function')
def inventory(store, venue, clock):
    return InventoryService(store, venue.id, clock=clock)


@pytest.fixture(scope='function')
def staff(store, venue, clock):
    return StaffService(store, venue.id, clock=clock)


@pytest.fixture(scope='function')
def shifts(store, drafts, venue, clock):
    return ShiftService(store, drafts, venue.id, clock=clock)


@pytest.fixture(scope='function')
def soft_drinks(store, venue, clock):
    return SoftDrinksService(store, venue.id, clock=clock)


@pytest.fixture(scope='function')
def beer(inventory):
    """Qty 100, cost 2000, sells at 4000."""
    return inventory.add_product("Cerveza Clásica", 100, 2000)


@pytest.fixture(scope='function')
def worker(staff):
    return staff.add_worker("Ana")
