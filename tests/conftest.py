import os
import pytest
from datetime import datetime, timedelta

# Set test environment variables before importing the app
os.environ['FLASK_ENV'] = 'testing'
os.environ['DATABASE_URL'] = 'sqlite:///:memory:'

from availability_service import create_app
from availability_service.models import (
    db, ServiceCapacity, Reservation, ReservationStatus, ReservationType
)
from availability_service.services import ReservationService
from availability_service.services.locks import ServiceLockRegistry


# Fixed reference instant; test windows are laid out relative to it
NOW = datetime(2026, 3, 1, 9, 0, 0)


class FixedClock:
    """Engine clock that only moves when a test advances it"""

    def __init__(self, now=NOW):
        self.now = now

    def __call__(self):
        return self.now

    def advance(self, **kwargs):
        self.now = self.now + timedelta(**kwargs)
        return self.now


@pytest.fixture(scope='session')
def app():
    """Create application for the tests."""
    app = create_app('testing')

    with app.app_context():
        db.create_all()
        yield app
        db.drop_all()


@pytest.fixture
def client(app):
    """A test client for the app."""
    return app.test_client()


@pytest.fixture
def runner(app):
    """A test runner for the app's Click commands."""
    return app.test_cli_runner()


@pytest.fixture
def db_session(app):
    """Create a database session for a test."""
    with app.app_context():
        db.create_all()

        yield db.session

        # Clean up tables
        db.session.rollback()
        for table in reversed(db.metadata.sorted_tables):
            db.session.execute(table.delete())
        db.session.commit()


@pytest.fixture
def clock():
    return FixedClock()


@pytest.fixture
def service(db_session, clock):
    """Reservation service on the fixed clock with its own lock registry"""
    return ReservationService(clock=clock, locks=ServiceLockRegistry(),
                              soft_hold_ttl_minutes=15, eager_sweep=False, max_slots=366)


@pytest.fixture
def camera(db_session):
    """A service with five units"""
    return create_test_service_capacity(db_session, service_id='camera-kit', total_quantity=5)


# Helper functions for tests
def day(offset, hour=0):
    """NOW's midnight shifted by offset days"""
    return NOW.replace(hour=hour) + timedelta(days=offset)


def create_test_service_capacity(db_session, **kwargs):
    """Create a test service capacity with default values."""
    import uuid
    defaults = {
        'service_id': f'svc-{str(uuid.uuid4())[:8]}',
        'name': 'Test Service',
        'total_quantity': 5
    }
    defaults.update(kwargs)

    capacity = ServiceCapacity(**defaults)
    db_session.add(capacity)
    db_session.commit()
    return capacity


def create_test_reservation(db_session, capacity, **kwargs):
    """Create a test reservation directly, bypassing the capacity check."""
    defaults = {
        'service_id': capacity.service_id,
        'start_date': day(1),
        'end_date': day(3),
        'quantity_reserved': 1,
        'type': ReservationType.BOOKING,
        'status': ReservationStatus.CONFIRMED,
    }
    defaults.update(kwargs)

    reservation = Reservation(**defaults)
    db_session.add(reservation)
    db_session.commit()
    return reservation


def generate_reservation_data(service_id, **kwargs):
    """Generate a reservation request body."""
    defaults = {
        'service_id': service_id,
        'start_date': day(1).isoformat(),
        'end_date': day(3).isoformat(),
        'quantity': 1,
        'type': 'Booking'
    }
    defaults.update(kwargs)
    return defaults
