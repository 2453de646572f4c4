import pytest
from datetime import timedelta

from availability_service.models import Reservation, ReservationStatus, ReservationType, TERMINAL_STATUSES
from tests.conftest import NOW, day, create_test_service_capacity, create_test_reservation


class TestReservationStatus:
    """Test status enum helpers."""

    def test_released_statuses(self):
        assert ReservationStatus.CANCELLED.releases_capacity
        assert ReservationStatus.NO_SHOW.releases_capacity
        assert not ReservationStatus.COMPLETED.releases_capacity
        assert not ReservationStatus.IN_USE.releases_capacity

    def test_terminal_statuses(self):
        assert TERMINAL_STATUSES == {
            ReservationStatus.COMPLETED, ReservationStatus.CANCELLED, ReservationStatus.NO_SHOW
        }
        assert ReservationStatus.COMPLETED.is_terminal
        assert not ReservationStatus.PENDING.is_terminal

    def test_operator_block_types(self):
        assert ReservationType.MAINTENANCE.is_operator_block
        assert ReservationType.BLOCKED.is_operator_block
        assert not ReservationType.SOFT_HOLD.is_operator_block


class TestReservationModel:
    """Test Reservation model."""

    def _reservation(self, **kwargs):
        defaults = {
            'service_id': 'svc',
            'start_date': day(1),
            'end_date': day(3),
            'quantity_reserved': 1,
            'type': ReservationType.BOOKING,
            'status': ReservationStatus.CONFIRMED,
        }
        defaults.update(kwargs)
        return Reservation(**defaults)

    def test_overlap_is_half_open(self):
        reservation = self._reservation()

        assert reservation.overlaps(day(2), day(4))
        assert reservation.overlaps(day(0), day(5))
        # Touching edges do not overlap
        assert not reservation.overlaps(day(3), day(5))
        assert not reservation.overlaps(day(0), day(1))

    def test_soft_hold_expires_at_its_expiry_instant(self):
        expires_at = NOW + timedelta(minutes=15)
        hold = self._reservation(type=ReservationType.SOFT_HOLD,
                                 status=ReservationStatus.PENDING, expires_at=expires_at)

        assert not hold.is_expired(NOW)
        assert hold.counts_against_capacity(NOW)
        assert hold.is_expired(expires_at)
        assert not hold.counts_against_capacity(expires_at)

    def test_booking_never_expires(self):
        booking = self._reservation(expires_at=NOW - timedelta(days=1))
        assert not booking.is_expired(NOW)

    @pytest.mark.parametrize('status,counts', [
        (ReservationStatus.PENDING, True),
        (ReservationStatus.CONFIRMED, True),
        (ReservationStatus.IN_USE, True),
        (ReservationStatus.COMPLETED, True),
        (ReservationStatus.CANCELLED, False),
        (ReservationStatus.NO_SHOW, False),
    ])
    def test_counts_against_capacity_by_status(self, status, counts):
        assert self._reservation(status=status).counts_against_capacity(NOW) is counts

    def test_to_dict(self, db_session):
        capacity = create_test_service_capacity(db_session, service_id='kayak')
        reservation = create_test_reservation(db_session, capacity, quantity_reserved=2,
                                              customer_id='cust-1', notes='lake trip')

        data = reservation.to_dict(NOW)

        assert data['id'] == reservation.id
        assert data['service_id'] == 'kayak'
        assert data['quantity_reserved'] == 2
        assert data['type'] == 'Booking'
        assert data['status'] == 'Confirmed'
        assert data['start_date'] == day(1).isoformat()
        assert data['expires_at'] is None
        assert data['is_expired'] is False
        assert data['counts_against_capacity'] is True
        assert data['version'] == 1
        assert data['notes'] == 'lake trip'

    def test_service_relationship(self, db_session):
        capacity = create_test_service_capacity(db_session, service_id='canoe')
        reservation = create_test_reservation(db_session, capacity)

        assert reservation.service.service_id == 'canoe'
        assert capacity.reservations == [reservation]


class TestServiceCapacityModel:
    """Test ServiceCapacity model."""

    def test_to_dict(self, db_session):
        capacity = create_test_service_capacity(db_session, service_id='tent', name='Tent',
                                                total_quantity=7)

        data = capacity.to_dict()

        assert data['service_id'] == 'tent'
        assert data['name'] == 'Tent'
        assert data['total_quantity'] == 7
        assert data['created_at'] is not None
