import pytest
from datetime import timedelta, timezone

from availability_service.exceptions import (
    ConflictError,
    InsufficientInventoryError,
    InvalidArgumentError,
    InvalidTransitionError,
    NotFoundError,
)
from availability_service.models import Reservation, ReservationStatus, ReservationType
from availability_service.services import ReservationService, ServiceCatalogService
from availability_service.services.availability_calculator import DAY
from availability_service.services.lifecycle import TRANSITIONS, can_transition
from availability_service.services.locks import ServiceLockRegistry
from tests.conftest import NOW, day, create_test_service_capacity, create_test_reservation


class TestCapacityResolver:
    """Test CheckAvailability."""

    def test_empty_service_is_fully_available(self, service, camera):
        result = service.check_availability('camera-kit', day(1), day(3), 5)

        assert result.is_available is True
        assert result.available_quantity == 5
        assert result.total_quantity == 5
        assert result.reserved_quantity == 0
        assert result.conflicts == []

    def test_overlapping_reservation_reduces_availability(self, service, db_session, camera):
        create_test_reservation(db_session, camera, quantity_reserved=2)

        assert service.check_availability('camera-kit', day(2), day(4), 3).is_available is True

        result = service.check_availability('camera-kit', day(2), day(4), 4)
        assert result.is_available is False
        assert result.available_quantity == 3
        assert result.requested_quantity == 4
        assert [c.quantity_reserved for c in result.conflicts] == [2]

    def test_exact_fit_is_available(self, service, db_session, camera):
        create_test_reservation(db_session, camera, quantity_reserved=3)

        result = service.check_availability('camera-kit', day(1), day(3), 2)

        assert result.is_available is True
        assert result.available_quantity == 2

    def test_touching_reservation_does_not_count(self, service, db_session, camera):
        create_test_reservation(db_session, camera, start_date=day(1), end_date=day(3),
                                quantity_reserved=5)

        assert service.check_availability('camera-kit', day(3), day(5), 5).is_available is True
        assert service.check_availability('camera-kit', day(0), day(1), 5).is_available is True

    def test_partial_overlaps_are_summed(self, service, db_session, camera):
        create_test_reservation(db_session, camera, start_date=day(1), end_date=day(3),
                                quantity_reserved=2)
        create_test_reservation(db_session, camera, start_date=day(2), end_date=day(4),
                                quantity_reserved=1)

        result = service.check_availability('camera-kit', day(1), day(4), 2)
        assert result.is_available is True
        assert result.available_quantity == 2

        assert service.check_availability('camera-kit', day(1), day(4), 3).is_available is False

    @pytest.mark.parametrize('status', [ReservationStatus.CANCELLED, ReservationStatus.NO_SHOW])
    def test_released_statuses_do_not_count(self, service, db_session, camera, status):
        create_test_reservation(db_session, camera, quantity_reserved=5, status=status)

        assert service.check_availability('camera-kit', day(1), day(3), 5).is_available is True

    def test_completed_and_in_use_count(self, service, db_session, camera):
        create_test_reservation(db_session, camera, quantity_reserved=2,
                                status=ReservationStatus.COMPLETED)
        create_test_reservation(db_session, camera, quantity_reserved=2,
                                status=ReservationStatus.IN_USE)

        assert service.check_availability('camera-kit', day(1), day(3), 1).available_quantity == 1

    def test_expired_soft_hold_does_not_count(self, service, db_session, camera, clock):
        create_test_reservation(db_session, camera, quantity_reserved=5,
                                type=ReservationType.SOFT_HOLD,
                                status=ReservationStatus.PENDING,
                                expires_at=NOW + timedelta(minutes=10))

        assert service.check_availability('camera-kit', day(1), day(3), 1).is_available is False

        clock.advance(minutes=10)
        assert service.check_availability('camera-kit', day(1), day(3), 5).is_available is True

    def test_exclude_reservation_id(self, service, db_session, camera):
        reservation = create_test_reservation(db_session, camera, quantity_reserved=5)

        result = service.check_availability('camera-kit', day(1), day(3), 5,
                                            exclude_reservation_id=reservation.id)

        assert result.is_available is True

    def test_repeated_checks_are_identical(self, service, db_session, camera):
        create_test_reservation(db_session, camera, quantity_reserved=4)

        first = service.check_availability('camera-kit', day(1), day(3), 2)
        second = service.check_availability('camera-kit', day(1), day(3), 2)

        assert first == second
        assert Reservation.query.count() == 1

    def test_aware_datetimes_are_normalized(self, service, db_session, camera):
        create_test_reservation(db_session, camera, quantity_reserved=5)
        plus_two = timezone(timedelta(hours=2))
        # 02:00 at +02:00 on day 3 is midnight UTC, the reservation's end
        start = day(3, hour=2).replace(tzinfo=plus_two)
        end = day(4, hour=2).replace(tzinfo=plus_two)

        result = service.check_availability('camera-kit', start, end, 5)

        assert result.is_available is True
        assert result.checked_start_date == day(3)

    def test_unknown_service(self, service):
        with pytest.raises(NotFoundError):
            service.check_availability('missing', day(1), day(3), 1)

    @pytest.mark.parametrize('start,end', [(day(3), day(1)), (day(1), day(1))])
    def test_invalid_window(self, service, camera, start, end):
        with pytest.raises(InvalidArgumentError):
            service.check_availability('camera-kit', start, end, 1)

    @pytest.mark.parametrize('quantity', [0, -1, True, 1.5])
    def test_invalid_quantity(self, service, camera, quantity):
        with pytest.raises(InvalidArgumentError):
            service.check_availability('camera-kit', day(1), day(3), quantity)

    def test_eager_sweep_releases_stored_status(self, db_session, camera, clock):
        eager = ReservationService(clock=clock, locks=ServiceLockRegistry(), eager_sweep=True)
        hold = create_test_reservation(db_session, camera, quantity_reserved=5,
                                       type=ReservationType.SOFT_HOLD,
                                       status=ReservationStatus.PENDING,
                                       expires_at=NOW - timedelta(minutes=1))

        assert eager.check_availability('camera-kit', day(1), day(3), 5).is_available is True
        assert eager.get_reservation(hold.id)['status'] == 'Cancelled'


class TestConflictReporter:
    """Test ExplainShortfall."""

    def test_no_conflicts_when_request_fits(self, service, db_session, camera):
        create_test_reservation(db_session, camera, quantity_reserved=2)

        assert service.explain_shortfall('camera-kit', day(1), day(3), 3) == []

    def test_conflicts_ordered_by_start_then_id(self, service, db_session, camera):
        later = create_test_reservation(db_session, camera, start_date=day(2), end_date=day(4),
                                        quantity_reserved=2)
        first_a = create_test_reservation(db_session, camera, id='a-res', start_date=day(1),
                                          end_date=day(3), quantity_reserved=1,
                                          type=ReservationType.MAINTENANCE)
        first_b = create_test_reservation(db_session, camera, id='b-res', start_date=day(1),
                                          end_date=day(3), quantity_reserved=1)
        create_test_reservation(db_session, camera, quantity_reserved=1,
                                status=ReservationStatus.CANCELLED)

        conflicts = service.explain_shortfall('camera-kit', day(1), day(4), 2)

        assert [c.reservation_id for c in conflicts] == [first_a.id, first_b.id, later.id]
        assert conflicts[0].type == 'Maintenance'
        assert conflicts[0].status == 'Confirmed'
        assert sum(c.quantity_reserved for c in conflicts) == 4

    def test_unknown_service(self, service):
        with pytest.raises(NotFoundError):
            service.explain_shortfall('missing', day(1), day(3), 1)


class TestAvailabilityCalculator:
    """Test GetAvailabilityBreakdown."""

    def test_daily_slots_cover_range_inclusive(self, service, db_session, camera):
        create_test_reservation(db_session, camera, start_date=day(1, hour=12),
                                end_date=day(2, hour=12), quantity_reserved=2)

        slots = list(service.get_availability_breakdown('camera-kit', day(1), day(3)))

        assert [slot.slot_start for slot in slots] == [day(1), day(2), day(3)]
        assert [slot.reserved_quantity for slot in slots] == [2, 2, 0]
        assert [slot.available_quantity for slot in slots] == [3, 3, 5]
        assert all(slot.slot_end - slot.slot_start == DAY for slot in slots)

    def test_partial_boundary_day_is_included(self, service, camera):
        breakdown = service.get_availability_breakdown('camera-kit', day(1, hour=15),
                                                       day(2, hour=1))

        assert len(breakdown) == 2
        assert [slot.slot_start for slot in breakdown] == [day(1), day(2)]

    def test_fully_booked_slot(self, service, db_session, camera):
        create_test_reservation(db_session, camera, start_date=day(1), end_date=day(2),
                                quantity_reserved=5)

        slots = service.get_availability_breakdown('camera-kit', day(1), day(2)).to_list()

        assert slots[0]['is_fully_booked'] is True
        assert slots[1]['is_fully_booked'] is False

    def test_hourly_granularity(self, service, db_session, camera):
        create_test_reservation(db_session, camera, start_date=day(1, hour=2),
                                end_date=day(1, hour=3), quantity_reserved=1)

        slots = list(service.get_availability_breakdown(
            'camera-kit', day(1), day(1, hour=5) + timedelta(minutes=30),
            granularity=timedelta(hours=2)
        ))

        assert [slot.slot_start for slot in slots] == [day(1), day(1, hour=2), day(1, hour=4)]
        assert [slot.reserved_quantity for slot in slots] == [0, 1, 0]

    def test_breakdown_is_restartable(self, service, db_session, camera):
        breakdown = service.get_availability_breakdown('camera-kit', day(1), day(2))
        before = [slot.reserved_quantity for slot in breakdown]

        create_test_reservation(db_session, camera, start_date=day(1), end_date=day(3),
                                quantity_reserved=3)
        after = [slot.reserved_quantity for slot in breakdown]

        assert before == [0, 0]
        assert after == [3, 3]

    def test_unknown_service_is_fully_booked(self, service):
        slots = list(service.get_availability_breakdown('missing', day(1), day(2)))

        assert len(slots) == 2
        assert all(slot.total_quantity == 0 and slot.is_fully_booked for slot in slots)

    def test_range_too_long(self, service, camera):
        with pytest.raises(InvalidArgumentError):
            service.get_availability_breakdown('camera-kit', day(0), day(400))

    def test_reversed_range(self, service, camera):
        with pytest.raises(InvalidArgumentError):
            service.get_availability_breakdown('camera-kit', day(3), day(1))


class TestReservationCreation:
    """Test CreateReservation and BlockInventory."""

    def test_create_booking_is_pending(self, service, camera):
        reservation = service.create_reservation('camera-kit', day(1), day(3), 2,
                                                 customer_id='cust-1')

        assert reservation['status'] == 'Pending'
        assert reservation['type'] == 'Booking'
        assert reservation['quantity_reserved'] == 2
        assert reservation['expires_at'] is None
        assert service.check_availability('camera-kit', day(1), day(3), 1).available_quantity == 3

    def test_create_confirmed(self, service, camera):
        reservation = service.create_reservation('camera-kit', day(1), day(3), 1, confirm=True)
        assert reservation['status'] == 'Confirmed'

    def test_soft_hold_gets_default_expiry(self, service, camera):
        hold = service.create_reservation('camera-kit', day(1), day(3), 1, type='SoftHold')

        assert hold['type'] == 'SoftHold'
        assert hold['expires_at'] == (NOW + timedelta(minutes=15)).isoformat()

    def test_soft_hold_with_past_expiry(self, service, camera):
        with pytest.raises(InvalidArgumentError):
            service.create_reservation('camera-kit', day(1), day(3), 1, type='SoftHold',
                                       expires_at=NOW - timedelta(seconds=1))

    def test_expiry_only_for_soft_holds(self, service, camera):
        with pytest.raises(InvalidArgumentError):
            service.create_reservation('camera-kit', day(1), day(3), 1,
                                       expires_at=NOW + timedelta(hours=1))

    def test_insufficient_inventory_writes_nothing(self, service, db_session, camera):
        existing = create_test_reservation(db_session, camera, quantity_reserved=4)

        with pytest.raises(InsufficientInventoryError) as exc_info:
            service.create_reservation('camera-kit', day(2), day(4), 2)

        assert exc_info.value.available_quantity == 1
        assert exc_info.value.requested_quantity == 2
        assert [c.reservation_id for c in exc_info.value.conflicts] == [existing.id]
        assert Reservation.query.count() == 1

    def test_unknown_service(self, service):
        with pytest.raises(NotFoundError):
            service.create_reservation('missing', day(1), day(3), 1)

    def test_unknown_type(self, service, camera):
        with pytest.raises(InvalidArgumentError):
            service.create_reservation('camera-kit', day(1), day(3), 1, type='Rental')

    def test_block_inventory_is_confirmed(self, service, camera):
        block = service.block_inventory('camera-kit', day(1), day(2), 2, type='Maintenance',
                                        reason='sensor cleaning')

        assert block['status'] == 'Confirmed'
        assert block['type'] == 'Maintenance'
        assert block['notes'] == 'sensor cleaning'
        assert service.check_availability('camera-kit', day(1), day(2), 4).is_available is False

    def test_block_inventory_respects_capacity(self, service, db_session, camera):
        create_test_reservation(db_session, camera, quantity_reserved=5)

        with pytest.raises(InsufficientInventoryError):
            service.block_inventory('camera-kit', day(1), day(2), 1, type='Blocked')

    def test_block_inventory_rejects_customer_types(self, service, camera):
        with pytest.raises(InvalidArgumentError):
            service.block_inventory('camera-kit', day(1), day(2), 1, type='Booking')


class TestStatusTransitions:
    """Test UpdateStatus and Cancel."""

    def test_transition_table(self):
        assert can_transition(ReservationStatus.PENDING, ReservationStatus.CONFIRMED)
        assert can_transition(ReservationStatus.CONFIRMED, ReservationStatus.NO_SHOW)
        assert not can_transition(ReservationStatus.PENDING, ReservationStatus.IN_USE)
        for status in (ReservationStatus.COMPLETED, ReservationStatus.CANCELLED,
                       ReservationStatus.NO_SHOW):
            assert TRANSITIONS[status] == frozenset()

    def test_full_lifecycle(self, service, camera):
        reservation = service.create_reservation('camera-kit', day(1), day(3), 1)

        for status in ('Confirmed', 'InUse', 'Completed'):
            reservation = service.update_status(reservation['id'], status)
            assert reservation['status'] == status

        assert reservation['version'] == 4

    def test_invalid_transition(self, service, camera):
        reservation = service.create_reservation('camera-kit', day(1), day(3), 1)

        with pytest.raises(InvalidTransitionError) as exc_info:
            service.update_status(reservation['id'], 'InUse')

        assert exc_info.value.current_status == ReservationStatus.PENDING
        assert service.get_reservation(reservation['id'])['status'] == 'Pending'

    def test_terminal_status_is_final(self, service, camera):
        reservation = service.create_reservation('camera-kit', day(1), day(3), 1)
        service.cancel_reservation(reservation['id'])

        with pytest.raises(InvalidTransitionError):
            service.update_status(reservation['id'], 'Confirmed')

    def test_cancel_releases_capacity(self, service, camera):
        reservation = service.create_reservation('camera-kit', day(1), day(3), 5, confirm=True)
        assert service.check_availability('camera-kit', day(1), day(3), 1).is_available is False

        cancelled = service.cancel_reservation(reservation['id'])

        assert cancelled['status'] == 'Cancelled'
        assert cancelled['counts_against_capacity'] is False
        assert service.check_availability('camera-kit', day(1), day(3), 5).is_available is True

    def test_cannot_cancel_in_use(self, service, db_session, camera):
        reservation = create_test_reservation(db_session, camera, status=ReservationStatus.IN_USE)

        with pytest.raises(InvalidTransitionError):
            service.cancel_reservation(reservation.id)

    def test_expected_status_mismatch(self, service, camera):
        reservation = service.create_reservation('camera-kit', day(1), day(3), 1)

        with pytest.raises(ConflictError):
            service.update_status(reservation['id'], 'Cancelled', expected_status='Confirmed')

    def test_unknown_status(self, service, camera):
        reservation = service.create_reservation('camera-kit', day(1), day(3), 1)

        with pytest.raises(InvalidArgumentError):
            service.update_status(reservation['id'], 'Returned')

    def test_unknown_reservation(self, service):
        with pytest.raises(NotFoundError):
            service.update_status('missing', 'Confirmed')
        with pytest.raises(NotFoundError):
            service.get_reservation('missing')

    def test_expired_soft_hold_cannot_be_confirmed(self, service, camera, clock):
        hold = service.create_reservation('camera-kit', day(1), day(3), 1, type='SoftHold')
        clock.advance(minutes=15)

        with pytest.raises(InvalidTransitionError):
            service.update_status(hold['id'], 'Confirmed')

        assert service.cancel_reservation(hold['id'])['status'] == 'Cancelled'

    def test_live_soft_hold_can_be_confirmed(self, service, camera, clock):
        hold = service.create_reservation('camera-kit', day(1), day(3), 1, type='SoftHold')
        clock.advance(minutes=14)

        assert service.update_status(hold['id'], 'Confirmed')['status'] == 'Confirmed'


class TestReservationUpdate:
    """Test UpdateReservation."""

    def test_reschedule(self, service, camera):
        reservation = service.create_reservation('camera-kit', day(1), day(3), 2)

        updated = service.update_reservation(reservation['id'], day(5), day(7), 3, notes='moved')

        assert updated['start_date'] == day(5).isoformat()
        assert updated['quantity_reserved'] == 3
        assert updated['notes'] == 'moved'
        assert updated['version'] == reservation['version'] + 1

    def test_reservation_does_not_count_against_itself(self, service, camera):
        reservation = service.create_reservation('camera-kit', day(1), day(3), 5)

        updated = service.update_reservation(reservation['id'], day(2), day(4), 5)

        assert updated['start_date'] == day(2).isoformat()

    def test_insufficient_inventory_leaves_record(self, service, db_session, camera):
        create_test_reservation(db_session, camera, start_date=day(5), end_date=day(7),
                                quantity_reserved=4)
        reservation = service.create_reservation('camera-kit', day(1), day(3), 2)

        with pytest.raises(InsufficientInventoryError):
            service.update_reservation(reservation['id'], day(5), day(7), 2)

        unchanged = service.get_reservation(reservation['id'])
        assert unchanged['start_date'] == day(1).isoformat()
        assert unchanged['version'] == reservation['version']

    def test_cannot_edit_completed(self, service, db_session, camera):
        reservation = create_test_reservation(db_session, camera,
                                              status=ReservationStatus.COMPLETED)

        with pytest.raises(InvalidTransitionError):
            service.update_reservation(reservation.id, day(5), day(7), 1)


class TestListReservations:
    """Test ListReservations."""

    def test_filters_and_ordering(self, service, db_session, camera):
        other = create_test_service_capacity(db_session, service_id='drone')
        late = create_test_reservation(db_session, camera, start_date=day(4), end_date=day(5))
        early = create_test_reservation(db_session, camera, start_date=day(1), end_date=day(2),
                                        customer_id='cust-9')
        create_test_reservation(db_session, camera, status=ReservationStatus.CANCELLED)
        create_test_reservation(db_session, other)

        result = service.list_reservations(service_id='camera-kit', statuses=['Confirmed'])
        assert [item['id'] for item in result['items']] == [early.id, late.id]
        assert result['total_count'] == 2

        by_customer = service.list_reservations(customer_id='cust-9')
        assert [item['id'] for item in by_customer['items']] == [early.id]

        by_date = service.list_reservations(service_id='camera-kit', start_date_from=day(3))
        assert [item['id'] for item in by_date['items']] == [late.id]

    def test_filter_by_type_and_hide_expired(self, service, db_session, camera):
        create_test_reservation(db_session, camera, type=ReservationType.MAINTENANCE)
        expired = create_test_reservation(db_session, camera, type=ReservationType.SOFT_HOLD,
                                          status=ReservationStatus.PENDING,
                                          expires_at=NOW - timedelta(minutes=1))
        live = create_test_reservation(db_session, camera, type=ReservationType.SOFT_HOLD,
                                       status=ReservationStatus.PENDING,
                                       expires_at=NOW + timedelta(minutes=5))

        holds = service.list_reservations(types=['SoftHold'])
        assert holds['total_count'] == 2
        flags = {item['id']: item['is_expired'] for item in holds['items']}
        assert flags == {expired.id: True, live.id: False}

        visible = service.list_reservations(types=['SoftHold'], include_expired=False)
        assert [item['id'] for item in visible['items']] == [live.id]

    def test_pagination(self, service, db_session, camera):
        for offset in range(5):
            create_test_reservation(db_session, camera, start_date=day(offset),
                                    end_date=day(offset + 1))

        result = service.list_reservations(page=2, page_size=2)

        assert result['total_count'] == 5
        assert result['total_pages'] == 3
        assert result['page'] == 2
        assert [item['start_date'] for item in result['items']] == [
            day(2).isoformat(), day(3).isoformat()
        ]


class TestExpirySweeper:
    """Test SweepExpiredHolds."""

    def test_sweep_cancels_only_expired_holds(self, service, db_session, camera, clock):
        expired = create_test_reservation(db_session, camera, type=ReservationType.SOFT_HOLD,
                                          status=ReservationStatus.PENDING,
                                          expires_at=NOW - timedelta(minutes=1))
        live = create_test_reservation(db_session, camera, type=ReservationType.SOFT_HOLD,
                                       status=ReservationStatus.PENDING,
                                       expires_at=NOW + timedelta(minutes=1))
        booking = create_test_reservation(db_session, camera)

        summary = service.sweep_expired_holds()

        assert summary['scanned_count'] == 1
        assert summary['cancelled_count'] == 1
        assert summary['error_count'] == 0
        assert service.get_reservation(expired.id)['status'] == 'Cancelled'
        assert service.get_reservation(live.id)['status'] == 'Pending'
        assert service.get_reservation(booking.id)['status'] == 'Confirmed'

        assert service.sweep_expired_holds()['scanned_count'] == 0

    def test_sweep_by_service(self, service, db_session, camera):
        other = create_test_service_capacity(db_session, service_id='drone')
        mine = create_test_reservation(db_session, camera, type=ReservationType.SOFT_HOLD,
                                       status=ReservationStatus.CONFIRMED,
                                       expires_at=NOW - timedelta(minutes=1))
        theirs = create_test_reservation(db_session, other, type=ReservationType.SOFT_HOLD,
                                         status=ReservationStatus.PENDING,
                                         expires_at=NOW - timedelta(minutes=1))

        summary = service.sweep_expired_holds('camera-kit')

        assert summary['cancelled_count'] == 1
        assert service.get_reservation(mine.id)['status'] == 'Cancelled'
        assert service.get_reservation(theirs.id)['status'] == 'Pending'

    def test_hold_expires_exactly_at_expiry(self, service, camera, clock):
        hold = service.create_reservation('camera-kit', day(1), day(3), 5, type='SoftHold')

        clock.advance(minutes=15)
        summary = service.sweep_expired_holds()

        assert summary['cancelled_count'] == 1
        assert service.get_reservation(hold['id'])['status'] == 'Cancelled'


class TestServiceCatalogService:
    """Test capacity upkeep."""

    def test_upsert_and_get(self, db_session):
        catalog = ServiceCatalogService()

        created = catalog.upsert_capacity('bike', 3, name='Bike')
        updated = catalog.upsert_capacity('bike', 6)

        assert created['total_quantity'] == 3
        assert updated['total_quantity'] == 6
        assert catalog.get_capacity('bike')['name'] == 'Bike'

    def test_get_missing(self, db_session):
        with pytest.raises(NotFoundError):
            ServiceCatalogService().get_capacity('missing')

    @pytest.mark.parametrize('total', [-1, '3', None])
    def test_invalid_total(self, db_session, total):
        with pytest.raises(InvalidArgumentError):
            ServiceCatalogService().upsert_capacity('bike', total)
