"""
Reservation Lifecycle Controller - creation and every status change of a reservation
"""

import logging
from datetime import datetime, timedelta
from typing import Callable, Optional
from uuid import uuid4

from availability_service.exceptions import (
    ConflictError,
    InsufficientInventoryError,
    InvalidArgumentError,
    InvalidTransitionError,
    NotFoundError,
)
from availability_service.models import Reservation, ReservationStatus, ReservationType
from availability_service.repositories import ReservationRepository, ServiceCapacityRepository
from availability_service.utils.time import utcnow, to_naive_utc
from .capacity_resolver import CapacityResolver, validate_quantity, validate_window
from .locks import ServiceLockRegistry, service_locks

logger = logging.getLogger(__name__)


TRANSITIONS = {
    ReservationStatus.PENDING: frozenset({ReservationStatus.CONFIRMED, ReservationStatus.CANCELLED}),
    ReservationStatus.CONFIRMED: frozenset({
        ReservationStatus.IN_USE, ReservationStatus.NO_SHOW, ReservationStatus.CANCELLED
    }),
    ReservationStatus.IN_USE: frozenset({ReservationStatus.COMPLETED}),
    ReservationStatus.COMPLETED: frozenset(),
    ReservationStatus.CANCELLED: frozenset(),
    ReservationStatus.NO_SHOW: frozenset(),
}

CANCELLABLE_STATUSES = frozenset({ReservationStatus.PENDING, ReservationStatus.CONFIRMED})
EDITABLE_STATUSES = CANCELLABLE_STATUSES

# Targets that would make an expired hold consume capacity again
CAPACITY_CLAIMING_TARGETS = frozenset({ReservationStatus.CONFIRMED, ReservationStatus.IN_USE})


def coerce_status(value) -> ReservationStatus:
    if isinstance(value, ReservationStatus):
        return value
    try:
        return ReservationStatus(value)
    except ValueError:
        try:
            return ReservationStatus[str(value).upper()]
        except KeyError:
            raise InvalidArgumentError(f"Unknown reservation status: {value}") from None


def coerce_type(value) -> ReservationType:
    if isinstance(value, ReservationType):
        return value
    try:
        return ReservationType(value)
    except ValueError:
        try:
            return ReservationType[str(value).upper()]
        except KeyError:
            raise InvalidArgumentError(f"Unknown reservation type: {value}") from None


def can_transition(current: ReservationStatus, new_status: ReservationStatus) -> bool:
    return new_status in TRANSITIONS[current]


def validate_transition(current: ReservationStatus, new_status: ReservationStatus):
    if not can_transition(current, new_status):
        raise InvalidTransitionError(
            f"Cannot move reservation from {current.value} to {new_status.value}",
            current_status=current,
            requested_status=new_status
        )


class ReservationLifecycleController:
    """Validates and applies reservation state changes"""

    def __init__(self, reservation_repo: ReservationRepository = None,
                 capacity_repo: ServiceCapacityRepository = None,
                 resolver: CapacityResolver = None,
                 locks: ServiceLockRegistry = None,
                 clock: Callable[[], datetime] = None,
                 soft_hold_ttl_minutes: int = 15):
        self.reservation_repo = reservation_repo or ReservationRepository()
        self.capacity_repo = capacity_repo or ServiceCapacityRepository()
        self.clock = clock or utcnow
        self.resolver = resolver or CapacityResolver(self.reservation_repo, self.capacity_repo, self.clock)
        self.locks = locks or service_locks
        self.soft_hold_ttl_minutes = soft_hold_ttl_minutes

    def _get_or_raise(self, reservation_id: str) -> Reservation:
        reservation = self.reservation_repo.get_by_id(reservation_id)
        if reservation is None:
            raise NotFoundError(f"Reservation {reservation_id} not found")
        return reservation

    def _check_capacity_locked(self, service_id: str, start: datetime, end: datetime,
                               quantity: int, now: datetime,
                               exclude_reservation_id: str = None):
        """Capacity check that must run inside the service lock and an open transaction"""
        capacity = self.capacity_repo.get_for_update(service_id)
        if capacity is None:
            raise NotFoundError(f"Service {service_id} not found")

        overlapping = self.reservation_repo.find_overlapping(
            service_id, start, end, exclude_reservation_id=exclude_reservation_id
        )
        result = self.resolver.evaluate(service_id, capacity.total_quantity, overlapping,
                                        start, end, quantity, now=now)
        if not result.is_available:
            raise InsufficientInventoryError(
                result.message,
                available_quantity=result.available_quantity,
                requested_quantity=quantity,
                conflicts=result.conflicts
            )
        return result

    def _resolve_expiry(self, reservation_type: ReservationType,
                        expires_at: Optional[datetime], now: datetime) -> Optional[datetime]:
        if reservation_type != ReservationType.SOFT_HOLD:
            if expires_at is not None:
                raise InvalidArgumentError("expires_at is only valid for soft holds")
            return None

        if expires_at is None:
            return now + timedelta(minutes=self.soft_hold_ttl_minutes)

        expires_at = to_naive_utc(expires_at)
        if expires_at <= now:
            raise InvalidArgumentError("expires_at must be in the future")
        return expires_at

    def create(self, service_id: str, start_date: datetime, end_date: datetime,
               quantity: int, reservation_type=ReservationType.BOOKING,
               customer_id: str = None, notes: str = None, expires_at: datetime = None,
               booking_id: str = None, confirm: bool = False) -> Reservation:
        """
        Create a reservation, re-checking capacity at commit time.

        The check and the insert run under the service's write lock and a row
        lock on its capacity record, so concurrent creates for one service
        cannot both pass the check. On any failure nothing is written.
        """
        start, end = validate_window(start_date, end_date)
        quantity = validate_quantity(quantity)
        reservation_type = coerce_type(reservation_type)
        now = self.clock()
        expires_at = self._resolve_expiry(reservation_type, expires_at, now)

        if reservation_type.is_operator_block or confirm:
            status = ReservationStatus.CONFIRMED
        else:
            status = ReservationStatus.PENDING

        # Unknown services never get a lock; the read is ended so the locked
        # section starts a fresh transaction
        known = self.capacity_repo.get_by_service_id(service_id) is not None
        self.reservation_repo.rollback()
        if not known:
            raise NotFoundError(f"Service {service_id} not found")

        with self.locks.hold(service_id):
            try:
                self._check_capacity_locked(service_id, start, end, quantity, now)

                reservation = Reservation(
                    id=str(uuid4()),
                    service_id=service_id,
                    start_date=start,
                    end_date=end,
                    quantity_reserved=quantity,
                    type=reservation_type,
                    status=status,
                    expires_at=expires_at,
                    customer_id=customer_id,
                    booking_id=booking_id,
                    notes=notes
                )
                self.reservation_repo.add(reservation)
            except Exception:
                self.reservation_repo.rollback()
                raise

        logger.info(
            f"Created {reservation_type.value} reservation {reservation.id} for service {service_id}: "
            f"{quantity} unit(s) [{start.isoformat()}, {end.isoformat()}) as {status.value}"
        )
        return reservation

    def update_status(self, reservation_id: str, new_status,
                      expected_status=None) -> Reservation:
        """
        Move a reservation along the transition table.

        The write is conditional on the status observed at read time; if another
        writer moved the reservation first, this call fails with ConflictError.
        """
        new_status = coerce_status(new_status)
        reservation = self._get_or_raise(reservation_id)
        current = reservation.status

        if expected_status is not None and coerce_status(expected_status) != current:
            raise ConflictError(
                f"Reservation {reservation_id} is {current.value}, "
                f"expected {coerce_status(expected_status).value}"
            )

        validate_transition(current, new_status)

        if new_status in CAPACITY_CLAIMING_TARGETS and reservation.is_expired(self.clock()):
            raise InvalidTransitionError(
                f"Soft hold {reservation_id} expired at {reservation.expires_at.isoformat()}",
                current_status=current,
                requested_status=new_status
            )

        if not self.reservation_repo.compare_and_set_status(reservation_id, current, new_status):
            latest = self.reservation_repo.get_by_id(reservation_id)
            if latest is None:
                raise NotFoundError(f"Reservation {reservation_id} not found")
            logger.warning(
                f"Lost status race on reservation {reservation_id}: "
                f"{current.value} -> {new_status.value}, now {latest.status.value}"
            )
            raise ConflictError(
                f"Reservation {reservation_id} was changed concurrently to {latest.status.value}"
            )

        logger.info(f"Reservation {reservation_id} moved {current.value} -> {new_status.value}")
        return self._get_or_raise(reservation_id)

    def cancel(self, reservation_id: str) -> Reservation:
        """Cancel a Pending or Confirmed reservation"""
        reservation = self._get_or_raise(reservation_id)
        if reservation.status not in CANCELLABLE_STATUSES:
            raise InvalidTransitionError(
                f"Cannot cancel a reservation that is {reservation.status.value}",
                current_status=reservation.status,
                requested_status=ReservationStatus.CANCELLED
            )
        return self.update_status(reservation_id, ReservationStatus.CANCELLED,
                                  expected_status=reservation.status)

    def update_details(self, reservation_id: str, start_date: datetime, end_date: datetime,
                       quantity: int, notes: str = None) -> Reservation:
        """Change the interval and quantity of a Pending or Confirmed reservation"""
        start, end = validate_window(start_date, end_date)
        quantity = validate_quantity(quantity)
        service_id = self._get_or_raise(reservation_id).service_id
        self.reservation_repo.rollback()

        with self.locks.hold(service_id):
            try:
                reservation = self._get_or_raise(reservation_id)
                now = self.clock()

                if reservation.status not in EDITABLE_STATUSES:
                    raise InvalidTransitionError(
                        f"Cannot edit a reservation that is {reservation.status.value}",
                        current_status=reservation.status
                    )
                if reservation.is_expired(now):
                    raise InvalidTransitionError(
                        f"Soft hold {reservation_id} has expired",
                        current_status=reservation.status
                    )

                self._check_capacity_locked(service_id, start, end, quantity, now,
                                            exclude_reservation_id=reservation_id)

                values = {'start_date': start, 'end_date': end, 'quantity_reserved': quantity}
                if notes is not None:
                    values['notes'] = notes

                if not self.reservation_repo.update_if_version(reservation_id, reservation.version,
                                                               **values):
                    raise ConflictError(f"Reservation {reservation_id} was changed concurrently")
            except Exception:
                self.reservation_repo.rollback()
                raise

        logger.info(
            f"Reservation {reservation_id} rescheduled to [{start.isoformat()}, {end.isoformat()}) "
            f"x{quantity}"
        )
        return self._get_or_raise(reservation_id)
