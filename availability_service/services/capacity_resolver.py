"""
Capacity Resolver - how much of a service is free over a half-open window
"""

import logging
from datetime import datetime
from typing import Callable, Iterable, List, Optional

from availability_service.exceptions import InvalidArgumentError, NotFoundError
from availability_service.repositories import ReservationRepository, ServiceCapacityRepository
from availability_service.utils.time import utcnow, to_naive_utc
from .types import AvailabilityResult, ConflictDetail

logger = logging.getLogger(__name__)


def validate_window(start: datetime, end: datetime) -> tuple[datetime, datetime]:
    """Normalize to naive UTC and require end > start"""
    if not isinstance(start, datetime) or not isinstance(end, datetime):
        raise InvalidArgumentError("start and end must be datetimes")

    start, end = to_naive_utc(start), to_naive_utc(end)
    if end <= start:
        raise InvalidArgumentError(
            f"End date {end.isoformat()} must be after start date {start.isoformat()}"
        )
    return start, end


def validate_quantity(quantity, name: str = 'quantity') -> int:
    # bool is an int subclass but never a quantity
    if isinstance(quantity, bool) or not isinstance(quantity, int):
        raise InvalidArgumentError(f"{name} must be a whole number")
    if quantity < 1:
        raise InvalidArgumentError(f"{name} must be at least 1")
    return quantity


def counting_overlaps(reservations: Iterable, start: datetime, end: datetime,
                      now: datetime) -> List:
    """Reservations overlapping [start, end) that currently consume capacity"""
    return [
        reservation for reservation in reservations
        if reservation.overlaps(start, end) and reservation.counts_against_capacity(now)
    ]


def reserved_quantity(reservations: Iterable, start: datetime, end: datetime,
                      now: datetime) -> int:
    """Sum of quantity over capacity-counting reservations overlapping [start, end)"""
    return sum(r.quantity_reserved for r in counting_overlaps(reservations, start, end, now))


def availability_message(available_quantity: int, requested_quantity: int) -> str:
    if available_quantity >= requested_quantity:
        return f"{requested_quantity} unit(s) available for the requested period"
    if available_quantity <= 0:
        return "No units available for the requested period"
    return (
        f"Only {available_quantity} unit(s) available for the requested period, "
        f"{requested_quantity} requested"
    )


class CapacityResolver:
    """Answers whether a quantity of a service is free between start and end"""

    def __init__(self, reservation_repo: ReservationRepository = None,
                 capacity_repo: ServiceCapacityRepository = None,
                 clock: Callable[[], datetime] = None):
        self.reservation_repo = reservation_repo or ReservationRepository()
        self.capacity_repo = capacity_repo or ServiceCapacityRepository()
        self.clock = clock or utcnow

    def evaluate(self, service_id: str, total_quantity: int, reservations: Iterable,
                 start: datetime, end: datetime, requested_quantity: int,
                 now: Optional[datetime] = None) -> AvailabilityResult:
        """Pure computation over an already fetched reservation set"""
        now = now or self.clock()
        counting = counting_overlaps(reservations, start, end, now)
        reserved = sum(r.quantity_reserved for r in counting)
        available = total_quantity - reserved
        is_available = available >= requested_quantity

        conflicts = []
        if not is_available:
            conflicts = sorted(
                (ConflictDetail.from_reservation(r) for r in counting),
                key=lambda c: (c.start_date, c.reservation_id)
            )

        return AvailabilityResult(
            service_id=service_id,
            is_available=is_available,
            available_quantity=max(0, available),
            requested_quantity=requested_quantity,
            total_quantity=total_quantity,
            reserved_quantity=reserved,
            checked_start_date=start,
            checked_end_date=end,
            message=availability_message(available, requested_quantity),
            conflicts=conflicts,
        )

    def check_availability(self, service_id: str, start: datetime, end: datetime,
                           requested_quantity: int = 1,
                           exclude_reservation_id: str = None) -> AvailabilityResult:
        """Read-only capacity check; no side effects"""
        start, end = validate_window(start, end)
        requested_quantity = validate_quantity(requested_quantity, 'requested_quantity')

        capacity = self.capacity_repo.get_by_service_id(service_id)
        if capacity is None:
            raise NotFoundError(f"Service {service_id} not found")

        reservations = self.reservation_repo.find_overlapping(
            service_id, start, end, exclude_reservation_id=exclude_reservation_id
        )
        result = self.evaluate(service_id, capacity.total_quantity, reservations,
                               start, end, requested_quantity)

        logger.debug(
            f"Availability for service {service_id} [{start.isoformat()}, {end.isoformat()}): "
            f"{result.available_quantity}/{result.total_quantity} free, "
            f"{requested_quantity} requested"
        )
        return result
