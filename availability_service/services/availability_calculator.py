"""
Availability Calculator - per-slot breakdown of a service's capacity for calendars
"""

import logging
from datetime import datetime, timedelta
from typing import Callable, Iterator

from availability_service.exceptions import InvalidArgumentError
from availability_service.repositories import ReservationRepository, ServiceCapacityRepository
from availability_service.utils.time import utcnow, to_naive_utc
from .capacity_resolver import reserved_quantity
from .types import AvailabilitySlot

logger = logging.getLogger(__name__)

DAY = timedelta(days=1)


def slot_anchor(moment: datetime, granularity: timedelta) -> datetime:
    """Start of the slot containing moment; slots are aligned to midnight"""
    midnight = moment.replace(hour=0, minute=0, second=0, microsecond=0)
    if granularity >= DAY:
        return midnight
    return midnight + ((moment - midnight) // granularity) * granularity


class AvailabilityBreakdown:
    """
    Lazy, restartable sequence of slots. Each iteration re-reads the store, so
    iterating twice reflects writes made in between.
    """

    def __init__(self, service_id, range_start, range_end, granularity,
                 reservation_repo, capacity_repo, clock):
        self.service_id = service_id
        self.granularity = granularity
        self.first_slot_start = slot_anchor(range_start, granularity)
        self.slot_count = int((range_end - self.first_slot_start) // granularity) + 1
        self.last_slot_end = self.first_slot_start + self.slot_count * granularity
        self._reservation_repo = reservation_repo
        self._capacity_repo = capacity_repo
        self._clock = clock

    def __len__(self):
        return self.slot_count

    def __iter__(self) -> Iterator[AvailabilitySlot]:
        capacity = self._capacity_repo.get_by_service_id(self.service_id)
        # Unknown service behaves as zero capacity
        total_quantity = capacity.total_quantity if capacity else 0

        reservations = self._reservation_repo.find_overlapping(
            self.service_id, self.first_slot_start, self.last_slot_end
        )
        now = self._clock()

        for index in range(self.slot_count):
            slot_start = self.first_slot_start + index * self.granularity
            slot_end = slot_start + self.granularity
            yield AvailabilitySlot(
                slot_start=slot_start,
                slot_end=slot_end,
                total_quantity=total_quantity,
                reserved_quantity=reserved_quantity(reservations, slot_start, slot_end, now),
            )

    def to_list(self):
        return [slot.to_dict() for slot in self]


class AvailabilityCalculator:
    """Builds slot breakdowns from the capacity resolver's overlap-and-sum logic"""

    def __init__(self, reservation_repo: ReservationRepository = None,
                 capacity_repo: ServiceCapacityRepository = None,
                 clock: Callable[[], datetime] = None,
                 max_slots: int = 366):
        self.reservation_repo = reservation_repo or ReservationRepository()
        self.capacity_repo = capacity_repo or ServiceCapacityRepository()
        self.clock = clock or utcnow
        self.max_slots = max_slots

    def get_availability_breakdown(self, service_id: str, range_start: datetime,
                                   range_end: datetime,
                                   granularity: timedelta = DAY) -> AvailabilityBreakdown:
        """One slot per granularity unit covering [range_start, range_end] inclusive"""
        if not isinstance(range_start, datetime) or not isinstance(range_end, datetime):
            raise InvalidArgumentError("range_start and range_end must be datetimes")
        if not isinstance(granularity, timedelta) or granularity <= timedelta(0):
            raise InvalidArgumentError("granularity must be a positive duration")

        range_start, range_end = to_naive_utc(range_start), to_naive_utc(range_end)
        if range_end < range_start:
            raise InvalidArgumentError("range_end must not be before range_start")

        breakdown = AvailabilityBreakdown(
            service_id, range_start, range_end, granularity,
            self.reservation_repo, self.capacity_repo, self.clock
        )
        if breakdown.slot_count > self.max_slots:
            raise InvalidArgumentError(
                f"Range spans {breakdown.slot_count} slots, at most {self.max_slots} allowed"
            )
        return breakdown
