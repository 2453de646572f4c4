"""
Value objects returned by the engine. Derived, never persisted.
"""

from dataclasses import dataclass, field
from datetime import datetime
from typing import List

from availability_service.utils.time import isoformat


@dataclass(frozen=True)
class ConflictDetail:
    """One capacity-counting reservation overlapping a requested window"""
    reservation_id: str
    status: str
    type: str
    start_date: datetime
    end_date: datetime
    quantity_reserved: int

    @classmethod
    def from_reservation(cls, reservation):
        return cls(
            reservation_id=reservation.id,
            status=reservation.status.value,
            type=reservation.type.value,
            start_date=reservation.start_date,
            end_date=reservation.end_date,
            quantity_reserved=reservation.quantity_reserved,
        )

    def to_dict(self):
        return {
            'reservation_id': self.reservation_id,
            'status': self.status,
            'type': self.type,
            'start_date': isoformat(self.start_date),
            'end_date': isoformat(self.end_date),
            'quantity_reserved': self.quantity_reserved,
        }


@dataclass(frozen=True)
class AvailabilityResult:
    service_id: str
    is_available: bool
    available_quantity: int
    requested_quantity: int
    total_quantity: int
    reserved_quantity: int
    checked_start_date: datetime
    checked_end_date: datetime
    message: str
    conflicts: List[ConflictDetail] = field(default_factory=list)

    def to_dict(self):
        return {
            'service_id': self.service_id,
            'is_available': self.is_available,
            'available_quantity': self.available_quantity,
            'requested_quantity': self.requested_quantity,
            'total_quantity': self.total_quantity,
            'reserved_quantity': self.reserved_quantity,
            'checked_start_date': isoformat(self.checked_start_date),
            'checked_end_date': isoformat(self.checked_end_date),
            'message': self.message,
            'conflicts': [conflict.to_dict() for conflict in self.conflicts],
        }


@dataclass(frozen=True)
class AvailabilitySlot:
    slot_start: datetime
    slot_end: datetime
    total_quantity: int
    reserved_quantity: int

    @property
    def available_quantity(self) -> int:
        return max(0, self.total_quantity - self.reserved_quantity)

    @property
    def is_fully_booked(self) -> bool:
        return self.available_quantity == 0

    def to_dict(self):
        return {
            'slot_start': isoformat(self.slot_start),
            'slot_end': isoformat(self.slot_end),
            'total_quantity': self.total_quantity,
            'reserved_quantity': self.reserved_quantity,
            'available_quantity': self.available_quantity,
            'is_fully_booked': self.is_fully_booked,
        }
