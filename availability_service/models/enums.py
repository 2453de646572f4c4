"""
Model Enums
"""

from enum import Enum


class ReservationStatus(Enum):
    PENDING = "Pending"
    CONFIRMED = "Confirmed"
    IN_USE = "InUse"
    COMPLETED = "Completed"
    CANCELLED = "Cancelled"
    NO_SHOW = "NoShow"

    @property
    def is_terminal(self):
        return self in TERMINAL_STATUSES

    @property
    def releases_capacity(self):
        """Statuses that never count against capacity"""
        return self in (ReservationStatus.CANCELLED, ReservationStatus.NO_SHOW)


class ReservationType(Enum):
    BOOKING = "Booking"
    SOFT_HOLD = "SoftHold"
    MAINTENANCE = "Maintenance"
    BLOCKED = "Blocked"

    @property
    def is_operator_block(self):
        return self in (ReservationType.MAINTENANCE, ReservationType.BLOCKED)


TERMINAL_STATUSES = frozenset({
    ReservationStatus.COMPLETED,
    ReservationStatus.CANCELLED,
    ReservationStatus.NO_SHOW,
})
