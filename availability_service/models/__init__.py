"""
Models package - Database models for the availability service
"""

# Import database instance
from availability_service.database import db

# Import enums first
from .enums import ReservationStatus, ReservationType, TERMINAL_STATUSES

# Import models
from .service_capacity import ServiceCapacity
from .reservation import Reservation

# Export all models and enums
__all__ = [
    'db',
    'ReservationStatus',
    'ReservationType',
    'TERMINAL_STATUSES',
    'ServiceCapacity',
    'Reservation'
]
