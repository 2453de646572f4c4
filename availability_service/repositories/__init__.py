"""
Repositories package - Data access layer for the availability service
"""

# Import interfaces
from .base import ServiceCapacityRepositoryInterface, ReservationRepositoryInterface

# Import concrete implementations
from .service_capacity_repository import ServiceCapacityRepository
from .reservation_repository import ReservationRepository

# Export all interfaces and implementations
__all__ = [
    'ServiceCapacityRepositoryInterface',
    'ReservationRepositoryInterface',
    'ServiceCapacityRepository',
    'ReservationRepository'
]
