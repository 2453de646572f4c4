"""
Base Repository Interface - Abstract base classes
"""

from abc import ABC, abstractmethod
from datetime import datetime
from typing import List, Optional

from availability_service.models import Reservation, ReservationStatus, ServiceCapacity


class ServiceCapacityRepositoryInterface(ABC):
    """Abstract base class for the service capacity repository"""

    @abstractmethod
    def get_by_service_id(self, service_id: str) -> Optional[ServiceCapacity]:
        pass

    @abstractmethod
    def get_for_update(self, service_id: str) -> Optional[ServiceCapacity]:
        pass

    @abstractmethod
    def upsert(self, service_id: str, total_quantity: int, name: str = None) -> ServiceCapacity:
        pass


class ReservationRepositoryInterface(ABC):
    """Abstract base class for reservation repository"""

    @abstractmethod
    def add(self, reservation: Reservation) -> Reservation:
        pass

    @abstractmethod
    def get_by_id(self, reservation_id: str) -> Optional[Reservation]:
        pass

    @abstractmethod
    def find_overlapping(self, service_id: str, start: datetime, end: datetime,
                         exclude_reservation_id: str = None) -> List[Reservation]:
        pass

    @abstractmethod
    def compare_and_set_status(self, reservation_id: str, expected: ReservationStatus,
                               new_status: ReservationStatus) -> bool:
        pass

    @abstractmethod
    def get_expired_soft_holds(self, now: datetime, service_id: str = None) -> List[Reservation]:
        pass

    @abstractmethod
    def search(self, **kwargs) -> tuple[List[Reservation], int]:
        pass

    @abstractmethod
    def update_if_version(self, reservation_id: str, expected_version: int, **values) -> bool:
        pass
