"""
Service Capacity Repository Implementation
"""

from typing import Optional
from availability_service.database import db
from availability_service.models import ServiceCapacity
from availability_service.utils.time import utcnow
from .base import ServiceCapacityRepositoryInterface


class ServiceCapacityRepository(ServiceCapacityRepositoryInterface):
    """Concrete implementation of the service capacity repository"""

    def get_by_service_id(self, service_id: str) -> Optional[ServiceCapacity]:
        """Get capacity by service ID"""
        return ServiceCapacity.query.filter_by(service_id=service_id).first()

    def get_for_update(self, service_id: str) -> Optional[ServiceCapacity]:
        """Get capacity and lock its row until the current transaction ends"""
        return (
            ServiceCapacity.query
            .filter_by(service_id=service_id)
            .with_for_update()
            .first()
        )

    def upsert(self, service_id: str, total_quantity: int, name: str = None) -> ServiceCapacity:
        """Create or update the capacity ceiling of a service"""
        try:
            capacity = self.get_for_update(service_id)
            if capacity is None:
                capacity = ServiceCapacity(
                    service_id=service_id,
                    name=name,
                    total_quantity=total_quantity
                )
                db.session.add(capacity)
            else:
                capacity.total_quantity = total_quantity
                if name is not None:
                    capacity.name = name
                capacity.updated_at = utcnow()

            db.session.commit()
            return capacity
        except Exception:
            db.session.rollback()
            raise
