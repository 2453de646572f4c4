"""
Service Catalog Service - capacity ceilings mirrored from the service catalog
"""

import logging
from typing import Any, Dict

from availability_service.exceptions import InvalidArgumentError, NotFoundError
from availability_service.repositories import ServiceCapacityRepository

logger = logging.getLogger(__name__)


class ServiceCatalogService:
    """Read and maintain the local ServiceCapacity read model"""

    def __init__(self, capacity_repo: ServiceCapacityRepository = None):
        self.capacity_repo = capacity_repo or ServiceCapacityRepository()

    def get_capacity(self, service_id: str) -> Dict[str, Any]:
        capacity = self.capacity_repo.get_by_service_id(service_id)
        if capacity is None:
            raise NotFoundError(f"Service {service_id} not found")
        return capacity.to_dict()

    def upsert_capacity(self, service_id: str, total_quantity: int, name: str = None) -> Dict[str, Any]:
        if not service_id:
            raise InvalidArgumentError("service_id is required")
        if isinstance(total_quantity, bool) or not isinstance(total_quantity, int) or total_quantity < 0:
            raise InvalidArgumentError("total_quantity must be a non-negative whole number")

        try:
            capacity = self.capacity_repo.upsert(service_id, total_quantity, name=name)
            logger.info(f"Capacity of service {service_id} set to {total_quantity}")
            return capacity.to_dict()
        except Exception as e:
            logger.error(f"Error updating capacity for service {service_id}: {str(e)}")
            raise
