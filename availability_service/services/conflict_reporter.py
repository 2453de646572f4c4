"""
Conflict Reporter - which reservations stand in the way of a request
"""

import logging
from datetime import datetime
from typing import List

from .capacity_resolver import CapacityResolver
from .types import ConflictDetail

logger = logging.getLogger(__name__)


class ConflictReporter:
    """Enumerates the reservations behind a capacity shortfall"""

    def __init__(self, resolver: CapacityResolver = None):
        self.resolver = resolver or CapacityResolver()

    def explain_shortfall(self, service_id: str, start: datetime, end: datetime,
                          requested_quantity: int = 1,
                          exclude_reservation_id: str = None) -> List[ConflictDetail]:
        """
        Capacity-counting reservations overlapping [start, end), ordered by
        start date then ID. Empty when the requested quantity fits.
        """
        result = self.resolver.check_availability(
            service_id, start, end, requested_quantity,
            exclude_reservation_id=exclude_reservation_id
        )
        if result.conflicts:
            logger.info(
                f"Shortfall on service {service_id}: {len(result.conflicts)} conflicting "
                f"reservation(s), {result.available_quantity} of {requested_quantity} available"
            )
        return list(result.conflicts)
