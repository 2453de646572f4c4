from .capacity_resolver import CapacityResolver
from .availability_calculator import AvailabilityBreakdown, AvailabilityCalculator
from .conflict_reporter import ConflictReporter
from .lifecycle import ReservationLifecycleController
from .expiry_sweeper import ExpirySweeper
from .catalog_service import ServiceCatalogService
from .reservation_service import ReservationService

__all__ = [
    'CapacityResolver',
    'AvailabilityBreakdown',
    'AvailabilityCalculator',
    'ConflictReporter',
    'ReservationLifecycleController',
    'ExpirySweeper',
    'ServiceCatalogService',
    'ReservationService',
]
