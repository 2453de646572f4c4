"""
Reservation Service - Business logic for availability and reservation management
"""

import logging
from datetime import datetime, timedelta
from typing import Any, Callable, Dict, List

from flask import current_app, has_app_context

from availability_service.exceptions import InvalidArgumentError, NotFoundError
from availability_service.models import ReservationType
from availability_service.repositories import ReservationRepository, ServiceCapacityRepository
from availability_service.utils.time import utcnow, to_naive_utc
from .availability_calculator import DAY, AvailabilityBreakdown, AvailabilityCalculator
from .capacity_resolver import CapacityResolver
from .conflict_reporter import ConflictReporter
from .expiry_sweeper import ExpirySweeper
from .lifecycle import ReservationLifecycleController, coerce_status, coerce_type
from .locks import ServiceLockRegistry
from .types import AvailabilityResult, ConflictDetail

logger = logging.getLogger(__name__)


def _setting(name, default):
    if has_app_context():
        return current_app.config.get(name, default)
    return default


class ReservationService:
    """Entry point for the engine's operations; wires the components together"""

    def __init__(self, clock: Callable[[], datetime] = None,
                 locks: ServiceLockRegistry = None,
                 soft_hold_ttl_minutes: int = None,
                 eager_sweep: bool = None,
                 max_slots: int = None):
        self.clock = clock or utcnow
        self.reservation_repo = ReservationRepository()
        self.capacity_repo = ServiceCapacityRepository()

        if soft_hold_ttl_minutes is None:
            soft_hold_ttl_minutes = _setting('SOFT_HOLD_TTL_MINUTES', 15)
        self.eager_sweep = _setting('EAGER_EXPIRY_SWEEP', False) if eager_sweep is None else eager_sweep
        max_slots = max_slots or _setting('MAX_AVAILABILITY_SLOTS', 366)

        self.resolver = CapacityResolver(self.reservation_repo, self.capacity_repo, self.clock)
        self.calculator = AvailabilityCalculator(self.reservation_repo, self.capacity_repo,
                                                 self.clock, max_slots=max_slots)
        self.reporter = ConflictReporter(self.resolver)
        self.lifecycle = ReservationLifecycleController(
            reservation_repo=self.reservation_repo,
            capacity_repo=self.capacity_repo,
            resolver=self.resolver,
            locks=locks,
            clock=self.clock,
            soft_hold_ttl_minutes=soft_hold_ttl_minutes
        )
        self.sweeper = ExpirySweeper(self.lifecycle, self.reservation_repo, self.clock)

    def check_availability(self, service_id: str, start: datetime, end: datetime,
                           quantity: int = 1, exclude_reservation_id: str = None) -> AvailabilityResult:
        """Is quantity free for service_id over [start, end)?"""
        try:
            if self.eager_sweep:
                self.sweeper.sweep(service_id)
            return self.resolver.check_availability(service_id, start, end, quantity,
                                                    exclude_reservation_id=exclude_reservation_id)
        except Exception as e:
            logger.error(f"Error checking availability for service {service_id}: {str(e)}")
            raise

    def get_availability_breakdown(self, service_id: str, range_start: datetime,
                                   range_end: datetime,
                                   granularity: timedelta = DAY) -> AvailabilityBreakdown:
        return self.calculator.get_availability_breakdown(service_id, range_start, range_end,
                                                          granularity)

    def explain_shortfall(self, service_id: str, start: datetime, end: datetime,
                          quantity: int = 1, exclude_reservation_id: str = None) -> List[ConflictDetail]:
        return self.reporter.explain_shortfall(service_id, start, end, quantity,
                                               exclude_reservation_id=exclude_reservation_id)

    def create_reservation(self, service_id: str, start_date: datetime, end_date: datetime,
                           quantity: int, type=ReservationType.BOOKING, customer_id: str = None,
                           notes: str = None, expires_at: datetime = None, booking_id: str = None,
                           confirm: bool = False) -> Dict[str, Any]:
        """Create a reservation after an atomic capacity re-check"""
        try:
            reservation = self.lifecycle.create(
                service_id, start_date, end_date, quantity,
                reservation_type=type,
                customer_id=customer_id,
                notes=notes,
                expires_at=expires_at,
                booking_id=booking_id,
                confirm=confirm
            )
            return reservation.to_dict(self.clock())
        except Exception as e:
            logger.error(f"Error creating reservation for service {service_id}: {str(e)}")
            raise

    def block_inventory(self, service_id: str, start_date: datetime, end_date: datetime,
                        quantity: int, type=ReservationType.MAINTENANCE,
                        reason: str = None) -> Dict[str, Any]:
        """Take units out of service for maintenance or a manual block"""
        reservation_type = coerce_type(type)
        if not reservation_type.is_operator_block:
            raise InvalidArgumentError("Block type must be Maintenance or Blocked")

        return self.create_reservation(service_id, start_date, end_date, quantity,
                                       type=reservation_type, notes=reason)

    def get_reservation(self, reservation_id: str) -> Dict[str, Any]:
        reservation = self.reservation_repo.get_by_id(reservation_id)
        if reservation is None:
            raise NotFoundError(f"Reservation {reservation_id} not found")
        return reservation.to_dict(self.clock())

    def update_status(self, reservation_id: str, status,
                      expected_status=None) -> Dict[str, Any]:
        try:
            reservation = self.lifecycle.update_status(reservation_id, status,
                                                       expected_status=expected_status)
            return reservation.to_dict(self.clock())
        except Exception as e:
            logger.error(f"Error updating status of reservation {reservation_id}: {str(e)}")
            raise

    def cancel_reservation(self, reservation_id: str) -> Dict[str, Any]:
        try:
            reservation = self.lifecycle.cancel(reservation_id)
            return reservation.to_dict(self.clock())
        except Exception as e:
            logger.error(f"Error cancelling reservation {reservation_id}: {str(e)}")
            raise

    def update_reservation(self, reservation_id: str, start_date: datetime, end_date: datetime,
                           quantity: int, notes: str = None) -> Dict[str, Any]:
        try:
            reservation = self.lifecycle.update_details(reservation_id, start_date, end_date,
                                                        quantity, notes=notes)
            return reservation.to_dict(self.clock())
        except Exception as e:
            logger.error(f"Error updating reservation {reservation_id}: {str(e)}")
            raise

    def list_reservations(self, page: int = 1, page_size: int = 20, **filters) -> Dict[str, Any]:
        """Filtered, paginated reservation list ordered by start date"""
        try:
            if filters.get('statuses'):
                filters['statuses'] = [coerce_status(s) for s in filters['statuses']]
            if filters.get('types'):
                filters['types'] = [coerce_type(t) for t in filters['types']]
            for key in ('start_date_from', 'start_date_to', 'end_date_from', 'end_date_to'):
                if filters.get(key):
                    filters[key] = to_naive_utc(filters[key])

            now = self.clock()
            items, total = self.reservation_repo.search(page=page, per_page=page_size,
                                                        now=now, **filters)
            return {
                'items': [reservation.to_dict(now) for reservation in items],
                'total_count': total,
                'page': page,
                'page_size': page_size,
                'total_pages': (total + page_size - 1) // page_size
            }
        except Exception as e:
            logger.error(f"Error listing reservations: {str(e)}")
            raise

    def sweep_expired_holds(self, service_id: str = None) -> Dict[str, Any]:
        return self.sweeper.sweep(service_id)
