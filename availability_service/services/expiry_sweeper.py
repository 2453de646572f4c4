"""
Expiry Sweeper - cancels soft holds whose expiry has passed
"""

import logging
from datetime import datetime
from typing import Any, Callable, Dict

from availability_service.exceptions import ConflictError, InvalidTransitionError, NotFoundError
from availability_service.models import ReservationStatus
from availability_service.repositories import ReservationRepository
from availability_service.utils.time import utcnow
from .lifecycle import ReservationLifecycleController

logger = logging.getLogger(__name__)


class ExpirySweeper:
    """
    Moves expired Pending/Confirmed soft holds to Cancelled through the
    lifecycle controller, so the regular transition rules apply.

    Expired holds already stop counting against capacity when they expire;
    sweeping makes their stored status agree.
    """

    def __init__(self, lifecycle: ReservationLifecycleController = None,
                 reservation_repo: ReservationRepository = None,
                 clock: Callable[[], datetime] = None):
        self.clock = clock or utcnow
        self.reservation_repo = reservation_repo or ReservationRepository()
        self.lifecycle = lifecycle or ReservationLifecycleController(
            reservation_repo=self.reservation_repo, clock=self.clock
        )

    def sweep(self, service_id: str = None) -> Dict[str, Any]:
        """Cancel every expired hold, optionally for one service"""
        now = self.clock()
        candidates = [
            (reservation.id, reservation.status)
            for reservation in self.reservation_repo.get_expired_soft_holds(now, service_id)
        ]

        cancelled = 0
        lost_races = 0
        errors = 0

        for reservation_id, observed_status in candidates:
            try:
                self.lifecycle.update_status(
                    reservation_id,
                    ReservationStatus.CANCELLED,
                    expected_status=observed_status
                )
                cancelled += 1
                logger.info(f"Released expired soft hold {reservation_id}")

            except (ConflictError, InvalidTransitionError, NotFoundError) as e:
                # Someone else moved the hold first
                lost_races += 1
                logger.warning(f"Skipped expired soft hold {reservation_id}: {e}")

            except Exception as e:
                errors += 1
                logger.error(f"Error sweeping expired soft hold {reservation_id}: {e}", exc_info=True)

        if candidates:
            logger.info(
                f"Expiry sweep: {cancelled} cancelled, {lost_races} skipped, "
                f"{errors} failed of {len(candidates)} expired hold(s)"
            )

        return {
            'scanned_count': len(candidates),
            'cancelled_count': cancelled,
            'skipped_count': lost_races,
            'error_count': errors,
            'swept_at': now.isoformat()
        }
