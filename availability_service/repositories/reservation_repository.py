"""
Reservation Repository Implementation
"""

from typing import List, Optional
from datetime import datetime
from sqlalchemy import and_, or_
from availability_service.database import db
from availability_service.models import Reservation, ReservationStatus, ReservationType
from availability_service.utils.time import utcnow
from .base import ReservationRepositoryInterface


# Statuses excluded from capacity sums regardless of type
RELEASED_STATUSES = (ReservationStatus.CANCELLED, ReservationStatus.NO_SHOW)


class ReservationRepository(ReservationRepositoryInterface):
    """Concrete implementation of reservation repository"""

    def add(self, reservation: Reservation, commit: bool = True) -> Reservation:
        """Persist a new reservation"""
        db.session.add(reservation)
        if commit:
            db.session.commit()
        else:
            db.session.flush()
        return reservation

    def get_by_id(self, reservation_id: str) -> Optional[Reservation]:
        """Get reservation by ID"""
        return Reservation.query.filter_by(id=reservation_id).first()

    def find_overlapping(self, service_id: str, start: datetime, end: datetime,
                         exclude_reservation_id: str = None) -> List[Reservation]:
        """
        Reservations of a service whose [start_date, end_date) overlaps [start, end)
        and whose status can still hold capacity.

        Soft hold expiry is evaluated by the caller against its own clock.
        """
        query = Reservation.query.filter(
            Reservation.service_id == service_id,
            Reservation.start_date < end,
            Reservation.end_date > start,
            Reservation.status.not_in(RELEASED_STATUSES)
        )
        if exclude_reservation_id:
            query = query.filter(Reservation.id != exclude_reservation_id)

        return query.order_by(Reservation.start_date, Reservation.id).all()

    def compare_and_set_status(self, reservation_id: str, expected: ReservationStatus,
                               new_status: ReservationStatus) -> bool:
        """Move a reservation to new_status only if it is still in the expected status"""
        try:
            updated = Reservation.query.filter(
                Reservation.id == reservation_id,
                Reservation.status == expected
            ).update({
                Reservation.status: new_status,
                Reservation.version: Reservation.version + 1,
                Reservation.updated_at: utcnow()
            }, synchronize_session=False)
            db.session.commit()
            return updated == 1
        except Exception:
            db.session.rollback()
            raise

    def update_if_version(self, reservation_id: str, expected_version: int,
                          commit: bool = True, **values) -> bool:
        """Apply column values only if nobody else changed the row since it was read"""
        changes = {getattr(Reservation, key): value for key, value in values.items()}
        changes[Reservation.version] = Reservation.version + 1
        changes[Reservation.updated_at] = utcnow()

        updated = Reservation.query.filter(
            Reservation.id == reservation_id,
            Reservation.version == expected_version
        ).update(changes, synchronize_session=False)
        if commit:
            db.session.commit()
        return updated == 1

    def get_expired_soft_holds(self, now: datetime, service_id: str = None) -> List[Reservation]:
        """Soft holds still Pending/Confirmed whose expiry has passed"""
        query = Reservation.query.filter(
            and_(
                Reservation.type == ReservationType.SOFT_HOLD,
                Reservation.status.in_((ReservationStatus.PENDING, ReservationStatus.CONFIRMED)),
                Reservation.expires_at.isnot(None),
                Reservation.expires_at <= now
            )
        )
        if service_id:
            query = query.filter(Reservation.service_id == service_id)

        return query.order_by(Reservation.expires_at, Reservation.id).all()

    def search(self, **kwargs) -> tuple[List[Reservation], int]:
        """Search reservations with filters"""
        query = Reservation.query

        if kwargs.get('service_id'):
            query = query.filter(Reservation.service_id == kwargs['service_id'])

        if kwargs.get('customer_id'):
            query = query.filter(Reservation.customer_id == kwargs['customer_id'])

        if kwargs.get('statuses'):
            query = query.filter(Reservation.status.in_(kwargs['statuses']))

        if kwargs.get('types'):
            query = query.filter(Reservation.type.in_(kwargs['types']))

        if kwargs.get('start_date_from'):
            query = query.filter(Reservation.start_date >= kwargs['start_date_from'])
        if kwargs.get('start_date_to'):
            query = query.filter(Reservation.start_date <= kwargs['start_date_to'])
        if kwargs.get('end_date_from'):
            query = query.filter(Reservation.end_date >= kwargs['end_date_from'])
        if kwargs.get('end_date_to'):
            query = query.filter(Reservation.end_date <= kwargs['end_date_to'])

        if not kwargs.get('include_expired', True):
            now = kwargs.get('now') or utcnow()
            query = query.filter(or_(
                Reservation.type != ReservationType.SOFT_HOLD,
                Reservation.expires_at.is_(None),
                Reservation.expires_at > now
            ))

        total = query.count()
        page = kwargs.get('page', 1)
        per_page = kwargs.get('per_page', 20)

        items = (
            query.order_by(Reservation.start_date, Reservation.id)
            .paginate(page=page, per_page=per_page, error_out=False)
            .items
        )
        return items, total

    def rollback(self):
        """Discard the current unit of work"""
        db.session.rollback()
