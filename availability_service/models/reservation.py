"""
Reservation Model
"""

from availability_service.database import db
import uuid
from availability_service.utils.time import utcnow, isoformat
from .enums import ReservationStatus, ReservationType


class Reservation(db.Model):
    """Time-bound hold on units of a service's capacity"""
    __tablename__ = 'reservations'
    __table_args__ = (
        db.Index('ix_reservations_service_window', 'service_id', 'start_date', 'end_date'),
    )

    id = db.Column(db.String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    service_id = db.Column(db.String(36), db.ForeignKey('service_capacities.service_id'),
                           nullable=False, index=True)
    start_date = db.Column(db.DateTime, nullable=False, index=True)
    end_date = db.Column(db.DateTime, nullable=False, index=True)
    quantity_reserved = db.Column(db.Integer, nullable=False)
    type = db.Column(db.Enum(ReservationType), nullable=False, index=True)
    status = db.Column(db.Enum(ReservationStatus), default=ReservationStatus.PENDING,
                       nullable=False, index=True)
    expires_at = db.Column(db.DateTime, nullable=True, index=True)
    customer_id = db.Column(db.String(36), nullable=True, index=True)
    booking_id = db.Column(db.String(36), nullable=True)
    notes = db.Column(db.Text, nullable=True)
    version = db.Column(db.Integer, default=1, nullable=False)
    created_at = db.Column(db.DateTime, default=utcnow, nullable=False)
    updated_at = db.Column(db.DateTime, default=utcnow, onupdate=utcnow, nullable=False)

    def __repr__(self):
        return f'<Reservation {self.id} {self.status.value if self.status else None}>'

    def is_expired(self, now=None):
        """A soft hold is void once its expiry has passed"""
        if self.type != ReservationType.SOFT_HOLD or self.expires_at is None:
            return False
        return (now or utcnow()) >= self.expires_at

    def counts_against_capacity(self, now=None):
        """Whether this reservation currently consumes capacity over its interval"""
        if self.status.releases_capacity:
            return False
        return not self.is_expired(now)

    def overlaps(self, start, end):
        """Half-open interval overlap; touching edges do not overlap"""
        return self.start_date < end and start < self.end_date

    def to_dict(self, now=None):
        """Convert to dictionary"""
        return {
            'id': self.id,
            'service_id': self.service_id,
            'start_date': isoformat(self.start_date),
            'end_date': isoformat(self.end_date),
            'quantity_reserved': self.quantity_reserved,
            'type': self.type.value,
            'status': self.status.value,
            'expires_at': isoformat(self.expires_at),
            'is_expired': self.is_expired(now),
            'counts_against_capacity': self.counts_against_capacity(now),
            'customer_id': self.customer_id,
            'booking_id': self.booking_id,
            'notes': self.notes,
            'version': self.version,
            'created_at': isoformat(self.created_at),
            'updated_at': isoformat(self.updated_at)
        }
