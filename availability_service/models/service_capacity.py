"""
Service Capacity Model
"""

from availability_service.database import db
from availability_service.utils.time import utcnow, isoformat


class ServiceCapacity(db.Model):
    """Local read model of the service catalog's capacity ceiling"""
    __tablename__ = 'service_capacities'

    service_id = db.Column(db.String(36), primary_key=True)
    name = db.Column(db.String(255), nullable=True)
    total_quantity = db.Column(db.Integer, default=0, nullable=False)
    created_at = db.Column(db.DateTime, default=utcnow, nullable=False)
    updated_at = db.Column(db.DateTime, default=utcnow, onupdate=utcnow, nullable=False)

    # Relationships
    reservations = db.relationship('Reservation', backref='service', lazy=True)

    def __repr__(self):
        return f'<ServiceCapacity {self.service_id} total={self.total_quantity}>'

    def to_dict(self):
        """Convert to dictionary"""
        return {
            'service_id': self.service_id,
            'name': self.name,
            'total_quantity': self.total_quantity,
            'created_at': isoformat(self.created_at),
            'updated_at': isoformat(self.updated_at)
        }
