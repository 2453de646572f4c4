"""
Exceptions raised by the availability and reservation engine.
Raised in the services layer and mapped to HTTP responses by the controllers.
"""


class ReservationEngineError(Exception):
    """Base exception for all engine errors."""
    status_code = 500
    error = 'Reservation Engine Error'

    def __init__(self, message=None):
        super().__init__(message or self.error)
        self.message = message or self.error

    def to_dict(self):
        return {
            'error': self.error,
            'message': self.message,
            'status_code': self.status_code
        }


class NotFoundError(ReservationEngineError):
    """Raised when a service or reservation does not exist."""
    status_code = 404
    error = 'Not Found'


class InvalidArgumentError(ReservationEngineError):
    """Raised for malformed intervals, non-positive quantities and similar input errors."""
    status_code = 400
    error = 'Invalid Argument'


class InsufficientInventoryError(ReservationEngineError):
    """Raised when the commit-time capacity check fails."""
    status_code = 409
    error = 'Insufficient Inventory'

    def __init__(self, message=None, available_quantity=0, requested_quantity=0, conflicts=None):
        super().__init__(message)
        self.available_quantity = available_quantity
        self.requested_quantity = requested_quantity
        self.conflicts = conflicts or []

    def to_dict(self):
        data = super().to_dict()
        data.update({
            'available_quantity': self.available_quantity,
            'requested_quantity': self.requested_quantity,
            'conflicts': [conflict.to_dict() for conflict in self.conflicts]
        })
        return data


class InvalidTransitionError(ReservationEngineError):
    """Raised when a status move is not in the transition table."""
    status_code = 422
    error = 'Invalid Transition'

    def __init__(self, message=None, current_status=None, requested_status=None):
        super().__init__(message)
        self.current_status = current_status
        self.requested_status = requested_status

    def to_dict(self):
        data = super().to_dict()
        data.update({
            'current_status': self.current_status.value if self.current_status else None,
            'requested_status': self.requested_status.value if self.requested_status else None
        })
        return data


class ConflictError(ReservationEngineError):
    """Raised when a conditional update loses to a concurrent writer."""
    status_code = 409
    error = 'Conflict'
