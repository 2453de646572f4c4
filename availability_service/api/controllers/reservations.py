"""
Reservations Controller - Handles reservation lifecycle operations
"""

from flask import current_app, request
from flask_restx import Resource, fields
from marshmallow import ValidationError

from availability_service.exceptions import ReservationEngineError
from availability_service.services import ReservationService
from availability_service.utils.error_handlers import engine_error_response, validation_error_response
from availability_service.utils.schemas import (
    ReservationRequestSchema, ReservationUpdateSchema,
    ReservationStatusSchema, ReservationListQuerySchema
)
import logging

logger = logging.getLogger(__name__)

# Initialize schemas
reservation_request_schema = ReservationRequestSchema()
reservation_update_schema = ReservationUpdateSchema()
reservation_status_schema = ReservationStatusSchema()
reservation_list_schema = ReservationListQuerySchema()


def get_reservation_models(api):
    """Define API models for reservation operations"""
    reservation_model = api.model('Reservation', {
        'service_id': fields.String(required=True, description='Service identifier'),
        'start_date': fields.DateTime(required=True, description='Start (inclusive)'),
        'end_date': fields.DateTime(required=True, description='End (exclusive)'),
        'quantity': fields.Integer(required=True, description='Units to reserve'),
        'type': fields.String(description='Reservation type',
                              enum=['Booking', 'SoftHold', 'Maintenance', 'Blocked']),
        'customer_id': fields.String(description='Customer identifier'),
        'booking_id': fields.String(description='Booking identifier'),
        'notes': fields.String(description='Additional notes'),
        'expires_at': fields.DateTime(description='Soft hold expiry'),
        'confirm': fields.Boolean(description='Create directly as Confirmed')
    })

    reservation_update_model = api.model('ReservationUpdate', {
        'start_date': fields.DateTime(required=True, description='New start (inclusive)'),
        'end_date': fields.DateTime(required=True, description='New end (exclusive)'),
        'quantity': fields.Integer(required=True, description='New quantity'),
        'notes': fields.String(description='Additional notes')
    })

    status_model = api.model('ReservationStatusChange', {
        'status': fields.String(required=True, description='Target status'),
        'expected_status': fields.String(description='Fail with 409 unless the reservation is in this status')
    })

    return reservation_model, reservation_update_model, status_model


def _page_size(requested):
    default = current_app.config.get('DEFAULT_PAGE_SIZE', 20)
    maximum = current_app.config.get('MAX_PAGE_SIZE', 100)
    return min(requested or default, maximum)


def register_reservation_routes(api, namespace):
    """Register reservation-related routes"""
    reservation_model, reservation_update_model, status_model = get_reservation_models(api)

    @namespace.route('/')
    class ReservationList(Resource):
        @api.doc('list_reservations')
        def get(self):
            """List reservations with optional filtering"""
            try:
                params = reservation_list_schema.load(request.args.to_dict())
                page = params.pop('page')
                page_size = _page_size(params.pop('page_size'))

                result = ReservationService().list_reservations(
                    page=page, page_size=page_size, **params
                )
                return result, 200

            except ValidationError as e:
                return validation_error_response(e)
            except ReservationEngineError as e:
                return engine_error_response(e)
            except Exception as e:
                logger.error(f"Error listing reservations: {e}")
                return {'error': 'Internal server error'}, 500

        @api.doc('create_reservation')
        @api.expect(reservation_model)
        def post(self):
            """Create new reservation"""
            try:
                data = reservation_request_schema.load(request.get_json(silent=True) or {})

                reservation = ReservationService().create_reservation(**data)
                return reservation, 201

            except ValidationError as e:
                return validation_error_response(e)
            except ReservationEngineError as e:
                return engine_error_response(e)
            except Exception as e:
                logger.error(f"Error creating reservation: {e}")
                return {'error': 'Internal server error'}, 500

    @namespace.route('/<string:reservation_id>')
    class Reservation(Resource):
        @api.doc('get_reservation')
        def get(self, reservation_id):
            """Get reservation by ID"""
            try:
                return ReservationService().get_reservation(reservation_id), 200
            except ReservationEngineError as e:
                return engine_error_response(e)
            except Exception as e:
                logger.error(f"Error getting reservation {reservation_id}: {e}")
                return {'error': 'Internal server error'}, 500

        @api.doc('update_reservation')
        @api.expect(reservation_update_model)
        def put(self, reservation_id):
            """Reschedule a Pending or Confirmed reservation"""
            try:
                data = reservation_update_schema.load(request.get_json(silent=True) or {})

                reservation = ReservationService().update_reservation(
                    reservation_id,
                    data['start_date'],
                    data['end_date'],
                    data['quantity'],
                    notes=data.get('notes')
                )
                return reservation, 200

            except ValidationError as e:
                return validation_error_response(e)
            except ReservationEngineError as e:
                return engine_error_response(e)
            except Exception as e:
                logger.error(f"Error updating reservation {reservation_id}: {e}")
                return {'error': 'Internal server error'}, 500

        @api.doc('cancel_reservation')
        def delete(self, reservation_id):
            """Cancel reservation"""
            try:
                reservation = ReservationService().cancel_reservation(reservation_id)
                return reservation, 200
            except ReservationEngineError as e:
                return engine_error_response(e)
            except Exception as e:
                logger.error(f"Error cancelling reservation {reservation_id}: {e}")
                return {'error': 'Internal server error'}, 500

    @namespace.route('/<string:reservation_id>/status')
    class ReservationStatus(Resource):
        @api.doc('update_reservation_status')
        @api.expect(status_model)
        def patch(self, reservation_id):
            """Move a reservation to a new status"""
            try:
                data = reservation_status_schema.load(request.get_json(silent=True) or {})

                reservation = ReservationService().update_status(
                    reservation_id,
                    data['status'],
                    expected_status=data.get('expected_status')
                )
                return reservation, 200

            except ValidationError as e:
                return validation_error_response(e)
            except ReservationEngineError as e:
                return engine_error_response(e)
            except Exception as e:
                logger.error(f"Error updating status of reservation {reservation_id}: {e}")
                return {'error': 'Internal server error'}, 500

    @namespace.route('/sweep-expired')
    class ExpiredHoldSweep(Resource):
        @api.doc('sweep_expired_holds', params={'service_id': 'Only sweep this service'})
        def post(self):
            """Cancel soft holds whose expiry has passed"""
            try:
                summary = ReservationService().sweep_expired_holds(request.args.get('service_id'))
                return summary, 200
            except Exception as e:
                logger.error(f"Error sweeping expired holds: {e}")
                return {'error': 'Internal server error'}, 500
