"""
Availability Controller - capacity checks, calendar breakdowns, blocks and the service catalog
"""

from datetime import timedelta

from flask import request
from flask_restx import Resource, fields
from marshmallow import ValidationError

from availability_service.exceptions import ReservationEngineError
from availability_service.services import ReservationService, ServiceCatalogService
from availability_service.utils.error_handlers import engine_error_response, validation_error_response
from availability_service.utils.schemas import (
    AvailabilityQuerySchema, AvailabilityBreakdownQuerySchema,
    BlockInventoryRequestSchema, ServiceCapacityRequestSchema
)
import logging

logger = logging.getLogger(__name__)

# Initialize schemas
availability_query_schema = AvailabilityQuerySchema()
breakdown_query_schema = AvailabilityBreakdownQuerySchema()
block_request_schema = BlockInventoryRequestSchema()
capacity_request_schema = ServiceCapacityRequestSchema()


def get_availability_models(api):
    """Define API models for availability operations"""
    capacity_model = api.model('ServiceCapacity', {
        'total_quantity': fields.Integer(required=True, description='Units the service can provide'),
        'name': fields.String(description='Display name')
    })

    block_model = api.model('InventoryBlock', {
        'start_date': fields.DateTime(required=True, description='Block start (inclusive)'),
        'end_date': fields.DateTime(required=True, description='Block end (exclusive)'),
        'quantity': fields.Integer(required=True, description='Units taken out of service'),
        'type': fields.String(description='Maintenance or Blocked', enum=['Maintenance', 'Blocked']),
        'reason': fields.String(description='Why the units are blocked')
    })

    return capacity_model, block_model


def register_availability_routes(api, namespace):
    """Register availability-related routes"""
    capacity_model, block_model = get_availability_models(api)

    @namespace.route('/<string:service_id>/availability')
    class Availability(Resource):
        @api.doc('check_availability', params={
            'start_date': 'Window start (ISO 8601)',
            'end_date': 'Window end, exclusive (ISO 8601)',
            'quantity': 'Units requested',
            'exclude_reservation_id': 'Reservation to leave out of the count'
        })
        def get(self, service_id):
            """Check whether a quantity is free over a window"""
            try:
                params = availability_query_schema.load(request.args.to_dict())

                result = ReservationService().check_availability(
                    service_id,
                    params['start_date'],
                    params['end_date'],
                    params['quantity'],
                    exclude_reservation_id=params['exclude_reservation_id']
                )
                return result.to_dict(), 200

            except ValidationError as e:
                return validation_error_response(e)
            except ReservationEngineError as e:
                return engine_error_response(e)
            except Exception as e:
                logger.error(f"Error checking availability for service {service_id}: {e}")
                return {'error': 'Internal server error'}, 500

    @namespace.route('/<string:service_id>/availability/calendar')
    class AvailabilityCalendar(Resource):
        @api.doc('availability_breakdown', params={
            'range_start': 'First day of the range (ISO 8601)',
            'range_end': 'Last day of the range, inclusive (ISO 8601)',
            'granularity_minutes': 'Slot length in minutes (default one day)'
        })
        def get(self, service_id):
            """Per-slot availability over a date range"""
            try:
                params = breakdown_query_schema.load(request.args.to_dict())

                slots = ReservationService().get_availability_breakdown(
                    service_id,
                    params['range_start'],
                    params['range_end'],
                    granularity=timedelta(minutes=params['granularity_minutes'])
                )
                items = [slot.to_dict() for slot in slots]

                return {
                    'service_id': service_id,
                    'slots': items,
                    'slot_count': len(items)
                }, 200

            except ValidationError as e:
                return validation_error_response(e)
            except ReservationEngineError as e:
                return engine_error_response(e)
            except Exception as e:
                logger.error(f"Error building availability calendar for service {service_id}: {e}")
                return {'error': 'Internal server error'}, 500

    @namespace.route('/<string:service_id>/availability/shortfall')
    class AvailabilityShortfall(Resource):
        @api.doc('explain_shortfall')
        def get(self, service_id):
            """Reservations that prevent a request from fitting"""
            try:
                params = availability_query_schema.load(request.args.to_dict())

                conflicts = ReservationService().explain_shortfall(
                    service_id,
                    params['start_date'],
                    params['end_date'],
                    params['quantity'],
                    exclude_reservation_id=params['exclude_reservation_id']
                )
                return {
                    'service_id': service_id,
                    'requested_quantity': params['quantity'],
                    'conflicts': [conflict.to_dict() for conflict in conflicts]
                }, 200

            except ValidationError as e:
                return validation_error_response(e)
            except ReservationEngineError as e:
                return engine_error_response(e)
            except Exception as e:
                logger.error(f"Error explaining shortfall for service {service_id}: {e}")
                return {'error': 'Internal server error'}, 500

    @namespace.route('/<string:service_id>/blocks')
    class InventoryBlocks(Resource):
        @api.doc('block_inventory')
        @api.expect(block_model)
        def post(self, service_id):
            """Take units out of service for maintenance or a manual block"""
            try:
                data = block_request_schema.load(request.get_json(silent=True) or {})

                reservation = ReservationService().block_inventory(
                    service_id,
                    data['start_date'],
                    data['end_date'],
                    data['quantity'],
                    type=data['type'],
                    reason=data.get('reason')
                )
                return reservation, 201

            except ValidationError as e:
                return validation_error_response(e)
            except ReservationEngineError as e:
                return engine_error_response(e)
            except Exception as e:
                logger.error(f"Error blocking inventory for service {service_id}: {e}")
                return {'error': 'Internal server error'}, 500

    @namespace.route('/<string:service_id>/capacity')
    class ServiceCapacity(Resource):
        @api.doc('get_capacity')
        def get(self, service_id):
            """Get the capacity ceiling of a service"""
            try:
                return ServiceCatalogService().get_capacity(service_id), 200
            except ReservationEngineError as e:
                return engine_error_response(e)
            except Exception as e:
                logger.error(f"Error getting capacity for service {service_id}: {e}")
                return {'error': 'Internal server error'}, 500

        @api.doc('upsert_capacity')
        @api.expect(capacity_model)
        def put(self, service_id):
            """Create or update the capacity ceiling of a service"""
            try:
                data = capacity_request_schema.load(request.get_json(silent=True) or {})

                capacity = ServiceCatalogService().upsert_capacity(
                    service_id, data['total_quantity'], name=data.get('name')
                )
                return capacity, 200

            except ValidationError as e:
                return validation_error_response(e)
            except ReservationEngineError as e:
                return engine_error_response(e)
            except Exception as e:
                logger.error(f"Error updating capacity for service {service_id}: {e}")
                return {'error': 'Internal server error'}, 500
