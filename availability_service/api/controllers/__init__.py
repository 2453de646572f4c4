"""
Controllers package initialization - Sets up Flask-RESTX API with all namespaces
"""

from flask import Blueprint
from flask_restx import Api
from .availability import register_availability_routes
from .reservations import register_reservation_routes
from .operational import operational_ns
import logging

logger = logging.getLogger(__name__)

# Create Blueprint
api_bp = Blueprint('availability_api', __name__)
api = Api(api_bp, version='1.0', title='Availability Service API',
          description='Inventory availability and reservation engine',
          doc='/docs/')

# Define namespaces
services_ns = api.namespace('services', description='Availability, blocks and capacity per service')
reservations_ns = api.namespace('reservations', description='Reservation operations')

# Register routes for each namespace
register_availability_routes(api, services_ns)
register_reservation_routes(api, reservations_ns)

# Add operational namespace (for monitoring endpoints)
api.add_namespace(operational_ns)
