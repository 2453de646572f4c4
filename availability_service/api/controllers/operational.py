"""
Operational/Infrastructure endpoints for the availability service
These endpoints are used by monitoring systems, load balancers, and DevOps tools
"""

import os
import logging

from flask_restx import Resource, Namespace

from availability_service.utils.health_checks import (
    perform_readiness_check,
    perform_liveness_check,
    get_system_metrics
)
from availability_service.utils.time import utcnow

logger = logging.getLogger(__name__)

SERVICE_NAME = 'availability-service'

operational_ns = Namespace('operational', description='Operational endpoints')


@operational_ns.route('/health')
class Health(Resource):
    def get(self):
        """Main health check endpoint"""
        return {
            'status': 'healthy',
            'service': SERVICE_NAME,
            'timestamp': utcnow().isoformat() + 'Z',
            'version': os.environ.get('API_VERSION', '1.0.0'),
            'environment': os.environ.get('FLASK_ENV', 'development'),
        }, 200


@operational_ns.route('/health/ready')
class Readiness(Resource):
    def get(self):
        """Readiness probe - checks if service is ready to handle traffic"""
        readiness_result = perform_readiness_check()

        logger.info('Readiness check performed', extra={
            'status': readiness_result['status'],
            'total_check_time': readiness_result['total_check_time'],
        })

        status_code = 200 if readiness_result['status'] == 'ready' else 503
        return {'service': SERVICE_NAME, **readiness_result}, status_code


@operational_ns.route('/health/live')
class Liveness(Resource):
    def get(self):
        """Liveness probe - checks if service is alive and responsive"""
        liveness_result = perform_liveness_check()

        if liveness_result['status'] != 'alive':
            logger.warning('Liveness check failed', extra={'status': liveness_result['status']})

        status_code = 200 if liveness_result['status'] == 'alive' else 503
        return {'service': SERVICE_NAME, **liveness_result}, status_code


@operational_ns.route('/metrics')
class Metrics(Resource):
    def get(self):
        """System metrics endpoint for monitoring"""
        system_metrics = get_system_metrics()
        status_code = 500 if 'error' in system_metrics else 200
        return {'service': SERVICE_NAME, **system_metrics}, status_code
