"""
Health Check Utilities for the availability service
Database connectivity for readiness, process state for liveness and metrics
"""

import os
import threading
import time
import logging

import psutil
from sqlalchemy import func, text

from availability_service.database import db
from availability_service.utils.time import utcnow

logger = logging.getLogger(__name__)


def _timestamp():
    return utcnow().isoformat() + 'Z'


def _pool_stats():
    pool = db.engine.pool
    stats = {}
    for name in ('size', 'checkedin', 'checkedout', 'overflow'):
        method = getattr(pool, name, None)
        if callable(method):
            stats[name] = method()
    return stats


def check_database_health():
    """Check database connectivity and round-trip time"""
    try:
        start_time = time.time()

        db.session.execute(text('SELECT 1'))
        db.session.commit()

        response_time = (time.time() - start_time) * 1000

        return {
            'status': 'healthy',
            'message': 'Database connection is healthy',
            'response_time': round(response_time, 2),
            'details': {
                'dialect': db.engine.dialect.name,
                'pool': _pool_stats(),
            },
        }
    except Exception as e:
        db.session.rollback()
        return {
            'status': 'unhealthy',
            'message': f'Database health check failed: {str(e)}',
            'response_time': 0,
            'details': {
                'error': str(e),
                'database_url': db.engine.url.render_as_string(hide_password=True),
            },
        }


def perform_readiness_check():
    """Readiness means the database answers"""
    checks = {}
    check_start_time = time.time()

    try:
        logger.debug('Performing database health check')
        checks['database'] = check_database_health()
        overall_healthy = checks['database']['status'] == 'healthy'

        return {
            'status': 'ready' if overall_healthy else 'not ready',
            'timestamp': _timestamp(),
            'total_check_time': round((time.time() - check_start_time) * 1000, 2),
            'checks': checks,
        }

    except Exception as e:
        logger.error('Readiness check failed', extra={'error': str(e)})

        return {
            'status': 'not ready',
            'timestamp': _timestamp(),
            'total_check_time': round((time.time() - check_start_time) * 1000, 2),
            'error': str(e),
            'checks': checks,
        }


def perform_liveness_check():
    """Liveness check; never touches external dependencies"""
    try:
        process = psutil.Process()

        memory_info = process.memory_info()
        memory_percent = process.memory_percent()
        memory_healthy = memory_percent < 90.0

        cpu_percent = process.cpu_percent(interval=0.1)
        cpu_healthy = cpu_percent < 95.0

        thread_healthy = True
        try:
            thread = threading.Thread(target=time.sleep, args=(0.01,))
            thread.start()
            thread.join(timeout=1.0)
            if thread.is_alive():
                thread_healthy = False
        except RuntimeError:
            thread_healthy = False

        is_healthy = memory_healthy and cpu_healthy and thread_healthy

        return {
            'status': 'alive' if is_healthy else 'unhealthy',
            'timestamp': _timestamp(),
            'uptime': round(time.time() - process.create_time(), 2),
            'checks': {
                'memory': {
                    'healthy': memory_healthy,
                    'usage': {
                        'rss': memory_info.rss,
                        'vms': memory_info.vms,
                        'percent': round(memory_percent, 2),
                    },
                },
                'cpu': {
                    'healthy': cpu_healthy,
                    'percent': round(cpu_percent, 2),
                },
                'threading': {
                    'healthy': thread_healthy,
                    'active_count': threading.active_count(),
                },
            },
        }

    except Exception as e:
        logger.error('Liveness check failed', extra={'error': str(e)})

        return {
            'status': 'unhealthy',
            'timestamp': _timestamp(),
            'error': str(e),
        }


def get_reservation_metrics():
    """Reservation counts grouped by status"""
    from availability_service.models import Reservation, ServiceCapacity

    rows = db.session.query(Reservation.status, func.count(Reservation.id)) \
        .group_by(Reservation.status).all()

    return {
        'services': ServiceCapacity.query.count(),
        'by_status': {status.value: count for status, count in rows},
    }


def get_system_metrics():
    """Process and reservation metrics for monitoring"""
    try:
        process = psutil.Process()
        memory_info = process.memory_info()

        return {
            'timestamp': _timestamp(),
            'uptime': round(time.time() - process.create_time(), 2),
            'memory': {
                'rss': memory_info.rss,
                'vms': memory_info.vms,
                'percent': round(process.memory_percent(), 2),
                'available': psutil.virtual_memory().available,
                'total': psutil.virtual_memory().total,
            },
            'cpu': {
                'percent': round(process.cpu_percent(interval=0.1), 2),
                'count': psutil.cpu_count(),
            },
            'process': {
                'pid': os.getpid(),
                'threads': process.num_threads(),
            },
            'reservations': get_reservation_metrics(),
            'environment': {
                'flask_env': os.environ.get('FLASK_ENV', 'development'),
                'version': os.environ.get('API_VERSION', '1.0.0'),
            },
        }

    except Exception as e:
        logger.error('Metrics collection failed', extra={'error': str(e)})
        return {
            'timestamp': _timestamp(),
            'error': str(e),
        }
