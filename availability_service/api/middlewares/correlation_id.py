"""
Correlation ID middleware for the Flask application
Tags every request, its log lines and its response with one ID
"""
import uuid
import logging
from contextvars import ContextVar
from flask import Response, g, request, current_app, has_app_context

# Correlation ID for the current request or worker cycle
correlation_id_context: ContextVar[str] = ContextVar('correlation_id', default='')

CORRELATION_HEADER = 'X-Correlation-ID'


class CorrelationIdMiddleware:
    """
    Flask middleware for handling correlation IDs
    """

    def __init__(self, app=None):
        self.app = app
        if app is not None:
            self.init_app(app)

    def init_app(self, app):
        app.before_request(self.before_request)
        app.after_request(self.after_request)

    def before_request(self):
        """Extract or generate correlation ID before request processing"""
        correlation_id = request.headers.get(CORRELATION_HEADER) or str(uuid.uuid4())

        g.correlation_id = correlation_id
        correlation_id_context.set(correlation_id)

        current_app.logger.info(
            f"[{correlation_id}] {request.method} {request.path} - Processing request"
        )

    def after_request(self, response: Response) -> Response:
        """Add correlation ID to response headers"""
        correlation_id = getattr(g, 'correlation_id', 'unknown')
        response.headers[CORRELATION_HEADER] = correlation_id

        current_app.logger.info(
            f"[{correlation_id}] {request.method} {request.path} - "
            f"Response: {response.status_code}"
        )

        return response


def get_correlation_id() -> str:
    """Current correlation ID from the request, else from the context variable"""
    if has_app_context() and hasattr(g, 'correlation_id'):
        return g.correlation_id
    return correlation_id_context.get() or 'unknown'


class CorrelationIdFilter(logging.Filter):
    """Stamps each record with the current correlation ID"""

    def filter(self, record):
        record.correlation_id = get_correlation_id()
        return True


def init_correlation_id_logging(app):
    """Include the correlation ID in the app logger's output"""
    formatter = logging.Formatter(
        '[%(correlation_id)s] %(levelname)s in %(module)s: %(message)s'
    )
    correlation_filter = CorrelationIdFilter()

    for handler in app.logger.handlers:
        handler.addFilter(correlation_filter)
        handler.setFormatter(formatter)
