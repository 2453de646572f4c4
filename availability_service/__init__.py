from flask import Flask
from flask_cors import CORS
import logging


def create_app(config_name='default', test_config=None):
    """Application factory pattern"""
    app = Flask(__name__)

    # Load environment variables
    from dotenv import load_dotenv
    load_dotenv()

    # Load configuration
    from config import config, get_database_uri
    app.config.from_object(config[config_name])
    if not app.config.get('SQLALCHEMY_DATABASE_URI'):
        app.config['SQLALCHEMY_DATABASE_URI'] = get_database_uri()
    if test_config:
        app.config.update(test_config)

    # Initialize correlation ID middleware
    from availability_service.api.middlewares.correlation_id import (
        CorrelationIdMiddleware, init_correlation_id_logging
    )
    CorrelationIdMiddleware(app)
    init_correlation_id_logging(app)

    # Initialize database
    from availability_service.database import init_db
    init_db(app)

    # CORS setup
    CORS(app, origins=app.config.get('CORS_ORIGINS', ['*']))

    # Configure logging
    if not app.testing:
        logging.basicConfig(
            level=getattr(logging, app.config['LOG_LEVEL']),
            format='%(asctime)s %(levelname)s %(name)s: %(message)s'
        )

    # Register API blueprint
    from availability_service.api.controllers import api_bp
    app.register_blueprint(api_bp, url_prefix='/api/v1')

    # Operational endpoints live outside /api/v1
    from availability_service.api.controllers.operational import Health, Readiness, Liveness, Metrics
    app.add_url_rule('/health', 'health', Health().get, methods=['GET'])
    app.add_url_rule('/health/ready', 'readiness', Readiness().get, methods=['GET'])
    app.add_url_rule('/health/live', 'liveness', Liveness().get, methods=['GET'])
    app.add_url_rule('/metrics', 'metrics', Metrics().get, methods=['GET'])

    # Register error handlers
    from availability_service.utils.error_handlers import register_error_handlers
    register_error_handlers(app)

    # CLI commands
    from availability_service.cli import register_commands
    register_commands(app)

    return app


def init_database(app):
    """Initialize database tables - call this explicitly when ready"""
    from availability_service.database import db
    with app.app_context():
        try:
            from sqlalchemy import text
            db.session.execute(text('SELECT 1'))  # Test connection
            db.create_all()
            app.logger.info("Database tables created successfully")
            return True
        except Exception as e:
            app.logger.error(f"Failed to create database tables: {e}")
            if not app.debug:
                # Outside development, fail fast
                raise
            app.logger.warning("Continuing without database connection in development mode")
            return False
