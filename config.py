import os


def get_database_uri():
    """
    Resolve the database URI from the environment.
    DATABASE_URL wins; otherwise build a MySQL URI from the discrete variables.
    """
    database_url = os.environ.get('DATABASE_URL')
    if database_url:
        return database_url

    user = os.environ.get('MYSQL_USER', 'admin')
    password = os.environ.get('MYSQL_PASSWORD', 'admin123')
    host = os.environ.get('DATABASE_HOST', 'localhost')
    port = os.environ.get('DATABASE_PORT', '3306')
    database = os.environ.get('MYSQL_DATABASE', 'availability_service_db')
    return f"mysql+pymysql://{user}:{password}@{host}:{port}/{database}"


def _env_flag(name, default=False):
    value = os.environ.get(name)
    if value is None:
        return default
    return value.strip().lower() in ('1', 'true', 'yes', 'on')


class Config:
    """Base configuration"""

    # Flask
    SECRET_KEY = os.environ.get('SECRET_KEY') or 'dev-secret-key-change-in-production'

    # Database - resolved at app creation time
    SQLALCHEMY_DATABASE_URI = None
    SQLALCHEMY_TRACK_MODIFICATIONS = False
    SQLALCHEMY_ENGINE_OPTIONS = {
        'pool_pre_ping': True,
        'pool_recycle': 300,
    }

    CORS_ORIGINS = os.environ.get('CORS_ORIGINS', '*').split(',')

    # Soft hold settings
    SOFT_HOLD_TTL_MINUTES = int(os.environ.get('SOFT_HOLD_TTL_MINUTES', 15))

    # Expiry sweeper
    EXPIRY_SWEEP_INTERVAL_SECONDS = int(os.environ.get('EXPIRY_SWEEP_INTERVAL_SECONDS', 60))
    EAGER_EXPIRY_SWEEP = _env_flag('EAGER_EXPIRY_SWEEP')

    # Availability breakdown
    MAX_AVAILABILITY_SLOTS = int(os.environ.get('MAX_AVAILABILITY_SLOTS', 366))

    # Pagination
    DEFAULT_PAGE_SIZE = int(os.environ.get('DEFAULT_PAGE_SIZE', 20))
    MAX_PAGE_SIZE = int(os.environ.get('MAX_PAGE_SIZE', 100))

    # Logging
    LOG_LEVEL = os.environ.get('LOG_LEVEL', 'INFO')


class DevelopmentConfig(Config):
    """Development configuration"""
    DEBUG = True
    LOG_LEVEL = 'DEBUG'


class TestingConfig(Config):
    """Testing configuration"""
    TESTING = True
    # Use in-memory SQLite for testing
    SQLALCHEMY_DATABASE_URI = 'sqlite:///:memory:'
    SQLALCHEMY_ENGINE_OPTIONS = {}
    EAGER_EXPIRY_SWEEP = False


class ProductionConfig(Config):
    """Production configuration"""
    DEBUG = False


config = {
    'development': DevelopmentConfig,
    'testing': TestingConfig,
    'production': ProductionConfig,
    'default': DevelopmentConfig
}
