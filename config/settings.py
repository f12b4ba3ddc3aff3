"""
Application settings and configuration
"""
import os
from datetime import timedelta
from dotenv import load_dotenv

_is_production = os.getenv('FLASK_ENV', 'development') == 'production'
load_dotenv(override=(not _is_production))


def _env_bool(name, default):
    return os.getenv(name, str(default)).lower() in {'1', 'true', 'yes', 'on'}


class Config:
    """Base configuration"""
    SECRET_KEY = os.getenv('SECRET_KEY', 'fitgym-pro-secret-key-change-me')
    JWT_SECRET_KEY = os.getenv('JWT_SECRET_KEY', 'fitgym-pro-jwt-secret-key-change-me-please')
    JWT_ACCESS_TOKEN_EXPIRES = timedelta(hours=12)  # one shift
    JWT_REFRESH_TOKEN_EXPIRES = timedelta(days=90)
    
    # CORS Settings
    CORS_ORIGINS = os.getenv('CORS_ORIGINS', '*')
    
    # PIN attempt limiting
    PIN_MAX_ATTEMPTS = int(os.getenv('PIN_MAX_ATTEMPTS', 5))
    PIN_LOCKOUT_MINUTES = int(os.getenv('PIN_LOCKOUT_MINUTES', 15))
    PIN_ATTEMPT_WINDOW_MINUTES = int(os.getenv('PIN_ATTEMPT_WINDOW_MINUTES', 5))
    PIN_SWEEP_ENABLED = _env_bool('PIN_SWEEP_ENABLED', True)
    PIN_SWEEP_INTERVAL_MINUTES = int(os.getenv('PIN_SWEEP_INTERVAL_MINUTES', 30))
    
    # Hosted staff-auth edge function (optional). Falls back to the local
    # branch_staff table when unset or unreachable.
    STAFF_AUTH_FUNCTION_URL = os.getenv('STAFF_AUTH_FUNCTION_URL', '')
    STAFF_AUTH_SERVICE_KEY = os.getenv('STAFF_AUTH_SERVICE_KEY', '')
    STAFF_AUTH_TIMEOUT = float(os.getenv('STAFF_AUTH_TIMEOUT', 5))
    
    # Application Settings
    APP_NAME = 'FitGym Pro Staff API'
    APP_VERSION = '2.0.0'
    DEBUG = False
    TESTING = False


class DevelopmentConfig(Config):
    """Development configuration"""
    DEBUG = True
    SQLALCHEMY_ECHO = False


class ProductionConfig(Config):
    """Production configuration"""
    DEBUG = False
    SQLALCHEMY_ECHO = False


class TestingConfig(Config):
    """Testing configuration"""
    TESTING = True
    DEBUG = False
    SQLALCHEMY_DATABASE_URI = 'sqlite:///:memory:'
    PIN_SWEEP_ENABLED = False
    STAFF_AUTH_FUNCTION_URL = ''
    STAFF_AUTH_SERVICE_KEY = ''
    JWT_SECRET_KEY = 'testing-jwt-secret-key-of-sufficient-length'


# Configuration dictionary
config = {
    'development': DevelopmentConfig,
    'production': ProductionConfig,
    'testing': TestingConfig,
    'default': DevelopmentConfig
}


def get_config():
    """Get configuration based on environment"""
    env = os.getenv('FLASK_ENV', 'development')
    return config.get(env, config['default'])
