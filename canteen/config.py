import os
from dotenv import load_dotenv
from datetime import timedelta

basedir = os.path.abspath(os.path.dirname(os.path.dirname(__file__)))
load_dotenv(os.path.join(basedir, '.env'))


def _env_flag(name, default):
    return os.environ.get(name, default).lower() in ['true', '1']


class Config:
    PROPAGATE_EXCEPTIONS = True
    API_TITLE = "Campus Canteen Ordering API"
    API_VERSION = "v1"
    OPENAPI_VERSION = "3.0.3"
    OPENAPI_URL_PREFIX = "/"
    OPENAPI_SWAGGER_UI_PATH = "/swagger-ui"
    OPENAPI_SWAGGER_UI_URL = "https://cdn.jsdelivr.net/npm/swagger-ui-dist/"
    SECRET_KEY = os.environ.get('SECRET_KEY') or 'change-me-canteen-secret'
    SQLALCHEMY_DATABASE_URI = os.environ.get('DATABASE_URL') or \
        'sqlite:///' + os.path.join(basedir, 'canteen.db')
    SQLALCHEMY_TRACK_MODIFICATIONS = False

    # Bearer header first, cookie as fallback
    JWT_SECRET_KEY = os.getenv('JWT_SECRET_KEY', 'jwt-secret-key')
    JWT_TOKEN_LOCATION = ["headers", "cookies"]
    JWT_ACCESS_TOKEN_EXPIRES = timedelta(days=1)
    JWT_REFRESH_TOKEN_EXPIRES = timedelta(days=30)
    JWT_COOKIE_SECURE = _env_flag('JWT_COOKIE_SECURE', 'False')
    JWT_COOKIE_SAMESITE = os.environ.get('JWT_COOKIE_SAMESITE', 'Lax')
    JWT_COOKIE_CSRF_PROTECT = _env_flag('JWT_COOKIE_CSRF_PROTECT', 'True')

    CORS_ORIGINS = os.environ.get(
        'CORS_ORIGINS', 'http://localhost:3000').split(',')

    # One-time codes and password lockout
    OTP_LENGTH = 6
    OTP_EXPIRY_MINUTES = int(os.environ.get('OTP_EXPIRY_MINUTES', 10))
    EXPOSE_OTP_IN_RESPONSE = _env_flag('EXPOSE_OTP_IN_RESPONSE', 'False')
    MAX_LOGIN_ATTEMPTS = 5
    LOCKOUT_MINUTES = 30
    MIN_PASSWORD_LENGTH = 6

    # SMS gateway: "console" logs messages, "fast2sms" delivers them
    SMS_PROVIDER = os.environ.get('SMS_PROVIDER', 'console')
    FAST2SMS_API_KEY = os.environ.get('FAST2SMS_API_KEY')
    FAST2SMS_URL = os.environ.get(
        'FAST2SMS_URL', 'https://www.fast2sms.com/dev/bulkV2')
    SMS_SENDER_ID = os.environ.get('SMS_SENDER_ID', 'TXTIND')
    SMS_TIMEOUT_SECONDS = 10
    SMS_BRAND = os.environ.get('SMS_BRAND', 'Campus Canteen')

    MAIL_SERVER = os.environ.get('MAIL_SERVER', 'smtp.gmail.com')
    MAIL_PORT = int(os.environ.get('MAIL_PORT', 587))
    MAIL_USE_TLS = _env_flag('MAIL_USE_TLS', 'True')
    MAIL_USE_SSL = _env_flag('MAIL_USE_SSL', 'False')
    MAIL_USERNAME = os.environ.get('MAIL_USERNAME')
    MAIL_PASSWORD = os.environ.get('MAIL_PASSWORD')
    MAIL_DEFAULT_SENDER = os.environ.get(
        'MAIL_DEFAULT_SENDER', 'no-reply@canteen.local')

    # Celery Configuration
    CELERY_CONFIG = {
        'broker_url': os.environ.get('REDIS_URL', 'redis://localhost:6379/0'),
        'result_backend': os.environ.get('REDIS_URL', 'redis://localhost:6379/0'),
        'broker_transport_options': {
            'visibility_timeout': 3600
        },
        'task_serializer': 'json',
        'accept_content': ['json'],
        'result_serializer': 'json',
        'timezone': 'UTC',
        'enable_utc': True,
        'broker_connection_retry_on_startup': True,
    }
    HOUSEKEEPING_INTERVAL_MINUTES = 15

    LOG_DIR = os.environ.get('LOG_DIR', os.path.join(basedir, 'logs'))


class DevelopmentConfig(Config):
    """Development configuration."""
    DEBUG = True
    EXPOSE_OTP_IN_RESPONSE = _env_flag('EXPOSE_OTP_IN_RESPONSE', 'True')
    SQLALCHEMY_DATABASE_URI = os.getenv('DATABASE_URL', 'sqlite:///dev.db')


class TestingConfig(Config):
    """Testing configuration."""
    TESTING = True
    DEBUG = True
    SQLALCHEMY_DATABASE_URI = 'sqlite:///:memory:'  # Use in-memory SQLite database
    JWT_SECRET_KEY = 'testing-secret-key'
    JWT_COOKIE_SECURE = False
    EXPOSE_OTP_IN_RESPONSE = False
    SMS_PROVIDER = 'console'
    MAIL_SUPPRESS_SEND = True
    CELERY_CONFIG = {
        'broker_url': 'memory://',
        'result_backend': 'cache+memory://',
        'task_always_eager': True,
    }
    LOG_DIR = None  # console only


class ProductionConfig(Config):
    """Production configuration."""
    DEBUG = False
    SQLALCHEMY_DATABASE_URI = os.getenv('DATABASE_URL')
    JWT_COOKIE_SECURE = _env_flag('JWT_COOKIE_SECURE', 'True')


config = {
    'development': DevelopmentConfig,
    'testing': TestingConfig,
    'production': ProductionConfig,
    'default': DevelopmentConfig
}
