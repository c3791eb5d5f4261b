"""Application configuration.

Values come from the environment (a local .env file is loaded by the
application factory). Every external collaborator is optional at startup:
the service that needs it checks its own keys when called.
"""

import os


class Config:
    """Base configuration shared by all environments."""

    SQLALCHEMY_DATABASE_URI = os.getenv('DATABASE_URL', 'sqlite:///homepro.db')
    SQLALCHEMY_TRACK_MODIFICATIONS = False

    JWT_SECRET_KEY = os.getenv('JWT_SECRET_KEY', 'dev-secret')
    JWT_EXPIRES_HOURS = int(os.getenv('JWT_EXPIRES_HOURS', 24))

    # Stripe
    STRIPE_SECRET_KEY = os.getenv('STRIPE_SECRET_KEY', '')
    STRIPE_PUBLISHABLE_KEY = os.getenv('STRIPE_PUBLISHABLE_KEY', '')
    STRIPE_WEBHOOK_SECRET = os.getenv('STRIPE_WEBHOOK_SECRET', '')
    STRIPE_CURRENCY = os.getenv('STRIPE_CURRENCY', 'usd')
    STRIPE_API_VERSION = '2023-10-16'

    # Zoho Lens
    ZOHO_CLIENT_ID = os.getenv('ZOHO_CLIENT_ID', '')
    ZOHO_CLIENT_SECRET = os.getenv('ZOHO_CLIENT_SECRET', '')
    ZOHO_REFRESH_TOKEN = os.getenv('ZOHO_REFRESH_TOKEN', '')
    ZOHO_ORG_ID = os.getenv('ZOHO_ORG_ID', '')
    ZOHO_ACCOUNTS_URL = os.getenv('ZOHO_ACCOUNTS_URL', 'https://accounts.zoho.com')
    ZOHO_LENS_URL = os.getenv('ZOHO_LENS_URL', 'https://lens.zoho.com')
    ZOHO_TIMEOUT_SECONDS = 15

    # Twilio
    TWILIO_ACCOUNT_SID = os.getenv('TWILIO_ACCOUNT_SID', '')
    TWILIO_AUTH_TOKEN = os.getenv('TWILIO_AUTH_TOKEN', '')
    TWILIO_PHONE_NUMBER = os.getenv('TWILIO_PHONE_NUMBER', '')

    # Firebase ID token exchange
    FIREBASE_PROJECT_ID = os.getenv('FIREBASE_PROJECT_ID', '')

    # Links sent in SMS point at the SPA
    APP_BASE_URL = os.getenv('APP_BASE_URL', 'http://localhost:5173')

    CORS_ORIGINS = os.getenv('CORS_ORIGINS', '*')

    # Shared state across workers (rate limits + socket fan-out)
    REDIS_URL = os.getenv('REDIS_URL')
    RATELIMIT_STORAGE_URI = REDIS_URL or 'memory://'
    SOCKETIO_MESSAGE_QUEUE = REDIS_URL
    SOCKETIO_ASYNC_MODE = os.getenv('SOCKETIO_ASYNC_MODE', 'threading')

    LOG_LEVEL = os.getenv('LOG_LEVEL', 'INFO')

    TESTING = False
    DEBUG = False


class DevelopmentConfig(Config):
    DEBUG = True
    LOG_LEVEL = os.getenv('LOG_LEVEL', 'DEBUG')


class TestingConfig(Config):
    TESTING = True
    SQLALCHEMY_DATABASE_URI = 'sqlite://'
    JWT_SECRET_KEY = 'test-secret-key-for-testing'
    RATELIMIT_ENABLED = False
    RATELIMIT_STORAGE_URI = 'memory://'
    SOCKETIO_MESSAGE_QUEUE = None

    STRIPE_SECRET_KEY = 'sk_test_dummy'
    STRIPE_PUBLISHABLE_KEY = 'pk_test_dummy'
    STRIPE_WEBHOOK_SECRET = 'whsec_test'

    ZOHO_CLIENT_ID = 'zoho-client'
    ZOHO_CLIENT_SECRET = 'zoho-secret'
    ZOHO_REFRESH_TOKEN = 'zoho-refresh'
    ZOHO_ORG_ID = 'org123'

    TWILIO_ACCOUNT_SID = 'AC_test'
    TWILIO_AUTH_TOKEN = 'twilio-token'
    TWILIO_PHONE_NUMBER = '+15005550006'

    FIREBASE_PROJECT_ID = 'homepro-test'
    APP_BASE_URL = 'https://app.homepro.test'


class ProductionConfig(Config):
    LOG_LEVEL = os.getenv('LOG_LEVEL', 'WARNING')


CONFIGS = {
    'development': DevelopmentConfig,
    'testing': TestingConfig,
    'production': ProductionConfig,
}


def get_config(config_name=None):
    """Resolve a config class by name, falling back to FLASK_ENV."""
    name = config_name or os.getenv('FLASK_ENV', 'development')
    return CONFIGS.get(name, DevelopmentConfig)
