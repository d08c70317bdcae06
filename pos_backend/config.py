# pos_backend/config.py
import os

BASE_DIR = os.path.abspath(os.path.dirname(__file__))


def _split(value):
    return [v.strip() for v in value.split(',') if v.strip()]


class Config:
    # DATABASE_URL allows switching to Postgres in production
    SQLALCHEMY_DATABASE_URI = os.environ.get(
        'DATABASE_URL', f"sqlite:///{os.path.join(BASE_DIR, 'market-store.db')}"
    )
    SQLALCHEMY_TRACK_MODIFICATIONS = False

    SECRET_KEY = os.environ.get('SECRET_KEY', 'change-me-in-production')
    TOKEN_MAX_AGE = int(os.environ.get('TOKEN_MAX_AGE', 24 * 60 * 60))

    TAX_RATE = float(os.environ.get('TAX_RATE', '0.21'))

    CORS_ORIGINS = _split(os.environ.get('CORS_ORIGINS', 'http://localhost:3001,http://localhost:3002'))

    # first admin, created only when the users table is empty
    BOOTSTRAP_ADMIN = True
    ADMIN_EMAIL = os.environ.get('ADMIN_EMAIL', 'admin@example.com')
    ADMIN_PASSWORD = os.environ.get('ADMIN_PASSWORD', 'admin1234')

    IMPORT_ERROR_LIMIT = 10

    LOG_LEVEL = os.environ.get('LOG_LEVEL', 'INFO')
    LOG_JSON = os.environ.get('LOG_JSON', '').lower() in ('1', 'true', 'yes')


class TestConfig(Config):
    __test__ = False

    TESTING = True
    SQLALCHEMY_DATABASE_URI = 'sqlite://'
    SECRET_KEY = 'test-secret'
    TAX_RATE = 0.21
    BOOTSTRAP_ADMIN = False
    LOG_LEVEL = 'WARNING'
