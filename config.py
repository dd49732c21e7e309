"""Configuration module for Flask application."""
import os
from dotenv import load_dotenv

# Load environment variables from .env file
load_dotenv()


class Config:
    """Base configuration class."""

    # Flask
    SECRET_KEY = os.getenv('SECRET_KEY', 'dev-secret-key-change-in-production')
    DEBUG = os.getenv('FLASK_DEBUG', '1') == '1'
    ENV = os.getenv('FLASK_ENV', 'development')
    TESTING = False

    # Database - Support multiple environment variable naming conventions
    # Priority: DATABASE_URL > DB_* > POSTGRES_*
    DATABASE_URL = os.getenv('DATABASE_URL')

    if not DATABASE_URL:
        # Try DB_* variables (Docker style)
        DB_HOST = os.getenv('DB_HOST') or os.getenv('POSTGRES_HOST', 'localhost')
        DB_PORT = os.getenv('DB_PORT') or os.getenv('POSTGRES_PORT', '5432')
        DB_NAME = os.getenv('DB_NAME') or os.getenv('POSTGRES_DB', 'pedidos')
        DB_USER = os.getenv('DB_USER') or os.getenv('POSTGRES_USER', 'pedidos')
        DB_PASSWORD = os.getenv('DB_PASSWORD') or os.getenv('POSTGRES_PASSWORD', 'pedidos')

        DATABASE_URL = (
            f"postgresql://{DB_USER}:{DB_PASSWORD}"
            f"@{DB_HOST}:{DB_PORT}/{DB_NAME}"
        )

    # SQLAlchemy
    SQLALCHEMY_DATABASE_URI = DATABASE_URL
    SQLALCHEMY_ECHO = os.getenv('SQLALCHEMY_ECHO', 'false').lower() == 'true'

    # Business Information (for orders/quotations)
    BUSINESS_NAME = os.getenv('BUSINESS_NAME', 'Minha Representação')
    DEFAULT_PAYMENT_TERMS = os.getenv('DEFAULT_PAYMENT_TERMS', '30/60/90')

    # Error tracking (production only)
    SENTRY_DSN = os.getenv('SENTRY_DSN')

    # Reports
    TOP_PRODUCTS_LIMIT = int(os.getenv('TOP_PRODUCTS_LIMIT', '20'))


class TestConfig(Config):
    """Configuration used by the test suite (in-memory SQLite)."""

    TESTING = True
    DEBUG = False
    ENV = 'testing'
    SQLALCHEMY_DATABASE_URI = 'sqlite://'
    SQLALCHEMY_ECHO = False
    SENTRY_DSN = None
