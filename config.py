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

    # Session Configuration (the cart lives in the signed session cookie)
    SESSION_COOKIE_SECURE = os.getenv('SESSION_COOKIE_SECURE', 'false').lower() == 'true'
    SESSION_COOKIE_HTTPONLY = True
    SESSION_COOKIE_SAMESITE = os.getenv('SESSION_COOKIE_SAMESITE', 'Lax')
    PERMANENT_SESSION_LIFETIME = 60 * 60 * 24 * 30  # 30 days

    # Preferred URL scheme (for url_for with _external=True)
    PREFERRED_URL_SCHEME = os.getenv('PREFERRED_URL_SCHEME', 'http')

    # REST backend (products, combos, discounts, orders, settings)
    BACKEND_API_URL = os.getenv('BACKEND_API_URL', 'http://localhost:5000/api').rstrip('/')
    BACKEND_TIMEOUT = int(os.getenv('BACKEND_TIMEOUT', '10'))

    # Business Information (message header / printable ticket)
    STORE_NAME = os.getenv('STORE_NAME', 'Mayorista Mascotas')
    BUSINESS_ADDRESS = os.getenv('BUSINESS_ADDRESS', 'Don Torcuato, Buenos Aires')
    BUSINESS_PHONE = os.getenv('BUSINESS_PHONE', '011 3475-0981')
    BUSINESS_EMAIL = os.getenv('BUSINESS_EMAIL', 'admin@mayoristamascotas.com')

    # Outbound order channel
    WHATSAPP_BASE_URL = os.getenv('WHATSAPP_BASE_URL', 'https://wa.me').rstrip('/')
    WHATSAPP_PHONE = os.getenv('WHATSAPP_PHONE', '5491134750981')

    # Pricing rules
    # Minimum purchase (ARS) when the cart holds only loose-weight lines
    MIN_LOOSE_PURCHASE = int(os.getenv('MIN_LOOSE_PURCHASE', '14000'))
    DEFAULT_SUGGESTED_PRICE_PERCENTAGE = int(os.getenv('DEFAULT_SUGGESTED_PRICE_PERCENTAGE', '10'))
    COUPON_FEEDBACK_SECONDS = int(os.getenv('COUPON_FEEDBACK_SECONDS', '3'))

    # Redis Cache Configuration
    # Settings and catalog listings are read far more often than they change
    REDIS_URL = os.getenv('REDIS_URL', 'redis://redis:6379/0')
    CACHE_ENABLED = os.getenv('CACHE_ENABLED', 'true').lower() == 'true'
    CACHE_DEFAULT_TTL = int(os.getenv('CACHE_DEFAULT_TTL', '60'))  # seconds
    CACHE_SETTINGS_TTL = int(os.getenv('CACHE_SETTINGS_TTL', '300'))
    CACHE_CATALOG_TTL = int(os.getenv('CACHE_CATALOG_TTL', '60'))
    CACHE_KEY_PREFIX = os.getenv('CACHE_KEY_PREFIX', 'mascotas')

    # Error tracking
    SENTRY_DSN = os.getenv('SENTRY_DSN')


class TestingConfig(Config):
    """Configuration used by the test suite."""

    TESTING = True
    DEBUG = False
    ENV = 'testing'
    WTF_CSRF_ENABLED = False
    CACHE_ENABLED = False
    SENTRY_DSN = None
    BACKEND_API_URL = 'http://backend.test/api'
