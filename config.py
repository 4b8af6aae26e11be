"""
Application Configuration

Centralizes all Flask and application configuration settings. Values come
from environment variables, optionally loaded from a .env file.
"""

import os

from dotenv import load_dotenv

# Base directory of the application
BASE_DIR = os.path.dirname(os.path.abspath(__file__))

load_dotenv(os.path.join(BASE_DIR, '.env'))


def _int(name, default):
    value = os.environ.get(name)
    if value is None or not value.strip():
        return default
    return int(value)


class Config:
    """Base configuration class."""

    # Flask settings
    SECRET_KEY = os.environ.get('SECRET_KEY', 'dev-only-change-in-production')

    # SQLAlchemy settings
    SQLALCHEMY_DATABASE_URI = os.environ.get(
        'DATABASE_URL', 'sqlite:///' + os.path.join(BASE_DIR, 'data', 'recipes.db')
    )
    SQLALCHEMY_TRACK_MODIFICATIONS = False

    # OpenAI
    OPENAI_API_KEY = os.environ.get('OPENAI_API_KEY') or os.environ.get('OPENAI_KEY')
    OPENAI_MODEL = os.environ.get('OPENAI_MODEL', 'gpt-5-mini')
    OPENAI_IMAGE_MODEL = os.environ.get('OPENAI_IMAGE_MODEL', 'dall-e-3')

    # Headless browser (empty means search the usual install paths)
    CHROMIUM_BIN = os.environ.get('CHROMIUM_BIN', '')

    # Image storage (Cloudflare R2, S3-compatible)
    CLOUDFLARE_ENDPOINT = os.environ.get('CLOUDFLARE_ENDPOINT', '')
    CLOUDFLARE_ACCESS_KEY = os.environ.get('CLOUDFLARE_ACCESS_KEY', '')
    CLOUDFLARE_SECRET_KEY = os.environ.get('CLOUDFLARE_SECRET_KEY', '')
    IMAGE_BUCKET = os.environ.get('IMAGE_BUCKET', '')
    IMAGE_PUBLIC_BASE_URL = os.environ.get('IMAGE_PUBLIC_BASE_URL', '')

    # Queue
    QUEUE_POLL_INTERVAL = _int('QUEUE_POLL_INTERVAL', 60)  # seconds
    QUEUE_BATCH_SIZE = _int('QUEUE_BATCH_SIZE', 5)
    QUEUE_CONCURRENCY = _int('QUEUE_CONCURRENCY', 4)
    QUEUE_MAX_ATTEMPTS = _int('QUEUE_MAX_ATTEMPTS', 5)
    QUEUE_AUTOSTART = os.environ.get('QUEUE_AUTOSTART', 'false').lower() == 'true'

    # Timeouts (seconds)
    PAGE_TIMEOUT = _int('PAGE_TIMEOUT', 60)
    FETCH_TIMEOUT = _int('FETCH_TIMEOUT', 60)
    FALLBACK_TITLE_TIMEOUT = _int('FALLBACK_TITLE_TIMEOUT', 10)
    AI_EXTRACT_TIMEOUT = _int('AI_EXTRACT_TIMEOUT', 240)
    AI_IMAGE_TIMEOUT = _int('AI_IMAGE_TIMEOUT', 60)

    # Cache TTLs (seconds)
    RECIPE_CACHE_TTL = _int('RECIPE_CACHE_TTL', 30 * 24 * 60 * 60)
    RECIPE_LIST_CACHE_TTL = _int('RECIPE_LIST_CACHE_TTL', 60 * 60)

    PASSWORD_RESET_TTL = _int('PASSWORD_RESET_TTL', 60 * 60)

    # Page text sent to the AI is cut to this many characters (0 = no limit)
    EXTRACTION_MAX_TEXT_LENGTH = _int('EXTRACTION_MAX_TEXT_LENGTH', 100000)

    LOG_LEVEL = os.environ.get('LOG_LEVEL', 'INFO')


class DevelopmentConfig(Config):
    """Development configuration."""
    DEBUG = True
    LOG_LEVEL = os.environ.get('LOG_LEVEL', 'DEBUG')


class ProductionConfig(Config):
    """Production configuration."""
    DEBUG = False
    QUEUE_AUTOSTART = os.environ.get('QUEUE_AUTOSTART', 'true').lower() == 'true'


class TestingConfig(Config):
    """Testing configuration."""
    TESTING = True
    SQLALCHEMY_DATABASE_URI = 'sqlite:///:memory:'
    OPENAI_API_KEY = None
    CLOUDFLARE_ENDPOINT = ''
    IMAGE_BUCKET = ''
    QUEUE_AUTOSTART = False
    QUEUE_POLL_INTERVAL = 1
    LOG_LEVEL = 'DEBUG'


# Configuration dictionary for easy access
config = {
    'development': DevelopmentConfig,
    'production': ProductionConfig,
    'testing': TestingConfig,
    'default': DevelopmentConfig
}


def get_config(env=None):
    """Get configuration based on environment."""
    if env is None:
        env = os.environ.get('FLASK_ENV', 'development')
    return config.get(env, config['default'])
