import os
from dotenv import load_dotenv

# Load environment variables from .env
load_dotenv()

# Project base path
basedir = os.path.abspath(os.path.dirname(__file__))

class Config:
    """Base configuration."""
    SECRET_KEY = os.environ.get('SECRET_KEY') or 'change-me'
    SQLALCHEMY_DATABASE_URI = os.environ.get('DATABASE_URL') or 'sqlite:///' + os.path.join(basedir, 'sportstock.db')
    SQLALCHEMY_TRACK_MODIFICATIONS = False
    LOG_LEVEL = os.environ.get('LOG_LEVEL', 'INFO')

    # --- Request lifecycle ---
    REQUEST_RETENTION_MINUTES = int(os.environ.get('REQUEST_RETENTION_MINUTES', 5))
    NOTIFICATION_TTL_SECONDS = int(os.environ.get('NOTIFICATION_TTL_SECONDS', 5))
    POLL_INTERVAL_SECONDS = int(os.environ.get('POLL_INTERVAL_SECONDS', 5))
    # Cached views are shared by one process only; other processes' writes show up after this.
    VIEW_CACHE_TTL_SECONDS = POLL_INTERVAL_SECONDS

    # --- Role lookup retries ---
    ROLE_LOOKUP_RETRIES = 3
    ROLE_LOOKUP_BACKOFF_SECONDS = float(os.environ.get('ROLE_LOOKUP_BACKOFF_SECONDS', 1))

    ADMIN_RECENT_REQUESTS = 5
    DASHBOARD_RECENT_PURCHASES = 3
    PRICE_LOCATION_URL = os.environ.get('PRICE_LOCATION_URL', 'https://ipapi.co/json/')


class TestingConfig(Config):
    TESTING = True
    SQLALCHEMY_DATABASE_URI = 'sqlite:///:memory:'
    WTF_CSRF_ENABLED = False
    ROLE_LOOKUP_BACKOFF_SECONDS = 0
    PRICE_LOCATION_URL = ''
    BCRYPT_LOG_ROUNDS = 4
