import os
from dotenv import load_dotenv

# Load .env file
dotenv_path = os.path.join(os.path.dirname(os.path.dirname(__file__)), '.env')
if os.path.exists(dotenv_path):
    load_dotenv(dotenv_path)

PACKAGE_DIR = os.path.dirname(os.path.abspath(__file__))
DATA_DIR = os.path.join(PACKAGE_DIR, 'data')


class Config:
    """Base configuration."""
    SECRET_KEY = os.environ.get('SECRET_KEY') or 'a_very_long_and_random_secret_key_for_masjidtimes'
    SQLALCHEMY_TRACK_MODIFICATIONS = False
    LOG_LEVEL = os.environ.get('LOG_LEVEL', "INFO")

    # Sentry Configuration
    SENTRY_DSN = os.environ.get('SENTRY_DSN')

    # Timezone the mosques observe; "today" and "now" are evaluated here.
    LOCAL_TIMEZONE = os.environ.get('LOCAL_TIMEZONE', 'Europe/London')

    # Calendar Source Configuration
    # 'database' reads calendars from SQLALCHEMY_DATABASE_URI and falls back to
    # the static files; 'static' fetches JSON over HTTP; 'local' reads JSON
    # files from CALENDAR_DATA_DIR.
    CALENDAR_SOURCE = os.environ.get('CALENDAR_SOURCE', 'local')
    STATIC_CALENDAR_BASE_URL = os.environ.get('STATIC_CALENDAR_BASE_URL')
    CALENDAR_DATA_DIR = os.environ.get('CALENDAR_DATA_DIR') or os.path.join(DATA_DIR, 'mosques')

    # Reference Data
    DST_DATES_PATH = os.environ.get('DST_DATES_PATH') or os.path.join(DATA_DIR, 'dst-start-end.json')
    MOSQUES_DATA_PATH = os.environ.get('MOSQUES_DATA_PATH') or os.path.join(DATA_DIR, 'mosques.json')
    HIDDEN_MOSQUE_SLUGS = os.environ.get('HIDDEN_MOSQUE_SLUGS', '')

    # Cache Configuration
    CALENDAR_CACHE_TTL_SECONDS = int(os.environ.get('CALENDAR_CACHE_TTL_SECONDS', 600))
    MOSQUES_CACHE_TTL_SECONDS = int(os.environ.get('MOSQUES_CACHE_TTL_SECONDS', 60))
    MAX_MONTHLY_CACHE_ENTRIES = int(os.environ.get('MAX_MONTHLY_CACHE_ENTRIES', 180))
    MAX_RAMADAN_CACHE_ENTRIES = int(os.environ.get('MAX_RAMADAN_CACHE_ENTRIES', 45))

    # Static Fetch Configuration
    FETCH_TIMEOUT_SECONDS = float(os.environ.get('FETCH_TIMEOUT_SECONDS', 6))
    FETCH_RETRY_ATTEMPTS = int(os.environ.get('FETCH_RETRY_ATTEMPTS', 3))
    FETCH_RETRY_BACKOFF_SECONDS = float(os.environ.get('FETCH_RETRY_BACKOFF_SECONDS', 0.25))
    FETCH_RETRY_MAX_BACKOFF_SECONDS = float(os.environ.get('FETCH_RETRY_MAX_BACKOFF_SECONDS', 4))
    FETCH_RETRY_JITTER_SECONDS = float(os.environ.get('FETCH_RETRY_JITTER_SECONDS', 0.15))

    # Mosques combine Maghrib and Isha between these dates ("MM-DD", inclusive).
    SUMMER_ISHA_START = os.environ.get('SUMMER_ISHA_START', '05-15')
    SUMMER_ISHA_END = os.environ.get('SUMMER_ISHA_END', '08-15')


class DevelopmentConfig(Config):
    FLASK_ENV = 'development'
    DEBUG = True
    SQLALCHEMY_DATABASE_URI = os.environ.get('DATABASE_URL') or 'sqlite:///masjidtimes-dev.db'
    LOG_LEVEL = "DEBUG"


class ProductionConfig(Config):
    FLASK_ENV = 'production'
    DEBUG = False
    SQLALCHEMY_DATABASE_URI = os.environ.get('DATABASE_URL')


class TestingConfig(Config):
    TESTING = True
    # Use an in-memory SQLite database for tests to ensure speed and isolation.
    SQLALCHEMY_DATABASE_URI = 'sqlite:///:memory:'
    RATELIMIT_ENABLED = False  # Disable rate limiting for tests
    SECRET_KEY = 'test-secret-key'
    CALENDAR_SOURCE = 'local'
    STATIC_CALENDAR_BASE_URL = None
    HIDDEN_MOSQUE_SLUGS = ''
    SENTRY_DSN = None


config_by_name = {
    'development': DevelopmentConfig,
    'production': ProductionConfig,
    'testing': TestingConfig,
    'default': DevelopmentConfig
}
