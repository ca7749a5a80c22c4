"""Test settings: file-backed SQLite, eager Celery, fast hashing.

Set DB_ENGINE=django.db.backends.postgresql to run against PostgreSQL
with the connection settings from base.py.
"""

from .base import *  # noqa: F401,F403

DEBUG = False

SECRET_KEY = 'test-secret-key'

if 'sqlite' in DB_ENGINE:  # noqa: F405
    # a file, not :memory:, so threads in the concurrency tests share one database
    DATABASES = {
        'default': {
            'ENGINE': 'django.db.backends.sqlite3',
            'NAME': BASE_DIR / 'test_db.sqlite3',  # noqa: F405
            'OPTIONS': {
                'timeout': 20,
                'transaction_mode': 'IMMEDIATE',
            },
            'TEST': {
                'NAME': BASE_DIR / 'test_db.sqlite3',  # noqa: F405
            },
        }
    }

PASSWORD_HASHERS = ['django.contrib.auth.hashers.MD5PasswordHasher']

CELERY_TASK_ALWAYS_EAGER = True
CELERY_TASK_EAGER_PROPAGATES = True
CELERY_BROKER_URL = 'memory://'
CELERY_RESULT_BACKEND = 'cache+memory://'

STORAGES = {
    **STORAGES,  # noqa: F405
    'staticfiles': {
        'BACKEND': 'django.contrib.staticfiles.storage.StaticFilesStorage',
    },
}

BOOKING_TIMEZONE = 'America/Mazatlan'
BOOKING_RATE_LIMIT_SALT = 'test-salt'
BOOKING_RATE_LIMIT_MAX_REQUESTS = 12
BOOKING_RATE_LIMIT_WINDOW_MINUTES = 60
