"""Base settings for all environments.

Common configuration of the charter booking service: Django, Django Rest
Framework, Celery, structured logging and the booking policy itself.
Environment specific overrides live in `dev.py`, `prod.py` and `test.py`.
"""

import os
from datetime import timedelta
from pathlib import Path

import structlog
from django.core.exceptions import ImproperlyConfigured
from dotenv import load_dotenv

# Build paths inside the project like this: BASE_DIR / 'subdir'.
BASE_DIR = Path(__file__).resolve().parent.parent.parent

load_dotenv(BASE_DIR / '.env')


def get_env(var_name: str, default=None, required: bool = False):
    value = os.environ.get(var_name, default)
    if required and value in (None, ''):
        raise ImproperlyConfigured(f'Missing required environment variable: {var_name}')
    return value


def get_env_int(var_name: str, default: int) -> int:
    value = get_env(var_name, default)
    try:
        return int(value)
    except (TypeError, ValueError) as exc:
        raise ImproperlyConfigured(f'{var_name} must be an integer, got {value!r}') from exc


def get_env_list(var_name: str, default: str = '') -> list[str]:
    return [item.strip() for item in get_env(var_name, default).split(',') if item.strip()]


# SECURITY WARNING: keep the secret key used in production secret!
SECRET_KEY = get_env('DJANGO_SECRET_KEY', 'replace-me-in-production')

# SECURITY WARNING: don't run with debug turned on in production!
DEBUG = False

ALLOWED_HOSTS: list[str] = get_env_list('DJANGO_ALLOWED_HOSTS', '*')

# Application definition

INSTALLED_APPS = [
    'django.contrib.admin',
    'django.contrib.auth',
    'django.contrib.contenttypes',
    'django.contrib.sessions',
    'django.contrib.messages',
    'django.contrib.staticfiles',
    # Third-party apps
    'rest_framework',
    'django_filters',
    'corsheaders',
    'drf_spectacular',
    'django_celery_beat',
    # Domain apps
    'apps.yachts',
    'apps.bookings',
]

MIDDLEWARE = [
    'django.middleware.security.SecurityMiddleware',
    'whitenoise.middleware.WhiteNoiseMiddleware',
    'corsheaders.middleware.CorsMiddleware',
    'django.contrib.sessions.middleware.SessionMiddleware',
    'django.middleware.common.CommonMiddleware',
    'django.middleware.csrf.CsrfViewMiddleware',
    'django.contrib.auth.middleware.AuthenticationMiddleware',
    'django.contrib.messages.middleware.MessageMiddleware',
    'django.middleware.clickjacking.XFrameOptionsMiddleware',
]

ROOT_URLCONF = 'config.urls'

TEMPLATES = [
    {
        'BACKEND': 'django.template.backends.django.DjangoTemplates',
        'DIRS': [],
        'APP_DIRS': True,
        'OPTIONS': {
            'context_processors': [
                'django.template.context_processors.debug',
                'django.template.context_processors.request',
                'django.contrib.auth.context_processors.auth',
                'django.contrib.messages.context_processors.messages',
            ],
        },
    },
]

WSGI_APPLICATION = 'config.wsgi.application'

# Database
# https://docs.djangoproject.com/en/5.1/ref/settings/#databases
# Statement and lock timeouts; exceeding them surfaces as ServiceUnavailable.

BOOKING_DB_STATEMENT_TIMEOUT_MS = get_env_int('BOOKING_DB_STATEMENT_TIMEOUT_MS', 5000)
BOOKING_DB_LOCK_TIMEOUT_MS = get_env_int('BOOKING_DB_LOCK_TIMEOUT_MS', 3000)

DB_ENGINE = get_env('DB_ENGINE', 'django.db.backends.sqlite3')

if 'postgresql' in DB_ENGINE:
    DB_OPTIONS = {
        'connect_timeout': get_env_int('DB_CONNECT_TIMEOUT', 5),
        'options': (
            f'-c statement_timeout={BOOKING_DB_STATEMENT_TIMEOUT_MS} '
            f'-c lock_timeout={BOOKING_DB_LOCK_TIMEOUT_MS}'
        ),
    }
elif 'sqlite' in DB_ENGINE:
    DB_OPTIONS = {
        'timeout': max(1, BOOKING_DB_LOCK_TIMEOUT_MS // 1000),
        # writers take the database lock at BEGIN, before the calendar read
        'transaction_mode': 'IMMEDIATE',
    }
else:
    DB_OPTIONS = {}

DATABASES = {
    'default': {
        'ENGINE': DB_ENGINE,
        'NAME': get_env('DB_NAME', BASE_DIR / 'db.sqlite3'),
        'USER': get_env('DB_USER', ''),
        'PASSWORD': get_env('DB_PASSWORD', ''),
        'HOST': get_env('DB_HOST', ''),
        'PORT': get_env('DB_PORT', ''),
        'OPTIONS': DB_OPTIONS,
    }
}

# Password validation
# https://docs.djangoproject.com/en/5.1/ref/settings/#auth-password-validators

AUTH_PASSWORD_VALIDATORS = [
    {
        'NAME': 'django.contrib.auth.password_validation.UserAttributeSimilarityValidator',
    },
    {
        'NAME': 'django.contrib.auth.password_validation.MinimumLengthValidator',
    },
    {
        'NAME': 'django.contrib.auth.password_validation.CommonPasswordValidator',
    },
    {
        'NAME': 'django.contrib.auth.password_validation.NumericPasswordValidator',
    },
]

# Internationalization
# https://docs.djangoproject.com/en/5.1/topics/i18n/

LANGUAGE_CODE = 'en-us'

TIME_ZONE = get_env('DJANGO_TIME_ZONE', 'America/Mazatlan')

USE_I18N = True

USE_TZ = True

DEFAULT_AUTO_FIELD = 'django.db.models.BigAutoField'

# Static files (CSS, JavaScript, Images)
# https://docs.djangoproject.com/en/5.1/howto/static-files/

STATIC_URL = '/static/'
STATIC_ROOT = BASE_DIR / 'staticfiles'

STORAGES = {
    'default': {
        'BACKEND': 'django.core.files.storage.FileSystemStorage',
    },
    'staticfiles': {
        'BACKEND': 'whitenoise.storage.CompressedManifestStaticFilesStorage',
    },
}

# Django Rest Framework
REST_FRAMEWORK = {
    'DEFAULT_AUTHENTICATION_CLASSES': [
        'rest_framework_simplejwt.authentication.JWTAuthentication',
    ],
    'DEFAULT_PERMISSION_CLASSES': [
        'rest_framework.permissions.IsAuthenticated',
    ],
    'DEFAULT_FILTER_BACKENDS': [
        'django_filters.rest_framework.DjangoFilterBackend',
    ],
    'DEFAULT_SCHEMA_CLASS': 'drf_spectacular.openapi.AutoSchema',
    'EXCEPTION_HANDLER': 'apps.bookings.exception_handler.booking_exception_handler',
}

SIMPLE_JWT = {
    'ACCESS_TOKEN_LIFETIME': timedelta(minutes=60),
    'REFRESH_TOKEN_LIFETIME': timedelta(days=7),
}

# Celery configuration (Broker and Result backend handled in environment)
CELERY_BROKER_URL = get_env('CELERY_BROKER_URL', 'redis://localhost:6379/0')
CELERY_RESULT_BACKEND = get_env('CELERY_RESULT_BACKEND', 'redis://localhost:6379/0')
CELERY_TIMEZONE = TIME_ZONE
CELERY_BEAT_SCHEDULER = 'django_celery_beat.schedulers:DatabaseScheduler'

# CORS settings
CORS_ALLOWED_ORIGINS = get_env_list(
    'CORS_ALLOWED_ORIGINS',
    'http://localhost:3000,http://localhost:5173,http://127.0.0.1:8000',
)
CORS_ALLOW_CREDENTIALS = True
CORS_EXPOSE_HEADERS = ['X-Request-ID', 'Retry-After']

# CSRF settings
CSRF_TRUSTED_ORIGINS = get_env_list(
    'CSRF_TRUSTED_ORIGINS',
    'http://localhost:8000,http://127.0.0.1:8000',
)

# DRF Spectacular (API docs)
SPECTACULAR_SETTINGS = {
    'TITLE': 'Yacht Charter Booking API',
    'DESCRIPTION': 'Hourly yacht charter availability and bookings',
    'VERSION': '1.0.0',
    'SERVE_INCLUDE_SCHEMA': False,
}

# ============================================================================
# BOOKING POLICY
# ============================================================================

# Every yacht calendar is read in this timezone; reservations are stored in UTC.
BOOKING_TIMEZONE = get_env('BOOKING_TIMEZONE', 'America/Mazatlan')

YACHT_BOOKING_POLICY = {
    'day_start_hour': get_env_int('BOOKING_POLICY_DAY_START_HOUR', 6),
    'day_end_hour': get_env_int('BOOKING_POLICY_DAY_END_HOUR', 18),
    'morning_end_hour': get_env_int('BOOKING_POLICY_MORNING_END_HOUR', 13),
    'buffer_start_hour': get_env_int('BOOKING_POLICY_BUFFER_START_HOUR', 13),
    'buffer_end_hour': get_env_int('BOOKING_POLICY_BUFFER_END_HOUR', 15),
    'afternoon_start_hour': get_env_int('BOOKING_POLICY_AFTERNOON_START_HOUR', 15),
    'min_duration_hours': get_env_int('BOOKING_POLICY_MIN_HOURS', 3),
    'max_duration_hours': get_env_int('BOOKING_POLICY_MAX_HOURS', 8),
    'inter_booking_buffer_hours': get_env_int('BOOKING_POLICY_INTER_BOOKING_BUFFER_HOURS', 2),
    'time_step_minutes': 60,
    'version': get_env('BOOKING_POLICY_VERSION', 'v3'),
}

BOOKING_ADMIN_GROUP = get_env('BOOKING_ADMIN_GROUP', 'admin')
BOOKING_STAFF_GROUP = get_env('BOOKING_STAFF_GROUP', 'staff')

BOOKING_RATE_LIMIT_MAX_REQUESTS = get_env_int('BOOKING_RATE_LIMIT_MAX_REQUESTS', 12)
BOOKING_RATE_LIMIT_WINDOW_MINUTES = get_env_int('BOOKING_RATE_LIMIT_WINDOW_MINUTES', 60)
BOOKING_RATE_LIMIT_SALT = get_env('BOOKING_RATE_LIMIT_SALT', 'booking-rate-limit')

BOOKING_REQUEST_LOG_RETENTION_DAYS = get_env_int('BOOKING_REQUEST_LOG_RETENTION_DAYS', 30)

# ============================================================================
# LOGGING
# ============================================================================

structlog.configure(
    processors=[
        structlog.stdlib.add_logger_name,
        structlog.processors.TimeStamper(fmt='iso'),
        structlog.processors.add_log_level,
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
        structlog.stdlib.ProcessorFormatter.wrap_for_formatter,
    ],
    wrapper_class=structlog.stdlib.BoundLogger,
    logger_factory=structlog.stdlib.LoggerFactory(),
    cache_logger_on_first_use=True,
)

LOG_LEVEL = get_env('LOG_LEVEL', 'INFO')

LOGGING = {
    'version': 1,
    'disable_existing_loggers': False,
    'formatters': {
        'json': {
            '()': 'structlog.stdlib.ProcessorFormatter',
            'processor': structlog.processors.JSONRenderer(),
            'foreign_pre_chain': [
                structlog.stdlib.add_logger_name,
                structlog.processors.TimeStamper(fmt='iso'),
                structlog.processors.add_log_level,
            ],
        }
    },
    'handlers': {
        'console': {
            'class': 'logging.StreamHandler',
            'formatter': 'json',
            'level': LOG_LEVEL,
        }
    },
    'root': {'handlers': ['console'], 'level': 'WARNING'},
    'loggers': {
        'django': {'handlers': ['console'], 'level': 'INFO', 'propagate': False},
        'apps': {'handlers': ['console'], 'level': LOG_LEVEL, 'propagate': False},
        'shared': {'handlers': ['console'], 'level': LOG_LEVEL, 'propagate': False},
        'django.security.DisallowedHost': {
            'handlers': ['console'],
            'level': 'WARNING',
            'propagate': False,
        },
    },
}
