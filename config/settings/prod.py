"""Production settings.

Sensitive values must come from environment variables; PostgreSQL is
required so that the reservation overlap constraint is in force.
"""

from .base import *  # noqa: F401,F403
from .base import get_env, get_env_list

# Never run with debug enabled in production
DEBUG = False

SECRET_KEY = get_env('DJANGO_SECRET_KEY', required=True)

# Allowed hosts should be defined explicitly via environment variable
ALLOWED_HOSTS = get_env_list('DJANGO_ALLOWED_HOSTS')

if 'postgresql' not in DATABASES['default']['ENGINE']:  # noqa: F405
    raise ImproperlyConfigured('Production requires DB_ENGINE=django.db.backends.postgresql')  # noqa: F405

# Configure secure proxies and cookies
SECURE_PROXY_SSL_HEADER = ('HTTP_X_FORWARDED_PROTO', 'https')
CSRF_COOKIE_SECURE = True
SESSION_COOKIE_SECURE = True

BOOKING_RATE_LIMIT_SALT = get_env('BOOKING_RATE_LIMIT_SALT', required=True)
