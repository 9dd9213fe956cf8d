"""Test settings for the booking engine service.

In-memory SQLite, eager Celery and quiet logs so the suite runs without
external services.
"""

from .base import *  # noqa: F401,F403

DEBUG = False

SECRET_KEY = 'test-secret-key'

DATABASES = {
    'default': {
        'ENGINE': 'django.db.backends.sqlite3',
        'NAME': ':memory:',
    }
}

CACHES = {
    'default': {
        'BACKEND': 'django.core.cache.backends.locmem.LocMemCache',
    }
}

PASSWORD_HASHERS = ['django.contrib.auth.hashers.MD5PasswordHasher']

CELERY_TASK_ALWAYS_EAGER = True
CELERY_TASK_EAGER_PROPAGATES = True
CELERY_BROKER_URL = 'memory://'
CELERY_RESULT_BACKEND = 'cache+memory://'

BOOKING_ENGINE = {
    **BOOKING_ENGINE,  # noqa: F405
    'LOCK_TIMEOUT_SECONDS': 1.0,
}

LOGGING['root']['level'] = 'CRITICAL'  # noqa: F405
LOGGING['handlers']['console']['level'] = 'CRITICAL'  # noqa: F405
