"""
Test settings for SolSpace project.
"""

from .settings import *

DEBUG = False

DATABASES = {
    'default': {
        'ENGINE': 'django.db.backends.sqlite3',
        'NAME': ':memory:',
    }
}

PASSWORD_HASHERS = ['django.contrib.auth.hashers.MD5PasswordHasher']

CONSTANCE_BACKEND = 'constance.backends.memory.MemoryBackend'

# Run tasks inline, no broker needed
CELERY_TASK_ALWAYS_EAGER = True
CELERY_TASK_EAGER_PROPAGATES = True
CELERY_BROKER_URL = 'memory://'
CELERY_RESULT_BACKEND = 'cache+memory://'

JWT_ACCESS_SECRET = 'test-access-secret-with-enough-length-0123456789'
JWT_REFRESH_SECRET = 'test-refresh-secret-with-enough-length-0123456789'

LOGGING['root']['level'] = 'WARNING'
