"""
Django settings for SolSpace project.
Values that differ between environments are read from the environment (or a .env file).
"""

import os
from datetime import timedelta
from pathlib import Path

from celery.schedules import crontab
from dotenv import load_dotenv

BASE_DIR = Path(__file__).resolve().parent.parent

load_dotenv(os.path.join(BASE_DIR, '.env'))

SECRET_KEY = os.getenv('SECRET_KEY', 'solspace-dev-secret-change-in-production')

DEBUG = os.getenv('DEBUG', 'False').lower() in ('1', 'true', 'yes')

ALLOWED_HOSTS = [h.strip() for h in os.getenv('ALLOWED_HOSTS', 'localhost,127.0.0.1').split(',') if h.strip()]


INSTALLED_APPS = [
    'django.contrib.admin',
    'django.contrib.auth',
    'django.contrib.contenttypes',
    'django.contrib.sessions',
    'django.contrib.messages',
    'django.contrib.staticfiles',

    'constance',

    'authentication',
    'wallet',
    'notifications',
    'sols',
]

MIDDLEWARE = [
    'django.middleware.security.SecurityMiddleware',
    'django.contrib.sessions.middleware.SessionMiddleware',
    'django.middleware.common.CommonMiddleware',
    'django.middleware.csrf.CsrfViewMiddleware',
    'django.contrib.auth.middleware.AuthenticationMiddleware',
    'authentication.middleware.jwt_auth.JWTAuthenticationMiddleware',
    'django.contrib.messages.middleware.MessageMiddleware',
    'django.middleware.clickjacking.XFrameOptionsMiddleware',
]

ROOT_URLCONF = 'SolSpace.urls'

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

WSGI_APPLICATION = 'SolSpace.wsgi.application'


DATABASES = {
    'default': {
        'ENGINE': os.getenv('DB_ENGINE', 'django.db.backends.sqlite3'),
        'NAME': os.getenv('DB_NAME', str(BASE_DIR / 'db.sqlite3')),
        'USER': os.getenv('DB_USER', ''),
        'PASSWORD': os.getenv('DB_PASSWORD', ''),
        'HOST': os.getenv('DB_HOST', ''),
        'PORT': os.getenv('DB_PORT', ''),
    },
}

DEFAULT_AUTO_FIELD = 'django.db.models.BigAutoField'

AUTH_PASSWORD_VALIDATORS = [
    {'NAME': 'django.contrib.auth.password_validation.UserAttributeSimilarityValidator'},
    {'NAME': 'django.contrib.auth.password_validation.MinimumLengthValidator'},
    {'NAME': 'django.contrib.auth.password_validation.CommonPasswordValidator'},
    {'NAME': 'django.contrib.auth.password_validation.NumericPasswordValidator'},
]

LANGUAGE_CODE = 'fr'
TIME_ZONE = 'America/Port-au-Prince'
USE_I18N = True
USE_TZ = True

STATIC_URL = '/static/'
STATIC_ROOT = os.path.join(BASE_DIR, 'staticfiles')


# ========== JWT SESSIONS ==========
JWT_ACCESS_SECRET = os.getenv('JWT_SECRET', 'solspace-access-dev-secret-change-in-production')
JWT_REFRESH_SECRET = os.getenv('JWT_REFRESH_SECRET', 'solspace-refresh-dev-secret-change-in-production')
JWT_ACCESS_LIFETIME = timedelta(minutes=int(os.getenv('JWT_ACCESS_MINUTES', '15')))
JWT_REFRESH_LIFETIME = timedelta(days=int(os.getenv('JWT_REFRESH_DAYS', '7')))
JWT_ALGORITHM = 'HS256'
JWT_ISSUER = 'solspace'
JWT_AUDIENCE = 'solspace-users'


# ========== RUNTIME CONFIG (editable from admin) ==========
CONSTANCE_BACKEND = os.getenv('CONSTANCE_BACKEND', 'constance.backends.database.DatabaseBackend')

CONSTANCE_CONFIG = {
    'SOL_MAX_ACTIVE_PER_CREATOR': (5, 'Maximum recruiting/active sols a user may create', int),
    'SOL_PAYMENT_GRACE_DAYS': (7, 'Days after a round starts before its payment is due', int),
    'SOL_REMINDER_DAYS': ('3,1,0', 'Days before the due date on which payment reminders are sent', str),
    'AUTH_MAX_SESSIONS': (5, 'Maximum concurrent device sessions per user', int),
    'NOTIFICATION_RETENTION_DAYS': (90, 'Read notifications older than this are deleted', int),
}

CONSTANCE_CONFIG_FIELDSETS = {
    'Sols': ('SOL_MAX_ACTIVE_PER_CREATOR', 'SOL_PAYMENT_GRACE_DAYS', 'SOL_REMINDER_DAYS'),
    'Sessions & notifications': ('AUTH_MAX_SESSIONS', 'NOTIFICATION_RETENTION_DAYS'),
}


# ========== CELERY ==========
CELERY_BROKER_URL = os.getenv('CELERY_BROKER_URL', 'redis://localhost:6379/0')
CELERY_RESULT_BACKEND = os.getenv('CELERY_RESULT_BACKEND', CELERY_BROKER_URL)
CELERY_ACCEPT_CONTENT = ['json']
CELERY_TASK_SERIALIZER = 'json'
CELERY_TIMEZONE = TIME_ZONE

CELERY_BEAT_SCHEDULE = {
    'sols-send-payment-reminders': {
        'task': 'sols.send_payment_reminders',
        'schedule': crontab(hour=9, minute=0),
    },
    'sols-mark-overdue-payments': {
        'task': 'sols.mark_overdue_payments',
        'schedule': crontab(hour=7, minute=0),
    },
    'authentication-purge-stale-sessions': {
        'task': 'authentication.purge_stale_sessions',
        'schedule': crontab(hour=3, minute=0),
    },
    'notifications-cleanup': {
        'task': 'notifications.cleanup_notifications',
        'schedule': crontab(hour=3, minute=0, day_of_week='sunday'),
    },
}


# ========== LOGGING ==========
LOGGING = {
    'version': 1,
    'disable_existing_loggers': False,
    'formatters': {
        'verbose': {
            'format': '{asctime} {levelname} {name} {message}',
            'style': '{',
        },
    },
    'handlers': {
        'console': {
            'class': 'logging.StreamHandler',
            'formatter': 'verbose',
        },
    },
    'root': {
        'handlers': ['console'],
        'level': os.getenv('LOG_LEVEL', 'INFO'),
    },
    'loggers': {
        'django': {
            'handlers': ['console'],
            'level': 'WARNING',
            'propagate': False,
        },
    },
}
