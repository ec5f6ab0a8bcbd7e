"""
Django settings for the TaskTuner prioritization backend.

Environment variables are loaded from a local ``.env`` file when present.
"""

import os
from datetime import timedelta
from pathlib import Path

from dotenv import load_dotenv

load_dotenv()

BASE_DIR = Path(__file__).resolve().parent.parent

SECRET_KEY = os.getenv('DJANGO_SECRET_KEY', 'django-insecure-tasktuner-dev-key')

DEBUG = os.getenv('DJANGO_DEBUG', 'True') == 'True'

ALLOWED_HOSTS = [h for h in os.getenv('DJANGO_ALLOWED_HOSTS', '*').split(',') if h]


INSTALLED_APPS = [
    'django.contrib.contenttypes',
    'django.contrib.auth',
    'rest_framework',
    'tasks',
]

MIDDLEWARE = [
    'django.middleware.security.SecurityMiddleware',
    'django.middleware.common.CommonMiddleware',
]

ROOT_URLCONF = 'tasktuner.urls'

WSGI_APPLICATION = 'tasktuner.wsgi.application'


DATABASES = {
    'default': {
        'ENGINE': 'django.db.backends.sqlite3',
        'NAME': os.getenv('SQLITE_PATH', str(BASE_DIR / 'db.sqlite3')),
    }
}

DEFAULT_AUTO_FIELD = 'django.db.models.BigAutoField'


# ---------------------------------------------------------------------------
# Time zone: every instant the engine sees is localized to TIME_ZONE.
# ---------------------------------------------------------------------------
LANGUAGE_CODE = 'en-us'
TIME_ZONE = os.getenv('TASKTUNER_TIME_ZONE', 'UTC')
USE_I18N = True
USE_TZ = True


# ---------------------------------------------------------------------------
# Cache (Redis when configured, local memory otherwise)
# ---------------------------------------------------------------------------
REDIS_URL = os.getenv('REDIS_URL')

if REDIS_URL:
    CACHES = {
        'default': {
            'BACKEND': 'django.core.cache.backends.redis.RedisCache',
            'LOCATION': REDIS_URL,
        }
    }
else:
    CACHES = {
        'default': {
            'BACKEND': 'django.core.cache.backends.locmem.LocMemCache',
            'LOCATION': 'tasktuner',
        }
    }


# ---------------------------------------------------------------------------
# Django REST framework. Authentication lives in front of this service.
# ---------------------------------------------------------------------------
REST_FRAMEWORK = {
    'DEFAULT_AUTHENTICATION_CLASSES': [],
    'DEFAULT_PERMISSION_CLASSES': ['rest_framework.permissions.AllowAny'],
    'UNAUTHENTICATED_USER': None,
    'DEFAULT_RENDERER_CLASSES': ['rest_framework.renderers.JSONRenderer'],
}


# ---------------------------------------------------------------------------
# Celery
# ---------------------------------------------------------------------------
CELERY_BROKER_URL = os.getenv('CELERY_BROKER_URL', REDIS_URL or 'redis://localhost:6379/0')
CELERY_RESULT_BACKEND = os.getenv('CELERY_RESULT_BACKEND', CELERY_BROKER_URL)
CELERY_ACCEPT_CONTENT = ['json']
CELERY_TASK_SERIALIZER = 'json'
CELERY_RESULT_SERIALIZER = 'json'
CELERY_TIMEZONE = TIME_ZONE
CELERY_TASK_ALWAYS_EAGER = os.getenv('CELERY_TASK_ALWAYS_EAGER', 'False') == 'True'
CELERY_BEAT_SCHEDULE = {
    'evict-stale-user-patterns': {
        'task': 'tasks.ai_engine.celery_tasks.evict_stale_user_patterns',
        'schedule': timedelta(days=1),
    },
}


# ---------------------------------------------------------------------------
# Prioritization engine
# ---------------------------------------------------------------------------
TASKTUNER = {
    'EXTERNAL_RANKING_ENABLED': os.getenv('TASKTUNER_EXTERNAL_RANKING', 'True') == 'True',
    'EXTERNAL_RANKER_API_KEY': os.getenv('OPENROUTER_API_KEY') or os.getenv('OPENAI_API_KEY'),
    'EXTERNAL_RANKER_BASE_URL': os.getenv('EXTERNAL_RANKER_BASE_URL', 'https://openrouter.ai/api/v1'),
    'EXTERNAL_RANKER_MODEL': os.getenv('EXTERNAL_RANKER_MODEL', 'mistralai/mistral-7b-instruct:free'),
    'EXTERNAL_RANKER_TIMEOUT': float(os.getenv('EXTERNAL_RANKER_TIMEOUT', '10.0')),
    'RANKING_CACHE_TTL': int(os.getenv('RANKING_CACHE_TTL', '3600')),
    'PATTERN_STORE': os.getenv('TASKTUNER_PATTERN_STORE', 'database'),
    'PATTERN_STORE_MAX_USERS': int(os.getenv('TASKTUNER_PATTERN_STORE_MAX_USERS', '1000')),
    'PATTERN_TTL_DAYS': int(os.getenv('TASKTUNER_PATTERN_TTL_DAYS', '90')),
}


# ---------------------------------------------------------------------------
# Logging
# ---------------------------------------------------------------------------
LOGGING = {
    'version': 1,
    'disable_existing_loggers': False,
    'formatters': {
        'verbose': {
            'format': '{asctime} {levelname} {name}: {message}',
            'style': '{',
        },
    },
    'handlers': {
        'console': {
            'class': 'logging.StreamHandler',
            'formatter': 'verbose',
        },
    },
    'loggers': {
        'tasks': {
            'handlers': ['console'],
            'level': os.getenv('TASKTUNER_LOG_LEVEL', 'INFO'),
            'propagate': False,
        },
    },
}
