"""
Test settings for BOQ project.
"""

from .base import *

DEBUG = False
SECRET_KEY = 'test-secret-key'
ALLOWED_HOSTS = ['testserver', 'localhost']

DATABASES = {
    'default': {
        'ENGINE': 'django.db.backends.sqlite3',
        'NAME': ':memory:',
    }
}

CELERY_TASK_ALWAYS_EAGER = True
CELERY_TASK_EAGER_PROPAGATES = True
CELERY_BROKER_URL = 'memory://'
CELERY_RESULT_BACKEND = 'cache+memory://'

BOM_ENGINE = {
    'DEDUPLICATE_GROUP_SELECTIONS': True,
    'BULK_MAX_WORKERS': 2,
    'EXPORT_SUBDIR': 'boq',
}

LOGGING['root']['level'] = 'WARNING'
