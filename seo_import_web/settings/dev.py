"""
Development settings for SEO Import Web.

DATABASE_URL may point at any database; a local SQLite file is used otherwise.
"""

import os

import dj_database_url

from .base import *

DEBUG = True

ALLOWED_HOSTS = ['localhost', '127.0.0.1', 'testserver']

DATABASES = {
    'default': dj_database_url.config(default=f"sqlite:///{BASE_DIR / 'db.sqlite3'}")
}

STORAGES = {
    **STORAGES,
    'staticfiles': {
        'BACKEND': 'django.contrib.staticfiles.storage.StaticFilesStorage',
    },
}

LOGGING['loggers']['content_import']['level'] = os.environ.get('SEO_IMPORT_LOG_LEVEL', 'DEBUG')
