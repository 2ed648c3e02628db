"""
WSGI config for SEO Import Web.
"""

import os

from django.core.wsgi import get_wsgi_application

os.environ.setdefault('DJANGO_SETTINGS_MODULE', 'seo_import_web.settings.dev')

application = get_wsgi_application()
