"""
URL Configuration for the CSV import endpoints.

Add to your project's urls.py (before the Wagtail catch-all):
    path('seo-import/', include('content_import.urls')),
"""

from django.urls import path
from . import views


app_name = 'content_import'

urlpatterns = [
    path('fields/',
         views.field_mappings_view,
         name='fields'),
    path('preview/',
         views.preview_view,
         name='preview'),
    path('import/',
         views.import_view,
         name='import'),
]
