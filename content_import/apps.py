from django.apps import AppConfig


class ContentImportConfig(AppConfig):
    default_auto_field = 'django.db.models.BigAutoField'
    name = 'content_import'
    verbose_name = 'SEO CSV Import'
