from django.apps import AppConfig


class OrdensConfig(AppConfig):
    default_auto_field = 'django.db.models.BigAutoField'
    name = 'ordens'
    verbose_name = 'Ordens de Serviço'
