from django.apps import AppConfig


class ComptoirConfig(AppConfig):
    default_auto_field = 'django.db.models.BigAutoField'
    name = 'comptoir'
    verbose_name = 'Comptoir back-office'

    def ready(self):
        import comptoir.signals
