from django.apps import AppConfig


class MoversConfig(AppConfig):
    default_auto_field = 'django.db.models.BigAutoField'
    name = 'movers'
