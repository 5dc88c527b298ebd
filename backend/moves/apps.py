"""Moves app configuration."""

from django.apps import AppConfig


class MovesConfig(AppConfig):
    default_auto_field = 'django.db.models.BigAutoField'
    name = 'moves'
