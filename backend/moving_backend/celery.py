# moving_backend/celery.py
import os

from celery import Celery

# Point Celery at Django settings
os.environ.setdefault("DJANGO_SETTINGS_MODULE", "moving_backend.settings")

app = Celery("moving_backend")

# Load any CELERY_* settings from Django
app.config_from_object("django.conf:settings", namespace="CELERY")

# Auto-discover tasks.py in installed apps (realtime.tasks)
app.autodiscover_tasks()
