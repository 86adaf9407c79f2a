"""
Celery configuration for the chat service.

Celery runs the post-commit side effects of chat writes (media blob cleanup)
outside the request cycle, so a slow or unavailable blob store can never
block or fail a message or conversation delete.

Tasks are auto-discovered from all installed Django apps.

Usage:
    from chat.tasks import delete_chat_media

    delete_chat_media.delay(["chat/conversations/<id>/messages/<id>/a.png"])

For more information, see:
https://docs.celeryq.dev/en/stable/django/first-steps-with-django.html
"""

import os

from celery import Celery

# Set the default Django settings module for the Celery worker
os.environ.setdefault("DJANGO_SETTINGS_MODULE", "config.settings")

app = Celery("config")

# All Celery settings are prefixed with CELERY_ in settings.py
app.config_from_object("django.conf:settings", namespace="CELERY")

app.autodiscover_tasks()
