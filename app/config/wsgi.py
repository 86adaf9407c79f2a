"""
WSGI config for the chat service.

Threaded WSGI servers (gunicorn with gthread workers) serve chat requests
concurrently; each request runs the synchronous service layer on its own
thread and database connection.

For more information on this file, see:
https://docs.djangoproject.com/en/5.2/howto/deployment/wsgi/
"""

import os

from django.core.wsgi import get_wsgi_application

os.environ.setdefault("DJANGO_SETTINGS_MODULE", "config.settings")

application = get_wsgi_application()
