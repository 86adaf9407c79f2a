"""
ASGI config for the chat service.

Exposes the ASGI callable as a module-level variable named `application`.
Chat services are synchronous ORM code; under ASGI Django runs them in its
thread pool (sync_to_async), so each request's database calls are the
suspension points and requests are served concurrently.

For more information on this file, see:
https://docs.djangoproject.com/en/5.2/howto/deployment/asgi/
"""

import os

from django.core.asgi import get_asgi_application

os.environ.setdefault("DJANGO_SETTINGS_MODULE", "config.settings")

application = get_asgi_application()
