"""WSGI entrypoint for CourierHub."""

import os

from django.core.wsgi import get_wsgi_application

os.environ.setdefault("DJANGO_SETTINGS_MODULE", "courierhub.settings")

application = get_wsgi_application()
