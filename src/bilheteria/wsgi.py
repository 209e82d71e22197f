"""WSGI config for bilheteria project."""

import os

from django.core.wsgi import get_wsgi_application

os.environ.setdefault("DJANGO_SETTINGS_MODULE", "bilheteria.settings")

application = get_wsgi_application()
