"""
WSGI config for the Django application.

Provided as a fallback for traditional WSGI deployments.
"""

import os

from django.core.wsgi import get_wsgi_application

os.environ.setdefault("DJANGO_SETTINGS_MODULE", "config.settings")

application = get_wsgi_application()
