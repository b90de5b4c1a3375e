"""
WSGI config for the dailycollect project.
"""

import os

from django.core.wsgi import get_wsgi_application

os.environ.setdefault('DJANGO_SETTINGS_MODULE', 'dailycollect.settings')

application = get_wsgi_application()
