"""
WSGI config for the feedsite project.

Exposes the WSGI callable as a module-level variable named ``application``.
gunicorn picks it up through gunicorn.conf.py / ``feedsite.wsgi:application``.
"""

import os

from django.core.wsgi import get_wsgi_application

os.environ.setdefault('DJANGO_SETTINGS_MODULE', 'feedsite.settings')

application = get_wsgi_application()
