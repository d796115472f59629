"""
WSGI config for FreelaOS.
"""
import os

from django.core.wsgi import get_wsgi_application

os.environ.setdefault('DJANGO_SETTINGS_MODULE', 'freelaos_central.settings')

application = get_wsgi_application()
