"""WSGI entry point for CampusShield."""
import os
from pathlib import Path
from dotenv import load_dotenv
from django.core.wsgi import get_wsgi_application

BASE_DIR = Path(__file__).resolve().parent.parent
# same .env precedence as settings.py and manage.py
load_dotenv(dotenv_path=BASE_DIR / ".env", override=True)

os.environ.setdefault("DJANGO_SETTINGS_MODULE", "config.settings")
application = get_wsgi_application()
