import os
from dotenv import load_dotenv
from urllib.parse import urlparse
from pathlib import Path
from datetime import timedelta

BASE_DIR = Path(__file__).resolve().parent.parent

# .env is the single source of truth for app config, locally and on servers.
load_dotenv(BASE_DIR / ".env", override=True)


def env_bool(name, default=False):
    val = os.environ.get(name)
    if val is None:
        return default
    return str(val).strip().lower() in ("1", "true", "yes", "on")


def env_list(name, default=""):
    return [
        v.strip()
        for v in os.environ.get(name, default).split(",")
        if v.strip()
    ]


SECRET_KEY = os.environ.get("SECRET_KEY", "dev-secret-key")
DEBUG = env_bool("DEBUG", True)
ALLOWED_HOSTS = env_list("ALLOWED_HOSTS", "*")
CSRF_TRUSTED_ORIGINS = env_list("CSRF_TRUSTED_ORIGINS")

INSTALLED_APPS = [
    "django.contrib.admin",
    "django.contrib.auth",
    "django.contrib.contenttypes",
    "django.contrib.sessions",
    "django.contrib.messages",
    "django.contrib.staticfiles",
    # third-party
    "django_rq",
    "anymail",
    "axes",
    # local apps
    "accounts.apps.AccountsConfig",
    "store.apps.StoreConfig",
    "complaints.apps.ComplaintsConfig",
    "triage.apps.TriageConfig",
    "jobs.apps.JobsConfig",
]

AUTH_USER_MODEL = "accounts.User"

AUTHENTICATION_BACKENDS = (
    "axes.backends.AxesStandaloneBackend",
    "accounts.backends.IdentityProviderBackend",
    "django.contrib.auth.backends.ModelBackend",
)

LOGIN_URL = "accounts:login"
LOGIN_REDIRECT_URL = "triage:dashboard"
LOGOUT_REDIRECT_URL = "accounts:login"

PASSWORD_HASHERS = [
    "django.contrib.auth.hashers.Argon2PasswordHasher",
]

AUTH_PASSWORD_VALIDATORS = [
    {
        "NAME": (
            "django.contrib.auth.password_validation."
            "UserAttributeSimilarityValidator"
        )
    },
    {
        "NAME": (
            "django.contrib.auth.password_validation."
            "MinimumLengthValidator"
        ),
        "OPTIONS": {"min_length": 8},
    },
    {
        "NAME": (
            "django.contrib.auth.password_validation."
            "CommonPasswordValidator"
        )
    },
    {
        "NAME": (
            "django.contrib.auth.password_validation."
            "NumericPasswordValidator"
        )
    },
]

MIDDLEWARE = [
    "django.middleware.security.SecurityMiddleware",
    "django.contrib.sessions.middleware.SessionMiddleware",
    "django.middleware.common.CommonMiddleware",
    "django.middleware.csrf.CsrfViewMiddleware",
    "django.contrib.auth.middleware.AuthenticationMiddleware",
    "axes.middleware.AxesMiddleware",
    "django.contrib.messages.middleware.MessageMiddleware",
    "django.middleware.clickjacking.XFrameOptionsMiddleware",
    # re-verify admin sessions with the identity provider
    "accounts.middleware.AdminSessionLeaseMiddleware",
]

ROOT_URLCONF = "config.urls"

TEMPLATES = [
    {
        "BACKEND": "django.template.backends.django.DjangoTemplates",
        "DIRS": [str(BASE_DIR / "templates")],
        "APP_DIRS": True,
        "OPTIONS": {
            "context_processors": [
                "django.template.context_processors.debug",
                "django.template.context_processors.request",
                "django.contrib.auth.context_processors.auth",
                "django.contrib.messages.context_processors.messages",
            ],
        },
    }
]

WSGI_APPLICATION = "config.wsgi.application"

# The local database only holds admin users, sessions and lockout records.
# Complaints live in the hosted document store.
_DB_NAME = os.environ.get("DB_NAME")
if _DB_NAME:
    DATABASES = {
        "default": {
            "ENGINE": "django.db.backends.postgresql",
            "NAME": _DB_NAME,
            "USER": os.environ.get("DB_USER", ""),
            "PASSWORD": os.environ.get("DB_PASSWORD", ""),
            "HOST": os.environ.get("DB_HOST", "localhost"),
            "PORT": os.environ.get("DB_PORT", "5432"),
            "OPTIONS": (
                {"sslmode": os.environ.get("DB_SSLMODE", "")}
                if os.environ.get("DB_SSLMODE")
                else {}
            ),
        }
    }
else:
    DATABASES = {
        "default": {
            "ENGINE": "django.db.backends.sqlite3",
            "NAME": str(BASE_DIR / "db.sqlite3"),
        }
    }

CACHES = {
    "default": {
        "BACKEND": "django.core.cache.backends.locmem.LocMemCache",
        "LOCATION": "campusshield-cache",
    }
}

LANGUAGE_CODE = "en-us"
TIME_ZONE = os.environ.get("TIME_ZONE", "UTC")
USE_I18N = True
USE_TZ = True

STATIC_URL = "/static/"
STATICFILES_DIRS = [BASE_DIR / "static"]
STATIC_ROOT = BASE_DIR / "static_build"
DEFAULT_AUTO_FIELD = "django.db.models.BigAutoField"

SESSION_COOKIE_AGE = 60 * 60 * 8
SESSION_COOKIE_SAMESITE = "Lax"
SESSION_EXPIRE_AT_BROWSER_CLOSE = True
if not DEBUG:
    SESSION_COOKIE_SECURE = True
    CSRF_COOKIE_SECURE = True

SECURE_SSL_REDIRECT = env_bool("SECURE_SSL_REDIRECT", False)
_hsts = os.environ.get("SECURE_HSTS_SECONDS")
SECURE_HSTS_SECONDS = int(_hsts) if (_hsts and _hsts.isdigit()) else 0
if env_bool("SECURE_HSTS_INCLUDE_SUBDOMAINS", False):
    SECURE_HSTS_INCLUDE_SUBDOMAINS = True
if env_bool("SECURE_HSTS_PRELOAD", False):
    SECURE_HSTS_PRELOAD = True
if env_bool("USE_X_FORWARDED_PROTO", False):
    SECURE_PROXY_SSL_HEADER = ("HTTP_X_FORWARDED_PROTO", "https")

RQ_QUEUES = {
    "default": {
        "HOST": os.environ.get("REDIS_HOST", "localhost"),
        "PORT": int(os.environ.get("REDIS_PORT", "6379")),
        "DB": 0,
        "DEFAULT_TIMEOUT": 120,
    },
}
# When false the timeline backfill is written inline instead of via RQ.
TIMELINE_BACKFILL_ASYNC = env_bool("TIMELINE_BACKFILL_ASYNC", True)

# Email backend (Anymail if configured; fallback to console for dev)
SENDGRID_API_KEY = os.environ.get("SENDGRID_API_KEY")
if SENDGRID_API_KEY:
    ANYMAIL = {"SENDGRID_API_KEY": SENDGRID_API_KEY}
    EMAIL_BACKEND = "anymail.backends.sendgrid.EmailBackend"
else:
    EMAIL_BACKEND = "django.core.mail.backends.console.EmailBackend"
DEFAULT_FROM_EMAIL = os.environ.get(
    "DEFAULT_FROM_EMAIL", "CampusShield <no-reply@campusshield.local>"
)
SERVER_EMAIL = os.environ.get("SERVER_EMAIL", DEFAULT_FROM_EMAIL)
_admin_emails = os.environ.get("ADMIN_EMAILS", "")
_admin_name = os.environ.get("ADMIN_NAME", "Admin")
ADMINS = [
    (_admin_name, e.strip())
    for e in _admin_emails.split(",")
    if e.strip()
]

# Hosted document store (Firestore REST)
FIRESTORE_PROJECT_ID = os.environ.get("FIRESTORE_PROJECT_ID", "")
FIRESTORE_DATABASE = os.environ.get("FIRESTORE_DATABASE", "(default)")
FIRESTORE_BASE_URL = os.environ.get(
    "FIRESTORE_BASE_URL", "https://firestore.googleapis.com/v1"
)
COMPLAINTS_COLLECTION = os.environ.get("COMPLAINTS_COLLECTION", "complaints")
STORE_TIMEOUT_SECONDS = int(os.environ.get("STORE_TIMEOUT_SECONDS", "20"))
# Optional service user; when unset the store is called without a bearer token
STORE_SERVICE_EMAIL = os.environ.get("STORE_SERVICE_EMAIL", "")
STORE_SERVICE_PASSWORD = os.environ.get("STORE_SERVICE_PASSWORD", "")

# Hosted identity provider (Firebase Auth REST)
FIREBASE_API_KEY = os.environ.get("FIREBASE_API_KEY", "")
IDENTITY_TOOLKIT_URL = os.environ.get(
    "IDENTITY_TOOLKIT_URL", "https://identitytoolkit.googleapis.com/v1"
)
SECURE_TOKEN_URL = os.environ.get(
    "SECURE_TOKEN_URL", "https://securetoken.googleapis.com/v1"
)
ADMIN_SESSION_TTL_SECONDS = int(
    os.environ.get("ADMIN_SESSION_TTL_SECONDS", "3600")
)
# Empty means every provider account may use the triage dashboard
TRIAGE_ALLOWED_EMAILS = [e.lower() for e in env_list("TRIAGE_ALLOWED_EMAILS")]

# Hosted upload endpoint (Cloudinary unsigned uploads)
CLOUDINARY_CLOUD_NAME = os.environ.get("CLOUDINARY_CLOUD_NAME", "")
CLOUDINARY_UPLOAD_PRESET = os.environ.get("CLOUDINARY_UPLOAD_PRESET", "")
CLOUDINARY_UPLOAD_URL = os.environ.get(
    "CLOUDINARY_UPLOAD_URL", "https://api.cloudinary.com/v1_1"
)
MAX_ATTACHMENT_BYTES = int(
    os.environ.get("MAX_ATTACHMENT_BYTES", str(10 * 1024 * 1024))
)
# Attachments are streamed to the upload endpoint, keep them in memory
FILE_UPLOAD_MAX_MEMORY_SIZE = MAX_ATTACHMENT_BYTES
DATA_UPLOAD_MAX_MEMORY_SIZE = MAX_ATTACHMENT_BYTES + 1024 * 1024

# Site URL for building absolute links
SITE_URL = os.environ.get("SITE_URL", "http://localhost:8000")

# Ensure SITE_URL host/origin are whitelisted even if env lists are missing
try:
    _parsed_site = urlparse(SITE_URL)
    _site_host = _parsed_site.hostname
    _site_origin = f"{_parsed_site.scheme}://{_parsed_site.hostname}"
    if _parsed_site.port and _parsed_site.port not in (80, 443):
        _site_origin = f"{_parsed_site.scheme}://{_parsed_site.hostname}:{_parsed_site.port}"
    if _site_host and _site_host not in ALLOWED_HOSTS:
        ALLOWED_HOSTS.append(_site_host)
    if _parsed_site.scheme in ("http", "https") and _site_origin not in CSRF_TRUSTED_ORIGINS:
        CSRF_TRUSTED_ORIGINS.append(_site_origin)
except ValueError:
    pass

LOG_LEVEL = os.environ.get("LOG_LEVEL", "INFO")

LOGGING = {
    "version": 1,
    "disable_existing_loggers": False,
    "formatters": {
        "simple": {
            "format": "%(asctime)s %(levelname)s %(name)s: %(message)s",
        },
    },
    "handlers": {
        "console": {
            "class": "logging.StreamHandler",
            "formatter": "simple",
        },
        "mail_admins": {
            "level": "ERROR",
            "class": "django.utils.log.AdminEmailHandler",
        },
    },
    "loggers": {
        "django.request": {
            "handlers": ["mail_admins"],
            "level": "ERROR",
            "propagate": True,
        },
        "django.security": {
            "handlers": ["mail_admins"],
            "level": "ERROR",
            "propagate": True,
        },
        "django.security.DisallowedHost": {
            "handlers": [],
            "level": "CRITICAL",
            "propagate": False,
        },
        "accounts": {"handlers": ["console"], "level": LOG_LEVEL},
        "store": {"handlers": ["console"], "level": LOG_LEVEL},
        "complaints": {"handlers": ["console"], "level": LOG_LEVEL},
        "triage": {"handlers": ["console"], "level": LOG_LEVEL},
        "jobs": {"handlers": ["console"], "level": LOG_LEVEL},
    },
}

AXES_ENABLED = env_bool("AXES_ENABLED", True)
AXES_FAILURE_LIMIT = 5
AXES_COOLOFF_TIME = timedelta(minutes=15)
AXES_LOCK_OUT_AT_FAILURE = True
AXES_LOCKOUT_PARAMETERS = [["username", "ip_address"]]
AXES_RESET_ON_SUCCESS = True
AXES_LOCKOUT_TEMPLATE = "accounts/lockout.html"
