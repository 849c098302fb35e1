"""
Django settings for the TrackTally multi-tenant behaviour tracker.
"""
import os
from pathlib import Path
from dotenv import load_dotenv

load_dotenv()

BASE_DIR = Path(__file__).resolve().parent.parent


def _env_list(name, default=""):
    """Comma-separated env var -> list of lower-cased, non-empty values."""
    return [
        value.strip().lower()
        for value in os.environ.get(name, default).split(",")
        if value.strip()
    ]


def _env_bool(name, default="False"):
    return os.environ.get(name, default).lower() in ("true", "1", "yes")


SECRET_KEY = os.environ.get("DJANGO_SECRET_KEY", "insecure-dev-key-change-me")
DEBUG = _env_bool("DJANGO_DEBUG")
ALLOWED_HOSTS = [
    h.strip()
    for h in os.environ.get("DJANGO_ALLOWED_HOSTS", ".tracktally.app,localhost").split(",")
]

INSTALLED_APPS = [
    "django.contrib.admin",
    "django.contrib.auth",
    "django.contrib.contenttypes",
    "django.contrib.sessions",
    "django.contrib.messages",
    "django.contrib.staticfiles",
    "organizations",
    "accounts",
    "roster",
    "incidents",
    "dashboard",
    "auditlog",
]

MIDDLEWARE = [
    "django.middleware.security.SecurityMiddleware",
    "whitenoise.middleware.WhiteNoiseMiddleware",
    "django.contrib.sessions.middleware.SessionMiddleware",
    "django.middleware.common.CommonMiddleware",
    "django.middleware.csrf.CsrfViewMiddleware",
    "django.contrib.auth.middleware.AuthenticationMiddleware",
    "django.contrib.messages.middleware.MessageMiddleware",
    "django.middleware.clickjacking.XFrameOptionsMiddleware",
    "django_ratelimit.middleware.RatelimitMiddleware",
]

ROOT_URLCONF = "tracktally.urls"

TEMPLATES = [
    {
        "BACKEND": "django.template.backends.django.DjangoTemplates",
        "DIRS": [],
        "APP_DIRS": True,
        "OPTIONS": {
            "context_processors": [
                "django.template.context_processors.request",
                "django.contrib.auth.context_processors.auth",
                "django.contrib.messages.context_processors.messages",
            ],
        },
    },
]

WSGI_APPLICATION = "tracktally.wsgi.application"

# ---------------------------------------------------------------------------
# Database – single Postgres, row-level tenant isolation by organization_id
# ---------------------------------------------------------------------------
DATABASES = {
    "default": {
        "ENGINE": "django.db.backends.postgresql",
        "NAME": os.environ.get("DATABASE_NAME", "tracktally"),
        "USER": os.environ.get("DATABASE_USER", "tracktally"),
        "PASSWORD": os.environ.get("DATABASE_PASSWORD", ""),
        "HOST": os.environ.get("DATABASE_HOST", "127.0.0.1"),
        "PORT": os.environ.get("DATABASE_PORT", "5432"),
    }
}

# ---------------------------------------------------------------------------
# Auth – Google OIDC only, accounts are provisioned at first sign-in
# ---------------------------------------------------------------------------
AUTH_USER_MODEL = "accounts.Teacher"
LOGIN_URL = "/auth/login/"
LOGIN_REDIRECT_URL = "/teacher"
LOGOUT_REDIRECT_URL = "/auth/login/"

GOOGLE_CLIENT_ID = os.environ.get("GOOGLE_CLIENT_ID", "")
GOOGLE_CLIENT_SECRET = os.environ.get("GOOGLE_CLIENT_SECRET", "")
GOOGLE_REDIRECT_URI = os.environ.get("GOOGLE_REDIRECT_URI", "")

AUTH_REQUIRED_ENV = ("GOOGLE_CLIENT_ID", "GOOGLE_CLIENT_SECRET")
MISSING_AUTH_ENV = [key for key in AUTH_REQUIRED_ENV if not os.environ.get(key)]

# Empty list means every sign-in is rejected.
ALLOWED_GOOGLE_DOMAINS = _env_list("ALLOWED_GOOGLE_DOMAIN")
ADMIN_EMAILS = _env_list("ADMIN_EMAILS")
SUPER_ADMIN_EMAILS = _env_list("SUPER_ADMIN_EMAILS")
EXCEPTION_EMAILS = _env_list("EXCEPTION_EMAILS")

# ---------------------------------------------------------------------------
# Mobile cross-device sign-in
# ---------------------------------------------------------------------------
MOBILE_AUTH_TOKEN_TTL_MINUTES = max(int(os.environ.get("MOBILE_AUTH_TOKEN_TTL_MINUTES", 5) or 5), 1)
MOBILE_APP_SCHEME = os.environ.get("MOBILE_APP_SCHEME", "tracktally")
PUBLIC_BASE_URL = os.environ.get("PUBLIC_BASE_URL", "").rstrip("/")

# ---------------------------------------------------------------------------
# Sessions & Security
# ---------------------------------------------------------------------------
SESSION_ENGINE = "django.contrib.sessions.backends.db"
SESSION_COOKIE_NAME = "__Secure-tracktally.session" if not DEBUG else "tracktally.session"
SESSION_COOKIE_AGE = int(os.environ.get("SESSION_COOKIE_AGE", 28800))
SESSION_COOKIE_HTTPONLY = True
SESSION_COOKIE_SECURE = not DEBUG
SESSION_COOKIE_SAMESITE = "Lax"
CSRF_COOKIE_HTTPONLY = True
CSRF_COOKIE_SECURE = not DEBUG
CSRF_COOKIE_SAMESITE = "Lax"
CSRF_TRUSTED_ORIGINS = [
    o.strip()
    for o in os.environ.get("CSRF_TRUSTED_ORIGINS", "https://*.tracktally.app").split(",")
]

if not DEBUG:
    SECURE_SSL_REDIRECT = _env_bool("SECURE_SSL_REDIRECT", "True")
    SECURE_PROXY_SSL_HEADER = ("HTTP_X_FORWARDED_PROTO", "https")
    SECURE_HSTS_SECONDS = 31536000
    SECURE_HSTS_INCLUDE_SUBDOMAINS = True
    SECURE_HSTS_PRELOAD = True
    X_FRAME_OPTIONS = "DENY"

# ---------------------------------------------------------------------------
# Email (SMTP) – optional, notifications become no-ops when incomplete
# ---------------------------------------------------------------------------
EMAIL_BACKEND = "django.core.mail.backends.smtp.EmailBackend"
EMAIL_HOST = os.environ.get("SMTP_HOST", "")
EMAIL_PORT = int(os.environ.get("SMTP_PORT", 587) or 587)
EMAIL_HOST_USER = os.environ.get("SMTP_USER", "")
EMAIL_HOST_PASSWORD = os.environ.get("SMTP_PASS", "")
EMAIL_USE_SSL = EMAIL_PORT == 465
EMAIL_USE_TLS = not EMAIL_USE_SSL
EMAIL_TIMEOUT = 10
DEFAULT_FROM_EMAIL = os.environ.get("SMTP_FROM", "")
NOTIFICATIONS_ENABLED = all(
    [EMAIL_HOST, EMAIL_HOST_USER, EMAIL_HOST_PASSWORD, DEFAULT_FROM_EMAIL]
) and not os.environ.get("DISABLE_EMAIL")

# ---------------------------------------------------------------------------
# Spreadsheet mirror (Google Sheets)
# ---------------------------------------------------------------------------
INCIDENT_MIRROR_BACKEND = "incidents.sheets.GoogleSheetsMirror"
SHEET_ID = os.environ.get("SHEET_ID", "")
GOOGLE_SERVICE_ACCOUNT_EMAIL = os.environ.get("GOOGLE_SERVICE_ACCOUNT_EMAIL", "")
GOOGLE_SERVICE_ACCOUNT_PRIVATE_KEY = os.environ.get("GOOGLE_SERVICE_ACCOUNT_PRIVATE_KEY", "")

# ---------------------------------------------------------------------------
# Static files (Django admin only)
# ---------------------------------------------------------------------------
STATIC_URL = "/static/"
STATIC_ROOT = BASE_DIR / "staticfiles"
STORAGES = {
    "default": {
        "BACKEND": "django.core.files.storage.FileSystemStorage",
    },
    "staticfiles": {
        "BACKEND": "whitenoise.storage.CompressedManifestStaticFilesStorage",
    },
}

# ---------------------------------------------------------------------------
# Internationalization
# ---------------------------------------------------------------------------
LANGUAGE_CODE = "en-au"
TIME_ZONE = os.environ.get("TIME_ZONE", "Australia/Melbourne")
USE_I18N = True
USE_TZ = True

DEFAULT_AUTO_FIELD = "django.db.models.BigAutoField"

# ---------------------------------------------------------------------------
# Rate Limiting
# ---------------------------------------------------------------------------
# locmem keeps buckets per process; point this alias at a shared cache
# (Redis, Memcached) to enforce limits across instances.
RATELIMIT_USE_CACHE = "default"
RATELIMIT_VIEW = "tracktally.views.ratelimited"

CACHES = {
    "default": {
        "BACKEND": "django.core.cache.backends.locmem.LocMemCache",
    }
}

RATE_LIMITS = {
    "incident": {"limit": 30, "window": 60 * 60},
    "admin": {"limit": 100, "window": 60 * 60},
}

# ---------------------------------------------------------------------------
# Incident ingestion & retention
# ---------------------------------------------------------------------------
INCIDENT_MAX_BODY_BYTES = 10 * 1024
INCIDENT_RETENTION_DEFAULT_DAYS = 365
INCIDENT_RETENTION_CACHE_SECONDS = 5 * 60
INCIDENT_RETENTION_INTERVAL_SECONDS = 60

# ---------------------------------------------------------------------------
# Pagination
# ---------------------------------------------------------------------------
DEFAULT_PAGE_SIZE = 25
MAX_PAGE_SIZE = 100

# ---------------------------------------------------------------------------
# Logging
# ---------------------------------------------------------------------------
LOGGING = {
    "version": 1,
    "disable_existing_loggers": False,
    "filters": {
        "redact_pii": {
            "()": "tracktally.log_filters.RedactPIIFilter",
        },
    },
    "formatters": {
        "json": {
            "()": "pythonjsonlogger.jsonlogger.JsonFormatter",
            "format": "%(asctime)s %(levelname)s %(name)s %(message)s",
        },
    },
    "handlers": {
        "console": {
            "class": "logging.StreamHandler",
            "formatter": "json",
            "filters": ["redact_pii"],
        },
    },
    "root": {
        "handlers": ["console"],
        "level": os.environ.get("LOG_LEVEL", "INFO").upper(),
    },
    "loggers": {
        "django": {"handlers": ["console"], "level": "WARNING", "propagate": False},
    },
}
