from tracktally.settings import *  # noqa: F401,F403

SECRET_KEY = "test-secret-key"
DEBUG = False
SECURE_SSL_REDIRECT = False

DATABASES = {
    "default": {
        "ENGINE": "django.db.backends.sqlite3",
        "NAME": ":memory:",
    }
}

CACHES = {
    "default": {
        "BACKEND": "django.core.cache.backends.locmem.LocMemCache",
        "LOCATION": "tracktally-tests",
    }
}

STORAGES = {
    "default": {"BACKEND": "django.core.files.storage.FileSystemStorage"},
    "staticfiles": {"BACKEND": "django.contrib.staticfiles.storage.StaticFilesStorage"},
}

PASSWORD_HASHERS = ["django.contrib.auth.hashers.MD5PasswordHasher"]

ALLOWED_GOOGLE_DOMAINS = ["springfield.edu.au", "shelbyville.edu.au"]
ADMIN_EMAILS = ["principal@springfield.edu.au"]
SUPER_ADMIN_EMAILS = ["ops@tracktally.app"]
EXCEPTION_EMAILS = ["relief.teacher@gmail.com"]

GOOGLE_CLIENT_ID = "test-client-id"
GOOGLE_CLIENT_SECRET = "test-client-secret"
MISSING_AUTH_ENV = []
PUBLIC_BASE_URL = "https://app.tracktally.test"

EMAIL_BACKEND = "django.core.mail.backends.locmem.EmailBackend"
DEFAULT_FROM_EMAIL = "noreply@tracktally.app"
NOTIFICATIONS_ENABLED = True

INCIDENT_MIRROR_BACKEND = "tests.fakes.RecordingMirror"

LOGGING = {
    "version": 1,
    "disable_existing_loggers": False,
}
