import logging

from django.apps import AppConfig
from django.conf import settings

logger = logging.getLogger(__name__)


class AccountsConfig(AppConfig):
    name = "accounts"
    default_auto_field = "django.db.models.BigAutoField"

    def ready(self):
        if settings.MISSING_AUTH_ENV:
            logger.warning(
                "TrackTally authentication disabled. Missing env vars: %s",
                ", ".join(settings.MISSING_AUTH_ENV),
                extra={"event": "auth_not_configured"},
            )
