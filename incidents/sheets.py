"""
Google Sheets mirror of incident records.

Two sheets, ``Incidents`` and ``Commendations``, share one fixed 12-column
layout (``SHEET_COLUMNS``). Column order is consumed by existing reports
and must not change.
"""
import logging
import threading

from django.conf import settings
from django.utils.module_loading import import_string
from google.auth.exceptions import GoogleAuthError
from google.oauth2 import service_account
from googleapiclient.discovery import build
from googleapiclient.errors import HttpError

logger = logging.getLogger(__name__)

SCOPES = ["https://www.googleapis.com/auth/spreadsheets"]
TOKEN_URI = "https://oauth2.googleapis.com/token"

INCIDENTS_SHEET = "Incidents"
COMMENDATIONS_SHEET = "Commendations"

SHEET_COLUMNS = [
    "timestamp", "studentId", "studentName", "level", "category", "location",
    "actionTaken", "note", "teacherEmail", "classCode", "device", "uuid",
]


class MirrorWriteError(Exception):
    pass


def sheet_for_type(record_type):
    return COMMENDATIONS_SHEET if record_type == "commendation" else INCIDENTS_SHEET


def _error_message(exc):
    if isinstance(exc, HttpError):
        return getattr(exc, "reason", None) or str(exc)
    return str(exc) or "Failed to log incident."


# ----- service cache --------------------------------------------------------

_service_cache = {}
_service_cache_lock = threading.Lock()


def _sheets_service(client_email, private_key):
    key = (client_email, private_key)
    with _service_cache_lock:
        svc = _service_cache.get(key)
        if svc is not None:
            return svc
        creds = service_account.Credentials.from_service_account_info(
            {
                "type": "service_account",
                "client_email": client_email,
                "private_key": private_key.replace("\\n", "\n"),
                "token_uri": TOKEN_URI,
            },
            scopes=SCOPES,
        )
        svc = build("sheets", "v4", credentials=creds, cache_discovery=False)
        _service_cache[key] = svc
        return svc


class GoogleSheetsMirror:
    """Append-only mirror backed by the Sheets v4 values API."""

    def __init__(self, sheet_id=None, client_email=None, private_key=None):
        self.sheet_id = sheet_id if sheet_id is not None else settings.SHEET_ID
        self.client_email = (
            client_email if client_email is not None else settings.GOOGLE_SERVICE_ACCOUNT_EMAIL
        )
        self.private_key = (
            private_key if private_key is not None else settings.GOOGLE_SERVICE_ACCOUNT_PRIVATE_KEY
        )

    def missing_configuration(self):
        """Names of the credentials that are not set."""
        return [
            name for name, value in (
                ("SHEET_ID", self.sheet_id),
                ("GOOGLE_SERVICE_ACCOUNT_EMAIL", self.client_email),
                ("GOOGLE_SERVICE_ACCOUNT_PRIVATE_KEY", self.private_key),
            )
            if not value
        ]

    def _service(self):
        missing = self.missing_configuration()
        if missing:
            raise MirrorWriteError(f"Sheets credentials missing: {', '.join(missing)}")
        if "BEGIN PRIVATE KEY" not in self.private_key:
            raise MirrorWriteError("GOOGLE_SERVICE_ACCOUNT_PRIVATE_KEY appears malformed.")
        try:
            return _sheets_service(self.client_email, self.private_key)
        except (GoogleAuthError, ValueError) as exc:
            raise MirrorWriteError(_error_message(exc)) from exc

    def append(self, sheet, row):
        values = self._service().spreadsheets().values()
        try:
            values.append(
                spreadsheetId=self.sheet_id,
                range=f"{sheet}!A:L",
                valueInputOption="USER_ENTERED",
                body={"values": [list(row)]},
            ).execute()
        except (HttpError, GoogleAuthError, OSError) as exc:
            logger.error("Sheets append failed", extra={"event": "mirror_append_failed",
                                                        "sheet": sheet, "detail": _error_message(exc)})
            raise MirrorWriteError(_error_message(exc)) from exc

    def read_rows(self, sheet):
        values = self._service().spreadsheets().values()
        try:
            result = values.get(spreadsheetId=self.sheet_id, range=f"{sheet}!A:L").execute()
        except (HttpError, GoogleAuthError, OSError) as exc:
            raise MirrorWriteError(_error_message(exc)) from exc
        return result.get("values", [])

    def check(self):
        try:
            self._service().spreadsheets().get(
                spreadsheetId=self.sheet_id, fields="spreadsheetId"
            ).execute()
        except (HttpError, GoogleAuthError, OSError) as exc:
            raise MirrorWriteError(_error_message(exc)) from exc


def get_mirror():
    return import_string(settings.INCIDENT_MIRROR_BACKEND)()
