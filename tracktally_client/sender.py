"""HTTP sender for incident submissions."""
import logging

import httpx

logger = logging.getLogger(__name__)

SUBMIT_PATH = "/api/log-incident/"
SESSION_COOKIE_NAME = "__Secure-tracktally.session"


class SubmissionError(Exception):
    """
    A submission the server did not accept.

    ``status`` is None when the request never reached the server.
    """

    def __init__(self, message, status=None):
        super().__init__(message)
        self.message = message
        self.status = status

    @property
    def retryable(self):
        return self.status is None or self.status == 429 or self.status >= 500


class IncidentSender:
    """Posts incident payloads with the signed-in browser session cookie."""

    def __init__(self, base_url, session_cookie, cookie_name=SESSION_COOKIE_NAME,
                 timeout=10.0, transport=None):
        self.client = httpx.Client(
            base_url=base_url.rstrip("/"),
            cookies={cookie_name: session_cookie},
            timeout=timeout,
            transport=transport,
        )

    def __call__(self, payload):
        self.send(payload)

    def send(self, payload):
        try:
            response = self.client.post(SUBMIT_PATH, json=payload)
        except httpx.HTTPError as exc:
            raise SubmissionError(str(exc) or "Network error while sending incident.") from exc

        if response.is_success:
            return
        message = "Failed to send incident"
        try:
            data = response.json()
        except ValueError:
            data = None
        if isinstance(data, dict) and data.get("error"):
            message = data["error"]
        raise SubmissionError(message, status=response.status_code)

    def close(self):
        self.client.close()
