"""
Durable offline queue.

Submissions are stored in a local SQLite file keyed by incident uuid, so a
payload enqueued twice is kept once. ``flush`` removes an entry only after
the sender returned without raising; everything else stays queued with no
retry cap. Flushes are triggered by events (startup, back online, app
visible), never by a timer.
"""
import json
import logging
import sqlite3
import threading
import uuid
from contextlib import contextmanager
from dataclasses import dataclass

from .sender import SubmissionError

logger = logging.getLogger(__name__)

SCHEMA = """
CREATE TABLE IF NOT EXISTS incidents (
    uuid TEXT PRIMARY KEY,
    payload TEXT NOT NULL,
    queued_at REAL NOT NULL DEFAULT (julianday('now'))
)
"""


@dataclass(frozen=True)
class FlushResult:
    flushed: int = 0
    failed: int = 0


class OfflineQueue:

    def __init__(self, path):
        self.path = str(path)
        self._lock = threading.Lock()
        with self._connect() as conn:
            conn.execute(SCHEMA)

    @contextmanager
    def _connect(self):
        conn = sqlite3.connect(self.path)
        try:
            with conn:
                yield conn
        finally:
            conn.close()

    def enqueue(self, incident):
        """Store (or replace) a payload under its uuid. Returns the uuid."""
        payload = dict(incident)
        if not payload.get("uuid"):
            payload["uuid"] = str(uuid.uuid4())
        with self._lock, self._connect() as conn:
            conn.execute(
                "INSERT INTO incidents (uuid, payload) VALUES (?, ?) "
                "ON CONFLICT(uuid) DO UPDATE SET payload = excluded.payload",
                (payload["uuid"], json.dumps(payload)),
            )
        return payload["uuid"]

    def count(self):
        with self._connect() as conn:
            return conn.execute("SELECT COUNT(*) FROM incidents").fetchone()[0]

    def pending(self):
        """Queued payloads, oldest first."""
        with self._connect() as conn:
            rows = conn.execute("SELECT payload FROM incidents ORDER BY queued_at, rowid").fetchall()
        return [json.loads(row[0]) for row in rows]

    def remove(self, incident_uuid):
        with self._lock, self._connect() as conn:
            conn.execute("DELETE FROM incidents WHERE uuid = ?", (incident_uuid,))

    def flush(self, sender):
        flushed = failed = 0
        for payload in self.pending():
            try:
                sender(payload)
            except Exception as exc:
                failed += 1
                logger.warning("Queued incident not sent: %s", exc)
                continue
            self.remove(payload["uuid"])
            flushed += 1
        return FlushResult(flushed=flushed, failed=failed)

    def clear(self):
        with self._lock, self._connect() as conn:
            conn.execute("DELETE FROM incidents")


class SubmissionQueue:
    """Send-or-queue front end used by the logging app."""

    def __init__(self, queue, sender):
        self.queue = queue
        self.sender = sender

    def submit(self, incident):
        """
        Try to send now. Returns True when sent, False when queued.

        Validation and permission errors are raised: retrying them would
        never succeed.
        """
        payload = dict(incident)
        if not payload.get("uuid"):
            payload["uuid"] = str(uuid.uuid4())
        try:
            self.sender(payload)
        except SubmissionError as exc:
            if not exc.retryable:
                raise
            self.queue.enqueue(payload)
            logger.info("Incident queued for later delivery (%s)", exc.message)
            return False
        return True

    def flush(self):
        return self.queue.flush(self.sender)

    def on_startup(self):
        return self.flush()

    def on_online(self):
        return self.flush()

    def on_visible(self):
        return self.flush()

    @property
    def count(self):
        return self.queue.count()
