"""Client-side offline submission queue for TrackTally incidents."""
from .queue import FlushResult, OfflineQueue, SubmissionQueue
from .sender import IncidentSender, SubmissionError

__all__ = [
    "FlushResult",
    "IncidentSender",
    "OfflineQueue",
    "SubmissionError",
    "SubmissionQueue",
]
