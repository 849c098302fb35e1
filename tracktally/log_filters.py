"""Logging filters attached to the console handler."""
import logging
import re

EMAIL_RE = re.compile(r"([A-Za-z0-9._%+-])[A-Za-z0-9._%+-]*@([A-Za-z0-9.-]+\.[A-Za-z]{2,})")

# Record attributes that never leave the process.
PII_ATTRIBUTES = frozenset([
    "email",
    "teacher_email",
    "note",
    "guardians",
    "token",
    "password",
    "secret",
    "session_key",
])


def mask_emails(text):
    """``jane.doe@school.edu`` -> ``j***@school.edu``."""
    return EMAIL_RE.sub(r"\1***@\2", text)


class RedactPIIFilter(logging.Filter):
    """Strip PII-bearing extras and mask e-mail addresses in messages."""

    def filter(self, record):
        for attr in PII_ATTRIBUTES:
            if attr in record.__dict__:
                delattr(record, attr)
        try:
            message = record.getMessage()
        except (TypeError, ValueError):
            return True
        masked = mask_emails(message)
        if masked != message:
            record.msg = masked
            record.args = None
        return True
