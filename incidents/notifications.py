"""Homeroom teacher e-mail notifications. Best effort: failures are logged."""
import logging

from django.conf import settings
from django.core.mail import send_mail

logger = logging.getLogger(__name__)


def build_message(student_name, class_name, submitter_email, level, category, location,
                  action_taken="", note=""):
    subject = f"[TrackTally] Incident logged for {student_name}"
    lines = [
        f"Student: {student_name} ({class_name})",
        f"Logged by: {submitter_email}",
        f"Level: {level}",
        f"Category: {category}",
        f"Location: {location}",
    ]
    if action_taken:
        lines.append(f"Action taken: {action_taken}")
    if note:
        lines.extend(["", "Note:", note])
    return subject, "\n".join(lines)


def notify_homeroom_teacher(student, submitter_email, data):
    """
    Mail the student's homeroom teacher unless they logged the record.

    Returns True when a message was handed to the mail backend.
    """
    if not settings.NOTIFICATIONS_ENABLED or student is None or student.classroom is None:
        return False
    homeroom = student.classroom.homeroom_teacher
    if homeroom is None or not homeroom.email:
        return False
    if homeroom.email.lower() == submitter_email.lower():
        return False

    student_name = f"{student.first_name or data['student_name']} {student.last_name}".strip()
    subject, body = build_message(
        student_name=student_name,
        class_name=student.classroom.name or data.get("class_code") or "Class",
        submitter_email=submitter_email,
        level=data["level"],
        category=data["category"],
        location=data["location"],
        action_taken=data.get("action_taken", ""),
        note=data.get("note", ""),
    )
    try:
        send_mail(subject, body, settings.DEFAULT_FROM_EMAIL, [homeroom.email])
    except Exception:
        logger.exception("Failed to send notification email",
                         extra={"event": "notification_failed", "teacher_email": homeroom.email})
        return False
    return True
