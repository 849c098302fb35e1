"""Delete incidents older than the configured retention window (cron)."""
from django.core.management.base import BaseCommand

from incidents.retention import enforcer


class Command(BaseCommand):
    help = "Run the incident retention sweep now, ignoring the in-process throttle."

    def handle(self, *args, **options):
        days = enforcer.get_retention_days(force=True)
        deleted = enforcer.enforce(force=True)
        self.stdout.write(self.style.SUCCESS(
            f"Removed {deleted} incident(s) older than {days} day(s)."
        ))
