"""
Delete expired mobile sign-in tickets. Run from cron:

    */15 * * * * python manage.py prune_auth_tickets
"""
from django.core.management.base import BaseCommand

from accounts.mobile_auth import prune_expired_tickets


class Command(BaseCommand):
    help = "Delete expired mobile auth tickets in batches."

    def add_arguments(self, parser):
        parser.add_argument("--limit", type=int, default=100, help="Tickets deleted per batch")

    def handle(self, *args, **options):
        limit = max(options["limit"], 1)
        total = 0
        while True:
            deleted = prune_expired_tickets(limit=limit)
            total += deleted
            if deleted < limit:
                break
        self.stdout.write(self.style.SUCCESS(f"Pruned {total} expired ticket(s)."))
