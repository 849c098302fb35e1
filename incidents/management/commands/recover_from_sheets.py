"""
Rebuild a school's incident table from the spreadsheet mirror.

Usage:
    python manage.py recover_from_sheets --domain springfield.edu.au

Rows whose uuid already exists are skipped, so the command is safe to re-run.
"""
from django.core.management.base import BaseCommand, CommandError

from incidents.recovery import recover_organization
from incidents.sheets import MirrorWriteError, get_mirror
from organizations.services import get_organization_by_domain


class Command(BaseCommand):
    help = "Re-import mirrored incident rows for one organization."

    def add_arguments(self, parser):
        parser.add_argument("--domain", required=True, help="Organization domain to import into")

    def handle(self, *args, **options):
        domain = options["domain"].lower().strip()
        organization = get_organization_by_domain(domain)
        if organization is None:
            raise CommandError(f"No organization with domain {domain}.")

        mirror = get_mirror()
        missing = mirror.missing_configuration()
        if missing:
            raise CommandError(f"Sheets credentials missing: {', '.join(missing)}")

        self.stdout.write(f"Reading mirror rows for {organization.domain}...")
        try:
            report = recover_organization(mirror, organization)
        except MirrorWriteError as exc:
            raise CommandError(f"Could not read the spreadsheet: {exc}")

        self.stdout.write(self.style.SUCCESS(
            f"Imported {report.imported}, skipped {report.skipped}, errors {report.errors}."
        ))
