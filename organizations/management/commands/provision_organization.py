"""
Management command to provision a new school.

Usage:
    python manage.py provision_organization \\
        --name "Springfield Primary" \\
        --domain springfield.edu.au \\
        --admin-email principal@springfield.edu.au

This will:
1. Create the Organization record with the default incident options
2. Pre-create the initial admin account bound to it (optional)

Staff sign in with Google; the admin account is picked up on first sign-in.
"""
from django.core.management.base import BaseCommand, CommandError

from accounts.models import Teacher
from organizations.exceptions import OrganizationError
from organizations.services import create_organization


class Command(BaseCommand):
    help = "Provision a new organization and, optionally, its first admin account."

    def add_arguments(self, parser):
        parser.add_argument("--name", required=True, help="School display name")
        parser.add_argument("--domain", required=True, help="Google Workspace domain (e.g. springfield.edu.au)")
        parser.add_argument("--admin-email", required=False, help="Initial admin account email")
        parser.add_argument("--admin-name", default="", help="Admin display name")

    def handle(self, *args, **options):
        name = options["name"].strip()
        domain = options["domain"].lower().strip()
        admin_email = (options.get("admin_email") or "").lower().strip()

        if admin_email and not admin_email.endswith(f"@{domain}"):
            raise CommandError(f"Admin email must belong to {domain}.")

        self.stdout.write(f"Creating organization '{name}' ({domain})...")
        try:
            org = create_organization(name, domain)
        except OrganizationError as exc:
            raise CommandError(str(exc))
        self.stdout.write(self.style.SUCCESS(f"Organization {org.domain} created (id {org.id})."))

        if admin_email:
            if Teacher.objects.filter(email=admin_email).exists():
                raise CommandError(f"Account {admin_email} already exists.")
            Teacher.objects.create_user(
                email=admin_email,
                role=Teacher.Role.ADMIN,
                organization=org,
                display_name=options["admin_name"],
            )
            self.stdout.write(self.style.SUCCESS(f"Admin account {admin_email} created in '{name}'."))

        self.stdout.write(
            "\n"
            "NEXT STEPS:\n"
            f"  1. Add {domain} to ALLOWED_GOOGLE_DOMAIN\n"
            "  2. Share the incident spreadsheet with the service account\n"
        )
