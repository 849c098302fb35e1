import uuid

import django.db.models.deletion
from django.db import migrations, models


class Migration(migrations.Migration):

    initial = True

    dependencies = []

    operations = [
        migrations.CreateModel(
            name="Organization",
            fields=[
                ("id", models.UUIDField(default=uuid.uuid4, editable=False, primary_key=True, serialize=False)),
                ("name", models.CharField(help_text="Display name for the school", max_length=255)),
                ("domain", models.CharField(
                    help_text="Google Workspace domain, stored lower-case", max_length=253, unique=True,
                )),
                ("active", models.BooleanField(default=True)),
                ("lms_provider", models.CharField(
                    blank=True,
                    choices=[("TRACKTALLY", "TrackTally"), ("SIMON", "SIMON")],
                    max_length=20,
                    null=True,
                )),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                ("updated_at", models.DateTimeField(auto_now=True)),
            ],
            options={
                "ordering": ["name"],
            },
        ),
        migrations.CreateModel(
            name="Setting",
            fields=[
                ("key", models.CharField(max_length=191, primary_key=True, serialize=False)),
                ("value", models.JSONField()),
                ("updated_at", models.DateTimeField(auto_now=True)),
                ("organization", models.ForeignKey(
                    blank=True,
                    null=True,
                    on_delete=django.db.models.deletion.CASCADE,
                    related_name="settings",
                    to="organizations.organization",
                )),
            ],
        ),
    ]
