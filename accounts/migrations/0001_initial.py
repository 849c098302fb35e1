import uuid

import django.db.models.deletion
from django.db import migrations, models


class Migration(migrations.Migration):

    initial = True

    dependencies = [
        ("organizations", "0001_initial"),
    ]

    operations = [
        migrations.CreateModel(
            name="Teacher",
            fields=[
                ("password", models.CharField(max_length=128, verbose_name="password")),
                ("last_login", models.DateTimeField(blank=True, null=True, verbose_name="last login")),
                ("id", models.UUIDField(default=uuid.uuid4, editable=False, primary_key=True, serialize=False)),
                ("email", models.EmailField(max_length=254, unique=True)),
                ("display_name", models.CharField(blank=True, default="", max_length=150)),
                ("role", models.CharField(
                    choices=[("teacher", "Teacher"), ("admin", "Admin"), ("superadmin", "Super admin")],
                    default="teacher",
                    max_length=12,
                )),
                ("is_active", models.BooleanField(default=True)),
                ("is_specialist", models.BooleanField(default=False)),
                ("date_joined", models.DateTimeField(auto_now_add=True)),
                ("updated_at", models.DateTimeField(auto_now=True)),
                ("organization", models.ForeignKey(
                    blank=True,
                    null=True,
                    on_delete=django.db.models.deletion.SET_NULL,
                    related_name="teachers",
                    to="organizations.organization",
                )),
            ],
            options={
                "ordering": ["email"],
                "indexes": [models.Index(fields=["organization", "role"], name="idx_teacher_org_role")],
            },
        ),
        migrations.CreateModel(
            name="MobileAuthTicket",
            fields=[
                ("id", models.UUIDField(default=uuid.uuid4, editable=False, primary_key=True, serialize=False)),
                ("state", models.CharField(max_length=64, unique=True)),
                ("session_key", models.CharField(blank=True, max_length=64, null=True)),
                ("transfer_token", models.CharField(blank=True, max_length=64, null=True, unique=True)),
                ("redirect_path", models.CharField(default="/teacher", max_length=255)),
                ("expires_at", models.DateTimeField(db_index=True)),
                ("consumed_at", models.DateTimeField(blank=True, null=True)),
                ("created_at", models.DateTimeField(auto_now_add=True)),
            ],
        ),
    ]
