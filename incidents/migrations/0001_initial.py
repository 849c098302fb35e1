import django.db.models.deletion
from django.db import migrations, models


class Migration(migrations.Migration):

    initial = True

    dependencies = [
        ("organizations", "0001_initial"),
        ("roster", "0001_initial"),
    ]

    operations = [
        migrations.CreateModel(
            name="Incident",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("uuid", models.UUIDField(editable=False, unique=True)),
                ("timestamp", models.DateTimeField(db_index=True)),
                ("type", models.CharField(
                    choices=[("incident", "Incident"), ("commendation", "Commendation")],
                    default="incident",
                    max_length=16,
                )),
                ("student_id", models.CharField(blank=True, default="", max_length=64)),
                ("student_name", models.CharField(max_length=120)),
                ("class_code", models.CharField(blank=True, default="", max_length=32)),
                ("teacher_email", models.EmailField(max_length=254)),
                ("level", models.CharField(max_length=32)),
                ("category", models.CharField(max_length=64)),
                ("location", models.CharField(max_length=32)),
                ("action_taken", models.CharField(blank=True, default="", max_length=120)),
                ("note", models.TextField(blank=True, default="")),
                ("device", models.CharField(blank=True, default="", max_length=200)),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                ("classroom", models.ForeignKey(
                    blank=True,
                    null=True,
                    on_delete=django.db.models.deletion.SET_NULL,
                    related_name="incidents",
                    to="roster.classroom",
                )),
                ("organization", models.ForeignKey(
                    on_delete=django.db.models.deletion.PROTECT,
                    related_name="incidents",
                    to="organizations.organization",
                )),
            ],
            options={
                "ordering": ["-timestamp"],
                "indexes": [
                    models.Index(fields=["organization", "timestamp"], name="idx_incident_org_ts"),
                    models.Index(fields=["organization", "student_id"], name="idx_incident_org_student"),
                ],
            },
        ),
    ]
