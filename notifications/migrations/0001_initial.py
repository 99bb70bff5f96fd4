import uuid

import django.db.models.deletion
from django.conf import settings
from django.db import migrations, models


class Migration(migrations.Migration):

    initial = True

    dependencies = [
        migrations.swappable_dependency(settings.AUTH_USER_MODEL),
    ]

    operations = [
        migrations.CreateModel(
            name="Notification",
            fields=[
                ("id", models.UUIDField(default=uuid.uuid4, editable=False, primary_key=True, serialize=False)),
                (
                    "notification_type",
                    models.CharField(
                        choices=[
                            ("tournament_created", "Tournament Created"),
                            ("tournament_registration", "Tournament Registration"),
                            ("tournament_reminder", "Tournament Reminder"),
                            ("tournament_result", "Tournament Result"),
                            ("tournament_cancelled", "Tournament Cancelled"),
                            ("tournament_start", "Tournament Start"),
                            ("system_message", "System Message"),
                        ],
                        max_length=50,
                    ),
                ),
                ("title", models.CharField(max_length=200)),
                ("message", models.TextField()),
                ("data", models.JSONField(blank=True, default=dict)),
                ("read", models.BooleanField(default=False)),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                ("expires_at", models.DateTimeField(blank=True, null=True)),
                (
                    "user",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="notifications",
                        to=settings.AUTH_USER_MODEL,
                    ),
                ),
            ],
            options={
                "ordering": ["-created_at"],
                "indexes": [
                    models.Index(fields=["user", "read", "-created_at"], name="notif_user_read_created_idx"),
                    models.Index(fields=["user", "-created_at"], name="notif_user_created_idx"),
                ],
            },
        ),
    ]
