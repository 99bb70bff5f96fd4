from decimal import Decimal

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
            name="Tournament",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("title", models.CharField(max_length=255)),
                ("category", models.CharField(max_length=100)),
                ("rules", models.TextField()),
                ("tournament_link", models.URLField(max_length=500)),
                (
                    "password",
                    models.CharField(blank=True, help_text="Entry code sent to registrants", max_length=255, null=True),
                ),
                ("start_date", models.DateField()),
                (
                    "start_time",
                    models.CharField(help_text="Local time of day, HH:MM or HH:MM AM/PM", max_length=16),
                ),
                ("timezone", models.CharField(default="UTC", max_length=64)),
                ("duration_ms", models.BigIntegerField(help_text="Duration in milliseconds")),
                (
                    "start_at",
                    models.DateTimeField(db_index=True, help_text="Start instant in UTC, derived from the schedule"),
                ),
                (
                    "status",
                    models.CharField(
                        choices=[
                            ("upcoming", "Upcoming"),
                            ("active", "Active"),
                            ("completed", "Completed"),
                            ("cancelled", "Cancelled"),
                        ],
                        db_index=True,
                        default="upcoming",
                        max_length=20,
                    ),
                ),
                ("manual_status_override", models.BooleanField(default=False)),
                ("five_minute_reminder_sent", models.BooleanField(default=False)),
                (
                    "prize_type",
                    models.CharField(
                        choices=[("fixed", "Fixed"), ("percentage", "Percentage"), ("special", "Special")],
                        max_length=20,
                    ),
                ),
                ("prizes", models.JSONField(blank=True, default=dict)),
                ("total_prize_pool", models.DecimalField(decimal_places=2, default=Decimal("0"), max_digits=14)),
                ("entry_fee", models.DecimalField(decimal_places=2, default=Decimal("0"), max_digits=14)),
                (
                    "funding_method",
                    models.CharField(
                        choices=[("wallet", "Wallet"), ("topup", "Top up")], default="wallet", max_length=20
                    ),
                ),
                ("prizes_distributed", models.BooleanField(default=False)),
                ("prize_distribution_date", models.DateTimeField(blank=True, null=True)),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                ("updated_at", models.DateTimeField(auto_now=True)),
                (
                    "distributed_by",
                    models.ForeignKey(
                        blank=True,
                        null=True,
                        on_delete=django.db.models.deletion.SET_NULL,
                        related_name="distributed_tournaments",
                        to=settings.AUTH_USER_MODEL,
                    ),
                ),
                (
                    "organizer",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="organized_tournaments",
                        to=settings.AUTH_USER_MODEL,
                    ),
                ),
            ],
            options={
                "ordering": ["start_at"],
                "indexes": [
                    models.Index(fields=["status", "manual_status_override"], name="tourn_status_override_idx"),
                    models.Index(fields=["status", "five_minute_reminder_sent"], name="tourn_status_reminder_idx"),
                ],
            },
        ),
        migrations.CreateModel(
            name="TournamentParticipant",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("joined_at", models.DateTimeField(auto_now_add=True)),
                (
                    "tournament",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="participants",
                        to="tournaments.tournament",
                    ),
                ),
                (
                    "user",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="tournament_participations",
                        to=settings.AUTH_USER_MODEL,
                    ),
                ),
            ],
            options={
                "ordering": ["joined_at", "id"],
                "unique_together": {("tournament", "user")},
            },
        ),
        migrations.CreateModel(
            name="TournamentResult",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("position", models.PositiveIntegerField()),
                ("score", models.FloatField(default=0)),
                (
                    "category",
                    models.CharField(blank=True, help_text="Special prize category won, if any", max_length=100),
                ),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                (
                    "tournament",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="results",
                        to="tournaments.tournament",
                    ),
                ),
                (
                    "user",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="tournament_results",
                        to=settings.AUTH_USER_MODEL,
                    ),
                ),
            ],
            options={
                "ordering": ["position", "id"],
                "unique_together": {("tournament", "user")},
            },
        ),
    ]
