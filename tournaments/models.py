from decimal import Decimal

from django.conf import settings
from django.db import models

from .clock import DEFAULT_TIMEZONE, start_instant


class Tournament(models.Model):
    STATUS_UPCOMING = "upcoming"
    STATUS_ACTIVE = "active"
    STATUS_COMPLETED = "completed"
    STATUS_CANCELLED = "cancelled"

    STATUS_CHOICES = [
        (STATUS_UPCOMING, "Upcoming"),
        (STATUS_ACTIVE, "Active"),
        (STATUS_COMPLETED, "Completed"),
        (STATUS_CANCELLED, "Cancelled"),
    ]

    PRIZE_FIXED = "fixed"
    PRIZE_PERCENTAGE = "percentage"
    PRIZE_SPECIAL = "special"

    PRIZE_CHOICES = [
        (PRIZE_FIXED, "Fixed"),
        (PRIZE_PERCENTAGE, "Percentage"),
        (PRIZE_SPECIAL, "Special"),
    ]

    FUNDING_WALLET = "wallet"
    FUNDING_TOPUP = "topup"

    FUNDING_CHOICES = [
        (FUNDING_WALLET, "Wallet"),
        (FUNDING_TOPUP, "Top up"),
    ]

    title = models.CharField(max_length=255)
    category = models.CharField(max_length=100)
    rules = models.TextField()
    tournament_link = models.URLField(max_length=500)
    password = models.CharField(max_length=255, blank=True, null=True, help_text="Entry code sent to registrants")
    organizer = models.ForeignKey(
        settings.AUTH_USER_MODEL, related_name="organized_tournaments", on_delete=models.CASCADE
    )
    start_date = models.DateField()
    start_time = models.CharField(max_length=16, help_text="Local time of day, HH:MM or HH:MM AM/PM")
    timezone = models.CharField(max_length=64, default=DEFAULT_TIMEZONE)
    duration_ms = models.BigIntegerField(help_text="Duration in milliseconds")
    start_at = models.DateTimeField(db_index=True, help_text="Start instant in UTC, derived from the schedule")
    status = models.CharField(max_length=20, choices=STATUS_CHOICES, default=STATUS_UPCOMING, db_index=True)
    manual_status_override = models.BooleanField(default=False)
    five_minute_reminder_sent = models.BooleanField(default=False)
    prize_type = models.CharField(max_length=20, choices=PRIZE_CHOICES)
    prizes = models.JSONField(default=dict, blank=True)
    total_prize_pool = models.DecimalField(max_digits=14, decimal_places=2, default=Decimal("0"))
    entry_fee = models.DecimalField(max_digits=14, decimal_places=2, default=Decimal("0"))
    funding_method = models.CharField(max_length=20, choices=FUNDING_CHOICES, default=FUNDING_WALLET)
    prizes_distributed = models.BooleanField(default=False)
    prize_distribution_date = models.DateTimeField(null=True, blank=True)
    distributed_by = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        null=True,
        blank=True,
        related_name="distributed_tournaments",
        on_delete=models.SET_NULL,
    )
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ["start_at"]
        indexes = [
            models.Index(fields=["status", "manual_status_override"], name="tourn_status_override_idx"),
            models.Index(fields=["status", "five_minute_reminder_sent"], name="tourn_status_reminder_idx"),
        ]

    def __str__(self):
        return f"Tournament: {self.title} ({self.status})"

    def compute_start_at(self):
        return start_instant(self.start_date, self.start_time, self.timezone)

    def save(self, *args, **kwargs):
        if self.start_at is None:
            self.start_at = self.compute_start_at()
        super().save(*args, **kwargs)

    def snapshot(self):
        from .status import TournamentSnapshot

        return TournamentSnapshot(
            status=self.status,
            start_at=self.start_at,
            duration_ms=self.duration_ms,
            manual_status_override=self.manual_status_override,
            five_minute_reminder_sent=self.five_minute_reminder_sent,
            timezone=self.timezone,
        )

    def schedule(self):
        from .prizes import load_schedule

        return load_schedule(self.prize_type, self.prizes)

    def is_organizer(self, user_id) -> bool:
        return self.organizer_id == user_id


class TournamentParticipant(models.Model):
    tournament = models.ForeignKey(Tournament, related_name="participants", on_delete=models.CASCADE)
    user = models.ForeignKey(
        settings.AUTH_USER_MODEL, related_name="tournament_participations", on_delete=models.CASCADE
    )
    joined_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        unique_together = ("tournament", "user")
        ordering = ["joined_at", "id"]

    def __str__(self):
        return f"{self.user} in {self.tournament.title}"


class TournamentResult(models.Model):
    tournament = models.ForeignKey(Tournament, related_name="results", on_delete=models.CASCADE)
    user = models.ForeignKey(
        settings.AUTH_USER_MODEL, related_name="tournament_results", on_delete=models.CASCADE
    )
    position = models.PositiveIntegerField()
    score = models.FloatField(default=0)
    category = models.CharField(max_length=100, blank=True, help_text="Special prize category won, if any")
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        unique_together = ("tournament", "user")
        ordering = ["position", "id"]

    def __str__(self):
        return f"{self.user} #{self.position} in {self.tournament.title}"
