from django.conf import settings
from django.db import models

from .exceptions import ImmutableTransaction


class Transaction(models.Model):
    TYPE_FUNDING = "funding"
    TYPE_ENTRY = "entry"
    TYPE_PRIZE = "prize"
    TYPE_PRIZE_PAYOUT = "prize_payout"

    TYPE_CHOICES = [
        (TYPE_FUNDING, "Tournament funding"),
        (TYPE_ENTRY, "Tournament entry"),
        (TYPE_PRIZE, "Tournament prize"),
        (TYPE_PRIZE_PAYOUT, "Prize payout (legacy)"),
    ]
    PRIZE_TYPES = (TYPE_PRIZE, TYPE_PRIZE_PAYOUT)

    STATUS_PENDING = "pending"
    STATUS_COMPLETED = "completed"
    STATUS_FAILED = "failed"

    STATUS_CHOICES = [
        (STATUS_PENDING, "Pending"),
        (STATUS_COMPLETED, "Completed"),
        (STATUS_FAILED, "Failed"),
    ]

    user = models.ForeignKey(settings.AUTH_USER_MODEL, related_name="transactions", on_delete=models.CASCADE)
    tournament = models.ForeignKey(
        "tournaments.Tournament",
        null=True,
        blank=True,
        related_name="transactions",
        on_delete=models.SET_NULL,
    )
    type = models.CharField(max_length=20, choices=TYPE_CHOICES)
    amount = models.DecimalField(max_digits=14, decimal_places=2)
    reference = models.CharField(max_length=120, unique=True)
    status = models.CharField(max_length=20, choices=STATUS_CHOICES, default=STATUS_COMPLETED)
    payment_method = models.CharField(max_length=20, default="wallet")
    details = models.JSONField(default=dict, blank=True)
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        ordering = ["-created_at", "-id"]
        indexes = [
            models.Index(fields=["tournament", "type", "status"], name="wallet_tx_tourn_type_idx"),
        ]

    def __str__(self):
        return f"{self.type} {self.amount} for {self.user_id} ({self.reference})"

    @classmethod
    def from_db(cls, db, field_names, values):
        instance = super().from_db(db, field_names, values)
        instance._loaded_status = instance.__dict__.get("status")
        return instance

    def save(self, *args, **kwargs):
        if not self._state.adding and getattr(self, "_loaded_status", None) == self.STATUS_COMPLETED:
            raise ImmutableTransaction(f"Transaction {self.reference} is completed and cannot change.")
        super().save(*args, **kwargs)
        self._loaded_status = self.status
