"""
Balance primitives. Every balance change is a single conditional UPDATE
paired with a ledger row inside one atomic block, so concurrent credits and
debits for the same user never act on a stale balance.
"""
import logging
import uuid
from decimal import Decimal

from django.contrib.auth import get_user_model
from django.db import transaction
from django.db.models import F

from tournaments.exceptions import InsufficientFunds

from .models import Transaction

logger = logging.getLogger(__name__)

User = get_user_model()


def generate_reference(prefix: str) -> str:
    return f"{prefix}-{str(uuid.uuid4())[:8]}"


def balance_of(user_id) -> Decimal:
    return User.objects.values_list("wallet_balance", flat=True).get(pk=user_id)


def debit(user_id, amount, *, type, tournament=None, reference=None, details=None) -> Transaction:
    """Take ``amount`` from the user's wallet or raise ``InsufficientFunds``."""
    amount = Decimal(amount)
    with transaction.atomic():
        updated = User.objects.filter(pk=user_id, wallet_balance__gte=amount).update(
            wallet_balance=F("wallet_balance") - amount
        )
        if not updated:
            balance = balance_of(user_id)
            raise InsufficientFunds(wallet_balance=str(balance), required_amount=str(amount))
        entry = Transaction.objects.create(
            user_id=user_id,
            tournament=tournament,
            type=type,
            amount=amount,
            reference=reference or generate_reference(type.upper()),
            status=Transaction.STATUS_COMPLETED,
            details=details or {},
        )
    logger.info("Debited %s from user %s (%s)", amount, user_id, entry.reference)
    return entry


def credit(user_id, amount, *, type, tournament=None, reference=None, details=None) -> Transaction:
    amount = Decimal(amount)
    with transaction.atomic():
        updated = User.objects.filter(pk=user_id).update(wallet_balance=F("wallet_balance") + amount)
        if not updated:
            raise User.DoesNotExist(f"User not found: {user_id}")
        entry = Transaction.objects.create(
            user_id=user_id,
            tournament=tournament,
            type=type,
            amount=amount,
            reference=reference or generate_reference(type.upper()),
            status=Transaction.STATUS_COMPLETED,
            details=details or {},
        )
    logger.info("Credited %s to user %s (%s)", amount, user_id, entry.reference)
    return entry
