from decimal import Decimal

import pytest

from tournaments.exceptions import InsufficientFunds
from wallet import services
from wallet.exceptions import ImmutableTransaction
from wallet.models import Transaction


@pytest.mark.django_db
def test_debit_and_credit_keep_a_ledger(create_user):
    user = create_user(wallet_balance="50")
    services.credit(user.pk, Decimal("25.25"), type=Transaction.TYPE_PRIZE, reference="PRIZE-test-1")
    entry = services.debit(user.pk, Decimal("70"), type=Transaction.TYPE_ENTRY)

    assert services.balance_of(user.pk) == Decimal("5.25")
    assert entry.reference.startswith("ENTRY-")
    assert list(Transaction.objects.filter(user=user).values_list("type", flat=True).order_by("id")) == [
        Transaction.TYPE_PRIZE,
        Transaction.TYPE_ENTRY,
    ]


@pytest.mark.django_db
def test_debit_never_overdraws(create_user):
    user = create_user(wallet_balance="10")
    with pytest.raises(InsufficientFunds) as excinfo:
        services.debit(user.pk, Decimal("10.01"), type=Transaction.TYPE_ENTRY)
    assert excinfo.value.extra["required_amount"] == "10.01"
    assert services.balance_of(user.pk) == Decimal("10.00")
    assert not Transaction.objects.exists()


@pytest.mark.django_db
def test_completed_transactions_are_immutable(create_user):
    user = create_user()
    services.credit(user.pk, Decimal("1"), type=Transaction.TYPE_PRIZE)
    entry = Transaction.objects.get(user=user)
    entry.amount = Decimal("1000")
    with pytest.raises(ImmutableTransaction):
        entry.save()
    assert Transaction.objects.get(pk=entry.pk).amount == Decimal("1.00")


@pytest.mark.django_db
def test_transactions_endpoint_lists_own_ledger_newest_first(auth_client, create_user, create_tournament):
    client, user = auth_client(create_user(wallet_balance="100"))
    other = create_user(wallet_balance="100")
    tournament = create_tournament(title="Sunday Rapid")
    services.debit(user.pk, Decimal("10"), type=Transaction.TYPE_ENTRY, tournament=tournament)
    services.credit(user.pk, Decimal("40"), type=Transaction.TYPE_PRIZE, tournament=tournament)
    services.debit(other.pk, Decimal("5"), type=Transaction.TYPE_ENTRY)

    response = client.get("/api/wallet/transactions/")
    assert response.status_code == 200
    assert response.data["total"] == 2
    assert [row["type"] for row in response.data["results"]] == [Transaction.TYPE_PRIZE, Transaction.TYPE_ENTRY]
    assert response.data["results"][0]["tournament_title"] == "Sunday Rapid"
    assert response.data["results"][0]["amount"] == "40.00"

    entries_only = client.get("/api/wallet/transactions/", {"type": Transaction.TYPE_ENTRY, "page_size": 1})
    assert entries_only.data["total"] == 1
    assert entries_only.data["page_size"] == 1
    assert entries_only.data["results"][0]["type"] == Transaction.TYPE_ENTRY


@pytest.mark.django_db
def test_transactions_without_a_tournament_have_no_title(auth_client, create_user):
    client, user = auth_client(create_user())
    services.credit(user.pk, Decimal("3"), type=Transaction.TYPE_PRIZE)

    response = client.get("/api/wallet/transactions/")
    assert response.data["results"][0]["tournament"] is None
    assert response.data["results"][0]["tournament_title"] is None


@pytest.mark.django_db
def test_balance_endpoint(auth_client, create_user, api_client):
    client, user = auth_client(create_user(wallet_balance="12.5"))
    services.credit(user.pk, Decimal("2.5"), type=Transaction.TYPE_PRIZE)

    response = client.get("/api/wallet/balance/")
    assert response.status_code == 200
    assert response.data == {"wallet_balance": "15.00"}

    assert api_client.get("/api/wallet/balance/").status_code == 401
