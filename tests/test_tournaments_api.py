from datetime import timedelta
from decimal import Decimal

import pytest
from django.utils import timezone

from tournaments.models import Tournament
from wallet.models import Transaction


def create_payload(**overrides):
    start = timezone.now() + timedelta(days=1)
    payload = {
        "title": "Friday Blitz",
        "category": "blitz",
        "rules": "3+2 arena",
        "tournament_link": "https://lichess.org/tournament/friday",
        "start_date": start.date().isoformat(),
        "start_time": "20:00",
        "timezone": "UTC",
        "duration": 60,
        "prize_type": "fixed",
        "prizes": {"fixed": {"amounts": [300, 200]}},
        "entry_fee": "10",
        "funding_method": "wallet",
    }
    payload.update(overrides)
    return payload


@pytest.mark.django_db
def test_create_and_fetch_tournament(auth_client, create_user):
    organizer = create_user(wallet_balance="1000")
    client, _ = auth_client(organizer)

    response = client.post("/api/tournaments/", create_payload(), format="json")
    assert response.status_code == 201, response.data
    assert response.data["total_prize_pool"] == "500.00"
    assert response.data["organizer"]["id"] == organizer.pk

    detail = client.get(f"/api/tournaments/{response.data['id']}/")
    assert detail.status_code == 200
    assert detail.data["status"] == Tournament.STATUS_UPCOMING
    assert detail.data["is_organizer"] is True
    assert detail.data["time_info"]["has_started"] is False


@pytest.mark.django_db
def test_create_errors_are_reported_with_codes(auth_client, create_user):
    client, _ = auth_client(create_user(wallet_balance="1000"))

    bad_time = client.post("/api/tournaments/", create_payload(start_time="25:00"), format="json")
    assert bad_time.status_code == 400
    assert bad_time.data["code"] == "invalid_time_format"

    too_expensive = client.post("/api/tournaments/", create_payload(entry_fee="900"), format="json")
    assert too_expensive.status_code == 400
    assert too_expensive.data["code"] == "entry_fee_exceeds_pool"

    too_large = client.post(
        "/api/tournaments/", create_payload(prizes={"amounts": ["1000000000000000"]}), format="json"
    )
    assert too_large.status_code == 400
    assert too_large.data["code"] == "invalid_prize_amount"

    missing = client.post("/api/tournaments/", {"title": "x"}, format="json")
    assert missing.status_code == 400
    assert "tournament_link" in missing.data


@pytest.mark.django_db
def test_list_refreshes_status_and_filters(auth_client, create_tournament):
    client, user = auth_client()
    started = create_tournament(start_at=timezone.now() - timedelta(minutes=10), category="rapid")
    create_tournament(category="blitz")

    response = client.get("/api/tournaments/", {"category": "rapid"})
    assert response.status_code == 200
    assert response.data["total"] == 1
    assert response.data["results"][0]["status"] == Tournament.STATUS_ACTIVE
    assert Tournament.objects.get(pk=started.pk).status == Tournament.STATUS_ACTIVE

    paged = client.get("/api/tournaments/", {"page_size": 1, "page": 2})
    assert paged.data["page"] == 2
    assert len(paged.data["results"]) == 1


@pytest.mark.django_db
def test_paid_registration_flow(auth_client, create_user, create_tournament):
    tournament = create_tournament(entry_fee="10", password="s3cret")
    client, player = auth_client(create_user(wallet_balance="25"))

    unconfirmed = client.post(f"/api/tournaments/{tournament.pk}/register/", {}, format="json")
    assert unconfirmed.status_code == 400
    assert unconfirmed.data["requires_confirmation"] is True

    confirmed = client.post(f"/api/tournaments/{tournament.pk}/register/", {"confirmed": True}, format="json")
    assert confirmed.status_code == 200
    assert confirmed.data["password"] == "s3cret"

    again = client.post(f"/api/tournaments/{tournament.pk}/register/", {"confirmed": True}, format="json")
    assert again.status_code == 400
    assert again.data["code"] == "already_registered"

    me = client.get("/api/accounts/me/")
    assert me.data["wallet_balance"] == "15.00"


@pytest.mark.django_db
def test_results_then_automatic_distribution(auth_client, create_user, create_tournament):
    organizer = create_user()
    first, second = create_user(), create_user()
    tournament = create_tournament(organizer=organizer, status=Tournament.STATUS_ACTIVE, participants=[first, second])
    client, _ = auth_client(organizer)

    response = client.post(
        f"/api/tournaments/{tournament.pk}/results/",
        {"results": [{"user_id": first.pk, "position": 1}, {"user_id": second.pk, "position": 2}]},
        format="json",
    )
    assert response.status_code == 200, response.data
    assert response.data["total"] == "150.00"
    assert response.data["distribution"]["total_distributed"] == "150.00"

    first.refresh_from_db()
    assert first.wallet_balance == Decimal("100.00")

    replay = client.post(f"/api/tournaments/{tournament.pk}/distribute-prizes/", {}, format="json")
    assert replay.status_code == 409
    assert replay.data["code"] == "already_distributed"

    resubmit = client.post(
        f"/api/tournaments/{tournament.pk}/results/",
        {"results": [{"user_id": second.pk, "position": 1}]},
        format="json",
    )
    assert resubmit.status_code == 400
    assert resubmit.data["code"] == "results_locked"


@pytest.mark.django_db
def test_results_without_distribution_then_explicit_payouts(auth_client, create_user, create_tournament):
    organizer, winner = create_user(), create_user()
    tournament = create_tournament(organizer=organizer, participants=[winner])
    client, _ = auth_client(organizer)

    stored = client.post(
        f"/api/tournaments/{tournament.pk}/results/",
        {"results": [{"user_id": winner.pk, "position": 1}], "distribute": False},
        format="json",
    )
    assert stored.status_code == 200
    assert "distribution" not in stored.data

    preview = client.get(f"/api/tournaments/{tournament.pk}/payouts/")
    assert preview.data["payouts"] == [{"participant_id": winner.pk, "position": 1, "amount": "100.00"}]

    paid = client.post(
        f"/api/tournaments/{tournament.pk}/distribute-prizes/",
        {"payouts": [{"user_id": winner.pk, "position": 1, "amount": "75.50"}]},
        format="json",
    )
    assert paid.status_code == 200
    assert paid.data["lines"][0]["new_balance"] == "75.50"
    assert Transaction.objects.filter(tournament=tournament, type=Transaction.TYPE_PRIZE).count() == 1


@pytest.mark.django_db
def test_distribution_by_position_label(auth_client, create_user, create_tournament):
    organizer, first, second = create_user(), create_user(), create_user()
    tournament = create_tournament(
        organizer=organizer, status=Tournament.STATUS_COMPLETED, participants=[first, second]
    )
    client, _ = auth_client(organizer)

    unpriced = client.post(
        f"/api/tournaments/{tournament.pk}/distribute-prizes/",
        {"prizeDistribution": [{"userId": first.pk, "position": "4th"}]},
        format="json",
    )
    assert unpriced.status_code == 400
    assert unpriced.data["code"] == "invalid_payout_line"

    paid = client.post(
        f"/api/tournaments/{tournament.pk}/distribute-prizes/",
        {
            "prizeDistribution": [
                {"userId": first.pk, "position": "1st"},
                {"userId": second.pk, "position": "2nd", "customAmount": 60},
            ]
        },
        format="json",
    )
    assert paid.status_code == 200, paid.data
    assert [line["amount"] for line in paid.data["lines"]] == ["100.00", "60.00"]
    assert paid.data["total_distributed"] == "160.00"


@pytest.mark.django_db
def test_organizer_only_endpoints(auth_client, create_user, create_tournament):
    organizer, player = create_user(), create_user()
    tournament = create_tournament(organizer=organizer, participants=[player])
    player_client, _ = auth_client(player)

    for method, url in [
        ("get", f"/api/tournaments/{tournament.pk}/participants/"),
        ("post", f"/api/tournaments/{tournament.pk}/cancel/"),
        ("put", f"/api/tournaments/{tournament.pk}/status/"),
    ]:
        response = getattr(player_client, method)(url, {"status": "active"}, format="json")
        assert response.status_code == 403, url
        assert response.data["code"] == "not_organizer"

    organizer_client, _ = auth_client(organizer)
    roster = organizer_client.get(f"/api/tournaments/{tournament.pk}/participants/")
    assert roster.status_code == 200
    assert roster.data["total_participants"] == 1
    assert roster.data["tournament"]["prize_structure"]["fixed"]["amounts"] == ["100", "50"]


@pytest.mark.django_db
def test_status_and_reschedule_endpoints(auth_client, create_user, create_tournament):
    organizer = create_user()
    tournament = create_tournament(organizer=organizer)
    client, _ = auth_client(organizer)

    moved = client.post(
        f"/api/tournaments/{tournament.pk}/reschedule/", {"start_time": "9:15 AM", "duration": 45}, format="json"
    )
    assert moved.status_code == 200, moved.data
    assert moved.data["start_time"] == "9:15 AM"
    assert moved.data["duration_minutes"] == 45

    forward = client.put(f"/api/tournaments/{tournament.pk}/status/", {"status": "active"}, format="json")
    assert forward.status_code == 200
    assert forward.data == {"status": "active", "manual_status_override": True}

    backward = client.put(f"/api/tournaments/{tournament.pk}/status/", {"status": "upcoming"}, format="json")
    assert backward.status_code == 400
    assert backward.data["code"] == "invalid_status_transition"


@pytest.mark.django_db
def test_unknown_tournament_is_404(auth_client):
    client, _ = auth_client()
    assert client.get("/api/tournaments/424242/").status_code == 404


@pytest.mark.django_db
def test_requires_authentication(api_client):
    assert api_client.get("/api/tournaments/").status_code == 401
