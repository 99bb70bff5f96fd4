import itertools
from datetime import timedelta
from decimal import Decimal

import pytest
from django.contrib.auth import get_user_model
from django.utils import timezone
from rest_framework.authtoken.models import Token
from rest_framework.test import APIClient


_user_counter = itertools.count(1)


@pytest.fixture
def api_client():
    return APIClient()


@pytest.fixture
def create_user(db):
    User = get_user_model()

    def _create_user(
        email=None,
        username=None,
        password="Pass1234!",
        wallet_balance=Decimal("0"),
        **extra,
    ):
        idx = next(_user_counter)
        email = email or f"user{idx}@example.com"
        username = username or f"user{idx}"
        return User.objects.create_user(
            email=email,
            username=username,
            password=password,
            wallet_balance=Decimal(wallet_balance),
            **extra,
        )

    return _create_user


@pytest.fixture
def auth_client(create_user):
    def _auth_client(user=None):
        if user is None:
            user = create_user()
        client = APIClient()
        token, _ = Token.objects.get_or_create(user=user)
        client.credentials(HTTP_AUTHORIZATION=f"Token {token.key}")
        return client, user

    return _auth_client


@pytest.fixture
def create_tournament(create_user):
    """Persist a tournament directly, bypassing funding; the schedule is expressed in UTC."""
    from tournaments.models import Tournament, TournamentParticipant
    from tournaments.prizes import normalize_prize_schedule, total_pool

    def _create_tournament(
        organizer=None,
        start_at=None,
        duration_minutes=60,
        prize_type=Tournament.PRIZE_FIXED,
        prizes=None,
        entry_fee=Decimal("0"),
        status=Tournament.STATUS_UPCOMING,
        participants=(),
        **extra,
    ):
        organizer = organizer or create_user()
        start_at = (start_at or timezone.now() + timedelta(hours=1)).replace(second=0, microsecond=0)
        schedule = normalize_prize_schedule(prize_type, prizes if prizes is not None else {"amounts": [100, 50]})
        tournament = Tournament.objects.create(
            title=extra.pop("title", "Weekend Blitz"),
            category=extra.pop("category", "blitz"),
            rules="Be nice",
            tournament_link="https://lichess.org/tournament/abc123",
            organizer=organizer,
            start_date=start_at.date(),
            start_time=start_at.strftime("%H:%M"),
            timezone="UTC",
            duration_ms=duration_minutes * 60 * 1000,
            prize_type=prize_type,
            prizes=schedule.as_dict(),
            total_prize_pool=total_pool(schedule),
            entry_fee=Decimal(entry_fee),
            status=status,
            **extra,
        )
        for user in participants:
            TournamentParticipant.objects.create(tournament=tournament, user=user)
        return tournament

    return _create_tournament
