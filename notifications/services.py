"""
Best-effort notification delivery.

A notification is a database row plus a live push to the user's Channels
group (``user_<id>``). The push is optional: when the channel layer is down
the row is still kept and the client picks it up on the next list call.
"""
import logging
from datetime import timedelta

from asgiref.sync import async_to_sync
from channels.layers import get_channel_layer
from django.contrib.auth import get_user_model
from django.db import DatabaseError
from django.utils import timezone

from tournaments.exceptions import NotificationDeliveryFailure

from .models import Notification
from .serializers import NotificationSerializer

logger = logging.getLogger(__name__)

User = get_user_model()


def user_group(user_id) -> str:
    return f"user_{user_id}"


def push_notification(notification: Notification) -> bool:
    try:
        channel_layer = get_channel_layer()
        if channel_layer is None:
            logger.warning("Channel layer not available, notification %s saved but not pushed", notification.id)
            return False
        async_to_sync(channel_layer.group_send)(
            user_group(notification.user_id),
            {"type": "notification", "notification": NotificationSerializer(notification).data},
        )
    except Exception:
        logger.warning("WebSocket push failed for user %s", notification.user_id, exc_info=True)
        return False
    return True


def create_notification(user, notification_type, title, message, data=None, expires_in_hours=None):
    """Store a notification for ``user`` and push it over the websocket.

    Raises ``NotificationDeliveryFailure`` when the row cannot be stored;
    a failed push is only logged.
    """
    expires_at = None
    if expires_in_hours:
        expires_at = timezone.now() + timedelta(hours=expires_in_hours)
    try:
        notification = Notification.objects.create(
            user=user,
            notification_type=notification_type,
            title=title,
            message=message,
            data=data or {},
            expires_at=expires_at,
        )
    except DatabaseError as exc:
        raise NotificationDeliveryFailure(user_id=user.pk, notification_type=notification_type) from exc
    logger.info("Notification %s (%s) created for user %s", notification.id, notification_type, user.pk)
    push_notification(notification)
    return notification


def notify_users(users, notification_type, title, message, data=None) -> int:
    """Send the same notification to many users; one failure does not stop the rest."""
    delivered = 0
    for user in users:
        try:
            create_notification(user, notification_type, title, message, data)
            delivered += 1
        except NotificationDeliveryFailure:
            logger.error("Could not notify user %s (%s)", user.pk, notification_type, exc_info=True)
    return delivered


def _tournament_data(tournament, **extra) -> dict:
    return {"tournament_id": tournament.pk, "title": tournament.title, **extra}


def _participants(tournament):
    return User.objects.filter(tournament_participations__tournament=tournament)


def notify_tournament_created(tournament):
    return create_notification(
        tournament.organizer,
        Notification.TYPE_TOURNAMENT_CREATED,
        "Tournament Created",
        f'Your tournament "{tournament.title}" has been created successfully.',
        _tournament_data(tournament, total_prize_pool=str(tournament.total_prize_pool)),
    )


def notify_tournament_registration(tournament, user):
    message = f'You have successfully registered for "{tournament.title}".'
    if tournament.password:
        message += f" Tournament password: {tournament.password}"
    return create_notification(
        user,
        Notification.TYPE_TOURNAMENT_REGISTRATION,
        "Tournament Registration",
        message,
        _tournament_data(tournament, tournament_link=tournament.tournament_link),
    )


def notify_tournament_starting_soon(tournament, minutes) -> int:
    """Remind the organizer and every registered participant."""
    recipients = [tournament.organizer, *_participants(tournament).exclude(pk=tournament.organizer_id)]
    return notify_users(
        recipients,
        Notification.TYPE_TOURNAMENT_REMINDER,
        "Tournament Starting Soon",
        f'"{tournament.title}" starts in {minutes} minutes. Get ready!',
        _tournament_data(
            tournament,
            start_at=tournament.start_at.isoformat(),
            tournament_link=tournament.tournament_link,
        ),
    )


def notify_tournament_winner(user_id, tournament, position, amount):
    user = User.objects.get(pk=user_id)
    return create_notification(
        user,
        Notification.TYPE_TOURNAMENT_RESULT,
        "Congratulations! You won a prize",
        f'You finished #{position} in "{tournament.title}" and won {amount}. '
        "The prize has been credited to your wallet.",
        _tournament_data(tournament, position=position, amount=str(amount)),
    )


def notify_tournament_cancelled(tournament, reason="") -> int:
    message = f'"{tournament.title}" has been cancelled.'
    if reason:
        message += f" Reason: {reason}"
    return notify_users(
        _participants(tournament),
        Notification.TYPE_TOURNAMENT_CANCELLED,
        "Tournament Cancelled",
        message,
        _tournament_data(tournament, reason=reason),
    )
