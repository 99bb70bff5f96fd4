from celery import shared_task

from .reminders import send_due_reminders
from .status import reconcile_statuses


@shared_task
def reconcile_tournament_statuses():
    """Move tournaments along upcoming -> active -> completed as their clocks run out."""
    return reconcile_statuses()


@shared_task
def send_tournament_reminders():
    return send_due_reminders()
