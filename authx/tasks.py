# authx/tasks.py
import logging

from celery import shared_task
from django.contrib.auth import get_user_model

from .emails import send_welcome_email

logger = logging.getLogger('collab.auth')


@shared_task
def send_welcome_email_task(user_id: int):
    """
    Async wrapper for the welcome email.
    Delivery failures are logged, never raised.
    """
    User = get_user_model()
    try:
        user = User.objects.get(id=user_id)
    except User.DoesNotExist:
        return 0

    try:
        return send_welcome_email(user)
    except OSError as e:
        # smtplib errors are OSError subclasses
        logger.warning(f"Welcome email to user={user_id} failed: {e}")
        return 0
