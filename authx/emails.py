# authx/emails.py
from django.core.mail import send_mail
from django.conf import settings


def build_frontend_url(path=""):
    base = getattr(settings, "FRONTEND_URL", "") or ""
    return f"{base.rstrip('/')}/{path.lstrip('/')}" if base else f"/{path.lstrip('/')}"


def send_welcome_email(user):
    """
    Greet a newly registered user with a link to the app.
    Returns the number of messages sent (0 when the user has no email).
    """
    if not getattr(user, "email", None):
        # No email set, nothing to send
        return 0

    role_label = "mentor teacher" if user.role == user.ROLE_MENTOR else "student"
    subject = "Welcome to Collab"
    message = (
        f"Hi {user.full_name or user.username},\n\n"
        f"Your {role_label} account has been created.\n"
        f"You can sign in here:\n"
        f"{build_frontend_url('login')}\n\n"
        f"Thank you,\n"
        f"Collab"
    )

    return send_mail(
        subject=subject,
        message=message,
        from_email=getattr(settings, "DEFAULT_FROM_EMAIL", None),
        recipient_list=[user.email],
    )
