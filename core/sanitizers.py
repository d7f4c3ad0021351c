# core/sanitizers.py
"""
Input sanitization and validation.

All user-generated content should pass through these functions
before being stored or rendered.
"""
import re
from datetime import date
from typing import Optional

import bleach
from django.utils.dateparse import parse_date

from .exceptions import ValidationFailed


# Allowed HTML tags for rich text (project descriptions)
ALLOWED_TAGS = [
    'p', 'br', 'strong', 'em', 'u', 'a', 'ul', 'ol', 'li',
    'h1', 'h2', 'h3', 'h4', 'h5', 'h6', 'blockquote', 'code', 'pre'
]

ALLOWED_ATTRIBUTES = {
    'a': ['href', 'title'],
}


def sanitize_text(text: Optional[str], max_length: Optional[int] = None, strip: bool = True) -> str:
    """
    Sanitize plain text input.

    - Strips leading/trailing whitespace
    - Removes control characters
    - Enforces maximum length
    - Returns empty string for None input
    """
    if text is None:
        return ""

    text = str(text)
    if strip:
        text = text.strip()

    # Remove control characters except newlines and tabs
    text = re.sub(r'[\x00-\x08\x0b\x0c\x0e-\x1f\x7f]', '', text)

    if max_length and len(text) > max_length:
        text = text[:max_length]

    return text


def sanitize_html(html: Optional[str], max_length: Optional[int] = None) -> str:
    """Sanitize HTML content, removing dangerous elements."""
    if html is None:
        return ""

    clean = bleach.clean(
        str(html).strip(),
        tags=ALLOWED_TAGS,
        attributes=ALLOWED_ATTRIBUTES,
        strip=True
    )

    if max_length and len(clean) > max_length:
        clean = clean[:max_length]

    return clean


def sanitize_title(title: Optional[str]) -> str:
    """
    Sanitize names and topics.

    - Max 255 characters
    - No HTML
    - Single line (no newlines)
    """
    text = sanitize_text(title, max_length=255)
    # Replace newlines with spaces
    text = re.sub(r'[\r\n]+', ' ', text)
    # Collapse multiple spaces
    text = re.sub(r'\s+', ' ', text)
    return text


def sanitize_description(description: Optional[str]) -> str:
    """
    Sanitize project descriptions.

    - Max 10000 characters
    - HTML sanitized
    """
    return sanitize_html(description, max_length=10000)


def require_text(value, label: str, sanitizer=sanitize_text) -> str:
    text = sanitizer(value)
    if not text:
        raise ValidationFailed(f"Please provide a {label}.")
    return text


# ─────────────────────────────────────────────────────────────
# Logbook Validators
# ─────────────────────────────────────────────────────────────


def validate_activity_date(value) -> date:
    """Accept a date object or an ISO ``YYYY-MM-DD`` string."""
    if isinstance(value, date):
        return value
    if not value:
        raise ValidationFailed("Please provide a date.")
    try:
        parsed = parse_date(str(value).strip()[:10])
    except ValueError:
        # well formed but impossible, e.g. 2024-02-30
        raise ValidationFailed("Date must be a valid YYYY-MM-DD date.")
    if parsed is None:
        raise ValidationFailed("Date must be in YYYY-MM-DD format.")
    return parsed


def validate_minutes(value, max_value: int = 24 * 60) -> int:
    """
    Validate time spent on an activity, in minutes.

    - Must be an integer
    - Must be between 1 and max_value
    """
    if value is None or value == "":
        raise ValidationFailed("Please provide the time spent.")
    try:
        minutes = int(str(value).strip())
    except (TypeError, ValueError):
        raise ValidationFailed("Time must be a whole number of minutes.")

    if minutes < 1:
        raise ValidationFailed("Time must be at least 1 minute.")

    if minutes > max_value:
        raise ValidationFailed(f"Time cannot exceed {max_value} minutes.")

    return minutes
