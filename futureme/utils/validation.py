"""Input checks applied when a message is scheduled."""

import re
from datetime import datetime, timezone
from typing import Any

MAX_SUBJECT_LENGTH = 200
MAX_BODY_LENGTH = 10_000
MAX_YEARS_AHEAD = 50

_EMAIL_RE = re.compile(r"^[^\s@]+@[^\s@]+\.[^\s@]+$")


def validate_email(email: str) -> bool:
    return bool(email) and bool(_EMAIL_RE.match(email))


def parse_delivery_at(value: Any) -> datetime | None:
    """Accept a datetime or an ISO-8601 string; naive values are taken as UTC."""
    if isinstance(value, datetime):
        parsed = value
    elif isinstance(value, str) and value.strip():
        try:
            parsed = datetime.fromisoformat(value.strip().replace("Z", "+00:00"))
        except ValueError:
            return None
    else:
        return None

    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed.astimezone(timezone.utc)


def _years_from(moment: datetime, years: int) -> datetime:
    try:
        return moment.replace(year=moment.year + years)
    except ValueError:
        # Feb 29 onto a non-leap year
        return moment.replace(year=moment.year + years, day=28)


def validate_message_data(
    subject: str | None,
    body: str | None,
    delivery_at: Any,
    now: datetime | None = None,
) -> list[str]:
    """
    Return a list of human-readable problems; an empty list means valid.

    The delivery time must be strictly in the future and no more than
    fifty years ahead of ``now``.
    """
    errors: list[str] = []
    now = now or datetime.now(timezone.utc)

    if not subject or not subject.strip():
        errors.append("Subject is required")
    elif len(subject) > MAX_SUBJECT_LENGTH:
        errors.append(f"Subject must be less than {MAX_SUBJECT_LENGTH} characters")

    if not body or not body.strip():
        errors.append("Message content is required")
    elif len(body) > MAX_BODY_LENGTH:
        errors.append(f"Message must be less than {MAX_BODY_LENGTH:,} characters")

    if delivery_at is None or delivery_at == "":
        errors.append("Delivery date and time is required")
        return errors

    parsed = parse_delivery_at(delivery_at)
    if parsed is None:
        errors.append("Invalid delivery date format")
        return errors

    if parsed <= now:
        errors.append("Delivery date must be in the future")
    elif parsed > _years_from(now, MAX_YEARS_AHEAD):
        errors.append(f"Delivery date cannot be more than {MAX_YEARS_AHEAD} years in the future")

    return errors
