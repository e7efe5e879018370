"""Lenient ISO-8601 parsing for due dates and history timestamps."""

from datetime import date, datetime, timezone


def parse_date(value) -> datetime | None:
    """Parse a date or datetime into an aware UTC datetime.

    Accepts ISO strings (with or without a trailing Z), date objects and
    datetime objects. Naive values are taken as UTC. Returns None when the
    value is empty or unparseable.
    """
    if value is None:
        return None

    if isinstance(value, datetime):
        parsed = value
    elif isinstance(value, date):
        parsed = datetime(value.year, value.month, value.day)
    elif isinstance(value, str):
        text = value.strip()
        if not text:
            return None
        if text.endswith(("Z", "z")):
            text = text[:-1] + "+00:00"
        try:
            parsed = datetime.fromisoformat(text)
        except ValueError:
            return None
    else:
        return None

    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed.astimezone(timezone.utc)
