"""Datetime parsing helpers for display of API timestamps."""

from __future__ import annotations

from datetime import date, datetime, timezone

DATE_FORMATS: list[str] = [
    "%Y-%m-%d",
    "%Y/%m/%d",
    "%m/%d/%Y",
    "%m-%d-%Y",
]


def parse_datetime_value(raw_value: object) -> datetime | None:
    """Parse an API timestamp (ISO 8601, date-only, or epoch) into a datetime.

    Returns None for empty or unrecognized values instead of raising.
    """
    if raw_value is None:
        return None
    if isinstance(raw_value, datetime):
        return raw_value
    if isinstance(raw_value, date):
        return datetime(raw_value.year, raw_value.month, raw_value.day)
    if isinstance(raw_value, (int, float)) and not isinstance(raw_value, bool):
        ts = float(raw_value)
        if ts > 1e12:
            ts = ts / 1000
        try:
            return datetime.fromtimestamp(ts, tz=timezone.utc)
        except (OverflowError, OSError, ValueError):
            return None

    value = str(raw_value).strip()
    if not value:
        return None

    try:
        return datetime.fromisoformat(value.replace("Z", "+00:00"))
    except ValueError:
        pass

    for fmt in DATE_FORMATS:
        try:
            return datetime.strptime(value, fmt)
        except ValueError:
            continue
    return None


def format_display_date(raw_value: object, default: str | None = None) -> str | None:
    """Format as ``M/D/YYYY``; ``default`` when missing or unparseable."""
    dt = parse_datetime_value(raw_value)
    if dt is None:
        return default
    return f"{dt.month}/{dt.day}/{dt.year}"


def format_display_datetime(raw_value: object, default: str | None = None) -> str | None:
    """Format as ``M/D/YYYY, h:MM:SS AM``; ``default`` when missing or unparseable."""
    dt = parse_datetime_value(raw_value)
    if dt is None:
        return default
    hour = dt.hour % 12 or 12
    meridiem = "AM" if dt.hour < 12 else "PM"
    return f"{dt.month}/{dt.day}/{dt.year}, {hour}:{dt.minute:02d}:{dt.second:02d} {meridiem}"


def coerce_timestamp(raw_value: object) -> object:
    """Epoch numbers become ISO strings; other values pass through unchanged."""
    if isinstance(raw_value, (int, float)) and not isinstance(raw_value, bool):
        parsed = parse_datetime_value(raw_value)
        return parsed.isoformat() if parsed is not None else None
    return raw_value
