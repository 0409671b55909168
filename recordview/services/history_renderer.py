"""Turn raw audit-log entries into readable change lists.

Rendering never raises: malformed details degrade to a fixed message.
"""

from __future__ import annotations

import json
import logging
from datetime import datetime, timezone
from typing import Any, Iterable, Mapping

from recordview.schemas.history import HistoryEntry, HistorySortOrder, RenderedHistoryEntry
from recordview.utils.datetime_parsing import parse_datetime_value
from recordview.utils.presentation import format_field_name

logger = logging.getLogger(__name__)

IGNORED_KEYS = frozenset({"updated_at"})
CUSTOM_FIELDS_KEY = "custom_fields"
EMPTY_VALUE = "Empty"
NO_CHANGES = "No changes detected"
DETAILS_ERROR = "Error displaying details"


def _parse_details(details: Any) -> Any:
    if isinstance(details, (str, bytes)):
        return json.loads(details)
    return details


def format_value(value: Any) -> str:
    if value is None or value == "":
        return EMPTY_VALUE
    if isinstance(value, (dict, list)):
        return json.dumps(value)
    if isinstance(value, bool):
        return json.dumps(value)
    return str(value)


def _same(before: Any, after: Any) -> bool:
    return json.dumps(before, sort_keys=True, default=str) == json.dumps(after, sort_keys=True, default=str)


def _as_mapping(value: Any) -> dict[str, Any] | None:
    if isinstance(value, str):
        value = json.loads(value) if value.strip() else None
    if value is None:
        return {}
    return value if isinstance(value, dict) else None


def _diff_custom_fields(before: Any, after: Any) -> list[str] | None:
    """Per-key change lines, or None when either side is not an object."""
    try:
        before_obj = _as_mapping(before)
        after_obj = _as_mapping(after)
    except ValueError:
        return None
    if before_obj is None or after_obj is None:
        return None

    lines: list[str] = []
    for key in dict.fromkeys([*before_obj, *after_obj]):
        if not _same(before_obj.get(key), after_obj.get(key)):
            lines.append(
                f"Custom Field ({key}): {format_value(before_obj.get(key))} → {format_value(after_obj.get(key))}"
            )
    return lines


def diff_snapshots(before: Mapping[str, Any], after: Mapping[str, Any]) -> list[str]:
    """Change lines for every key of ``after`` whose JSON form differs from ``before``."""
    lines: list[str] = []
    for key, after_value in after.items():
        if key in IGNORED_KEYS:
            continue
        before_value = before.get(key)
        if _same(before_value, after_value):
            continue
        if key == CUSTOM_FIELDS_KEY:
            nested = _diff_custom_fields(before_value, after_value)
            if nested is not None:
                lines.extend(nested)
                continue
        lines.append(f"{format_field_name(key)}: {format_value(before_value)} → {format_value(after_value)}")
    return lines


def render_history_entry(entry: HistoryEntry | Mapping[str, Any], entity_label: str = "Record") -> RenderedHistoryEntry:
    if not isinstance(entry, HistoryEntry):
        entry = HistoryEntry.model_validate(dict(entry))

    action = entry.action_name
    title = action or "Unknown Action"
    try:
        details = _parse_details(entry.details)
        if action == "CREATE":
            title = f"{entity_label} Created"
            lines = [f"Created by {entry.performer}"]
        elif action == "UPDATE":
            title = f"{entity_label} Updated"
            lines = []
            if isinstance(details, dict) and isinstance(details.get("before"), dict) and isinstance(
                details.get("after"), dict
            ):
                lines = diff_snapshots(details["before"], details["after"]) or [NO_CHANGES]
        elif action == "ADD_NOTE":
            title = "Note Added"
            text = details.get("text") if isinstance(details, dict) else None
            lines = [str(text)] if text else []
        else:
            lines = [json.dumps(details, default=str)]
    except (ValueError, TypeError, AttributeError):
        logger.warning("Error parsing history details", exc_info=True)
        lines = [DETAILS_ERROR]

    return RenderedHistoryEntry(
        id=entry.id,
        title=title,
        lines=lines,
        performed_by=entry.performer,
        performed_at=entry.timestamp,
    )


def _sort_key(entry: HistoryEntry) -> datetime | None:
    ts = parse_datetime_value(entry.timestamp)
    if ts is not None and ts.tzinfo is None:
        ts = ts.replace(tzinfo=timezone.utc)
    return ts


def unique_users(entries: Iterable[HistoryEntry]) -> list[str]:
    """Sorted distinct performer names, for the user filter dropdown."""
    return sorted({entry.performer for entry in entries})


def filter_history(
    entries: Iterable[HistoryEntry],
    user_filter: str = "",
    sort_order: HistorySortOrder = "desc",
) -> list[HistoryEntry]:
    """Filter by performer substring (case-insensitive) and sort by timestamp.

    Entries without a parseable timestamp sort last either way.
    """
    needle = (user_filter or "").strip().lower()
    selected = [e for e in entries if not needle or needle in e.performer.lower()]

    dated = [(_sort_key(e), e) for e in selected]
    with_time = [pair for pair in dated if pair[0] is not None]
    without_time = [e for ts, e in dated if ts is None]
    with_time.sort(key=lambda pair: pair[0], reverse=sort_order == "desc")
    return [e for _, e in with_time] + without_time
