"""Presentation helpers for turning internal values into human-friendly labels.

These helpers are intentionally conservative: they avoid "pretty printing" text
that already appears to be a user-facing label (contains spaces and capitals),
while still fixing common internal formats like snake_case, kebab-case or
camelCase field keys.
"""

from __future__ import annotations

import re


_SEPARATORS_RE = re.compile(r"[_-]+")
_CAMEL_RE = re.compile(r"([a-z0-9])([A-Z])")
_WHITESPACE_RE = re.compile(r"\s+")
_SMALL_WORDS = {
    "a",
    "an",
    "and",
    "as",
    "at",
    "but",
    "by",
    "for",
    "in",
    "nor",
    "of",
    "on",
    "or",
    "the",
    "to",
    "via",
    "vs",
}


def humanize_identifier(value: str | None) -> str:
    """Convert field keys into human-friendly text.

    Examples:
        "full_name" -> "Full Name"
        "lastContactDate" -> "Last Contact Date"
        "date-of-hire" -> "Date of Hire"

    If the input already looks like a label (e.g. "Preferred Shift"), it is
    returned with whitespace collapsed but otherwise untouched.
    """
    if value is None:
        return ""

    text = str(value).strip()
    if not text:
        return ""

    if " " in text and any(ch.isupper() for ch in text):
        return _WHITESPACE_RE.sub(" ", text)

    text = _CAMEL_RE.sub(r"\1 \2", text)
    text = _SEPARATORS_RE.sub(" ", text)
    text = _WHITESPACE_RE.sub(" ", text).strip()

    words = text.split(" ")
    last_idx = len(words) - 1
    titled: list[str] = []
    for i, word in enumerate(words):
        if not word:
            continue
        lowered = word.lower()
        if i not in (0, last_idx) and lowered in _SMALL_WORDS:
            titled.append(lowered)
        else:
            titled.append(word[0].upper() + word[1:].lower())

    return " ".join(titled)


def format_field_name(key: str) -> str:
    """Audit-log style field name: underscores become spaces, case untouched."""
    return str(key).replace("_", " ")


def format_money(value: object) -> str | None:
    """Format a numeric-ish value with thousands separators (``85000`` -> ``85,000``)."""
    if value is None or value == "":
        return None
    try:
        amount = float(str(value).replace(",", ""))
    except ValueError:
        return None
    if amount.is_integer():
        return f"{int(amount):,}"
    return f"{amount:,}"
