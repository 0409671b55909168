"""Structured logging helpers (PII-safe)."""

from typing import Any


def build_log_context(
    *,
    entity_type: str | None = None,
    record_id: str | int | None = None,
    operation: str | None = None,
    request_id: int | None = None,
    status_code: int | None = None,
) -> dict[str, Any]:
    """Return a PII-safe log context dict for ``extra=``.

    Never pass note text, names, or contact details here.
    """
    context: dict[str, Any] = {}
    if entity_type:
        context["entity_type"] = entity_type
    if record_id is not None and record_id != "":
        context["record_id"] = str(record_id)
    if operation:
        context["operation"] = operation
    if request_id is not None:
        context["request_id"] = request_id
    if status_code is not None:
        context["status_code"] = status_code
    return context
