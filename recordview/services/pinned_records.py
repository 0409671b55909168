"""Pinned records: a short most-recent-first list kept in the preference store."""

from __future__ import annotations

from typing import Any, Literal

from pydantic import BaseModel

from recordview.services.preference_store import PreferenceStore, safe_get, safe_set
from recordview.services.reference_registry import get_reference_type

PINNED_RECORDS_KEY = "pinnedRecords"
MAX_PINNED_RECORDS = 10

ToggleResult = Literal["pinned", "unpinned", "limit"]
PinRefusal = Literal["limit", "duplicate"]


class PinnedRecord(BaseModel):
    key: str
    label: str
    url: str


def build_pinned_key(module: str, record_id: str | int) -> str:
    return f"{module}:{record_id}"


def pinned_record_for(record_type: str, record_id: str | int, label: str) -> PinnedRecord:
    spec = get_reference_type(record_type)
    return PinnedRecord(
        key=build_pinned_key(spec.type.value, record_id),
        label=label,
        url=spec.navigation_url(record_id),
    )


class PinnedRecords:
    def __init__(self, store: PreferenceStore, *, limit: int = MAX_PINNED_RECORDS) -> None:
        self.store = store
        self.limit = limit

    def load(self) -> list[PinnedRecord]:
        stored = safe_get(self.store, PINNED_RECORDS_KEY)
        if not isinstance(stored, list):
            return []
        records: list[PinnedRecord] = []
        for item in stored:
            if not isinstance(item, dict):
                continue
            record = PinnedRecord(
                key=str(item.get("key") or ""),
                label=str(item.get("label") or ""),
                url=str(item.get("url") or ""),
            )
            if record.key and record.url:
                records.append(record)
        return records

    def _save(self, records: list[PinnedRecord]) -> None:
        payload: list[dict[str, Any]] = [r.model_dump() for r in records]
        safe_set(self.store, PINNED_RECORDS_KEY, payload)

    def is_pinned(self, key: str) -> bool:
        return any(r.key == key for r in self.load())

    def pin(self, record: PinnedRecord) -> PinRefusal | None:
        """Pin at the front. Returns the refusal reason, or None when pinned."""
        existing = self.load()
        if any(r.key == record.key for r in existing):
            return "duplicate"
        if len(existing) >= self.limit:
            return "limit"
        self._save([record, *existing])
        return None

    def unpin(self, key: str) -> None:
        self._save([r for r in self.load() if r.key != key])

    def toggle(self, record: PinnedRecord) -> ToggleResult:
        existing = self.load()
        if any(r.key == record.key for r in existing):
            self._save([r for r in existing if r.key != record.key])
            return "unpinned"
        if len(existing) >= self.limit:
            return "limit"
        self._save([record, *existing])
        return "pinned"
