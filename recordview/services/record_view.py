"""Record detail view state for Hiring Managers, Jobs and Tasks.

Loading the entity fans out into independent loads for notes, history,
field definitions and header config. Each one keeps its own loading flag
and error, and a failure in one never blocks the others. Every write to
view state is gated on a ``RequestSequencer`` token so that responses
arriving after a newer request, or after ``close()``, are dropped.
"""

from __future__ import annotations

import asyncio
import enum
import logging
from typing import Any

from pydantic import ValidationError

from recordview.core.async_utils import RequestSequencer
from recordview.core.config import settings
from recordview.core.structured_logging import build_log_context
from recordview.schemas.custom_field import CustomFieldDefinition, FieldOption
from recordview.schemas.history import HistoryEntry, HistorySortOrder, RenderedHistoryEntry
from recordview.schemas.note import NoteRead
from recordview.schemas.records import CUSTOM_FIELD_PREFIX, NormalizedRecord
from recordview.schemas.reference import EntityReference
from recordview.services.api_client import CrmApiClient, CrmApiError
from recordview.services.field_catalog import (
    FieldVisibilityEngine,
    HeaderFieldConfig,
    build_alias_index,
    build_catalog,
    build_label_index,
)
from recordview.services.history_renderer import filter_history, render_history_entry, unique_users
from recordview.services.note_composer import NoteComposer
from recordview.services.panel_layout import PanelLayout
from recordview.services.record_normalizer import validate_items
from recordview.services.preference_store import InMemoryPreferenceStore, PreferenceStore
from recordview.services.reference_registry import build_reference
from recordview.services.view_configs import RecordViewConfig

logger = logging.getLogger(__name__)

RECENT_NOTES_PANEL = "recentNotes"
RECENT_NOTES_FIELD = FieldOption(key="notes", label="Recent Notes", sortable=False)
EMPTY_DISPLAY = "-"
RECORD_PARSE_ERROR = "Failed to parse record data"


class RecordTab(str, enum.Enum):
    SUMMARY = "summary"
    MODIFY = "modify"
    HISTORY = "history"
    NOTES = "notes"
    DOCS = "docs"


class RecordView:
    def __init__(
        self,
        api: CrmApiClient,
        config: RecordViewConfig,
        record_id: str | int,
        *,
        store: PreferenceStore | None = None,
        recent_notes_limit: int | None = None,
    ) -> None:
        self.api = api
        self.config = config
        self.record_id = record_id
        self.store = store if store is not None else InMemoryPreferenceStore()
        self.recent_notes_limit = (
            recent_notes_limit if recent_notes_limit is not None else settings.RECENT_NOTES_LIMIT
        )

        self.raw: dict[str, Any] | None = None
        self.record: NormalizedRecord | None = None
        self.is_loading = False
        self.error: str | None = None

        self.notes: list[NoteRead] = []
        self.is_loading_notes = False
        self.notes_error: str | None = None

        self.history: list[HistoryEntry] = []
        self.is_loading_history = False
        self.history_error: str | None = None

        self.field_definitions: list[CustomFieldDefinition] = []
        self.is_loading_fields = False
        self.fields_error: str | None = None

        self.summary_counts: dict[str, int] = {}
        self.active_tab = RecordTab.SUMMARY
        self.composer: NoteComposer | None = None
        self.is_deleting = False
        self.delete_error: str | None = None
        self.closed = False

        self.visibility = FieldVisibilityEngine(
            config.entity_type,
            {panel: list(keys) for panel, keys in config.default_panel_fields.items()},
            self.store,
        )
        self.layout = PanelLayout(config.entity_type, config.default_layout, self.store)
        self.header = HeaderFieldConfig(
            api, config.entity_type, list(config.default_header_fields), config_type="header"
        )
        self._sequencer = RequestSequencer()

    def _log_context(self, operation: str) -> dict[str, Any]:
        return build_log_context(
            entity_type=self.config.entity_type, record_id=str(self.record_id), operation=operation
        )

    def _item_context(self, operation: str) -> dict[str, Any]:
        return {"entity_type": self.config.entity_type, "record_id": str(self.record_id), "operation": operation}

    # =========================================================================
    # Loading
    # =========================================================================

    async def load(self) -> NormalizedRecord | None:
        """Fetch the record, then the dependent data concurrently."""
        token = self._sequencer.next("record")
        self.is_loading = True
        self.error = None
        try:
            raw = await self.api.fetch_record(self.config.collection, self.record_id, self.config.record_key)
            record = self.config.normalizer(raw)
        except CrmApiError as exc:
            logger.warning("Failed to load record", extra=self._log_context("record.load"))
            if self._sequencer.is_current("record", token):
                self.error = exc.message
                self.is_loading = False
            return None
        except ValidationError:
            logger.warning("Malformed record payload", exc_info=True, extra=self._log_context("record.load"))
            if self._sequencer.is_current("record", token):
                self.error = RECORD_PARSE_ERROR
                self.is_loading = False
            return None

        if not self._sequencer.is_current("record", token):
            return None
        self.raw = raw
        self.record = record
        self.is_loading = False

        self.visibility.load()
        self.layout.load()
        await asyncio.gather(
            self.load_notes(),
            self.load_history(),
            self.load_field_definitions(),
            self._load_header(),
        )
        return record

    async def reload(self) -> NormalizedRecord | None:
        return await self.load()

    def close(self) -> None:
        """Drop every in-flight response; the view no longer updates."""
        self.closed = True
        self._sequencer.invalidate()
        if self.composer is not None:
            self.composer.cancel()

    async def load_notes(self) -> None:
        token = self._sequencer.next("notes")
        self.is_loading_notes = True
        self.notes_error = None
        try:
            raw_notes = await self.api.list_notes(self.config.collection, self.record_id)
            notes = validate_items(NoteRead, raw_notes, **self._item_context("notes.load"))
        except CrmApiError as exc:
            logger.warning("Failed to load notes", extra=self._log_context("notes.load"))
            if self._sequencer.is_current("notes", token):
                self.notes_error = exc.message
                self.is_loading_notes = False
            return
        if self._sequencer.is_current("notes", token):
            self.notes = notes
            self.is_loading_notes = False
            self._recompute_counts()

    async def load_history(self) -> None:
        token = self._sequencer.next("history")
        self.is_loading_history = True
        self.history_error = None
        try:
            raw_history = await self.api.list_history(self.config.collection, self.record_id)
            history = validate_items(HistoryEntry, raw_history, **self._item_context("history.load"))
        except CrmApiError as exc:
            logger.warning("Failed to load history", extra=self._log_context("history.load"))
            if self._sequencer.is_current("history", token):
                self.history_error = exc.message
                self.is_loading_history = False
            return
        if self._sequencer.is_current("history", token):
            self.history = history
            self.is_loading_history = False

    async def load_field_definitions(self) -> None:
        token = self._sequencer.next("fields")
        self.is_loading_fields = True
        self.fields_error = None
        try:
            raw_fields = await self.api.list_field_definitions(self.config.collection)
            definitions = validate_items(
                CustomFieldDefinition, raw_fields, **self._item_context("fields.load")
            )
        except CrmApiError as exc:
            logger.warning("Failed to load field definitions", extra=self._log_context("fields.load"))
            if self._sequencer.is_current("fields", token):
                self.fields_error = exc.message
                self.is_loading_fields = False
            return
        if self._sequencer.is_current("fields", token):
            self.field_definitions = definitions
            self.is_loading_fields = False

    async def _load_header(self) -> None:
        token = self._sequencer.next("header")
        fields = list(self.header.fields)
        await self.header.load()
        if not self._sequencer.is_current("header", token):
            self.header.fields = fields

    # =========================================================================
    # Notes
    # =========================================================================

    @property
    def self_reference(self) -> EntityReference:
        raw = dict(self.raw or {})
        if raw.get("id") in (None, ""):
            raw["id"] = self.record_id
        return build_reference(raw, self.config.reference_type)

    @property
    def recent_notes(self) -> list[NoteRead]:
        return self.notes[: self.recent_notes_limit]

    def _recompute_counts(self) -> None:
        counts: dict[str, int] = {}
        for tab in self.config.quick_tabs:
            if tab.note_action is None:
                continue
            wanted = tab.note_action.lower()
            counts[tab.id] = sum(1 for note in self.notes if (note.action or "").lower() == wanted)
        self.summary_counts = counts

    def open_note_composer(self) -> NoteComposer:
        """Composer pre-seeded with a reference to this record.

        A closed composer is re-seeded from the current record so a rename
        picked up by ``reload()`` reaches new notes.
        """
        if self.composer is not None and not self.composer.is_open:
            self.composer.self_reference = self.self_reference
        if self.composer is None:
            self.composer = NoteComposer(
                self.api,
                self.config.collection,
                self.record_id,
                self.self_reference,
                action_options=list(self.config.note_actions),
                on_created=self._on_note_created,
            )
        self.composer.open()
        return self.composer

    async def _on_note_created(self, note: NoteRead) -> None:
        if self.closed:
            return
        self.notes.insert(0, note)
        self._recompute_counts()
        await self.load_history()

    # =========================================================================
    # Fields
    # =========================================================================

    def _custom_values(self) -> dict[str, Any]:
        return self.record.custom_fields if self.record is not None else {}

    def catalog(self, panel_id: str) -> list[FieldOption]:
        """Fields the panel editor can list (hidden definitions excluded)."""
        if panel_id == RECENT_NOTES_PANEL:
            return [RECENT_NOTES_FIELD]
        standard = self.config.standard_fields.get(panel_id, ())
        if panel_id not in self.config.custom_field_panels:
            return build_catalog(standard)
        return build_catalog(
            standard,
            self.field_definitions,
            self._custom_values(),
            custom_prefix=CUSTOM_FIELD_PREFIX,
        )

    def header_catalog(self) -> list[FieldOption]:
        return build_catalog(
            self.config.header_standard_fields(),
            self.field_definitions,
            self._custom_values(),
            custom_prefix=CUSTOM_FIELD_PREFIX,
        )

    def addable_fields(self, panel_id: str) -> list[FieldOption]:
        return self.visibility.addable_fields(panel_id, self.catalog(panel_id))

    def _labels(self) -> dict[str, str]:
        return build_label_index(
            self.config.header_standard_fields(),
            self.field_definitions,
            custom_prefix=CUSTOM_FIELD_PREFIX,
        )

    def _display(self, key: str) -> Any:
        if key == RECENT_NOTES_FIELD.key:
            return [note.preview() for note in self.recent_notes]
        if self.record is None:
            return EMPTY_DISPLAY
        value = self.record.field_value(key, build_alias_index(self.field_definitions))
        if value is None or value == "":
            return EMPTY_DISPLAY
        return value

    def panel_values(self, panel_id: str) -> list[tuple[str, Any]]:
        """Ordered ``(label, value)`` pairs for a summary panel."""
        options = self.visibility.render_order(panel_id, self.catalog(panel_id), self._labels())
        return [(option.label, self._display(option.key)) for option in options]

    def header_values(self) -> list[tuple[str, Any]]:
        options = self.header.render_order(self.header_catalog(), self._labels())
        return [(option.label, self._display(option.key)) for option in options]

    # =========================================================================
    # History
    # =========================================================================

    def rendered_history(
        self, user_filter: str = "", sort_order: HistorySortOrder = "desc"
    ) -> list[RenderedHistoryEntry]:
        entries = filter_history(self.history, user_filter, sort_order)
        return [render_history_entry(entry, self.config.entity_label) for entry in entries]

    def history_users(self) -> list[str]:
        return unique_users(self.history)

    # =========================================================================
    # Actions
    # =========================================================================

    def set_active_tab(self, tab: RecordTab | str) -> RecordTab:
        self.active_tab = RecordTab(tab)
        return self.active_tab

    async def delete(self) -> bool:
        self.is_deleting = True
        self.delete_error = None
        try:
            await self.api.delete_record(self.config.collection, self.record_id)
        except CrmApiError as exc:
            logger.warning("Failed to delete record", extra=self._log_context("record.delete"))
            self.delete_error = exc.message
            return False
        finally:
            self.is_deleting = False
        return True
