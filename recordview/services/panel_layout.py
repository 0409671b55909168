"""Two-column arrangement of the summary panels, persisted per entity type."""

from __future__ import annotations

import logging
from typing import Literal, Mapping

from recordview.core.structured_logging import build_log_context
from recordview.services.preference_store import PreferenceStore, preference_key, safe_get, safe_set

logger = logging.getLogger(__name__)

Column = Literal["left", "right"]
COLUMNS: tuple[Column, ...] = ("left", "right")
LAYOUT_PANEL_ID = "summaryColumns"


class PanelLayout:
    def __init__(
        self,
        entity_type: str,
        default_columns: Mapping[str, tuple[str, ...] | list[str]],
        store: PreferenceStore,
    ) -> None:
        self.entity_type = entity_type
        self.store = store
        self.defaults: dict[str, list[str]] = {
            column: list(default_columns.get(column, ())) for column in COLUMNS
        }
        self.columns: dict[str, list[str]] = {column: list(ids) for column, ids in self.defaults.items()}

    @property
    def key(self) -> str:
        return preference_key(self.entity_type, LAYOUT_PANEL_ID)

    def load(self) -> dict[str, list[str]]:
        """Apply the stored layout when both columns are lists."""
        stored = safe_get(self.store, self.key)
        if (
            isinstance(stored, dict)
            and isinstance(stored.get("left"), list)
            and isinstance(stored.get("right"), list)
        ):
            self.columns = {column: [str(p) for p in stored[column]] for column in COLUMNS}
        elif stored is not None:
            logger.warning(
                "Ignoring malformed panel layout",
                extra=build_log_context(entity_type=self.entity_type, operation="layout.load"),
            )
        return self.snapshot()

    def snapshot(self) -> dict[str, list[str]]:
        return {column: list(ids) for column, ids in self.columns.items()}

    def find_column(self, panel_id: str) -> str | None:
        for column in COLUMNS:
            if panel_id in self.columns[column]:
                return column
        return None

    def move_panel(self, panel_id: str, column: Column, index: int | None = None) -> dict[str, list[str]]:
        """Move ``panel_id`` to ``column`` at ``index`` (end when omitted or past the end)."""
        if column not in COLUMNS:
            raise ValueError(f"Unknown column: {column}")
        for ids in self.columns.values():
            if panel_id in ids:
                ids.remove(panel_id)
        target = self.columns[column]
        if index is None or index >= len(target):
            target.append(panel_id)
        else:
            target.insert(max(index, 0), panel_id)
        safe_set(self.store, self.key, self.snapshot())
        return self.snapshot()

    def reset(self) -> dict[str, list[str]]:
        self.columns = {column: list(ids) for column, ids in self.defaults.items()}
        safe_set(self.store, self.key, self.snapshot())
        return self.snapshot()
