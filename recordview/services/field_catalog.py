"""Field catalog and per-panel field visibility.

The catalog is what a field picker lists: standard fields plus custom fields
from field management, deduplicated by stable key, with hidden definitions
left out. Visibility lists are ordered key lists per panel. A key that was
selected before its definition got hidden stays rendered until removed, it
just cannot be added again.

Panel visibility persists to the local preference store. Header fields (and
list columns) round-trip through the remote header-config endpoint instead.
"""

from __future__ import annotations

import logging
from typing import Any, Iterable, Literal, Mapping

from recordview.core.structured_logging import build_log_context
from recordview.schemas.custom_field import CustomFieldDefinition, FieldOption
from recordview.schemas.records import CUSTOM_FIELD_PREFIX
from recordview.services.api_client import CrmApiClient, CrmApiError
from recordview.services.preference_store import (
    PreferenceStore,
    preference_key,
    safe_get,
    safe_reset,
    safe_set,
)
from recordview.utils.presentation import humanize_identifier

logger = logging.getLogger(__name__)

ConfigType = Literal["header", "columns"]
Direction = Literal["up", "down"]


def _as_option(field: FieldOption | Mapping[str, Any] | tuple[str, str] | str) -> FieldOption:
    if isinstance(field, FieldOption):
        return field
    if isinstance(field, str):
        return FieldOption(key=field, label=humanize_identifier(field))
    if isinstance(field, tuple):
        return FieldOption(key=field[0], label=field[1])
    key = str(field["key"])
    return FieldOption(
        key=key,
        label=str(field.get("label") or humanize_identifier(key)),
        sortable=bool(field.get("sortable", True)),
    )


def _as_definition(raw: CustomFieldDefinition | Mapping[str, Any]) -> CustomFieldDefinition:
    if isinstance(raw, CustomFieldDefinition):
        return raw
    return CustomFieldDefinition.model_validate(dict(raw))


def _bare_key(key: str) -> str:
    return key[len(CUSTOM_FIELD_PREFIX):] if key.startswith(CUSTOM_FIELD_PREFIX) else key


def hidden_field_keys(custom_field_defs: Iterable[CustomFieldDefinition | Mapping[str, Any]]) -> set[str]:
    """Every alias of every hidden definition."""
    keys: set[str] = set()
    for raw in custom_field_defs:
        definition = _as_definition(raw)
        if definition.hidden_flag:
            keys.update(definition.aliases)
    return keys


def build_alias_index(
    custom_field_defs: Iterable[CustomFieldDefinition | Mapping[str, Any]],
) -> dict[str, list[str]]:
    """Map each alias of a definition to all of that definition's aliases."""
    index: dict[str, list[str]] = {}
    for raw in custom_field_defs:
        aliases = _as_definition(raw).aliases
        for alias in aliases:
            index.setdefault(alias, aliases)
    return index


def build_catalog(
    standard_fields: Iterable[FieldOption | Mapping[str, Any] | tuple[str, str] | str],
    custom_field_defs: Iterable[CustomFieldDefinition | Mapping[str, Any]] = (),
    current_custom_values: Mapping[str, Any] | None = None,
    *,
    custom_prefix: str = "",
) -> list[FieldOption]:
    """Merge standard fields, custom definitions and custom value keys.

    Order: standard fields, then visible custom definitions in service order,
    then custom keys only seen on the record's values. A key is listed once
    no matter how many sources mention it. Value keys are matched against
    every alias of a definition (key, api name, name, label, id): a match on
    a visible definition folds into its entry, a match on a hidden one is
    skipped along with the definition.
    """
    catalog: list[FieldOption] = []
    seen: set[str] = set()

    def _add(option: FieldOption) -> None:
        bare = _bare_key(option.key)
        if option.key in seen or bare in seen:
            return
        seen.add(option.key)
        seen.add(bare)
        catalog.append(option)

    for field in standard_fields:
        _add(_as_option(field))

    definitions = [_as_definition(raw) for raw in custom_field_defs]
    hidden = hidden_field_keys(definitions)
    known: set[str] = set()
    for definition in definitions:
        key = definition.stable_key
        if not key or definition.hidden_flag:
            continue
        known.update(definition.aliases)
        _add(FieldOption(key=f"{custom_prefix}{key}", label=definition.label))

    for key in (current_custom_values or {}):
        key = str(key)
        if not key.strip() or key in hidden or key in known:
            continue
        _add(FieldOption(key=f"{custom_prefix}{key}", label=humanize_identifier(key)))

    return catalog


def build_label_index(
    standard_fields: Iterable[FieldOption | Mapping[str, Any] | tuple[str, str] | str],
    custom_field_defs: Iterable[CustomFieldDefinition | Mapping[str, Any]] = (),
    *,
    custom_prefix: str = "",
) -> dict[str, str]:
    """Labels for every known key, hidden definitions included (for rendering)."""
    labels: dict[str, str] = {}
    for field in standard_fields:
        option = _as_option(field)
        labels.setdefault(option.key, option.label)
    for raw in custom_field_defs:
        definition = _as_definition(raw)
        for alias in definition.aliases:
            labels.setdefault(f"{custom_prefix}{alias}", definition.label)
    return labels


def _dedupe(keys: Iterable[Any]) -> list[str]:
    result: list[str] = []
    for key in keys:
        key = str(key)
        if key and key not in result:
            result.append(key)
    return result


def _fallback_label(key: str) -> str:
    return humanize_identifier(_bare_key(key))


# =============================================================================
# Panel visibility (local persistence)
# =============================================================================


class FieldVisibilityEngine:
    """Ordered visible-field lists for the panels of one entity type."""

    def __init__(
        self,
        entity_type: str,
        defaults: Mapping[str, list[str]],
        store: PreferenceStore,
    ) -> None:
        self.entity_type = entity_type
        self.defaults = {panel: _dedupe(keys) for panel, keys in defaults.items()}
        self.store = store
        self._panels: dict[str, list[str]] = {panel: list(keys) for panel, keys in self.defaults.items()}

    def _key(self, panel_id: str) -> str:
        return preference_key(self.entity_type, panel_id)

    def load(self) -> None:
        """Apply stored lists over the defaults; anything malformed is ignored."""
        for panel_id in self.defaults:
            stored = safe_get(self.store, self._key(panel_id))
            if isinstance(stored, list) and all(isinstance(k, str) for k in stored):
                self._panels[panel_id] = _dedupe(stored)
            elif stored is not None:
                logger.warning(
                    "Ignoring malformed panel preference",
                    extra=build_log_context(entity_type=self.entity_type, operation=f"panel.{panel_id}"),
                )

    def fields_for(self, panel_id: str) -> list[str]:
        return list(self._panels.get(panel_id, self.defaults.get(panel_id, [])))

    def is_visible(self, panel_id: str, field_key: str) -> bool:
        return field_key in self._panels.get(panel_id, [])

    def _persist(self, panel_id: str) -> None:
        safe_set(self.store, self._key(panel_id), list(self._panels[panel_id]))

    def toggle_visibility(self, panel_id: str, field_key: str) -> bool:
        """Flip ``field_key`` in the panel; enabling appends it. Returns the new visibility."""
        keys = self._panels.setdefault(panel_id, list(self.defaults.get(panel_id, [])))
        if field_key in keys:
            keys.remove(field_key)
            visible = False
        else:
            keys.append(field_key)
            visible = True
        self._persist(panel_id)
        return visible

    def set_panel_fields(self, panel_id: str, field_keys: Iterable[str]) -> None:
        self._panels[panel_id] = _dedupe(field_keys)
        self._persist(panel_id)

    def reset(self, panel_id: str) -> None:
        self._panels[panel_id] = list(self.defaults.get(panel_id, []))
        safe_reset(self.store, self._key(panel_id))

    def addable_fields(self, panel_id: str, catalog: Iterable[FieldOption]) -> list[FieldOption]:
        """Catalog entries not already in the panel."""
        selected = set(self._panels.get(panel_id, []))
        return [option for option in catalog if option.key not in selected]

    def render_order(
        self,
        panel_id: str,
        catalog: Iterable[FieldOption],
        labels: Mapping[str, str] | None = None,
    ) -> list[FieldOption]:
        """Selected fields in configured order, including stale hidden ones."""
        by_key = {option.key: option for option in catalog}
        rendered: list[FieldOption] = []
        for key in self._panels.get(panel_id, []):
            option = by_key.get(key)
            if option is None:
                label = (labels or {}).get(key) or _fallback_label(key)
                option = FieldOption(key=key, label=label)
            rendered.append(option)
        return rendered


# =============================================================================
# Header fields / list columns (remote persistence)
# =============================================================================


class HeaderFieldConfig:
    """
    Remote-persisted ordered field list with a draft-and-save editor.

    ``fields`` is what renders. The editor works on ``draft`` and only
    replaces ``fields`` after the server confirms the save; a failed save
    keeps the editor open with ``save_error`` set.
    """

    SAVE_ERROR = "Failed to save field configuration. Please try again."

    def __init__(
        self,
        api: CrmApiClient,
        entity_type: str,
        default_fields: list[str],
        config_type: ConfigType = "header",
    ) -> None:
        self.api = api
        self.entity_type = entity_type
        self.config_type = config_type
        self.default_fields = _dedupe(default_fields)
        self.fields: list[str] = list(self.default_fields)
        self.draft: list[str] = []
        self.is_loading = False
        self.is_saving = False
        self.is_editing = False
        self.load_error: str | None = None
        self.save_error: str | None = None

    def _log_context(self, operation: str) -> dict[str, Any]:
        return build_log_context(entity_type=self.entity_type, operation=f"{self.config_type}.{operation}")

    async def load(self) -> list[str]:
        self.is_loading = True
        self.load_error = None
        try:
            stored = await self.api.get_header_config(self.entity_type, self.config_type)
        except CrmApiError as exc:
            logger.warning("Failed to load field config", extra=self._log_context("load"))
            self.load_error = exc.message
            stored = None
        finally:
            self.is_loading = False
        if stored:
            self.fields = _dedupe(stored)
        return list(self.fields)

    def open_editor(self) -> None:
        self.draft = list(self.fields)
        self.save_error = None
        self.is_editing = True

    def cancel_editor(self) -> None:
        self.draft = []
        self.save_error = None
        self.is_editing = False

    def toggle(self, field_key: str) -> None:
        if field_key in self.draft:
            self.draft.remove(field_key)
        else:
            self.draft.append(field_key)

    def reorder(self, field_key: str, direction: Direction) -> None:
        """Swap ``field_key`` with its neighbor; no-op at either end."""
        if field_key not in self.draft:
            return
        index = self.draft.index(field_key)
        target = index - 1 if direction == "up" else index + 1
        if target < 0 or target >= len(self.draft):
            return
        self.draft[index], self.draft[target] = self.draft[target], self.draft[index]

    def reset_draft(self) -> None:
        self.draft = list(self.default_fields)

    def available(self, catalog: Iterable[FieldOption]) -> list[FieldOption]:
        """Catalog entries the editor can still add."""
        selected = set(self.draft if self.is_editing else self.fields)
        return [option for option in catalog if option.key not in selected]

    async def save(self) -> bool:
        """Persist the draft. The editor closes only on confirmed success."""
        if not self.is_editing:
            return False
        self.is_saving = True
        self.save_error = None
        fields = list(self.draft)
        try:
            ok = await self.api.save_header_config(self.entity_type, self.config_type, fields)
        except CrmApiError:
            logger.warning("Failed to save field config", exc_info=True, extra=self._log_context("save"))
            ok = False
        finally:
            self.is_saving = False

        if not ok:
            self.save_error = self.SAVE_ERROR
            return False
        self.fields = fields
        self.draft = []
        self.is_editing = False
        return True

    def render_order(
        self,
        catalog: Iterable[FieldOption],
        labels: Mapping[str, str] | None = None,
    ) -> list[FieldOption]:
        by_key = {option.key: option for option in catalog}
        return [
            by_key.get(key)
            or FieldOption(key=key, label=(labels or {}).get(key) or _fallback_label(key))
            for key in self.fields
        ]
