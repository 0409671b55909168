"""Job Seekers overview list: rows, configurable columns, filtering and bulk delete."""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass, field
from typing import Any, Iterable, Literal, Mapping, Sequence

from recordview.core.structured_logging import build_log_context
from recordview.schemas.custom_field import CustomFieldDefinition, FieldOption
from recordview.schemas.records import CUSTOM_FIELD_PREFIX, lookup_custom_value
from recordview.services.api_client import CrmApiClient, CrmApiError
from recordview.services.field_catalog import HeaderFieldConfig, build_alias_index, build_catalog
from recordview.services.record_normalizer import parse_custom_fields, validate_items
from recordview.services.reference_registry import get_reference_type
from recordview.utils.datetime_parsing import parse_datetime_value

logger = logging.getLogger(__name__)

ENTITY_TYPE = "JOB_SEEKER"
NOT_AVAILABLE = "N/A"

DEFAULT_COLUMNS: tuple[str, ...] = (
    "full_name",
    "email",
    "phone",
    "status",
    "last_contact_date",
    "owner",
)

STANDARD_COLUMNS: tuple[FieldOption, ...] = (
    FieldOption(key="full_name", label="Name"),
    FieldOption(key="email", label="Email"),
    FieldOption(key="phone", label="Phone"),
    FieldOption(key="status", label="Status"),
    FieldOption(key="last_contact_date", label="Last Contact"),
    FieldOption(key="owner", label="Owner"),
)

SortDirection = Literal["asc", "desc"]


@dataclass
class BulkDeleteResult:
    succeeded: list[str] = field(default_factory=list)
    failed: list[str] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return not self.failed


def _custom_values(row: dict[str, Any]) -> dict[str, Any]:
    value = row.get("customFields")
    if value is None:
        value = row.get("custom_fields")
    return parse_custom_fields(value, entity_type=ENTITY_TYPE, record_id=str(row.get("id")))


class JobSeekerList:
    def __init__(self, api: CrmApiClient, default_columns: Iterable[str] = DEFAULT_COLUMNS) -> None:
        self.api = api
        self.spec = get_reference_type("JobSeeker")
        self.columns = HeaderFieldConfig(api, ENTITY_TYPE, list(default_columns), config_type="columns")
        self.rows: list[dict[str, Any]] = []
        self.field_definitions: list[CustomFieldDefinition] = []
        self.is_loading = False
        self.error: str | None = None
        self.is_loading_fields = False
        self.is_deleting = False
        self.delete_error: str | None = None

        self.search_term = ""
        self.status_filter: str | None = None
        self.sort_key: str | None = None
        self.sort_direction: SortDirection = "asc"

    # =========================================================================
    # Loading
    # =========================================================================

    async def load(self) -> None:
        await asyncio.gather(self.load_rows(), self.load_field_definitions(), self.columns.load())

    async def load_rows(self) -> None:
        self.is_loading = True
        self.error = None
        try:
            self.rows = await self.api.list_collection(self.spec.collection, self.spec.response_key)
        except CrmApiError as exc:
            logger.warning("Failed to load job seekers", extra=build_log_context(entity_type=ENTITY_TYPE))
            self.error = exc.message
        finally:
            self.is_loading = False

    async def load_field_definitions(self) -> None:
        self.is_loading_fields = True
        try:
            raw_fields = await self.api.list_field_definitions(self.spec.collection)
            self.field_definitions = validate_items(
                CustomFieldDefinition, raw_fields, entity_type=ENTITY_TYPE, operation="fields.load"
            )
        except CrmApiError:
            logger.warning(
                "Failed to load job seeker fields",
                extra=build_log_context(entity_type=ENTITY_TYPE, operation="fields.load"),
            )
            self.field_definitions = []
        finally:
            self.is_loading_fields = False

    # =========================================================================
    # Columns
    # =========================================================================

    def columns_catalog(self) -> list[FieldOption]:
        """Standard columns, then visible custom definitions, then custom keys seen on rows."""
        row_keys: dict[str, Any] = {}
        for row in self.rows:
            for key in _custom_values(row):
                row_keys.setdefault(key, None)
        catalog = build_catalog(
            STANDARD_COLUMNS,
            self.field_definitions,
            row_keys,
            custom_prefix=CUSTOM_FIELD_PREFIX,
        )
        return [
            option
            if not option.key.startswith(CUSTOM_FIELD_PREFIX)
            else FieldOption(key=option.key, label=option.label, sortable=False)
            for option in catalog
        ]

    def column_label(self, key: str) -> str:
        for option in self.columns_catalog():
            if option.key == key:
                return option.label
        return key

    def visible_columns(self) -> list[FieldOption]:
        return self.columns.render_order(self.columns_catalog())

    def alias_index(self) -> dict[str, list[str]]:
        return build_alias_index(self.field_definitions)

    def cell(self, row: dict[str, Any], key: str) -> str:
        """Display value of ``key`` for ``row``, resolving custom field aliases."""
        return self.column_value(row, key, self.alias_index())

    @staticmethod
    def column_value(
        row: dict[str, Any], key: str, aliases: Mapping[str, Sequence[str]] | None = None
    ) -> str:
        if key.startswith(CUSTOM_FIELD_PREFIX):
            value = lookup_custom_value(_custom_values(row), key[len(CUSTOM_FIELD_PREFIX):], aliases)
            return NOT_AVAILABLE if value is None or value == "" else str(value)
        if key == "owner":
            return str(row.get("owner") or row.get("created_by_name") or "Unassigned")
        if key in DEFAULT_COLUMNS:
            value = row.get(key)
            return str(value) if value else NOT_AVAILABLE
        return NOT_AVAILABLE

    # =========================================================================
    # Filtering / sorting
    # =========================================================================

    def set_sort(self, key: str | None, direction: SortDirection = "asc") -> None:
        self.sort_key = key
        self.sort_direction = direction

    @staticmethod
    def _sort_value(row: dict[str, Any], key: str, aliases: Mapping[str, Sequence[str]] | None = None) -> Any:
        if key.startswith(CUSTOM_FIELD_PREFIX):
            return lookup_custom_value(_custom_values(row), key[len(CUSTOM_FIELD_PREFIX):], aliases)
        if key == "id":
            try:
                return int(row.get("id"))
            except (TypeError, ValueError):
                return 0
        if key == "last_contact_date":
            parsed = parse_datetime_value(row.get("last_contact_date"))
            return parsed.timestamp() if parsed is not None else 0
        if key == "owner":
            return row.get("owner") or row.get("created_by_name") or ""
        return row.get(key)

    def _matches_search(self, row: dict[str, Any]) -> bool:
        needle = self.search_term.strip().lower()
        if not needle:
            return True
        return any(
            needle in str(row.get(key) or "").lower() for key in ("full_name", "email", "id")
        )

    def visible_rows(self) -> list[dict[str, Any]]:
        rows = [row for row in self.rows if self._matches_search(row)]
        if self.status_filter:
            wanted = self.status_filter.lower()
            rows = [row for row in rows if str(row.get("status") or "").lower() == wanted]
        if self.sort_key:
            aliases = self.alias_index()
            keyed = [(self._sort_value(row, self.sort_key, aliases), row) for row in rows]
            present = [pair for pair in keyed if pair[0] not in (None, "")]
            missing = [row for value, row in keyed if value in (None, "")]
            present.sort(
                key=lambda pair: (0, pair[0]) if isinstance(pair[0], (int, float)) else (1, str(pair[0]).lower()),
                reverse=self.sort_direction == "desc",
            )
            rows = [row for _, row in present] + missing
        return rows

    def status_options(self) -> list[str]:
        return sorted({str(row["status"]) for row in self.rows if row.get("status")})

    # =========================================================================
    # Bulk delete
    # =========================================================================

    async def _delete_one(self, record_id: str) -> bool:
        try:
            await self.api.delete_record(self.spec.collection, record_id)
        except CrmApiError:
            logger.warning(
                "Failed to delete job seeker",
                extra=build_log_context(entity_type=ENTITY_TYPE, record_id=record_id, operation="delete"),
            )
            return False
        return True

    async def bulk_delete(self, record_ids: Iterable[str | int]) -> BulkDeleteResult:
        """Delete each id independently; one failure does not stop the rest."""
        ids = [str(i) for i in record_ids]
        result = BulkDeleteResult()
        if not ids:
            return result
        self.is_deleting = True
        self.delete_error = None
        try:
            outcomes = await asyncio.gather(*(self._delete_one(i) for i in ids))
        finally:
            self.is_deleting = False
        for record_id, ok in zip(ids, outcomes):
            (result.succeeded if ok else result.failed).append(record_id)
        if result.failed:
            self.delete_error = f"Failed to delete {len(result.failed)} job seekers"
        if result.succeeded:
            await self.load_rows()
        return result
