"""Resolve ``(type, id)`` pairs to display names.

Results, failures included, are cached for the lifetime of the resolver.
Concurrent lookups of the same record share one request.
"""

from __future__ import annotations

import asyncio
import logging
import re
from dataclasses import dataclass

from recordview.core.structured_logging import build_log_context
from recordview.services.api_client import CrmApiClient, CrmApiError
from recordview.services.reference_registry import get_reference_type

logger = logging.getLogger(__name__)

_WHITESPACE_RE = re.compile(r"\s+")


@dataclass(frozen=True)
class ResolvedName:
    name: str | None
    error: bool = False


class RecordNameResolver:
    def __init__(self, api: CrmApiClient) -> None:
        self.api = api
        self._cache: dict[str, ResolvedName] = {}
        self._inflight: dict[str, asyncio.Task[ResolvedName]] = {}

    @staticmethod
    def normalize_type(record_type: str) -> str:
        return _WHITESPACE_RE.sub("-", str(record_type).strip().lower())

    def cache_key(self, record_type: str, record_id: str | int) -> str:
        return f"{self.normalize_type(record_type)}:{str(record_id).strip()}"

    def cached(self, record_type: str, record_id: str | int) -> ResolvedName | None:
        return self._cache.get(self.cache_key(record_type, record_id))

    async def _fetch(self, key: str, record_type: str, record_id: str) -> ResolvedName:
        try:
            name = await self.api.resolve_record_name(record_type, record_id)
            entry = ResolvedName(name=name)
        except CrmApiError:
            logger.warning(
                "Failed to resolve record name",
                extra=build_log_context(entity_type=record_type, record_id=record_id, operation="resolve"),
            )
            entry = ResolvedName(name=None, error=True)
        finally:
            self._inflight.pop(key, None)
        self._cache[key] = entry
        return entry

    async def resolve(self, record_type: str, record_id: str | int | None) -> ResolvedName:
        if record_id is None or str(record_id).strip() == "":
            return ResolvedName(name=None, error=True)
        normalized = self.normalize_type(record_type)
        id_str = str(record_id).strip()
        key = f"{normalized}:{id_str}"

        cached = self._cache.get(key)
        if cached is not None:
            return cached
        task = self._inflight.get(key)
        if task is None:
            task = asyncio.ensure_future(self._fetch(key, normalized, id_str))
            self._inflight[key] = task
        return await asyncio.shield(task)

    async def display_name(
        self, record_type: str, record_id: str | int | None, fallback: str = "-"
    ) -> str:
        entry = await self.resolve(record_type, record_id)
        return entry.name if entry.name else fallback

    def view_url(self, record_type: str, record_id: str | int) -> str | None:
        """Navigation URL for the record, or None for an unknown type."""
        try:
            spec = get_reference_type(self.normalize_type(record_type))
        except ValueError:
            return None
        return spec.navigation_url(str(record_id).strip())
