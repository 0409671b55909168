"""Search-as-you-type across every referenceable record type.

All seven collections are fetched concurrently; a failing source contributes
no suggestions and never blocks the others. Only the latest search may write
the suggestion list.
"""

from __future__ import annotations

import asyncio
import logging
from typing import Any, Iterable

from recordview.core.async_utils import RequestSequencer
from recordview.core.config import settings
from recordview.core.structured_logging import build_log_context
from recordview.schemas.reference import EntityReference, ReferenceType
from recordview.services.api_client import CrmApiClient
from recordview.services.reference_registry import (
    SEARCH_ORDER,
    build_reference,
    get_reference_type,
    matches_query,
)

logger = logging.getLogger(__name__)

_SEARCH_OP = "search"


class ReferenceResolver:
    def __init__(
        self,
        api: CrmApiClient,
        *,
        min_query_length: int | None = None,
        max_results: int | None = None,
    ) -> None:
        self.api = api
        self.min_query_length = (
            min_query_length if min_query_length is not None else settings.SEARCH_MIN_QUERY_LENGTH
        )
        self.max_results = max_results if max_results is not None else settings.SEARCH_MAX_RESULTS
        self.suggestions: list[EntityReference] = []
        self.is_loading = False
        self.is_open = False
        self._sequencer = RequestSequencer()

    async def _search_source(self, ref_type: ReferenceType, query: str) -> list[EntityReference]:
        spec = get_reference_type(ref_type)
        try:
            records = await self.api.list_collection(spec.collection, spec.response_key)
        except Exception:
            logger.warning(
                "Reference search source failed",
                exc_info=True,
                extra=build_log_context(entity_type=ref_type.value, operation=_SEARCH_OP),
            )
            return []

        matches: list[EntityReference] = []
        for raw in records:
            if not matches_query(raw, ref_type, query):
                continue
            try:
                matches.append(build_reference(raw, ref_type))
            except ValueError:
                logger.debug(
                    "Skipping search result without id",
                    extra=build_log_context(entity_type=ref_type.value, operation=_SEARCH_OP),
                )
        return matches

    async def search(self, query: str, *, exclude_ids: Iterable[Any] = ()) -> list[EntityReference]:
        """Resolve ``query`` to at most ``max_results`` references.

        Already-selected ids are excluded. A query shorter than the minimum
        clears the suggestions and closes the dropdown.
        """
        trimmed = (query or "").strip()
        if len(trimmed) < self.min_query_length:
            self.clear()
            return []

        token = self._sequencer.next(_SEARCH_OP)
        self.is_loading = True
        try:
            per_source = await asyncio.gather(
                *(self._search_source(ref_type, trimmed) for ref_type in SEARCH_ORDER)
            )
        finally:
            if self._sequencer.is_current(_SEARCH_OP, token):
                self.is_loading = False

        if not self._sequencer.is_current(_SEARCH_OP, token):
            # A newer search (or a clear) owns the state now
            return list(self.suggestions)

        excluded = {str(i) for i in exclude_ids}
        merged = [
            ref
            for results in per_source
            for ref in results
            if str(ref.id) not in excluded
        ]
        self.suggestions = merged[: self.max_results]
        self.is_open = bool(self.suggestions)
        return list(self.suggestions)

    def clear(self) -> None:
        """Drop suggestions, close the dropdown and orphan any in-flight search."""
        self._sequencer.invalidate(_SEARCH_OP)
        self.suggestions = []
        self.is_open = False
        self.is_loading = False

    def cancel(self) -> None:
        self.clear()
