"""Async client for the CRM REST service.

Handles:
- Bearer token injection (the token itself is supplied by the caller)
- JSON decoding with a readable error for non-JSON bodies
- Structured ``errors`` objects on failed writes
- Response keys that vary by endpoint generation
"""

from __future__ import annotations

import logging
from typing import Any
from urllib.parse import quote

import httpx

from recordview.core.config import settings
from recordview.core.structured_logging import build_log_context

logger = logging.getLogger(__name__)


def _default_timeout() -> httpx.Timeout:
    return httpx.Timeout(
        settings.HTTP_TIMEOUT_SECONDS, connect=settings.HTTP_CONNECT_TIMEOUT_SECONDS
    )


# Field-management payload keys, most specific first
FIELD_DEFINITION_KEYS: tuple[tuple[str, ...], ...] = (
    ("customFields",),
    ("fields",),
    ("data", "fields"),
    ("jobSeekerFields",),
    ("data",),
)


class CrmApiError(Exception):
    """A request to the CRM service failed (transport, status, or body)."""

    def __init__(
        self,
        message: str,
        *,
        status_code: int | None = None,
        errors: dict[str, str] | None = None,
    ) -> None:
        super().__init__(message)
        self.message = message
        self.status_code = status_code
        self.errors = errors or {}


def resolve_field_definitions(payload: Any) -> list[dict[str, Any]]:
    """Pull the custom field list out of a field-management response.

    The list lives under ``customFields``, ``fields``, ``data.fields``,
    ``jobSeekerFields`` or ``data`` depending on the endpoint; anything else
    resolves to an empty list.
    """
    if isinstance(payload, list):
        return [f for f in payload if isinstance(f, dict)]
    if not isinstance(payload, dict):
        return []
    for path in FIELD_DEFINITION_KEYS:
        node: Any = payload
        for part in path:
            node = node.get(part) if isinstance(node, dict) else None
        if isinstance(node, list):
            return [f for f in node if isinstance(f, dict)]
    return []


class CrmApiClient:
    """Thin async wrapper over ``httpx.AsyncClient`` for ``/api/*`` endpoints."""

    def __init__(
        self,
        base_url: str | None = None,
        token: str | None = None,
        *,
        http_client: httpx.AsyncClient | None = None,
        timeout: httpx.Timeout | None = None,
    ) -> None:
        self._token = token if token is not None else settings.API_TOKEN
        self._owns_client = http_client is None
        self._client = http_client or httpx.AsyncClient(
            base_url=(base_url or settings.api_base_url),
            timeout=timeout or _default_timeout(),
        )

    async def __aenter__(self) -> CrmApiClient:
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        if self._owns_client:
            await self._client.aclose()

    def _headers(self) -> dict[str, str]:
        headers = {"Accept": "application/json"}
        if self._token:
            headers["Authorization"] = f"Bearer {self._token}"
        return headers

    # =========================================================================
    # Transport
    # =========================================================================

    async def request(
        self,
        method: str,
        path: str,
        *,
        params: dict[str, Any] | None = None,
        json_body: Any = None,
    ) -> Any:
        """Send a request and return the decoded JSON body.

        Raises:
            CrmApiError: on transport failure, non-2xx status, or non-JSON body.
        """
        try:
            response = await self._client.request(
                method,
                path,
                params=params,
                json=json_body,
                headers=self._headers(),
            )
        except httpx.TimeoutException as exc:
            raise CrmApiError(f"Request to {path} timed out") from exc
        except httpx.RequestError as exc:
            raise CrmApiError(f"Request to {path} failed: {str(exc)[:200]}") from exc

        data: Any = None
        if response.content:
            try:
                data = response.json()
            except ValueError as exc:
                logger.warning(
                    "Non-JSON response from CRM API",
                    extra=build_log_context(operation=path, status_code=response.status_code),
                )
                if response.is_success:
                    raise CrmApiError(
                        f"Failed to parse API response from {path}",
                        status_code=response.status_code,
                    ) from exc

        if not response.is_success:
            message = None
            errors: dict[str, str] = {}
            if isinstance(data, dict):
                message = data.get("message") or data.get("error")
                if isinstance(data.get("errors"), dict):
                    errors = {str(k): str(v) for k, v in data["errors"].items()}
            raise CrmApiError(
                str(message) if message else f"Request to {path} failed: {response.status_code}",
                status_code=response.status_code,
                errors=errors,
            )
        return data

    async def get_json(self, path: str, params: dict[str, Any] | None = None) -> Any:
        return await self.request("GET", path, params=params)

    # =========================================================================
    # Records
    # =========================================================================

    async def fetch_record(self, collection: str, record_id: str | int, record_key: str) -> dict[str, Any]:
        """``GET /api/<collection>/<id>`` and unwrap ``{<record_key>: {...}}``."""
        data = await self.get_json(f"/api/{collection}/{quote(str(record_id), safe='')}")
        record = data.get(record_key) if isinstance(data, dict) else None
        if not isinstance(record, dict):
            raise CrmApiError(f"No {record_key} data received from API")
        return record

    async def list_collection(self, collection: str, response_key: str) -> list[dict[str, Any]]:
        data = await self.get_json(f"/api/{collection}")
        items = data.get(response_key) if isinstance(data, dict) else data
        if not isinstance(items, list):
            return []
        return [item for item in items if isinstance(item, dict)]

    async def delete_record(self, collection: str, record_id: str | int) -> None:
        await self.request("DELETE", f"/api/{collection}/{quote(str(record_id), safe='')}")

    # =========================================================================
    # Notes / History
    # =========================================================================

    async def list_notes(self, collection: str, record_id: str | int) -> list[dict[str, Any]]:
        data = await self.get_json(f"/api/{collection}/{quote(str(record_id), safe='')}/notes")
        notes = data.get("notes") if isinstance(data, dict) else None
        return [n for n in notes if isinstance(n, dict)] if isinstance(notes, list) else []

    async def create_note(
        self, collection: str, record_id: str | int, payload: dict[str, Any]
    ) -> dict[str, Any]:
        data = await self.request(
            "POST",
            f"/api/{collection}/{quote(str(record_id), safe='')}/notes",
            json_body=payload,
        )
        note = data.get("note") if isinstance(data, dict) else None
        if not isinstance(note, dict):
            errors = data.get("errors") if isinstance(data, dict) else None
            if isinstance(errors, dict) and errors:
                raise CrmApiError(
                    "Note was rejected",
                    errors={str(k): str(v) for k, v in errors.items()},
                )
            raise CrmApiError("No note data received from API")
        return note

    async def list_history(self, collection: str, record_id: str | int) -> list[dict[str, Any]]:
        data = await self.get_json(f"/api/{collection}/{quote(str(record_id), safe='')}/history")
        history = data.get("history") if isinstance(data, dict) else None
        return [h for h in history if isinstance(h, dict)] if isinstance(history, list) else []

    # =========================================================================
    # Field management / header config
    # =========================================================================

    async def list_field_definitions(self, collection: str) -> list[dict[str, Any]]:
        data = await self.get_json(f"/api/admin/field-management/{collection}")
        return resolve_field_definitions(data)

    async def get_header_config(self, entity_type: str, config_type: str) -> list[str] | None:
        """Stored field list, or None when the server has none for this scope."""
        data = await self.get_json(
            "/api/header-config",
            params={"entityType": entity_type, "configType": config_type},
        )
        if not isinstance(data, dict) or not data.get("success"):
            return None
        key = "headerFields" if config_type == "header" else "listColumns"
        fields = data.get(key)
        if not isinstance(fields, list):
            return None
        return [str(f) for f in fields]

    async def save_header_config(
        self, entity_type: str, config_type: str, fields: list[str]
    ) -> bool:
        data = await self.request(
            "PUT",
            "/api/header-config",
            params={"entityType": entity_type, "configType": config_type},
            json_body={"fields": list(fields)},
        )
        return bool(isinstance(data, dict) and data.get("success"))

    # =========================================================================
    # Record names
    # =========================================================================

    async def resolve_record_name(self, record_type: str, record_id: str) -> str | None:
        data = await self.get_json("/api/resolve-record", params={"type": record_type, "id": record_id})
        if not isinstance(data, dict) or not data.get("success"):
            raise CrmApiError(f"Could not resolve {record_type} {record_id}")
        name = data.get("name")
        return str(name) if name is not None else None
