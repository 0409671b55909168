"""
Test configuration and fixtures.

Provides:
- An in-memory fake of the CRM REST service (FastAPI app)
- A CrmApiClient wired to it through httpx's ASGI transport
- Preference stores (in-memory dict and in-memory SQLite)
"""
from dataclasses import dataclass, field
from typing import Any, AsyncGenerator

import pytest
from fastapi import Body, FastAPI, Query
from fastapi.responses import JSONResponse
from httpx import ASGITransport, AsyncClient

from recordview.db.session import make_engine, make_session_factory
from recordview.services.api_client import CrmApiClient
from recordview.services.preference_store import InMemoryPreferenceStore, SqlPreferenceStore
from recordview.services.reference_registry import REFERENCE_TYPES

_BY_COLLECTION = {spec.collection: spec for spec in REFERENCE_TYPES.values()}


# =============================================================================
# Fake backend
# =============================================================================

@dataclass
class FakeCrm:
    """State behind the fake API. Tests mutate it directly."""

    records: dict[str, list[dict[str, Any]]] = field(default_factory=dict)
    notes: dict[str, list[dict[str, Any]]] = field(default_factory=dict)
    history: dict[str, list[dict[str, Any]]] = field(default_factory=dict)
    custom_fields: dict[str, list[dict[str, Any]]] = field(default_factory=dict)
    header_configs: dict[tuple[str, str], list[str]] = field(default_factory=dict)
    record_names: dict[tuple[str, str], str] = field(default_factory=dict)

    failing_collections: set[str] = field(default_factory=set)
    failing_paths: set[str] = field(default_factory=set)
    failing_deletes: set[str] = field(default_factory=set)
    note_errors: dict[str, str] | None = None
    fail_header_save: bool = False

    posted_notes: list[dict[str, Any]] = field(default_factory=list)
    request_log: list[str] = field(default_factory=list)
    resolve_calls: int = 0
    auth_headers: list[str | None] = field(default_factory=list)

    def find(self, collection: str, record_id: str) -> dict[str, Any] | None:
        for record in self.records.get(collection, []):
            if str(record.get("id")) == str(record_id):
                return record
        return None


def seeded_backend() -> FakeCrm:
    return FakeCrm(
        records={
            "jobs": [
                {
                    "id": 42,
                    "job_title": "Backend Engineer",
                    "status": "Open",
                    "employment_type": "Full-time",
                    "min_salary": "85000",
                    "max_salary": "110000",
                    "organization_name": "Acme Corp",
                    "custom_fields": '{"clearance": "Secret", "remote_ok": "Yes"}',
                },
                {"id": 43, "job_title": "Frontend Engineer", "status": "Open"},
                {"id": 44, "status": "Draft"},
            ],
            "organizations": [{"id": 7, "name": "Engineering Partners"}],
            "job-seekers": [
                {"id": 5, "first_name": "Erin", "last_name": "Engel", "email": "erin@example.com", "status": "Active"},
                {"id": 6, "full_name": "Sam Doe", "email": "sam@example.com", "status": "Placed", "owner": "Kim"},
            ],
            "leads": [{"id": 11, "first_name": "Eng", "last_name": "Lead"}],
            "tasks": [{"id": 3, "title": "Call engineer back", "priority": "High"}],
            "placements": [{"id": 9, "job_seeker_name": "Erin Engel", "job_title": "Backend Engineer"}],
            "hiring-managers": [
                {"id": 12, "first_name": "Grace", "last_name": "Hopper", "email": "grace@example.com"}
            ],
        },
        notes={
            "jobs/42": [
                {"id": 100, "text": "Screened two candidates", "action": "Interview", "created_by_name": "Kim"},
                {"id": 99, "text": "Intake call done", "action": "Call", "created_by_name": "Kim"},
                {"id": 98, "text": "Sent to client", "action": "Client Submission", "created_by_name": "Lee"},
            ]
        },
        history={
            "jobs/42": [
                {
                    "id": 2,
                    "action": "UPDATE",
                    "details": {"before": {"status": "Open"}, "after": {"status": "Closed"}},
                    "performed_at": "2024-03-02T10:00:00Z",
                    "performed_by_name": "Kim Park",
                },
                {
                    "id": 1,
                    "action": "CREATE",
                    "details": "{}",
                    "performed_at": "2024-03-01T09:00:00Z",
                    "performed_by_name": "Lee Chan",
                },
            ]
        },
        custom_fields={
            "jobs": [
                {"id": 1, "field_name": "clearance", "field_label": "Security Clearance"},
                {"id": 2, "field_name": "remote_ok", "field_label": "Remote OK", "is_hidden": True},
            ],
        },
    )


def build_app(backend: FakeCrm) -> FastAPI:
    app = FastAPI()

    def _fail(path: str) -> bool:
        return path in backend.failing_paths

    @app.middleware("http")
    async def _log_requests(request, call_next):
        backend.request_log.append(f"{request.method} {request.url.path}")
        backend.auth_headers.append(request.headers.get("authorization"))
        return await call_next(request)

    @app.get("/api/header-config")
    async def get_header_config(entityType: str = Query(...), configType: str = Query("header")):
        fields = backend.header_configs.get((entityType, configType))
        if fields is None:
            return {"success": False}
        key = "headerFields" if configType == "header" else "listColumns"
        return {"success": True, key: fields}

    @app.put("/api/header-config")
    async def save_header_config(
        entityType: str = Query(...),
        configType: str = Query("header"),
        payload: dict = Body(...),
    ):
        if backend.fail_header_save:
            return JSONResponse({"success": False, "message": "Save failed"}, status_code=500)
        backend.header_configs[(entityType, configType)] = list(payload.get("fields", []))
        return {"success": True}

    @app.get("/api/resolve-record")
    async def resolve_record(type: str = Query(...), id: str = Query(...)):
        backend.resolve_calls += 1
        name = backend.record_names.get((type, id))
        if name is None:
            return JSONResponse({"success": False, "message": "Not found"}, status_code=404)
        return {"success": True, "name": name}

    @app.get("/api/admin/field-management/{collection}")
    async def field_management(collection: str):
        if _fail(f"fields/{collection}"):
            return JSONResponse({"message": "Field service down"}, status_code=503)
        return {"customFields": backend.custom_fields.get(collection, [])}

    @app.get("/api/{collection}")
    async def list_collection(collection: str):
        spec = _BY_COLLECTION.get(collection)
        if spec is None:
            return JSONResponse({"message": "Unknown collection"}, status_code=404)
        if collection in backend.failing_collections:
            return JSONResponse({"message": "Source unavailable"}, status_code=500)
        return {spec.response_key: backend.records.get(collection, [])}

    @app.get("/api/{collection}/{record_id}")
    async def get_record(collection: str, record_id: str):
        spec = _BY_COLLECTION.get(collection)
        record = backend.find(collection, record_id) if spec else None
        if spec is None or record is None or _fail(f"{collection}/{record_id}"):
            return JSONResponse({"message": "Record not found"}, status_code=404)
        return {spec.record_key: record}

    @app.delete("/api/{collection}/{record_id}")
    async def delete_record(collection: str, record_id: str):
        if record_id in backend.failing_deletes:
            return JSONResponse({"message": "Delete failed"}, status_code=500)
        backend.records[collection] = [
            r for r in backend.records.get(collection, []) if str(r.get("id")) != record_id
        ]
        return {"success": True}

    @app.get("/api/{collection}/{record_id}/notes")
    async def list_notes(collection: str, record_id: str):
        if _fail(f"{collection}/{record_id}/notes"):
            return JSONResponse({"message": "Notes unavailable"}, status_code=500)
        return {"notes": backend.notes.get(f"{collection}/{record_id}", [])}

    @app.post("/api/{collection}/{record_id}/notes")
    async def create_note(collection: str, record_id: str, payload: dict = Body(...)):
        backend.posted_notes.append(payload)
        if backend.note_errors is not None:
            return JSONResponse({"errors": backend.note_errors}, status_code=400)
        if _fail(f"{collection}/{record_id}/notes:post"):
            return JSONResponse({}, status_code=500)
        notes = backend.notes.setdefault(f"{collection}/{record_id}", [])
        note = {
            "id": 1000 + len(backend.posted_notes),
            "text": payload["text"],
            "action": payload["action"],
            "about_references": payload["about_references"],
            "additional_references": payload["additional_references"],
            "created_by_name": "Test User",
            "created_at": "2024-03-03T12:00:00Z",
        }
        notes.insert(0, note)
        backend.history.setdefault(f"{collection}/{record_id}", []).insert(
            0,
            {
                "id": 500 + len(backend.posted_notes),
                "action": "ADD_NOTE",
                "details": {"text": payload["text"]},
                "performed_at": "2024-03-03T12:00:00Z",
                "performed_by_name": "Test User",
            },
        )
        return {"note": note}

    @app.get("/api/{collection}/{record_id}/history")
    async def list_history(collection: str, record_id: str):
        if _fail(f"{collection}/{record_id}/history"):
            return JSONResponse({"message": "History unavailable"}, status_code=500)
        return {"history": backend.history.get(f"{collection}/{record_id}", [])}

    return app


# =============================================================================
# Fixtures
# =============================================================================

@pytest.fixture(scope="function")
def backend() -> FakeCrm:
    return seeded_backend()


@pytest.fixture(scope="function")
def crm_app(backend: FakeCrm) -> FastAPI:
    return build_app(backend)


@pytest.fixture(scope="function")
async def api(crm_app: FastAPI) -> AsyncGenerator[CrmApiClient, None]:
    """CrmApiClient talking to the fake backend in-process."""
    async with AsyncClient(
        transport=ASGITransport(app=crm_app),
        base_url="http://test",
    ) as http:
        yield CrmApiClient(http_client=http, token="test-token")


@pytest.fixture(scope="function")
def memory_store() -> InMemoryPreferenceStore:
    return InMemoryPreferenceStore()


@pytest.fixture(scope="function")
def sql_store() -> SqlPreferenceStore:
    engine = make_engine("sqlite:///:memory:")
    return SqlPreferenceStore(make_session_factory(engine))
