"""Reference-type registry.

One place maps each ``ReferenceType`` to its search endpoint, display
formatter, and navigation route. Search, note references, record-name
lookups and pinned records all read from here.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Any, Callable, Mapping

from recordview.schemas.reference import EntityReference, ReferenceType


def _first_text(raw: Mapping[str, Any], *keys: str) -> str:
    for key in keys:
        value = raw.get(key)
        if value is not None and str(value).strip():
            return str(value).strip()
    return ""


def _person_name(raw: dict[str, Any]) -> str:
    full = _first_text(raw, "full_name", "name")
    if full:
        return full
    return " ".join(
        part for part in (_first_text(raw, "first_name"), _first_text(raw, "last_name")) if part
    )


def job_title(raw: Mapping[str, Any]) -> str:
    return _first_text(raw, "job_title", "title") or "Untitled Job"


def _organization_name(raw: dict[str, Any]) -> str:
    return _first_text(raw, "name", "organization_name") or "Unnamed Organization"


def task_title(raw: Mapping[str, Any]) -> str:
    return _first_text(raw, "title") or "Untitled Task"


def _placement_title(raw: dict[str, Any]) -> str:
    parts = [
        _first_text(raw, "job_seeker_name", "jobSeekerName"),
        _first_text(raw, "job_title", "jobTitle"),
    ]
    label = " - ".join(p for p in parts if p)
    return label or f"Placement #{raw.get('id', '')}".strip()


_PERSON_FIELDS = ("full_name", "name", "first_name", "last_name")


@dataclass(frozen=True)
class ReferenceTypeSpec:
    """Everything needed to search, label, and link one record type."""

    type: ReferenceType
    collection: str
    response_key: str
    record_key: str
    id_prefix: str
    route: str
    title_for: Callable[[dict[str, Any]], str]
    search_fields: tuple[str, ...] = ()

    @property
    def search_endpoint(self) -> str:
        return f"/api/{self.collection}"

    def format_id(self, record_id: str | int) -> str:
        return f"{self.id_prefix}-{record_id}"

    def navigation_url(self, record_id: str | int) -> str:
        return f"{self.route}?id={record_id}"


# Insertion order is the search priority order
REFERENCE_TYPES: dict[ReferenceType, ReferenceTypeSpec] = {
    ReferenceType.JOB: ReferenceTypeSpec(
        type=ReferenceType.JOB,
        collection="jobs",
        response_key="jobs",
        record_key="job",
        id_prefix="J",
        route="/dashboard/jobs/view",
        title_for=job_title,
        search_fields=("job_title", "title"),
    ),
    ReferenceType.ORGANIZATION: ReferenceTypeSpec(
        type=ReferenceType.ORGANIZATION,
        collection="organizations",
        response_key="organizations",
        record_key="organization",
        id_prefix="O",
        route="/dashboard/organizations/view",
        title_for=_organization_name,
        search_fields=("name", "organization_name"),
    ),
    ReferenceType.JOB_SEEKER: ReferenceTypeSpec(
        type=ReferenceType.JOB_SEEKER,
        collection="job-seekers",
        response_key="jobSeekers",
        record_key="jobSeeker",
        id_prefix="JS",
        route="/dashboard/job-seekers/view",
        title_for=lambda raw: _person_name(raw) or "Unnamed Job Seeker",
        search_fields=_PERSON_FIELDS,
    ),
    ReferenceType.LEAD: ReferenceTypeSpec(
        type=ReferenceType.LEAD,
        collection="leads",
        response_key="leads",
        record_key="lead",
        id_prefix="L",
        route="/dashboard/leads/view",
        title_for=lambda raw: _person_name(raw) or "Unnamed Lead",
        search_fields=_PERSON_FIELDS,
    ),
    ReferenceType.TASK: ReferenceTypeSpec(
        type=ReferenceType.TASK,
        collection="tasks",
        response_key="tasks",
        record_key="task",
        id_prefix="T",
        route="/dashboard/tasks/view",
        title_for=task_title,
        search_fields=("title",),
    ),
    ReferenceType.PLACEMENT: ReferenceTypeSpec(
        type=ReferenceType.PLACEMENT,
        collection="placements",
        response_key="placements",
        record_key="placement",
        id_prefix="P",
        route="/dashboard/placements/view",
        title_for=_placement_title,
        search_fields=("job_seeker_name", "jobSeekerName", "job_title", "jobTitle"),
    ),
    ReferenceType.HIRING_MANAGER: ReferenceTypeSpec(
        type=ReferenceType.HIRING_MANAGER,
        collection="hiring-managers",
        response_key="hiringManagers",
        record_key="hiringManager",
        id_prefix="HM",
        route="/dashboard/hiring-managers/view",
        title_for=lambda raw: _person_name(raw) or "Unnamed Hiring Manager",
        search_fields=_PERSON_FIELDS,
    ),
}

SEARCH_ORDER: tuple[ReferenceType, ...] = tuple(REFERENCE_TYPES)

_ALIAS_RE = re.compile(r"[\s_\-]+")


def _alias(value: str) -> str:
    return _ALIAS_RE.sub("", value).lower()


_TYPE_ALIASES: dict[str, ReferenceType] = {}
for _ref_type, _spec in REFERENCE_TYPES.items():
    for _name in (_ref_type.value, _spec.collection, _spec.response_key, _spec.record_key):
        _TYPE_ALIASES[_alias(_name)] = _ref_type
    # singular of the collection ("job-seekers" -> "job-seeker")
    _TYPE_ALIASES[_alias(_spec.collection.rstrip("s"))] = _ref_type


def get_reference_type(value: str | ReferenceType) -> ReferenceTypeSpec:
    """Resolve a canonical type or any alias (``job-seekers``, ``hiringManager``...).

    Raises:
        ValueError: for an unknown type.
    """
    if isinstance(value, ReferenceType):
        return REFERENCE_TYPES[value]
    ref_type = _TYPE_ALIASES.get(_alias(str(value)))
    if ref_type is None:
        raise ValueError(f"Unknown reference type: {value}")
    return REFERENCE_TYPES[ref_type]


def format_record_id(record_id: str | int, ref_type: str | ReferenceType) -> str:
    """Formatted record id, e.g. ``J-42`` for Job 42."""
    return get_reference_type(ref_type).format_id(record_id)


def build_reference(raw: dict[str, Any], ref_type: str | ReferenceType) -> EntityReference:
    """Freeze a raw record into an ``EntityReference``.

    ``display`` is ``format_record_id(id, type) + " " + title`` computed now.
    """
    spec = get_reference_type(ref_type)
    record_id = raw.get("id")
    if record_id is None or str(record_id).strip() == "":
        raise ValueError(f"{spec.type.value} record has no id")
    value = spec.format_id(record_id)
    title = spec.title_for(raw)
    return EntityReference(
        id=record_id,
        type=spec.type,
        display=f"{value} {title}".strip(),
        value=value,
    )


def matches_query(raw: dict[str, Any], ref_type: str | ReferenceType, query: str) -> bool:
    """Case-insensitive substring match on the name/title fields, or on the stringified id.

    Fallback labels such as "Untitled Job" are not searchable.
    """
    needle = query.strip().lower()
    if not needle:
        return False
    spec = get_reference_type(ref_type)
    candidates = [str(raw[f]) for f in spec.search_fields if raw.get(f) is not None]
    if spec.search_fields is _PERSON_FIELDS:
        candidates.append(_person_name(raw))
    if any(needle in candidate.lower() for candidate in candidates):
        return True
    record_id = raw.get("id")
    return record_id is not None and needle in str(record_id).lower()
