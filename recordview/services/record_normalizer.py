"""Raw API payload -> fully defaulted record, one function per entity type.

All fallback values live here so renderers never deal with missing keys.
"""

from __future__ import annotations

import json
import logging
from typing import Any, Iterable, Mapping, TypeVar

from pydantic import BaseModel, ValidationError

from recordview.core.structured_logging import build_log_context
from recordview.schemas.records import (
    ContactSummary,
    HiringManagerRecord,
    JobRecord,
    JobSeekerRow,
    LeadRecord,
    OrganizationSummary,
    PlacementSummary,
    TaskRecord,
)
from recordview.services.reference_registry import job_title, task_title
from recordview.utils.datetime_parsing import format_display_date
from recordview.utils.presentation import format_money

logger = logging.getLogger(__name__)

ModelT = TypeVar("ModelT", bound=BaseModel)


def _text(raw: Mapping[str, Any], *keys: str, default: str) -> str:
    """First non-empty value among ``keys`` as a string, else ``default``."""
    for key in keys:
        value = raw.get(key)
        if value is not None and value != "":
            return str(value)
    return default


def _optional_id(value: Any) -> str | None:
    return None if value is None or value == "" else str(value)


def _record_id(raw: Mapping[str, Any]) -> str:
    return _text(raw, "id", default="Unknown ID")


def validate_items(
    model: type[ModelT],
    items: Iterable[Any],
    *,
    entity_type: str | None = None,
    record_id: str | None = None,
    operation: str | None = None,
) -> list[ModelT]:
    """Validate each raw item, dropping (and logging) the ones that do not parse."""
    parsed: list[ModelT] = []
    for item in items:
        try:
            parsed.append(model.model_validate(item))
        except ValidationError:
            logger.warning(
                "Skipping malformed %s payload",
                model.__name__,
                extra=build_log_context(entity_type=entity_type, record_id=record_id, operation=operation),
            )
    return parsed


def parse_custom_fields(value: Any, *, entity_type: str | None = None, record_id: str | None = None) -> dict[str, Any]:
    """``custom_fields`` arrives as an object or a JSON string; anything else is ``{}``."""
    if value is None or value == "":
        return {}
    if isinstance(value, dict):
        return dict(value)
    if isinstance(value, str):
        try:
            parsed = json.loads(value)
        except ValueError:
            logger.warning(
                "Malformed custom_fields payload",
                extra=build_log_context(entity_type=entity_type, record_id=record_id, operation="normalize"),
            )
            return {}
        if isinstance(parsed, dict):
            return parsed
    logger.warning(
        "Unexpected custom_fields type",
        extra=build_log_context(entity_type=entity_type, record_id=record_id, operation="normalize"),
    )
    return {}


def _salary_range(raw: Mapping[str, Any]) -> str:
    low = format_money(raw.get("min_salary"))
    high = format_money(raw.get("max_salary"))
    if low and high:
        return f"${low} - ${high}"
    return "Not specified"


def normalize_job(raw: Mapping[str, Any]) -> JobRecord:
    record_id = _record_id(raw)
    benefits = raw.get("benefits")
    return JobRecord(
        id=record_id,
        title=job_title(raw),
        category=_text(raw, "category", default="Uncategorized"),
        status=_text(raw, "status", default="Unknown"),
        priority=_text(raw, "priority", default="-"),
        employment_type=_text(raw, "employment_type", default="Not specified"),
        start_date=format_display_date(raw.get("start_date"), "Not specified"),
        worksite=_text(raw, "worksite_location", default="Not specified"),
        remote_option=_text(raw, "remote_option", default="Not specified"),
        date_added=format_display_date(raw.get("created_at"), "Unknown"),
        job_board_status=_text(raw, "job_board_status", default="Not Posted"),
        owner=_text(raw, "owner", default="Not assigned"),
        organization=OrganizationSummary(
            name=_text(raw, "organization_name", default="Not specified"),
            phone=_text(raw, "organization_phone", default="Not provided"),
            website=_text(raw, "organization_website", default="Not provided"),
        ),
        hiring_manager=ContactSummary(name=_text(raw, "hiring_manager", default="Not specified")),
        description=_text(raw, "job_description", default="No description provided"),
        benefits=[line for line in str(benefits).split("\n") if line] if benefits else [],
        salary_range=_salary_range(raw),
        required_skills=_text(raw, "required_skills", default=""),
        location=_text(raw, "remote_option", default="On-site"),
        applicants=0,
        custom_fields=parse_custom_fields(raw.get("custom_fields"), entity_type="JOB", record_id=record_id),
    )


def normalize_hiring_manager(raw: Mapping[str, Any]) -> HiringManagerRecord:
    record_id = _record_id(raw)
    first_name = _text(raw, "first_name", default="")
    last_name = _text(raw, "last_name", default="")
    date_added = format_display_date(raw.get("date_added")) or format_display_date(raw.get("created_at"), "Unknown")
    return HiringManagerRecord(
        id=record_id,
        first_name=first_name,
        last_name=last_name,
        full_name=_text(raw, "full_name", default=f"{last_name}, {first_name}"),
        title=_text(raw, "title", default="Not specified"),
        phone=_text(raw, "phone", default="(Not provided)"),
        mobile_phone=_text(raw, "mobile_phone", default="(Not provided)"),
        direct_line=_text(raw, "direct_line", default="(Not provided)"),
        email=_text(raw, "email", default="(Not provided)"),
        email2=_text(raw, "email2", default=""),
        organization=OrganizationSummary(
            name=_text(raw, "organization_name", "organization_name_from_org", default="Not specified"),
            status="Active",
            phone="(Not provided)",
            website=_text(raw, "organization_website", default="Not provided"),
        ),
        status=_text(raw, "status", default="Active"),
        department=_text(raw, "department", default="Not specified"),
        reports_to=_text(raw, "reports_to", default="Not specified"),
        owner=_text(raw, "owner", default="Not assigned"),
        secondary_owners=_text(raw, "secondary_owners", default="None"),
        linkedin_url=_text(raw, "linkedin_url", default="Not provided"),
        date_added=date_added,
        address=_text(raw, "address", default="No address provided"),
        custom_fields=parse_custom_fields(
            raw.get("custom_fields"), entity_type="HIRING_MANAGER", record_id=record_id
        ),
    )


def normalize_task(raw: Mapping[str, Any]) -> TaskRecord:
    record_id = _record_id(raw)
    due_date = format_display_date(raw.get("due_date"))
    due_time = _text(raw, "due_time", default="")
    if due_date:
        due_date_time = f"{due_date} {due_time}" if due_time else due_date
    else:
        due_date_time = "Not set"
    placement_id = _optional_id(raw.get("placement_id"))
    return TaskRecord(
        id=record_id,
        title=task_title(raw),
        description=_text(raw, "description", default="No description provided"),
        is_completed=bool(raw.get("is_completed") or False),
        due_date=due_date or "Not set",
        due_time=due_time or "Not set",
        due_date_time=due_date_time,
        priority=_text(raw, "priority", default="Medium"),
        status=_text(raw, "status", default="Pending"),
        owner=_text(raw, "owner", default="Not assigned"),
        assigned_to=_text(raw, "assigned_to_name", default="Not assigned"),
        assigned_to_id=_optional_id(raw.get("assigned_to")),
        job_seeker=_text(raw, "job_seeker_name", default="Not specified"),
        job_seeker_id=_optional_id(raw.get("job_seeker_id")),
        hiring_manager=_text(raw, "hiring_manager_name", default="Not specified"),
        hiring_manager_id=_optional_id(raw.get("hiring_manager_id")),
        job=_text(raw, "job_title", default="Not specified"),
        job_id=_optional_id(raw.get("job_id")),
        lead=_text(raw, "lead_name", default="Not specified"),
        lead_id=_optional_id(raw.get("lead_id")),
        placement=f"Placement #{placement_id}" if placement_id else "Not specified",
        placement_id=placement_id,
        date_created=format_display_date(raw.get("created_at"), "Unknown"),
        created_by=_text(raw, "created_by_name", default="Unknown"),
        completed_at=format_display_date(raw.get("completed_at")),
        completed_by=_text(raw, "completed_by_name", default="") or None,
        custom_fields=parse_custom_fields(raw.get("custom_fields"), entity_type="TASK", record_id=record_id),
    )


def normalize_job_seeker(raw: Mapping[str, Any]) -> JobSeekerRow:
    record_id = _record_id(raw)
    full_name = _text(raw, "full_name", default="")
    if not full_name:
        full_name = " ".join(
            part for part in (_text(raw, "first_name", default=""), _text(raw, "last_name", default="")) if part
        )
    return JobSeekerRow(
        id=record_id,
        full_name=full_name or "N/A",
        email=_text(raw, "email", default="N/A"),
        phone=_text(raw, "phone", default="N/A"),
        status=_text(raw, "status", default="N/A"),
        last_contact_date=format_display_date(raw.get("last_contact_date")),
        owner=_text(raw, "owner", default="Unassigned"),
        custom_fields=parse_custom_fields(raw.get("custom_fields"), entity_type="JOB_SEEKER", record_id=record_id),
    )


def normalize_organization(raw: Mapping[str, Any]) -> OrganizationSummary:
    return OrganizationSummary(
        name=_text(raw, "name", "organization_name", default="Not specified"),
        status=_text(raw, "status", default="") or None,
        phone=_text(raw, "contact_phone", "phone", default="Not provided"),
        website=_text(raw, "website", default="Not provided"),
    )


def normalize_lead(raw: Mapping[str, Any]) -> LeadRecord:
    record_id = _record_id(raw)
    first_name = _text(raw, "first_name", default="")
    last_name = _text(raw, "last_name", default="")
    combined = " ".join(part for part in (first_name, last_name) if part)
    return LeadRecord(
        id=record_id,
        first_name=first_name,
        last_name=last_name,
        full_name=_text(raw, "full_name", default=combined or "Unnamed Lead"),
        email=_text(raw, "email", default="(Not provided)"),
        phone=_text(raw, "phone", default="(Not provided)"),
        status=_text(raw, "status", default="New"),
        organization_name=_text(raw, "organization_name", default="Not specified"),
        owner=_text(raw, "owner", default="Not assigned"),
        date_added=format_display_date(raw.get("created_at"), "Unknown"),
        custom_fields=parse_custom_fields(raw.get("custom_fields"), entity_type="LEAD", record_id=record_id),
    )


def normalize_placement(raw: Mapping[str, Any]) -> PlacementSummary:
    record_id = _record_id(raw)
    return PlacementSummary(
        id=record_id,
        job_seeker=_text(raw, "job_seeker_name", "jobSeekerName", default="Not specified"),
        job_seeker_id=_optional_id(raw.get("job_seeker_id")),
        job=_text(raw, "job_title", "jobTitle", default="Not specified"),
        job_id=_optional_id(raw.get("job_id")),
        status=_text(raw, "status", default="Pending"),
        start_date=format_display_date(raw.get("start_date"), "Not specified"),
        owner=_text(raw, "owner", default="Not assigned"),
        custom_fields=parse_custom_fields(raw.get("custom_fields"), entity_type="PLACEMENT", record_id=record_id),
    )
