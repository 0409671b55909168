"""Per-entity record view configuration (Hiring Manager, Job, Task)."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Callable, Mapping

from recordview.schemas.custom_field import FieldOption
from recordview.schemas.records import NormalizedRecord
from recordview.schemas.reference import ReferenceType
from recordview.services.record_normalizer import (
    normalize_hiring_manager,
    normalize_job,
    normalize_task,
)
from recordview.services.reference_registry import ReferenceTypeSpec, get_reference_type

DEFAULT_NOTE_ACTIONS: tuple[str, ...] = (
    "Follow-up",
    "Call",
    "Email",
    "Meeting",
    "Interview",
    "Client Submission",
    "Other",
)


@dataclass(frozen=True)
class QuickTab:
    id: str
    label: str
    # Notes whose action matches are counted for this tab
    note_action: str | None = None


@dataclass(frozen=True)
class RecordViewConfig:
    entity_type: str
    entity_label: str
    reference_type: ReferenceType
    normalizer: Callable[[Mapping], NormalizedRecord]
    standard_fields: dict[str, tuple[FieldOption, ...]]
    default_panel_fields: dict[str, tuple[str, ...]]
    default_header_fields: tuple[str, ...]
    # Panels whose catalog also lists custom fields
    custom_field_panels: tuple[str, ...] = ()
    default_layout: dict[str, tuple[str, ...]] = field(default_factory=dict)
    note_actions: tuple[str, ...] = DEFAULT_NOTE_ACTIONS
    quick_tabs: tuple[QuickTab, ...] = ()

    @property
    def reference(self) -> ReferenceTypeSpec:
        return get_reference_type(self.reference_type)

    @property
    def collection(self) -> str:
        return self.reference.collection

    @property
    def record_key(self) -> str:
        return self.reference.record_key

    def header_standard_fields(self) -> tuple[FieldOption, ...]:
        seen: dict[str, FieldOption] = {}
        for options in self.standard_fields.values():
            for option in options:
                seen.setdefault(option.key, option)
        return tuple(seen.values())


def _options(*pairs: tuple[str, str]) -> tuple[FieldOption, ...]:
    return tuple(FieldOption(key=key, label=label) for key, label in pairs)


JOB_VIEW = RecordViewConfig(
    entity_type="JOB",
    entity_label="Job",
    reference_type=ReferenceType.JOB,
    normalizer=normalize_job,
    standard_fields={
        "jobDetails": _options(
            ("title", "Title"),
            ("category", "Category"),
            ("employment_type", "Employment Type"),
            ("start_date", "Start Date"),
            ("worksite", "Worksite"),
            ("remote_option", "Remote Option"),
            ("salary_range", "Salary Range"),
            ("description", "Description"),
            ("required_skills", "Required Skills"),
        ),
        "details": _options(
            ("status", "Status"),
            ("priority", "Priority"),
            ("owner", "Owner"),
            ("date_added", "Date Added"),
            ("job_board_status", "Job Board Status"),
        ),
        "organizationDetails": _options(
            ("organization.name", "Organization"),
            ("organization.phone", "Phone"),
            ("organization.website", "Website"),
        ),
        "hiringManagerDetails": _options(
            ("hiring_manager.name", "Hiring Manager"),
            ("hiring_manager.phone", "Phone"),
            ("hiring_manager.email", "Email"),
        ),
    },
    default_panel_fields={
        "jobDetails": ("title", "category", "employment_type", "start_date", "worksite", "salary_range"),
        "details": ("status", "priority", "owner", "date_added", "job_board_status"),
        "organizationDetails": ("organization.name", "organization.phone", "organization.website"),
        "hiringManagerDetails": ("hiring_manager.name", "hiring_manager.phone", "hiring_manager.email"),
        "recentNotes": ("notes",),
    },
    default_header_fields=("status", "owner", "employment_type"),
    custom_field_panels=("jobDetails",),
    default_layout={
        "left": ("jobDetails", "organizationDetails"),
        "right": ("details", "hiringManagerDetails", "recentNotes"),
    },
    quick_tabs=(
        QuickTab("applied", "Applied"),
        QuickTab("client-submissions", "Client Submissions", note_action="Client Submission"),
        QuickTab("interviews", "Interviews", note_action="Interview"),
        QuickTab("placements", "Placements"),
    ),
)

HIRING_MANAGER_VIEW = RecordViewConfig(
    entity_type="HIRING_MANAGER",
    entity_label="Hiring Manager",
    reference_type=ReferenceType.HIRING_MANAGER,
    normalizer=normalize_hiring_manager,
    standard_fields={
        "details": _options(
            ("full_name", "Name"),
            ("title", "Title"),
            ("department", "Department"),
            ("phone", "Phone"),
            ("mobile_phone", "Mobile Phone"),
            ("direct_line", "Direct Line"),
            ("email", "Email"),
            ("email2", "Email 2"),
            ("linkedin_url", "LinkedIn"),
            ("address", "Address"),
        ),
        "organizationDetails": _options(
            ("organization.name", "Organization"),
            ("organization.status", "Status"),
            ("organization.phone", "Phone"),
            ("organization.website", "Website"),
        ),
        "ownership": _options(
            ("status", "Status"),
            ("owner", "Owner"),
            ("secondary_owners", "Secondary Owners"),
            ("reports_to", "Reports To"),
            ("date_added", "Date Added"),
        ),
    },
    default_panel_fields={
        "details": ("full_name", "title", "phone", "mobile_phone", "email", "address"),
        "organizationDetails": ("organization.name", "organization.phone", "organization.website"),
        "ownership": ("status", "owner", "date_added"),
        "recentNotes": ("notes",),
    },
    default_header_fields=("phone", "email", "status"),
    custom_field_panels=("details",),
    default_layout={
        "left": ("details", "organizationDetails"),
        "right": ("ownership", "recentNotes"),
    },
    quick_tabs=(
        QuickTab("prospects", "Prospects"),
        QuickTab("submissions", "Submissions", note_action="Client Submission"),
        QuickTab("interviews", "Interviews", note_action="Interview"),
        QuickTab("placements", "Placements"),
    ),
)

TASK_VIEW = RecordViewConfig(
    entity_type="TASK",
    entity_label="Task",
    reference_type=ReferenceType.TASK,
    normalizer=normalize_task,
    standard_fields={
        "taskDetails": _options(
            ("title", "Title"),
            ("description", "Description"),
            ("due_date_time", "Due"),
            ("priority", "Priority"),
            ("status", "Status"),
            ("assigned_to", "Assigned To"),
        ),
        "relatedRecords": _options(
            ("job_seeker", "Job Seeker"),
            ("hiring_manager", "Hiring Manager"),
            ("job", "Job"),
            ("lead", "Lead"),
            ("placement", "Placement"),
        ),
        "details": _options(
            ("owner", "Owner"),
            ("date_created", "Date Created"),
            ("created_by", "Created By"),
            ("completed_at", "Completed At"),
            ("completed_by", "Completed By"),
        ),
    },
    default_panel_fields={
        "taskDetails": ("title", "description", "due_date_time", "priority", "status", "assigned_to"),
        "relatedRecords": ("job_seeker", "hiring_manager", "job"),
        "details": ("owner", "date_created", "created_by"),
        "recentNotes": ("notes",),
    },
    default_header_fields=("status", "priority", "due_date_time"),
    custom_field_panels=("taskDetails",),
    default_layout={
        "left": ("taskDetails", "relatedRecords"),
        "right": ("details", "recentNotes"),
    },
)

VIEW_CONFIGS: dict[str, RecordViewConfig] = {
    config.reference_type.value: config for config in (JOB_VIEW, HIRING_MANAGER_VIEW, TASK_VIEW)
}


def get_view_config(value: str) -> RecordViewConfig:
    """Config for a type name or alias (``job``, ``hiring-managers``, ``Task``...)."""
    ref_type = get_reference_type(value).type
    config = VIEW_CONFIGS.get(ref_type.value)
    if config is None:
        raise ValueError(f"No record view for {ref_type.value}")
    return config
