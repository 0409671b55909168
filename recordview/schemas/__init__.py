"""Pydantic schemas."""

from recordview.schemas.custom_field import CustomFieldDefinition, FieldOption
from recordview.schemas.history import HistoryEntry, HistorySortOrder, RenderedHistoryEntry
from recordview.schemas.note import NoteDraft, NoteRead
from recordview.schemas.records import (
    CUSTOM_FIELD_PREFIX,
    ContactSummary,
    HiringManagerRecord,
    JobRecord,
    JobSeekerRow,
    LeadRecord,
    NormalizedRecord,
    OrganizationSummary,
    PlacementSummary,
    TaskRecord,
)
from recordview.schemas.reference import EntityReference, ReferenceType

__all__ = [
    # References
    "EntityReference",
    "ReferenceType",
    # Notes
    "NoteDraft",
    "NoteRead",
    # Custom fields
    "CustomFieldDefinition",
    "FieldOption",
    # History
    "HistoryEntry",
    "HistorySortOrder",
    "RenderedHistoryEntry",
    # Records
    "CUSTOM_FIELD_PREFIX",
    "ContactSummary",
    "HiringManagerRecord",
    "JobRecord",
    "JobSeekerRow",
    "LeadRecord",
    "NormalizedRecord",
    "OrganizationSummary",
    "PlacementSummary",
    "TaskRecord",
]
