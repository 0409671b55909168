"""Pydantic schemas for polymorphic entity references."""

from enum import Enum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field


class ReferenceType(str, Enum):
    """Record types a note can point at, in search priority order."""

    JOB = "Job"
    ORGANIZATION = "Organization"
    JOB_SEEKER = "JobSeeker"
    LEAD = "Lead"
    TASK = "Task"
    PLACEMENT = "Placement"
    HIRING_MANAGER = "HiringManager"


class EntityReference(BaseModel):
    """
    Frozen pointer to any record.

    ``display`` is computed once from the source record when the reference is
    selected and never recomputed, so renames do not rewrite old notes.
    """

    model_config = ConfigDict(frozen=True)

    id: str | int
    type: ReferenceType
    display: str = Field(..., min_length=1)
    value: str = Field(..., min_length=1)

    @property
    def key(self) -> str:
        """Stable ``type:id`` identity."""
        return f"{self.type.value}:{self.id}"

    def to_payload(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "type": self.type.value,
            "display": self.display,
            "value": self.value,
        }
