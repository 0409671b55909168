"""Schemas for audit-log history entries."""

from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field, field_validator

from recordview.utils.datetime_parsing import coerce_timestamp

HistorySortOrder = Literal["asc", "desc"]


class HistoryEntry(BaseModel):
    """Raw audit-log entry from ``GET /api/<collection>/<id>/history``."""

    model_config = ConfigDict(extra="allow")

    id: int | str | None = None
    action: str | None = None
    action_type: str | None = None
    details: Any = None
    performed_at: str | None = None
    created_at: str | None = None
    performed_by_name: str | None = None
    created_by_name: str | None = None

    @field_validator("performed_at", "created_at", mode="before")
    @classmethod
    def epoch_to_iso(cls, v: Any) -> Any:
        return coerce_timestamp(v)

    @field_validator("action", "action_type", "performed_by_name", "created_by_name", mode="before")
    @classmethod
    def number_to_str(cls, v: Any) -> Any:
        if isinstance(v, (int, float)) and not isinstance(v, bool):
            return str(v)
        return v

    @property
    def action_name(self) -> str | None:
        return self.action or self.action_type

    @property
    def performer(self) -> str:
        return self.performed_by_name or self.created_by_name or "Unknown"

    @property
    def timestamp(self) -> str | None:
        return self.performed_at or self.created_at


class RenderedHistoryEntry(BaseModel):
    """Human-readable version of a history entry."""

    id: int | str | None = None
    title: str
    lines: list[str] = Field(default_factory=list)
    performed_by: str = "Unknown"
    performed_at: str | None = None
