"""Pydantic schemas for notes."""

import json
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator

from recordview.schemas.reference import EntityReference
from recordview.utils.datetime_parsing import coerce_timestamp


class NoteRead(BaseModel):
    """Note as returned by ``GET/POST /api/<collection>/<id>/notes``."""

    model_config = ConfigDict(extra="allow")

    id: int | str | None = None
    text: str = ""
    action: str | None = None
    about: Any = None
    about_references: list[Any] = Field(default_factory=list)
    additional_references: list[Any] = Field(default_factory=list)
    created_by_name: str | None = None
    created_at: str | None = None

    @field_validator("text", mode="before")
    @classmethod
    def coerce_text(cls, v: Any) -> str:
        return "" if v is None else str(v)

    @field_validator("created_at", mode="before")
    @classmethod
    def epoch_to_iso(cls, v: Any) -> Any:
        return coerce_timestamp(v)

    @field_validator("action", "created_by_name", mode="before")
    @classmethod
    def number_to_str(cls, v: Any) -> Any:
        if isinstance(v, (int, float)) and not isinstance(v, bool):
            return str(v)
        return v

    @field_validator("about_references", "additional_references", mode="before")
    @classmethod
    def coerce_references(cls, v: Any) -> list[Any]:
        if isinstance(v, str):
            try:
                v = json.loads(v)
            except ValueError:
                return []
        return v if isinstance(v, list) else []

    @property
    def author(self) -> str:
        return self.created_by_name or "Unknown User"

    def preview(self, limit: int = 100) -> str:
        """Text truncated for the Recent Notes panel."""
        if len(self.text) > limit:
            return f"{self.text[:limit]}..."
        return self.text


class NoteDraft(BaseModel):
    """Authoring state of a note that has not been submitted yet."""

    text: str = ""
    action: str = ""
    about_references: list[EntityReference] = Field(default_factory=list)
    additional_references: list[EntityReference] = Field(default_factory=list)
    copy_note: str = "No"
    replace_general_contact_comments: bool = False
    schedule_next_action: str = "None"
    email_notification: list[str] = Field(default_factory=list)

    def to_payload(self) -> dict[str, Any]:
        """Wire body for the create-note request.

        ``about`` is a JSON-encoded string and ``about_references`` carries the
        same references as a structured array for the server's convenience.
        """
        about = [ref.to_payload() for ref in self.about_references]
        return {
            "text": self.text.strip(),
            "action": self.action,
            "about": json.dumps(about),
            "about_references": about,
            "additional_references": [ref.to_payload() for ref in self.additional_references],
            "copy_note": self.copy_note,
            "replace_general_contact_comments": self.replace_general_contact_comments,
            "schedule_next_action": self.schedule_next_action,
            "email_notification": list(self.email_notification),
        }
