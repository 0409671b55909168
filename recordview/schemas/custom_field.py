"""Pydantic schemas for custom field definitions served by field management."""

from typing import Any

from pydantic import BaseModel, ConfigDict, Field


def _flag_set(value: Any) -> bool:
    if isinstance(value, str):
        return value.strip().lower() in ("true", "1", "yes")
    return value is True or value == 1


class CustomFieldDefinition(BaseModel):
    """
    A custom field definition as returned by ``/api/admin/field-management``.

    Different endpoint generations name the hidden flag and the stable key
    differently, so every alias is accepted.
    """

    model_config = ConfigDict(extra="allow", populate_by_name=True)

    id: int | str | None = None
    field_name: str | int | None = None
    field_label: str | int | None = None
    field_key: str | int | None = None
    api_name: str | int | None = None
    field_type: str | None = None
    is_hidden: Any = None
    hidden: Any = None
    is_hidden_camel: Any = Field(default=None, alias="isHidden")

    @property
    def hidden_flag(self) -> bool:
        return any(_flag_set(v) for v in (self.is_hidden, self.hidden, self.is_hidden_camel))

    @property
    def stable_key(self) -> str | None:
        """field_key / api_name, then field_name, then id."""
        for candidate in (self.field_key, self.api_name, self.field_name, self.id):
            if candidate is not None and str(candidate).strip():
                return str(candidate).strip()
        return None

    @property
    def aliases(self) -> list[str]:
        """Every key the field's values may be stored under.

        Records written by the field renderer key values by ``field_label``,
        older ones by ``field_name`` or ``field_key``.
        """
        keys: list[str] = []
        for candidate in (self.field_key, self.api_name, self.field_name, self.field_label, self.id):
            if candidate is not None and str(candidate).strip():
                key = str(candidate).strip()
                if key not in keys:
                    keys.append(key)
        return keys

    @property
    def label(self) -> str:
        for candidate in (self.field_label, self.field_name, self.field_key, self.api_name):
            if candidate is not None and str(candidate).strip():
                return str(candidate)
        return self.stable_key or ""


class FieldOption(BaseModel):
    """One entry in a field catalog (what a picker lists)."""

    model_config = ConfigDict(frozen=True)

    key: str
    label: str
    sortable: bool = True
