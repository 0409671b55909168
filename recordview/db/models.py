"""SQLAlchemy ORM models for locally persisted view preferences."""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Any

from sqlalchemy import JSON, String
from sqlalchemy.orm import Mapped, mapped_column

from recordview.db.base import Base


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class ViewPreference(Base):
    """
    One preference value per namespaced key.

    Keys look like ``<entityType>:<panelId>`` (e.g. ``JOB:details``) and are
    shared by every record of that entity type.
    """

    __tablename__ = "view_preferences"

    key: Mapped[str] = mapped_column(String(255), primary_key=True)
    value_json: Mapped[Any] = mapped_column(JSON, nullable=True)
    updated_at: Mapped[datetime] = mapped_column(default=_utcnow, onupdate=_utcnow)
