"""Local view-preference store.

Keys are namespaced ``<entityType>:<panelId>`` and scoped to the entity type,
so a preference set while viewing one record applies to every record of that
type. Writes are fire-and-forget: failures are logged, never raised.
"""

from __future__ import annotations

import copy
import logging
from typing import Any, Callable, Protocol

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from recordview.core.structured_logging import build_log_context
from recordview.db.base import Base
from recordview.db.models import ViewPreference

logger = logging.getLogger(__name__)


def preference_key(entity_type: str, panel_id: str) -> str:
    """``JOB:details`` style key shared by all records of ``entity_type``."""
    return f"{entity_type}:{panel_id}"


class PreferenceStore(Protocol):
    def get(self, key: str) -> Any: ...

    def set(self, key: str, value: Any) -> None: ...

    def reset(self, key: str) -> None: ...


class InMemoryPreferenceStore:
    """Dict-backed store for tests and throwaway sessions."""

    def __init__(self, initial: dict[str, Any] | None = None) -> None:
        self._values: dict[str, Any] = copy.deepcopy(initial or {})

    def get(self, key: str) -> Any:
        return copy.deepcopy(self._values.get(key))

    def set(self, key: str, value: Any) -> None:
        self._values[key] = copy.deepcopy(value)

    def reset(self, key: str) -> None:
        self._values.pop(key, None)


class SqlPreferenceStore:
    """SQLAlchemy-backed store (one ``view_preferences`` row per key)."""

    def __init__(self, session_factory: Callable[[], Session], *, create_tables: bool = True) -> None:
        self._session_factory = session_factory
        if create_tables:
            try:
                with session_factory() as db:
                    Base.metadata.create_all(bind=db.get_bind())
            except SQLAlchemyError:
                logger.warning(
                    "Preference store unavailable",
                    exc_info=True,
                    extra=build_log_context(operation="preferences.init"),
                )

    def get(self, key: str) -> Any:
        try:
            with self._session_factory() as db:
                row = db.get(ViewPreference, key)
                return row.value_json if row is not None else None
        except SQLAlchemyError:
            logger.warning(
                "Failed to read preference",
                exc_info=True,
                extra=build_log_context(operation="preferences.get"),
            )
            return None

    def set(self, key: str, value: Any) -> None:
        try:
            with self._session_factory() as db:
                row = db.get(ViewPreference, key)
                if row is None:
                    db.add(ViewPreference(key=key, value_json=value))
                else:
                    row.value_json = value
                db.commit()
        except SQLAlchemyError:
            logger.warning(
                "Failed to save preference",
                exc_info=True,
                extra=build_log_context(operation="preferences.set"),
            )

    def reset(self, key: str) -> None:
        try:
            with self._session_factory() as db:
                row = db.get(ViewPreference, key)
                if row is not None:
                    db.delete(row)
                    db.commit()
        except SQLAlchemyError:
            logger.warning(
                "Failed to reset preference",
                exc_info=True,
                extra=build_log_context(operation="preferences.reset"),
            )


def safe_get(store: PreferenceStore, key: str) -> Any:
    """Read through any injected store; failures read as "no preference"."""
    try:
        return store.get(key)
    except Exception:
        logger.warning(
            "Preference read failed",
            exc_info=True,
            extra=build_log_context(operation="preferences.get"),
        )
        return None


def safe_set(store: PreferenceStore, key: str, value: Any) -> None:
    try:
        store.set(key, value)
    except Exception:
        logger.warning(
            "Preference write failed",
            exc_info=True,
            extra=build_log_context(operation="preferences.set"),
        )


def safe_reset(store: PreferenceStore, key: str) -> None:
    try:
        store.reset(key)
    except Exception:
        logger.warning(
            "Preference reset failed",
            exc_info=True,
            extra=build_log_context(operation="preferences.reset"),
        )
