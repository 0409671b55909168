"""Authoring state machine for a new note.

CLOSED -> OPEN -> VALIDATING -> (OPEN with errors) | SUBMITTING -> CLOSED

Validation errors keep the form intact so the user can correct and resubmit.
The about-references list is re-seeded with a reference to the record being
viewed every time the form resets.
"""

from __future__ import annotations

import enum
import logging
from typing import Any, Awaitable, Callable

from recordview.core.async_utils import RequestSequencer
from recordview.core.structured_logging import build_log_context
from recordview.schemas.note import NoteDraft, NoteRead
from recordview.schemas.reference import EntityReference
from recordview.services.api_client import CrmApiClient, CrmApiError
from recordview.services.reference_resolver import ReferenceResolver

logger = logging.getLogger(__name__)

GENERIC_SUBMIT_ERROR = "Failed to add note. Please try again."

NoteCreatedCallback = Callable[[NoteRead], Awaitable[None] | None]


class ComposerState(str, enum.Enum):
    CLOSED = "closed"
    OPEN = "open"
    VALIDATING = "validating"
    SUBMITTING = "submitting"


def validate_draft(draft: NoteDraft) -> dict[str, str]:
    """Field-scoped errors for a draft (empty dict when submittable)."""
    errors: dict[str, str] = {}
    if not draft.text.strip():
        errors["text"] = "Note text is required"
    if not draft.action.strip():
        errors["action"] = "Action is required"
    if not draft.about_references:
        errors["about"] = "At least one reference is required"
    return errors


class NoteComposer:
    def __init__(
        self,
        api: CrmApiClient,
        collection: str,
        record_id: str | int,
        self_reference: EntityReference,
        *,
        action_options: list[str] | None = None,
        on_created: NoteCreatedCallback | None = None,
        resolver_factory: Callable[[CrmApiClient], ReferenceResolver] = ReferenceResolver,
    ) -> None:
        self.api = api
        self.collection = collection
        self.record_id = record_id
        self.self_reference = self_reference
        self.action_options = list(action_options or [])
        self.on_created = on_created
        self.about_resolver = resolver_factory(api)
        self.additional_resolver = resolver_factory(api)

        self.state = ComposerState.CLOSED
        self.draft = self._fresh_draft()
        self.errors: dict[str, str] = {}
        self.submit_error: str | None = None
        self._sequencer = RequestSequencer()

    def _fresh_draft(self) -> NoteDraft:
        return NoteDraft(about_references=[self.self_reference])

    def _reset(self) -> None:
        self.draft = self._fresh_draft()
        self.errors = {}
        self.submit_error = None
        self.about_resolver.clear()
        self.additional_resolver.clear()

    # =========================================================================
    # Lifecycle
    # =========================================================================

    @property
    def is_open(self) -> bool:
        return self.state != ComposerState.CLOSED

    def open(self) -> None:
        if self.state == ComposerState.CLOSED:
            self._reset()
            self.state = ComposerState.OPEN

    def cancel(self) -> None:
        """Close without submitting; an in-flight submit no longer touches the form."""
        self._sequencer.invalidate()
        self._reset()
        self.state = ComposerState.CLOSED

    # =========================================================================
    # Form fields
    # =========================================================================

    def set_text(self, text: str) -> None:
        self.draft.text = text
        self.errors.pop("text", None)

    def set_action(self, action: str) -> None:
        self.draft.action = action
        self.errors.pop("action", None)

    def set_copy_note(self, copy_note: bool) -> None:
        self.draft.copy_note = "Yes" if copy_note else "No"

    def set_schedule_next_action(self, value: str) -> None:
        self.draft.schedule_next_action = value or "None"

    def set_email_notification(self, recipients: list[str]) -> None:
        self.draft.email_notification = [r for r in recipients if r]

    def add_about_reference(self, reference: EntityReference) -> None:
        if all(r.key != reference.key for r in self.draft.about_references):
            self.draft.about_references.append(reference)
        self.errors.pop("about", None)
        self.about_resolver.clear()

    def remove_about_reference(self, reference: EntityReference | str) -> None:
        key = reference.key if isinstance(reference, EntityReference) else reference
        self.draft.about_references = [r for r in self.draft.about_references if r.key != key]

    def add_additional_reference(self, reference: EntityReference) -> None:
        if all(r.key != reference.key for r in self.draft.additional_references):
            self.draft.additional_references.append(reference)
        self.additional_resolver.clear()

    def remove_additional_reference(self, reference: EntityReference | str) -> None:
        key = reference.key if isinstance(reference, EntityReference) else reference
        self.draft.additional_references = [
            r for r in self.draft.additional_references if r.key != key
        ]

    async def search_about(self, query: str) -> list[EntityReference]:
        return await self.about_resolver.search(
            query, exclude_ids=[r.id for r in self.draft.about_references]
        )

    async def search_additional(self, query: str) -> list[EntityReference]:
        return await self.additional_resolver.search(
            query, exclude_ids=[r.id for r in self.draft.additional_references]
        )

    # =========================================================================
    # Submit
    # =========================================================================

    def validate(self) -> dict[str, str]:
        self.state = ComposerState.VALIDATING
        errors = validate_draft(self.draft)
        self.errors = errors
        if errors:
            self.state = ComposerState.OPEN
        return errors

    async def submit(self) -> NoteRead | None:
        """Validate and create the note.

        Returns the created note, or None when validation or the request
        failed (errors are left on ``errors`` / ``submit_error``) or when a
        submit is already in flight.
        """
        if self.state in (ComposerState.CLOSED, ComposerState.SUBMITTING):
            return None
        if self.validate():
            return None

        self.state = ComposerState.SUBMITTING
        self.submit_error = None
        token = self._sequencer.next("submit")
        log_context = build_log_context(record_id=str(self.record_id), operation="note.create")

        try:
            raw = await self.api.create_note(self.collection, self.record_id, self.draft.to_payload())
            note = NoteRead.model_validate(raw)
        except CrmApiError as exc:
            logger.warning("Note create failed", extra=log_context)
            if self._sequencer.is_current("submit", token):
                if exc.errors:
                    self.errors = {**self.errors, **exc.errors}
                else:
                    self.submit_error = GENERIC_SUBMIT_ERROR
                self.state = ComposerState.OPEN
            return None
        except Exception:
            logger.warning("Note create failed", exc_info=True, extra=log_context)
            if self._sequencer.is_current("submit", token):
                self.submit_error = GENERIC_SUBMIT_ERROR
                self.state = ComposerState.OPEN
            return None

        if self._sequencer.is_current("submit", token):
            self._reset()
            self.state = ComposerState.CLOSED

        # The record still gets the note even if the form was closed meanwhile
        if self.on_created is not None:
            result = self.on_created(note)
            if result is not None:
                await result
        return note
