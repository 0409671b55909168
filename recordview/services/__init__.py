"""Service layer modules."""

from recordview.services.api_client import CrmApiClient, CrmApiError
from recordview.services.field_catalog import (
    FieldVisibilityEngine,
    HeaderFieldConfig,
    build_catalog,
)
from recordview.services.history_renderer import (
    diff_snapshots,
    filter_history,
    render_history_entry,
)
from recordview.services.note_composer import ComposerState, NoteComposer
from recordview.services.preference_store import (
    InMemoryPreferenceStore,
    PreferenceStore,
    SqlPreferenceStore,
    preference_key,
)
from recordview.services.record_view import RecordTab, RecordView
from recordview.services.reference_registry import (
    build_reference,
    format_record_id,
    get_reference_type,
)
from recordview.services.reference_resolver import ReferenceResolver
from recordview.services.view_configs import (
    HIRING_MANAGER_VIEW,
    JOB_VIEW,
    TASK_VIEW,
    get_view_config,
)

__all__ = [
    # API
    "CrmApiClient",
    "CrmApiError",
    # References
    "ReferenceResolver",
    "build_reference",
    "format_record_id",
    "get_reference_type",
    # Notes
    "ComposerState",
    "NoteComposer",
    # Fields
    "FieldVisibilityEngine",
    "HeaderFieldConfig",
    "build_catalog",
    # History
    "diff_snapshots",
    "filter_history",
    "render_history_entry",
    # Preferences
    "InMemoryPreferenceStore",
    "PreferenceStore",
    "SqlPreferenceStore",
    "preference_key",
    # Views
    "HIRING_MANAGER_VIEW",
    "JOB_VIEW",
    "TASK_VIEW",
    "RecordTab",
    "RecordView",
    "get_view_config",
]
