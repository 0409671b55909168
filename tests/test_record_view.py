"""End-to-end tests for the record view against the fake backend."""

import asyncio

import pytest

from recordview.schemas.reference import EntityReference, ReferenceType
from recordview.services.note_composer import ComposerState
from recordview.services.record_view import RecordTab, RecordView
from recordview.services.view_configs import HIRING_MANAGER_VIEW, JOB_VIEW, TASK_VIEW, get_view_config


@pytest.mark.asyncio
async def test_job_without_title_renders_default(api, memory_store):
    view = RecordView(api, JOB_VIEW, 44, store=memory_store)

    record = await view.load()

    assert record is not None
    assert record.title == "Untitled Job"
    assert view.self_reference.display == "J-44 Untitled Job"
    assert ("Title", "Untitled Job") in view.panel_values("jobDetails")


@pytest.mark.asyncio
async def test_load_fans_out_dependent_data(api, memory_store):
    view = RecordView(api, JOB_VIEW, 42, store=memory_store)

    await view.load()

    assert view.error is None
    assert [n.id for n in view.notes] == [100, 99, 98]
    assert [n.id for n in view.recent_notes] == [100, 99]
    assert len(view.history) == 2
    assert view.summary_counts == {"client-submissions": 1, "interviews": 1}
    assert not any([view.is_loading, view.is_loading_notes, view.is_loading_history, view.is_loading_fields])


@pytest.mark.asyncio
async def test_missing_record_sets_error(api, memory_store):
    view = RecordView(api, JOB_VIEW, 999, store=memory_store)

    assert await view.load() is None

    assert view.error == "Record not found"
    assert view.is_loading is False
    assert view.notes == []


@pytest.mark.asyncio
async def test_one_failing_section_does_not_block_others(api, backend, memory_store):
    backend.failing_paths.add("jobs/42/history")
    view = RecordView(api, JOB_VIEW, 42, store=memory_store)

    await view.load()

    assert view.history_error == "History unavailable"
    assert view.history == []
    assert len(view.notes) == 3


@pytest.mark.asyncio
async def test_submitting_note_prepends_and_resets_composer(api, backend, memory_store):
    view = RecordView(api, JOB_VIEW, 42, store=memory_store)
    await view.load()
    composer = view.open_note_composer()
    self_ref = EntityReference(id=42, type=ReferenceType.JOB, display="J-42 Backend Engineer", value="J-42")
    assert composer.draft.about_references == [self_ref]

    composer.set_text("Called candidate")
    composer.set_action("Follow-up")
    note = await composer.submit()

    assert note is not None
    assert view.notes[0].text == "Called candidate"
    assert view.recent_notes[0].id == note.id
    assert composer.state == ComposerState.CLOSED
    assert composer.draft.about_references == [self_ref]
    # History was refetched after the note was created
    assert view.history[0].action == "ADD_NOTE"


@pytest.mark.asyncio
async def test_interview_note_updates_counts(api, memory_store):
    view = RecordView(api, JOB_VIEW, 42, store=memory_store)
    await view.load()
    composer = view.open_note_composer()
    composer.set_text("Panel interview booked")
    composer.set_action("Interview")

    await composer.submit()

    assert view.summary_counts["interviews"] == 2


@pytest.mark.asyncio
async def test_catalog_excludes_hidden_and_renders_custom_values(api, memory_store):
    view = RecordView(api, JOB_VIEW, 42, store=memory_store)
    await view.load()

    keys = [o.key for o in view.catalog("jobDetails")]
    assert "custom:clearance" in keys
    assert "custom:remote_ok" not in keys

    view.visibility.toggle_visibility("jobDetails", "custom:clearance")
    assert view.panel_values("jobDetails")[-1] == ("Security Clearance", "Secret")


@pytest.mark.asyncio
async def test_header_values_follow_configured_order(api, backend, memory_store):
    backend.header_configs[("JOB", "header")] = ["custom:clearance", "status"]
    view = RecordView(api, JOB_VIEW, 42, store=memory_store)
    await view.load()

    assert view.header_values() == [("Security Clearance", "Secret"), ("Status", "Open")]


@pytest.mark.asyncio
async def test_recent_notes_panel(api, memory_store):
    view = RecordView(api, JOB_VIEW, 42, store=memory_store)
    await view.load()

    assert view.panel_values("recentNotes") == [
        ("Recent Notes", ["Screened two candidates", "Intake call done"])
    ]


@pytest.mark.asyncio
async def test_rendered_history(api, memory_store):
    view = RecordView(api, JOB_VIEW, 42, store=memory_store)
    await view.load()

    newest_first = view.rendered_history()
    assert [e.title for e in newest_first] == ["Job Updated", "Job Created"]
    assert newest_first[0].lines == ["status: Open → Closed"]
    assert [e.title for e in view.rendered_history(user_filter="lee")] == ["Job Created"]
    assert view.history_users() == ["Kim Park", "Lee Chan"]


@pytest.mark.asyncio
async def test_close_drops_inflight_load(api, memory_store):
    view = RecordView(api, JOB_VIEW, 42, store=memory_store)
    task = asyncio.create_task(view.load())
    await asyncio.sleep(0)
    view.close()
    await task

    assert view.record is None
    assert view.notes == []


@pytest.mark.asyncio
async def test_delete(api, backend, memory_store):
    view = RecordView(api, JOB_VIEW, 43, store=memory_store)

    assert await view.delete() is True
    assert backend.find("jobs", "43") is None

    backend.failing_deletes.add("42")
    failing = RecordView(api, JOB_VIEW, 42, store=memory_store)
    assert await failing.delete() is False
    assert failing.delete_error == "Delete failed"


@pytest.mark.asyncio
async def test_hiring_manager_and_task_views(api, memory_store):
    hm_view = RecordView(api, HIRING_MANAGER_VIEW, 12, store=memory_store)
    task_view = RecordView(api, TASK_VIEW, 3, store=memory_store)

    await hm_view.load()
    await task_view.load()

    assert hm_view.record.display_title == "Hopper, Grace"
    assert hm_view.self_reference.value == "HM-12"
    assert task_view.record.priority == "High"
    assert ("Title", "Call engineer back") in task_view.panel_values("taskDetails")


@pytest.mark.asyncio
async def test_tabs_and_config_lookup(api):
    view = RecordView(api, JOB_VIEW, 42)

    assert view.set_active_tab("history") is RecordTab.HISTORY
    assert get_view_config("hiring-managers") is HIRING_MANAGER_VIEW
    with pytest.raises(ValueError):
        get_view_config("organizations")


@pytest.mark.asyncio
async def test_custom_values_keyed_by_label_resolve_through_field_key(api, backend, memory_store):
    backend.custom_fields["jobs"] = [
        {"id": 1, "field_key": "clearance_lvl", "field_name": "clearance", "field_label": "Security Clearance"},
        {"id": 2, "field_name": "remote_ok", "field_label": "Remote OK", "is_hidden": True},
    ]
    backend.records["jobs"][0]["custom_fields"] = '{"Security Clearance": "Top Secret", "Remote OK": "Yes"}'
    view = RecordView(api, JOB_VIEW, 42, store=memory_store)
    await view.load()

    custom = [(o.key, o.label) for o in view.catalog("jobDetails") if o.key.startswith("custom:")]
    assert custom == [("custom:clearance_lvl", "Security Clearance")]

    view.visibility.set_panel_fields("jobDetails", ["custom:clearance_lvl"])
    assert view.panel_values("jobDetails") == [("Security Clearance", "Top Secret")]


@pytest.mark.asyncio
async def test_malformed_history_entries_are_skipped(api, backend, memory_store):
    backend.history["jobs/42"] = [
        {"id": 1, "action": "CREATE", "performed_at": 1700000000},
        {"id": {"bad": 1}, "action": "UPDATE"},
    ]
    view = RecordView(api, JOB_VIEW, 42, store=memory_store)

    await view.load()

    assert view.is_loading_history is False
    assert view.history_error is None
    assert len(view.history) == 1
    assert view.history[0].performed_at.startswith("2023-11-14")
    assert [entry.title for entry in view.rendered_history()] == ["Job Created"]


@pytest.mark.asyncio
async def test_malformed_notes_are_skipped(api, backend, memory_store):
    backend.notes["jobs/42"] = [
        {"id": ["x"], "text": "broken"},
        {"id": 2, "text": "ok", "action": 7, "created_at": 1700000000},
    ]
    view = RecordView(api, JOB_VIEW, 42, store=memory_store)

    await view.load()

    assert view.is_loading_notes is False
    assert [(note.id, note.action) for note in view.notes] == [(2, "7")]
    assert view.notes[0].created_at.startswith("2023-11-14")


@pytest.mark.asyncio
async def test_malformed_field_definitions_are_skipped(api, backend, memory_store):
    backend.custom_fields["jobs"] = [{"id": {"x": 1}}, {"field_name": "ok"}]
    view = RecordView(api, JOB_VIEW, 42, store=memory_store)

    await view.load()

    assert view.is_loading_fields is False
    assert [d.field_name for d in view.field_definitions] == ["ok"]


@pytest.mark.asyncio
async def test_job_with_plain_title_key_is_labeled_consistently(api, backend, memory_store):
    backend.records["jobs"][2]["title"] = "Data Analyst"
    view = RecordView(api, JOB_VIEW, 44, store=memory_store)

    record = await view.load()

    assert record.title == "Data Analyst"
    assert view.self_reference.display == "J-44 Data Analyst"


@pytest.mark.asyncio
async def test_reopened_composer_picks_up_renamed_record(api, backend, memory_store):
    view = RecordView(api, JOB_VIEW, 42, store=memory_store)
    await view.load()
    composer = view.open_note_composer()
    composer.cancel()

    backend.records["jobs"][0]["job_title"] = "Platform Engineer"
    await view.reload()
    reopened = view.open_note_composer()

    assert reopened is composer
    assert reopened.draft.about_references[0].display == "J-42 Platform Engineer"
