"""Tests for audit-log rendering and history filters."""

import json

from recordview.schemas.history import HistoryEntry
from recordview.services.history_renderer import (
    DETAILS_ERROR,
    NO_CHANGES,
    diff_snapshots,
    filter_history,
    render_history_entry,
    unique_users,
)


def _update(before, after, **extra):
    return {"action": "UPDATE", "details": {"before": before, "after": after}, **extra}


def test_single_field_change():
    rendered = render_history_entry(_update({"status": "Open"}, {"status": "Closed"}), "Job")

    assert rendered.title == "Job Updated"
    assert len(rendered.lines) == 1
    line = rendered.lines[0]
    assert "status" in line
    assert "Open" in line
    assert "Closed" in line


def test_identical_snapshots_report_no_changes():
    snapshot = {"status": "Open", "owner": "Kim"}
    rendered = render_history_entry(_update(snapshot, dict(snapshot)))

    assert rendered.lines == [NO_CHANGES]


def test_updated_at_is_ignored():
    lines = diff_snapshots(
        {"updated_at": "2024-01-01", "status": "Open"},
        {"updated_at": "2024-02-01", "status": "Open"},
    )

    assert lines == []


def test_empty_values_render_placeholder():
    lines = diff_snapshots({"phone": None, "email": ""}, {"phone": "555-0100", "email": "a@b.co"})

    assert lines == ["phone: Empty → 555-0100", "email: Empty → a@b.co"]


def test_field_names_use_spaces():
    lines = diff_snapshots({"job_board_status": "Not Posted"}, {"job_board_status": "Posted"})

    assert lines == ["job board status: Not Posted → Posted"]


def test_custom_fields_diffed_per_key():
    lines = diff_snapshots(
        {"custom_fields": json.dumps({"clearance": "None", "shift": "Day"})},
        {"custom_fields": {"clearance": "Secret", "shift": "Day", "badge": "B-1"}},
    )

    assert lines == [
        "Custom Field (clearance): None → Secret",
        "Custom Field (badge): Empty → B-1",
    ]


def test_malformed_custom_fields_fall_back_to_plain_line():
    lines = diff_snapshots({"custom_fields": "{oops"}, {"custom_fields": "{oops!"})

    assert lines == ["custom fields: {oops → {oops!"]


def test_string_encoded_details_are_parsed():
    entry = {"action": "UPDATE", "details": json.dumps({"before": {"a": 1}, "after": {"a": 2}})}

    assert render_history_entry(entry).lines == ["a: 1 → 2"]


def test_create_and_add_note():
    created = render_history_entry({"action": "CREATE", "details": "{}", "performed_by_name": "Kim"}, "Task")
    note = render_history_entry({"action": "ADD_NOTE", "details": {"text": "Called back"}})

    assert created.title == "Task Created"
    assert created.lines == ["Created by Kim"]
    assert note.title == "Note Added"
    assert note.lines == ["Called back"]


def test_action_type_alias_and_created_by_fallback():
    rendered = render_history_entry({"action_type": "CREATE", "created_by_name": "Lee"})

    assert rendered.lines == ["Created by Lee"]
    assert rendered.performed_by == "Lee"


def test_unknown_action_falls_back_to_raw_details():
    rendered = render_history_entry({"action": "TRANSFER", "details": {"to": "Kim"}})

    assert rendered.title == "TRANSFER"
    assert rendered.lines == ['{"to": "Kim"}']


def test_malformed_details_never_raise():
    rendered = render_history_entry({"action": "UPDATE", "details": "{not json"})

    assert rendered.lines == [DETAILS_ERROR]


def _entries():
    return [
        HistoryEntry(id=1, action="CREATE", performed_at="2024-03-01T09:00:00Z", performed_by_name="Lee Chan"),
        HistoryEntry(id=2, action="UPDATE", performed_at="2024-03-03T09:00:00Z", performed_by_name="Kim Park"),
        HistoryEntry(id=3, action="UPDATE", performed_at="2024-03-02T09:00:00", performed_by_name="kim park"),
        HistoryEntry(id=4, action="UPDATE", performed_by_name="Kim Park"),
    ]


def test_filter_sorts_newest_first_by_default():
    assert [e.id for e in filter_history(_entries())] == [2, 3, 1, 4]


def test_filter_ascending():
    assert [e.id for e in filter_history(_entries(), sort_order="asc")] == [1, 3, 2, 4]


def test_filter_by_user_is_case_insensitive():
    assert [e.id for e in filter_history(_entries(), user_filter="KIM")] == [2, 3, 4]


def test_unique_users_sorted():
    assert unique_users(_entries()) == ["Kim Park", "Lee Chan", "kim park"]
