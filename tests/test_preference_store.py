"""Tests for the local preference stores."""

import logging

from sqlalchemy.exc import OperationalError

from recordview.services.preference_store import (
    InMemoryPreferenceStore,
    SqlPreferenceStore,
    preference_key,
)


def test_preference_key_namespacing():
    assert preference_key("JOB", "details") == "JOB:details"


def test_sql_store_round_trip(sql_store):
    assert sql_store.get("JOB:details") is None

    sql_store.set("JOB:details", ["status", "owner"])
    assert sql_store.get("JOB:details") == ["status", "owner"]

    sql_store.set("JOB:details", ["owner"])
    assert sql_store.get("JOB:details") == ["owner"]

    sql_store.reset("JOB:details")
    assert sql_store.get("JOB:details") is None


def test_sql_store_keeps_keys_separate(sql_store):
    sql_store.set("JOB:details", ["a"])
    sql_store.set("TASK:details", ["b"])
    sql_store.set("JOB:summaryColumns", {"left": ["x"], "right": []})

    assert sql_store.get("JOB:details") == ["a"]
    assert sql_store.get("TASK:details") == ["b"]
    assert sql_store.get("JOB:summaryColumns") == {"left": ["x"], "right": []}


def test_sql_store_errors_are_logged_not_raised(caplog):
    def broken_factory():
        raise OperationalError("SELECT 1", {}, Exception("database is locked"))

    with caplog.at_level(logging.WARNING):
        store = SqlPreferenceStore(broken_factory)
        assert store.get("JOB:details") is None
        store.set("JOB:details", ["a"])
        store.reset("JOB:details")

    assert "Failed to save preference" in caplog.text


def test_in_memory_store_copies_values():
    store = InMemoryPreferenceStore()
    value = ["a"]
    store.set("k", value)
    value.append("b")

    fetched = store.get("k")
    fetched.append("c")

    assert store.get("k") == ["a"]
