"""Tests for pinned records."""

from recordview.services.pinned_records import (
    PINNED_RECORDS_KEY,
    PinnedRecord,
    PinnedRecords,
    build_pinned_key,
    pinned_record_for,
)


def _record(i: int) -> PinnedRecord:
    return PinnedRecord(key=build_pinned_key("Job", i), label=f"J-{i}", url=f"/dashboard/jobs/view?id={i}")


def test_pin_newest_first(memory_store):
    pinned = PinnedRecords(memory_store)

    assert pinned.pin(_record(1)) is None
    assert pinned.pin(_record(2)) is None

    assert [r.key for r in pinned.load()] == ["Job:2", "Job:1"]
    assert pinned.is_pinned("Job:1")


def test_pin_refuses_duplicate_and_limit(memory_store):
    pinned = PinnedRecords(memory_store)
    for i in range(10):
        pinned.pin(_record(i))

    assert pinned.pin(_record(3)) == "duplicate"
    assert pinned.pin(_record(99)) == "limit"
    assert len(pinned.load()) == 10


def test_toggle(memory_store):
    pinned = PinnedRecords(memory_store, limit=1)

    assert pinned.toggle(_record(1)) == "pinned"
    assert pinned.toggle(_record(2)) == "limit"
    assert pinned.toggle(_record(1)) == "unpinned"
    assert pinned.load() == []


def test_load_skips_malformed_entries(memory_store):
    memory_store.set(
        PINNED_RECORDS_KEY,
        [{"key": "Job:1", "label": "J-1", "url": "/x"}, {"key": "", "url": "/y"}, "junk", {"key": "Job:2"}],
    )

    assert [r.key for r in PinnedRecords(memory_store).load()] == ["Job:1"]


def test_pinned_record_for_uses_registry_route():
    record = pinned_record_for("hiring-managers", 12, "HM-12 Grace Hopper")

    assert record.key == "HiringManager:12"
    assert record.url == "/dashboard/hiring-managers/view?id=12"
