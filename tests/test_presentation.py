import pytest

from recordview.schemas.reference import ReferenceType
from recordview.services.reference_registry import (
    build_reference,
    format_record_id,
    get_reference_type,
    matches_query,
)
from recordview.utils.datetime_parsing import format_display_date, format_display_datetime
from recordview.utils.presentation import format_field_name, format_money, humanize_identifier


@pytest.mark.parametrize(
    ("raw", "expected"),
    [
        ("full_name", "Full Name"),
        ("lastContactDate", "Last Contact Date"),
        ("date-of-hire", "Date of Hire"),
        ("Preferred  Shift", "Preferred Shift"),
        ("", ""),
        (None, ""),
    ],
)
def test_humanize_identifier(raw, expected):
    assert humanize_identifier(raw) == expected


def test_format_field_name_keeps_case():
    assert format_field_name("job_Title") == "job Title"


@pytest.mark.parametrize(
    ("raw", "expected"),
    [(85000, "85,000"), ("110000", "110,000"), ("1,250.5", "1,250.5"), ("", None), ("abc", None)],
)
def test_format_money(raw, expected):
    assert format_money(raw) == expected


def test_display_dates():
    assert format_display_date("2024-03-05T10:00:00Z") == "3/5/2024"
    assert format_display_date("03/05/2024") == "3/5/2024"
    assert format_display_date("not a date", "Not specified") == "Not specified"
    assert format_display_datetime("2024-03-05T15:04:09") == "3/5/2024, 3:04:09 PM"


@pytest.mark.parametrize(
    ("ref_type", "expected"),
    [
        ("Job", "J-42"),
        ("Organization", "O-42"),
        ("JobSeeker", "JS-42"),
        ("Lead", "L-42"),
        ("Task", "T-42"),
        ("Placement", "P-42"),
        ("HiringManager", "HM-42"),
    ],
)
def test_format_record_id_prefixes(ref_type, expected):
    assert format_record_id(42, ref_type) == expected


@pytest.mark.parametrize("alias", ["job-seekers", "job-seeker", "jobSeeker", "JobSeeker", "job_seekers"])
def test_reference_type_aliases(alias):
    assert get_reference_type(alias).type is ReferenceType.JOB_SEEKER


def test_unknown_reference_type():
    with pytest.raises(ValueError):
        get_reference_type("widget")


def test_build_reference_freezes_display():
    raw = {"id": 7, "first_name": "Erin", "last_name": "Engel"}
    ref = build_reference(raw, "job-seekers")
    raw["first_name"] = "Renamed"

    assert ref.display == "JS-7 Erin Engel"
    assert ref.value == "JS-7"
    assert ref.key == "JobSeeker:7"


def test_build_reference_requires_id():
    with pytest.raises(ValueError):
        build_reference({"job_title": "No id"}, "Job")


def test_matches_query():
    assert matches_query({"id": 1, "job_title": "Backend Engineer"}, "Job", "ENG")
    assert matches_query({"id": 12, "first_name": "Grace"}, "HiringManager", "12")
    assert matches_query({"id": 5, "first_name": "Erin", "last_name": "Engel"}, "JobSeeker", "erin engel")
    assert not matches_query({"id": 44}, "Job", "untitled")
    assert not matches_query({"id": 1, "title": "x"}, "Task", "   ")
