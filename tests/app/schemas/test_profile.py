from datetime import date, datetime

import pytest

from career_profile.app.schemas.profile import (
    ExtractedProfile,
    ReconciliationCounts,
    WorkExperienceFact,
    parse_fact_date,
)


@pytest.mark.parametrize(
    "value, expected",
    [
        (None, None),
        (date(2020, 3, 15), date(2020, 3, 15)),
        (datetime(2020, 3, 15, 10, 30), date(2020, 3, 15)),
        ("2020-03-15", date(2020, 3, 15)),
        ("2020-03-15T00:00:00Z", date(2020, 3, 15)),
        ("2020-03", date(2020, 3, 1)),
        ("03/2020", date(2020, 3, 1)),
        ("Mar 2020", date(2020, 3, 1)),
        ("March 2020", date(2020, 3, 1)),
        ("2020", date(2020, 1, 1)),
        ("Present", None),
        ("current", None),
        ("", None),
        ("sometime soon", None),
        (2020, None),
    ],
)
def test_parse_fact_date(value, expected):
    """Test supported date shapes and that unknown values never become a date."""
    assert parse_fact_date(value) == expected


def test_work_experience_fact_accepts_camel_case():
    """Test extraction-service field names are accepted."""
    fact = WorkExperienceFact.model_validate(
        {
            "company": "  Acme Inc. ",
            "jobTitle": "Senior Engineer",
            "startDate": "2019-01-10",
            "endDate": "2021-06-20",
            "achievements": ["Built X", "  ", "Shipped Y "],
            "skills": ["React", None, ""],
        }
    )

    assert fact.company == "Acme Inc."
    assert fact.job_title == "Senior Engineer"
    assert fact.start_date == date(2019, 1, 10)
    assert fact.end_date == date(2021, 6, 20)
    assert fact.achievements == ["Built X", "Shipped Y"]
    assert fact.skills == ["React"]


def test_work_experience_fact_tolerates_missing_fields():
    """Test every field is optional."""
    fact = WorkExperienceFact.model_validate({"company": "Acme", "achievements": None})

    assert fact.job_title is None
    assert fact.start_date is None
    assert fact.end_date is None
    assert fact.achievements == []
    assert fact.skills == []


def test_extracted_profile_defaults():
    """Test a profile with nothing extracted."""
    profile = ExtractedProfile.model_validate(
        {"workExperience": None, "keyAchievements": ["Won award", ""]}
    )

    assert profile.work_experience == []
    assert profile.key_achievements == ["Won award"]


def test_reconciliation_counts_start_at_zero():
    """Test counts default to zero with no errors."""
    counts = ReconciliationCounts()
    assert counts.work_experience_processed == 0
    assert counts.skipped == 0
    assert counts.errors == []
