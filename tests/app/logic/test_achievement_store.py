from unittest.mock import patch

import pytest
from sqlalchemy.exc import OperationalError

from career_profile.app.core.errors import ResourceNotFoundError
from career_profile.app.logic.achievement_store import (
    clean_statements,
    get_user_work_history,
    load_key_achievement_records,
    load_work_achievement_records,
    replace_key_achievements,
    replace_work_achievements,
)
from career_profile.app.models.key_achievement import KeyAchievement
from career_profile.app.models.work_history import WorkAchievement


def test_clean_statements():
    """Test statements are trimmed and blanks dropped."""
    assert clean_statements([" a ", "", "   ", "b"]) == ["a", "b"]


def test_get_user_work_history_checks_owner(db_session, make_work_history):
    """Test ownership is enforced."""
    record = make_work_history(user_id=1)

    assert get_user_work_history(db_session, 1, record.id).id == record.id
    with pytest.raises(ResourceNotFoundError):
        get_user_work_history(db_session, 2, record.id)
    with pytest.raises(ResourceNotFoundError):
        get_user_work_history(db_session, 1, record.id + 100)


def test_load_work_achievement_records(db_session, make_work_history):
    """Test records come back in creation order with their ids."""
    record = make_work_history(achievements=["first", "second"])

    records = load_work_achievement_records(db_session, record.id)

    assert [r.text for r in records] == ["first", "second"]
    assert all(r.id is not None for r in records)


def test_replace_work_achievements(db_session, make_work_history):
    """Test a full replace leaves exactly the new list."""
    record = make_work_history(achievements=["old one", "old two"])
    other = make_work_history(company_name="Globex", achievements=["untouched"])

    deleted, created = replace_work_achievements(
        db_session, 1, record.id, [" new one ", "", "new two"]
    )

    assert (deleted, created) == (2, 2)
    assert [r.text for r in load_work_achievement_records(db_session, record.id)] == [
        "new one",
        "new two",
    ]
    assert [a.description for a in record.achievements] == ["new one", "new two"]
    assert [r.text for r in load_work_achievement_records(db_session, other.id)] == ["untouched"]


def test_replace_work_achievements_rolls_back_on_error(db_session, make_work_history):
    """Test a failed commit applies nothing."""
    record = make_work_history(achievements=["keep me"])

    with patch.object(
        db_session, "commit", side_effect=OperationalError("stmt", {}, Exception("boom"))
    ):
        with pytest.raises(OperationalError):
            replace_work_achievements(db_session, 1, record.id, ["new"])

    assert [
        a.description for a in db_session.query(WorkAchievement).all()
    ] == ["keep me"]


def test_replace_key_achievements(db_session):
    """Test a user's key achievements are fully replaced."""
    db_session.add_all(
        [
            KeyAchievement(user_id=1, content="old"),
            KeyAchievement(user_id=2, content="other user"),
        ]
    )
    db_session.commit()

    deleted, created = replace_key_achievements(db_session, 1, ["new a", "new b"])

    assert (deleted, created) == (1, 2)
    assert [r.text for r in load_key_achievement_records(db_session, 1)] == ["new a", "new b"]
    assert [r.text for r in load_key_achievement_records(db_session, 2)] == ["other user"]
