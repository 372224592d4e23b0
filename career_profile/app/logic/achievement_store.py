import logging

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from career_profile.app.core.errors import ResourceNotFoundError
from career_profile.app.models.key_achievement import KeyAchievement
from career_profile.app.models.work_history import WorkAchievement, WorkHistory
from career_profile.app.schemas.profile import AchievementRecord

log = logging.getLogger(__name__)


def clean_statements(statements: list[str]) -> list[str]:
    """Trims statements and drops blank ones, keeping order."""
    return [text.strip() for text in statements if text and text.strip()]


def get_user_work_history(db: Session, user_id: int, work_history_id: int) -> WorkHistory:
    """
    Retrieve a work history record owned by a user.

    Args:
        db (Session): The database session.
        user_id (int): The owning user.
        work_history_id (int): The record to fetch.

    Returns:
        WorkHistory: The record.

    Raises:
        ResourceNotFoundError: If the record does not exist or belongs to another user.

    Notes:
        1. This function performs a database read operation.

    """
    record = (
        db.query(WorkHistory)
        .filter(WorkHistory.id == work_history_id, WorkHistory.user_id == user_id)
        .first()
    )
    if record is None:
        _msg = f"Work history {work_history_id} not found for user {user_id}"
        log.warning(_msg)
        raise ResourceNotFoundError("Work history", work_history_id)
    return record


def load_work_achievement_records(db: Session, work_history_id: int) -> list[AchievementRecord]:
    """Loads a work history record's achievements as AchievementRecords in creation order."""
    rows = (
        db.query(WorkAchievement)
        .filter(WorkAchievement.work_history_id == work_history_id)
        .order_by(WorkAchievement.created_at, WorkAchievement.id)
        .all()
    )
    return [
        AchievementRecord(id=row.id, text=row.description, created_at=row.created_at)
        for row in rows
    ]


def load_key_achievement_records(db: Session, user_id: int) -> list[AchievementRecord]:
    """Loads a user's key achievements as AchievementRecords in creation order."""
    rows = (
        db.query(KeyAchievement)
        .filter(KeyAchievement.user_id == user_id)
        .order_by(KeyAchievement.created_at, KeyAchievement.id)
        .all()
    )
    return [
        AchievementRecord(id=row.id, text=row.content, created_at=row.created_at)
        for row in rows
    ]


def stage_work_achievement_replace(
    db: Session,
    work_history_id: int,
    descriptions: list[str],
) -> tuple[int, int]:
    """
    Stage a full replace of a work history record's achievements without committing.

    Args:
        db (Session): The database session.
        work_history_id (int): The owning record.
        descriptions (list[str]): The complete new achievement list.

    Returns:
        tuple[int, int]: Rows deleted and rows created.

    Notes:
        1. Delete every achievement of the record.
        2. Insert the cleaned descriptions in order.
        3. The caller owns the transaction and must commit or roll back.

    """
    deleted = (
        db.query(WorkAchievement)
        .filter(WorkAchievement.work_history_id == work_history_id)
        .delete(synchronize_session="fetch")
    )
    cleaned = clean_statements(descriptions)
    for description in cleaned:
        db.add(WorkAchievement(work_history_id=work_history_id, description=description))
    return deleted, len(cleaned)


def stage_key_achievement_replace(
    db: Session,
    user_id: int,
    contents: list[str],
) -> tuple[int, int]:
    """Stages a full replace of a user's key achievements; the caller commits."""
    deleted = (
        db.query(KeyAchievement)
        .filter(KeyAchievement.user_id == user_id)
        .delete(synchronize_session="fetch")
    )
    cleaned = clean_statements(contents)
    for content in cleaned:
        db.add(KeyAchievement(user_id=user_id, content=content))
    return deleted, len(cleaned)


def replace_work_achievements(
    db: Session,
    user_id: int,
    work_history_id: int,
    descriptions: list[str],
) -> tuple[int, int]:
    """
    Replace every achievement of a work history record in one transaction.

    Args:
        db (Session): The database session.
        user_id (int): The owning user.
        work_history_id (int): The record whose achievements are replaced.
        descriptions (list[str]): The complete new list; blank entries are dropped.

    Returns:
        tuple[int, int]: Rows deleted and rows created.

    Raises:
        ResourceNotFoundError: If the record does not belong to the user.
        SQLAlchemyError: If the write fails; nothing is applied.

    Notes:
        1. Verify ownership of the record.
        2. Delete all existing rows and insert the new ones.
        3. Commit once; roll back on any storage error.

    """
    _msg = f"replace_work_achievements starting for work history {work_history_id}"
    log.debug(_msg)

    record = get_user_work_history(db, user_id, work_history_id)
    try:
        deleted, created = stage_work_achievement_replace(db, record.id, descriptions)
        db.commit()
    except SQLAlchemyError:
        db.rollback()
        _msg = f"Failed to replace achievements for work history {work_history_id}"
        log.exception(_msg)
        raise
    db.expire(record, ["achievements"])

    _msg = f"replace_work_achievements returning deleted={deleted} created={created}"
    log.debug(_msg)
    return deleted, created


def replace_key_achievements(
    db: Session,
    user_id: int,
    contents: list[str],
) -> tuple[int, int]:
    """
    Replace every key achievement of a user in one transaction.

    Args:
        db (Session): The database session.
        user_id (int): The owning user.
        contents (list[str]): The complete new list; blank entries are dropped.

    Returns:
        tuple[int, int]: Rows deleted and rows created.

    Raises:
        SQLAlchemyError: If the write fails; nothing is applied.

    """
    _msg = f"replace_key_achievements starting for user {user_id}"
    log.debug(_msg)

    try:
        deleted, created = stage_key_achievement_replace(db, user_id, contents)
        db.commit()
    except SQLAlchemyError:
        db.rollback()
        _msg = f"Failed to replace key achievements for user {user_id}"
        log.exception(_msg)
        raise

    _msg = f"replace_key_achievements returning deleted={deleted} created={created}"
    log.debug(_msg)
    return deleted, created
