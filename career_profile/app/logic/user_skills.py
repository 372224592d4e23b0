import logging
from enum import Enum

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from career_profile.app.core.errors import SkillAssignmentConflictError
from career_profile.app.logic.achievement_store import get_user_work_history
from career_profile.app.logic.skill_normalization import SkillNormalizer
from career_profile.app.models.skill import SkillCategory
from career_profile.app.models.user_skill import ProficiencyLevel, SkillSource, UserSkill
from career_profile.app.models.work_history import WorkHistory
from career_profile.app.schemas.profile import NormalizedSkill

log = logging.getLogger(__name__)


class SkillLinkPolicy(str, Enum):
    """What to do when a skill shows up again in a second work context."""

    SKIP_IF_LINKED = "skip_if_linked"
    APPEND_CONTEXT = "append_context"


def work_context_note(
    company_name: str | None,
    job_title: str | None,
    detailed_variant: str | None = None,
) -> str:
    """Builds the "Used at {company} - {title}" note for a skill learned in a job."""
    note = f"Used at {company_name or 'Unknown company'} - {job_title or 'Unknown role'}"
    if detailed_variant:
        note += f" ({detailed_variant})"
    return note


def get_user_skill(db: Session, user_id: int, skill_id: int) -> UserSkill | None:
    return (
        db.query(UserSkill)
        .filter(UserSkill.user_id == user_id, UserSkill.skill_id == skill_id)
        .first()
    )


def link_skills_to_work_history(
    db: Session,
    user_id: int,
    work_history: WorkHistory,
    normalized_skills: list[NormalizedSkill],
    policy: SkillLinkPolicy = SkillLinkPolicy.SKIP_IF_LINKED,
) -> int:
    """
    Create or attach user skill assignments for skills used in a job.

    Args:
        db (Session): The database session.
        user_id (int): The owning user.
        work_history (WorkHistory): The job the skills were used in.
        normalized_skills (list[NormalizedSkill]): Skills resolved by the normalizer.
        policy (SkillLinkPolicy): Handling of skills already linked to another job.

    Returns:
        int: Number of assignments created or newly attached to this job.

    Raises:
        SQLAlchemyError: If the write fails; the transaction is rolled back.

    Notes:
        1. A skill the user does not hold yet gets a new assignment linked to this job,
           with a "Used at" note that includes the detailed variant.
        2. An assignment without a work history link is attached to this job.
        3. An assignment already linked elsewhere is left alone under SKIP_IF_LINKED;
           under APPEND_CONTEXT the "Used at" line for this job is appended to its notes.
        4. All changes are committed together.

    """
    _msg = f"link_skills_to_work_history starting for work history {work_history.id}"
    log.debug(_msg)

    linked = 0
    try:
        for normalized in normalized_skills:
            existing = get_user_skill(db, user_id, normalized.base_skill_id)
            if existing is None:
                db.add(
                    UserSkill(
                        user_id=user_id,
                        skill_id=normalized.base_skill_id,
                        proficiency=ProficiencyLevel.INTERMEDIATE,
                        source=SkillSource.WORK_EXPERIENCE,
                        notes=work_context_note(
                            work_history.company_name,
                            work_history.job_title,
                            normalized.detailed_variant,
                        ),
                        work_history_id=work_history.id,
                    )
                )
                linked += 1
                continue

            if existing.work_history_id is None:
                existing.work_history_id = work_history.id
                existing.notes = work_context_note(
                    work_history.company_name, work_history.job_title
                )
                linked += 1
                continue

            if existing.work_history_id == work_history.id:
                continue

            if policy == SkillLinkPolicy.APPEND_CONTEXT:
                note = work_context_note(work_history.company_name, work_history.job_title)
                if note not in (existing.notes or ""):
                    existing.notes = f"{existing.notes}\n{note}" if existing.notes else note
            else:
                _msg = (
                    f"Skill {normalized.base_skill_name} already linked to work history "
                    f"{existing.work_history_id}, leaving it"
                )
                log.debug(_msg)

        db.commit()
    except SQLAlchemyError:
        db.rollback()
        _msg = f"Failed to link skills to work history {work_history.id}"
        log.exception(_msg)
        raise

    _msg = f"link_skills_to_work_history returning {linked}"
    log.debug(_msg)
    return linked


def add_user_skill_to_work(
    db: Session,
    user_id: int,
    work_history_id: int,
    skill_name: str,
    proficiency: ProficiencyLevel | None = None,
    years_experience: float | None = None,
    notes: str | None = None,
    normalizer: SkillNormalizer | None = None,
) -> UserSkill:
    """
    Link a skill entered by the user to one of their work history records.

    Args:
        db (Session): The database session.
        user_id (int): The owning user.
        work_history_id (int): The job to link the skill to.
        skill_name (str): Raw skill text; normalized to its canonical skill.
        proficiency (ProficiencyLevel | None): Proficiency for a new assignment. Defaults to INTERMEDIATE.
        years_experience (float | None): Optional years of experience.
        notes (str | None): Optional note.
        normalizer (SkillNormalizer | None): Normalizer to use. Defaults to one bound to `db`.

    Returns:
        UserSkill: The created or updated assignment.

    Raises:
        ResourceNotFoundError: If the work history record does not belong to the user.
        SkillAssignmentConflictError: If the skill is already linked to a work history record.
        ValueError: If `skill_name` is blank.

    Notes:
        1. Verify ownership of the work history record.
        2. Normalize the skill name.
        3. Attach an existing unlinked assignment, or create a new linked one.

    """
    _msg = f"add_user_skill_to_work starting for '{skill_name}'"
    log.debug(_msg)

    work_history = get_user_work_history(db, user_id, work_history_id)
    normalizer = normalizer or SkillNormalizer(db)
    normalized = normalizer.normalize(skill_name, SkillCategory.OTHER)

    existing = get_user_skill(db, user_id, normalized.base_skill_id)
    if existing is not None:
        if existing.work_history_id is not None:
            raise SkillAssignmentConflictError(normalized.base_skill_name)
        existing.work_history_id = work_history.id
        existing.notes = notes if notes is not None else existing.notes
        assignment = existing
    else:
        assignment = UserSkill(
            user_id=user_id,
            skill_id=normalized.base_skill_id,
            proficiency=proficiency or ProficiencyLevel.INTERMEDIATE,
            source=SkillSource.WORK_EXPERIENCE,
            years_experience=years_experience,
            notes=notes,
            work_history_id=work_history.id,
        )
        db.add(assignment)

    try:
        db.commit()
    except SQLAlchemyError:
        db.rollback()
        _msg = f"Failed to link skill '{skill_name}' to work history {work_history_id}"
        log.exception(_msg)
        raise
    db.refresh(assignment)

    _msg = f"add_user_skill_to_work returning assignment {assignment.id}"
    log.debug(_msg)
    return assignment
