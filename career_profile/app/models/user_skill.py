import logging
from datetime import datetime, timezone
from enum import Enum

from sqlalchemy import (
    Column,
    DateTime,
    Float,
    ForeignKey,
    Integer,
    Text,
    UniqueConstraint,
)
from sqlalchemy import Enum as SAEnum
from sqlalchemy.orm import relationship

from career_profile.app.models import Base

log = logging.getLogger(__name__)


class ProficiencyLevel(str, Enum):
    """How well a user knows a skill."""

    BEGINNER = "BEGINNER"
    INTERMEDIATE = "INTERMEDIATE"
    ADVANCED = "ADVANCED"
    EXPERT = "EXPERT"


class SkillSource(str, Enum):
    """Where a user acquired a skill."""

    WORK_EXPERIENCE = "WORK_EXPERIENCE"
    EDUCATION = "EDUCATION"
    CERTIFICATION = "CERTIFICATION"
    PERSONAL_PROJECT = "PERSONAL_PROJECT"
    TRAINING = "TRAINING"
    OTHER = "OTHER"


class UserSkill(Base):
    """Links a user to a canonical skill.

    A user holds at most one assignment per skill. When the skill was learned
    in a job, `work_history_id` points at that work history record.

    Attributes:
        id (int): Primary key.
        user_id (int): The owning user.
        skill_id (int): Foreign key to the canonical skill.
        proficiency (ProficiencyLevel): Self-assessed proficiency.
        years_experience (float | None): Optional years of experience.
        source (SkillSource): Where the skill was acquired.
        notes (str | None): Free-text context, e.g. "Used at Acme - Engineer".
        work_history_id (int | None): Work history record the skill was learned in.
        skill (Skill): Relationship to the canonical skill.
        work_history (WorkHistory | None): Relationship to the work history record.

    """

    __tablename__ = "user_skills"
    __table_args__ = (
        UniqueConstraint("user_id", "skill_id", name="uq_user_skills_user_skill"),
    )

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(Integer, nullable=False, index=True)
    skill_id = Column(Integer, ForeignKey("skills.id"), nullable=False)
    proficiency = Column(
        SAEnum(ProficiencyLevel, name="proficiency_level"),
        default=ProficiencyLevel.INTERMEDIATE,
        nullable=False,
    )
    years_experience = Column(Float, nullable=True)
    source = Column(
        SAEnum(SkillSource, name="skill_source"),
        default=SkillSource.WORK_EXPERIENCE,
        nullable=False,
    )
    notes = Column(Text, nullable=True)
    work_history_id = Column(
        Integer,
        ForeignKey("work_history.id", ondelete="SET NULL"),
        nullable=True,
    )
    created_at = Column(
        DateTime,
        default=lambda: datetime.now(timezone.utc),
        nullable=False,
    )
    updated_at = Column(
        DateTime,
        default=lambda: datetime.now(timezone.utc),
        onupdate=lambda: datetime.now(timezone.utc),
        nullable=False,
    )

    skill = relationship("Skill", back_populates="user_skills")
    work_history = relationship("WorkHistory", back_populates="user_skills")

    def __init__(
        self,
        user_id: int,
        skill_id: int,
        proficiency: ProficiencyLevel = ProficiencyLevel.INTERMEDIATE,
        source: SkillSource = SkillSource.WORK_EXPERIENCE,
        years_experience: float | None = None,
        notes: str | None = None,
        work_history_id: int | None = None,
    ):
        """
        Initialize a UserSkill instance.

        Args:
            user_id (int): The ID of the user the skill belongs to.
            skill_id (int): The ID of the canonical skill.
            proficiency (ProficiencyLevel): Proficiency level.
            source (SkillSource): Where the skill was acquired.
            years_experience (float | None): Optional years of experience.
            notes (str | None): Optional free-text context.
            work_history_id (int | None): Optional work history back-reference.

        Returns:
            None

        Notes:
            1. Assign all values to instance attributes.
            2. This operation does not involve network, disk, or database access.

        """
        _msg = f"Initializing UserSkill for user_id: {user_id}, skill_id: {skill_id}"
        log.debug(_msg)

        self.user_id = user_id
        self.skill_id = skill_id
        self.proficiency = proficiency
        self.source = source
        self.years_experience = years_experience
        self.notes = notes
        self.work_history_id = work_history_id
