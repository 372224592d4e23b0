import logging
from dataclasses import dataclass
from datetime import date, datetime, timezone

from sqlalchemy import Column, Date, DateTime, ForeignKey, Integer, String, Text
from sqlalchemy.orm import relationship

from career_profile.app.models import Base

log = logging.getLogger(__name__)


@dataclass
class WorkHistoryData:
    """Dataclass to hold data for WorkHistory initialization."""

    user_id: int
    company_name: str
    job_title: str
    start_date: date
    end_date: date | None = None


class WorkHistory(Base):
    """A single job held by a user.

    Attributes:
        id (int): Unique identifier for the record.
        user_id (int): The owning user.
        company_name (str): Employer name as extracted or entered.
        job_title (str): Job title.
        start_date (date): First month of the position.
        end_date (date | None): Last month of the position, None for a current position.
        created_at (datetime): Timestamp when the record was created.
        updated_at (datetime): Timestamp when the record was last updated.
        achievements (list[WorkAchievement]): Achievement statements, oldest first.
        user_skills (list[UserSkill]): Skill assignments learned in this job.

    """

    __tablename__ = "work_history"

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(Integer, nullable=False, index=True)
    company_name = Column(String, nullable=False)
    job_title = Column(String, nullable=False)
    start_date = Column(Date, nullable=False)
    end_date = Column(Date, nullable=True)
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

    achievements = relationship(
        "WorkAchievement",
        back_populates="work_history",
        cascade="all, delete-orphan",
        order_by="WorkAchievement.id",
    )
    user_skills = relationship("UserSkill", back_populates="work_history")

    def __init__(self, data: WorkHistoryData):
        """Initialize a WorkHistory instance.

        Args:
            data (WorkHistoryData): An object containing the data for the new record.

        Returns:
            None

        Notes:
            1. Assigns attributes from the `data` object to the `WorkHistory` instance.
            2. This constructor does not perform validation.
            3. This function does not perform disk, network, or database access.

        """
        _msg = f"Initializing WorkHistory for company: {data.company_name}"
        log.debug(_msg)

        self.user_id = data.user_id
        self.company_name = data.company_name
        self.job_title = data.job_title
        self.start_date = data.start_date
        self.end_date = data.end_date


class WorkAchievement(Base):
    """An achievement statement belonging to exactly one work history record.

    Attributes:
        id (int): Primary key.
        work_history_id (int): Foreign key to the owning work history record.
        description (str): Free-text achievement statement.
        created_at (datetime): Timestamp when the row was inserted.

    """

    __tablename__ = "work_achievements"

    id = Column(Integer, primary_key=True, index=True)
    work_history_id = Column(
        Integer,
        ForeignKey("work_history.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    description = Column(Text, nullable=False)
    created_at = Column(
        DateTime,
        default=lambda: datetime.now(timezone.utc),
        nullable=False,
    )

    work_history = relationship("WorkHistory", back_populates="achievements")

    def __init__(self, work_history_id: int, description: str):
        self.work_history_id = work_history_id
        self.description = description
