import logging
from datetime import datetime, timezone

from sqlalchemy import Column, DateTime, Integer, Text

from career_profile.app.models import Base

log = logging.getLogger(__name__)


class KeyAchievement(Base):
    """
    Profile-level achievement statement that is not tied to a job.

    Attributes:
        id (int): Primary key.
        user_id (int): The owning user.
        content (str): Free-text achievement statement.
        created_at (datetime): Timestamp when the row was inserted.

    """

    __tablename__ = "key_achievements"

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(Integer, nullable=False, index=True)
    content = Column(Text, nullable=False)
    created_at = Column(
        DateTime,
        default=lambda: datetime.now(timezone.utc),
        nullable=False,
    )

    def __init__(self, user_id: int, content: str):
        self.user_id = user_id
        self.content = content
