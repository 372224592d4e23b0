import logging

from sqlalchemy.orm import declarative_base

log = logging.getLogger(__name__)

# Base model that other models will inherit from
Base = declarative_base()

# Import all models here to ensure they are registered with SQLAlchemy's metadata
from .key_achievement import KeyAchievement  # noqa
from .skill import Skill, SkillAlias, SkillCategory  # noqa
from .user_skill import ProficiencyLevel, SkillSource, UserSkill  # noqa
from .work_history import WorkAchievement, WorkHistory  # noqa
