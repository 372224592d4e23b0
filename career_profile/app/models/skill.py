import logging
from datetime import datetime, timezone
from enum import Enum

from sqlalchemy import Column, DateTime, ForeignKey, Index, Integer, String, Text, func
from sqlalchemy import Enum as SAEnum
from sqlalchemy.orm import relationship

from career_profile.app.models import Base

log = logging.getLogger(__name__)


class SkillCategory(str, Enum):
    """Fixed taxonomy of skill categories spanning the supported professional domains."""

    # Technology & Engineering
    PROGRAMMING_LANGUAGE = "PROGRAMMING_LANGUAGE"
    FRAMEWORK_LIBRARY = "FRAMEWORK_LIBRARY"
    DATABASE = "DATABASE"
    CLOUD_PLATFORM = "CLOUD_PLATFORM"
    DEVOPS_TOOLS = "DEVOPS_TOOLS"
    DESIGN_TOOLS = "DESIGN_TOOLS"

    # Healthcare & Medical
    MEDICAL_PROCEDURE = "MEDICAL_PROCEDURE"
    MEDICAL_EQUIPMENT = "MEDICAL_EQUIPMENT"
    DIAGNOSTIC_SKILLS = "DIAGNOSTIC_SKILLS"
    PATIENT_CARE = "PATIENT_CARE"
    MEDICAL_SOFTWARE = "MEDICAL_SOFTWARE"

    # Finance & Business
    FINANCIAL_ANALYSIS = "FINANCIAL_ANALYSIS"
    ACCOUNTING_SOFTWARE = "ACCOUNTING_SOFTWARE"
    TRADING_PLATFORMS = "TRADING_PLATFORMS"
    REGULATORY_COMPLIANCE = "REGULATORY_COMPLIANCE"
    RISK_MANAGEMENT = "RISK_MANAGEMENT"

    # Legal
    LEGAL_RESEARCH = "LEGAL_RESEARCH"
    LEGAL_SOFTWARE = "LEGAL_SOFTWARE"
    CASE_MANAGEMENT = "CASE_MANAGEMENT"
    LITIGATION_SKILLS = "LITIGATION_SKILLS"
    CONTRACT_LAW = "CONTRACT_LAW"

    # Manufacturing & Operations
    MANUFACTURING_EQUIPMENT = "MANUFACTURING_EQUIPMENT"
    QUALITY_CONTROL = "QUALITY_CONTROL"
    SUPPLY_CHAIN = "SUPPLY_CHAIN"
    LEAN_METHODOLOGY = "LEAN_METHODOLOGY"
    SAFETY_PROTOCOLS = "SAFETY_PROTOCOLS"

    # Sales & Marketing
    CRM_SYSTEMS = "CRM_SYSTEMS"
    DIGITAL_MARKETING = "DIGITAL_MARKETING"
    SALES_TECHNIQUES = "SALES_TECHNIQUES"
    MARKET_RESEARCH = "MARKET_RESEARCH"
    CONTENT_CREATION = "CONTENT_CREATION"

    # Education & Training
    CURRICULUM_DEVELOPMENT = "CURRICULUM_DEVELOPMENT"
    EDUCATIONAL_TECHNOLOGY = "EDUCATIONAL_TECHNOLOGY"
    ASSESSMENT_METHODS = "ASSESSMENT_METHODS"
    CLASSROOM_MANAGEMENT = "CLASSROOM_MANAGEMENT"
    LEARNING_MANAGEMENT_SYSTEMS = "LEARNING_MANAGEMENT_SYSTEMS"

    # Creative & Media
    GRAPHIC_DESIGN_SOFTWARE = "GRAPHIC_DESIGN_SOFTWARE"
    VIDEO_EDITING = "VIDEO_EDITING"
    AUDIO_PRODUCTION = "AUDIO_PRODUCTION"
    CREATIVE_WRITING = "CREATIVE_WRITING"
    PHOTOGRAPHY_EQUIPMENT = "PHOTOGRAPHY_EQUIPMENT"

    # Universal
    PROJECT_MANAGEMENT = "PROJECT_MANAGEMENT"
    SOFT_SKILLS = "SOFT_SKILLS"
    INDUSTRY_KNOWLEDGE = "INDUSTRY_KNOWLEDGE"
    CERTIFICATION = "CERTIFICATION"
    METHODOLOGY = "METHODOLOGY"
    LANGUAGES = "LANGUAGES"
    OTHER = "OTHER"


class Skill(Base):
    """Canonical skill shared by every user.

    Attributes:
        id (int): Unique identifier for the skill.
        name (str): Canonical base skill name, unique case-insensitively.
        category (SkillCategory): Category assigned when the skill was first created.
        description (str | None): Optional free-text description.
        created_at (datetime): Timestamp when the skill was created.
        aliases (list[SkillAlias]): Alternative spellings and detailed variants.
        user_skills (list[UserSkill]): Assignments of this skill to users.

    """

    __tablename__ = "skills"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String, nullable=False)
    category = Column(
        SAEnum(SkillCategory, name="skill_category"),
        default=SkillCategory.OTHER,
        nullable=False,
    )
    description = Column(Text, nullable=True)
    created_at = Column(
        DateTime,
        default=lambda: datetime.now(timezone.utc),
        nullable=False,
    )

    aliases = relationship(
        "SkillAlias",
        back_populates="skill",
        cascade="all, delete-orphan",
    )
    user_skills = relationship("UserSkill", back_populates="skill")

    def __init__(
        self,
        name: str,
        category: SkillCategory = SkillCategory.OTHER,
        description: str | None = None,
    ):
        """
        Initialize a Skill instance.

        Args:
            name (str): Canonical base skill name.
            category (SkillCategory): Category of the skill.
            description (str | None): Optional description.

        Returns:
            None

        Notes:
            1. Assign all values to instance attributes.
            2. This operation does not involve network, disk, or database access.

        """
        _msg = f"Initializing Skill with name: {name}"
        log.debug(_msg)

        self.name = name
        self.category = category
        self.description = description


class SkillAlias(Base):
    """Alternative text that resolves to a canonical skill.

    Attributes:
        id (int): Unique identifier for the alias.
        alias (str): Alias text, unique case-insensitively across all skills.
        skill_id (int): Foreign key to the owning skill.
        skill (Skill): The owning skill.

    """

    __tablename__ = "skill_aliases"

    id = Column(Integer, primary_key=True, index=True)
    alias = Column(String, nullable=False)
    skill_id = Column(
        Integer,
        ForeignKey("skills.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    created_at = Column(
        DateTime,
        default=lambda: datetime.now(timezone.utc),
        nullable=False,
    )

    skill = relationship("Skill", back_populates="aliases")

    def __init__(self, alias: str, skill_id: int):
        self.alias = alias
        self.skill_id = skill_id


# Case-insensitive uniqueness for canonical names and alias text
Index("ix_skills_name_lower", func.lower(Skill.name), unique=True)
Index("ix_skill_aliases_alias_lower", func.lower(SkillAlias.alias), unique=True)
