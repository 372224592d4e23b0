import logging
from datetime import date, datetime
from typing import Any, Literal

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, field_validator

from career_profile.app.models.skill import SkillCategory

log = logging.getLogger(__name__)

_FACT_DATE_FORMATS = ("%Y-%m-%d", "%Y-%m", "%m/%Y", "%m/%d/%Y", "%b %Y", "%B %Y", "%Y")


def parse_fact_date(value: Any) -> date | None:
    """Coerce an extracted date value into a `date`.

    Args:
        value (Any): A `date`, `datetime`, string or None as produced by the extraction service.

    Returns:
        date | None: The parsed date, or None when the value is missing or cannot be parsed.

    Notes:
        1. `datetime` values are truncated to their date.
        2. Strings are tried against ISO datetimes first, then a fixed list of formats.
        3. Unparseable values are logged and returned as None; no date is ever invented.

    """
    if value is None:
        return None
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    if not isinstance(value, str):
        _msg = f"Ignoring non-string date value of type {type(value).__name__}"
        log.warning(_msg)
        return None

    text = value.strip()
    if not text or text.lower() in ("present", "current", "now"):
        return None

    try:
        return datetime.fromisoformat(text.replace("Z", "+00:00")).date()
    except ValueError:
        pass

    for fmt in _FACT_DATE_FORMATS:
        try:
            return datetime.strptime(text, fmt).date()
        except ValueError:
            continue

    _msg = f"Could not parse date value '{text}'"
    log.warning(_msg)
    return None


def _clean_strings(value: Any) -> list[str]:
    if not value:
        return []
    if isinstance(value, str):
        value = [value]
    return [item.strip() for item in value if isinstance(item, str) and item.strip()]


class WorkExperienceFact(BaseModel):
    """A work history entry as produced by the extraction service.

    Every field is optional; missing lists become empty lists and
    unparseable dates become None.

    Attributes:
        company (str | None): Employer name.
        job_title (str | None): Job title. Also accepted as `jobTitle`.
        start_date (date | None): Start date. Also accepted as `startDate`.
        end_date (date | None): End date, None for a current position. Also accepted as `endDate`.
        achievements (list[str]): Achievement statements for this job.
        skills (list[str]): Raw skill strings mentioned for this job.

    """

    model_config = ConfigDict(populate_by_name=True)

    company: str | None = None
    job_title: str | None = Field(
        default=None,
        validation_alias=AliasChoices("job_title", "jobTitle"),
    )
    start_date: date | None = Field(
        default=None,
        validation_alias=AliasChoices("start_date", "startDate"),
    )
    end_date: date | None = Field(
        default=None,
        validation_alias=AliasChoices("end_date", "endDate"),
    )
    achievements: list[str] = Field(default_factory=list)
    skills: list[str] = Field(default_factory=list)

    @field_validator("company", "job_title", mode="before")
    @classmethod
    def strip_text(cls, v):
        if v is None:
            return None
        stripped = str(v).strip()
        return stripped or None

    @field_validator("start_date", "end_date", mode="before")
    @classmethod
    def coerce_date(cls, v):
        return parse_fact_date(v)

    @field_validator("achievements", "skills", mode="before")
    @classmethod
    def clean_lists(cls, v):
        return _clean_strings(v)


class ExtractedProfile(BaseModel):
    """All facts extracted from one uploaded document."""

    model_config = ConfigDict(populate_by_name=True)

    work_experience: list[WorkExperienceFact] = Field(
        default_factory=list,
        validation_alias=AliasChoices("work_experience", "workExperience"),
    )
    key_achievements: list[str] = Field(
        default_factory=list,
        validation_alias=AliasChoices("key_achievements", "keyAchievements"),
    )

    @field_validator("work_experience", mode="before")
    @classmethod
    def default_work_experience(cls, v):
        return v or []

    @field_validator("key_achievements", mode="before")
    @classmethod
    def clean_key_achievements(cls, v):
        return _clean_strings(v)


class SkillParseResult(BaseModel):
    """How a raw skill string splits into a base skill and an optional detail.

    Attributes:
        base_skill (str): The base skill name.
        details (str | None): Detail text such as "Native" in "React (Native)".
        confidence (float): 0.9 for a known pattern, 0.7 parenthetical, 0.6 separator, 1.0 exact.
        pattern (str): The pattern source, or "parentheses", "separator" or "exact".

    """

    base_skill: str
    details: str | None = None
    confidence: float
    pattern: str


class NormalizedSkill(BaseModel):
    """The resolved canonical skill for a raw skill string.

    Attributes:
        base_skill_id (int): ID of the canonical skill.
        base_skill_name (str): Canonical name of the skill.
        detailed_variant (str | None): The raw string when it carried detail, kept as an alias.
        category (SkillCategory): Category used when the base skill was created.
        is_new_base_skill (bool): True when this call created the canonical skill.
        is_new_variant (bool): True when this call created the variant alias.

    """

    base_skill_id: int
    base_skill_name: str
    detailed_variant: str | None = None
    category: SkillCategory
    is_new_base_skill: bool = False
    is_new_variant: bool = False


class AchievementRecord(BaseModel):
    """One achievement statement scoped to an owner, in creation order."""

    id: int | None = None
    text: str
    created_at: datetime | None = None


class AchievementPreviewItem(BaseModel):
    """One statement of a deduplication result.

    `kept` means the statement passed through untouched, `merged` that it
    combines several inputs and `optimized` that it rewords a single input.
    """

    description: str
    action: Literal["kept", "merged", "optimized"]


class DeduplicationResult(BaseModel):
    """Outcome of an achievement deduplication run."""

    success: bool = True
    message: str
    original_count: int
    final_count: int
    exact_duplicates_removed: int = 0
    similar_groups_merged: int = 0
    merge_applied: bool = False
    dry_run: bool = False
    preview: list[AchievementPreviewItem] = Field(default_factory=list)


class ReconciliationCounts(BaseModel):
    """Per-category counts reported by a batch reconciliation, even under partial failure.

    Attributes:
        work_experience_processed (int): Facts reconciled successfully.
        records_created (int): New work history records.
        records_updated (int): Existing work history records matched and updated.
        achievements_added (int): Achievement rows stored for newly created records.
        achievements_merged (int): Statements removed as exact duplicates or merged.
        skills_linked (int): Skill assignments created or attached to a work record.
        key_achievements_stored (int): Key achievement rows stored after reconciliation.
        skipped (int): Facts that could not be reconciled because of missing data.
        failed (int): Facts whose transaction was rolled back.
        errors (list[str]): One message per skipped or failed fact.

    """

    work_experience_processed: int = 0
    records_created: int = 0
    records_updated: int = 0
    achievements_added: int = 0
    achievements_merged: int = 0
    skills_linked: int = 0
    key_achievements_stored: int = 0
    skipped: int = 0
    failed: int = 0
    errors: list[str] = Field(default_factory=list)
