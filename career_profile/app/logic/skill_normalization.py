import logging
import re
from dataclasses import dataclass

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from career_profile.app.logic.skill_taxonomy import SkillTaxonomy
from career_profile.app.models.skill import Skill, SkillCategory
from career_profile.app.schemas.profile import NormalizedSkill, SkillParseResult

log = logging.getLogger(__name__)


@dataclass(frozen=True)
class SkillPattern:
    """A known technology spelling that maps to a fixed base skill."""

    pattern: re.Pattern
    base_skill: str
    category: SkillCategory


def _patterns(base_skill: str, prefix: str, category: SkillCategory, trailing: bool = False):
    result = [
        SkillPattern(
            re.compile(rf"^{prefix}\s*\((?P<detail>[^)]*)\)$", re.IGNORECASE),
            base_skill,
            category,
        )
    ]
    if trailing:
        result.append(
            SkillPattern(
                re.compile(rf"^{prefix}\s+(?P<detail>.+)$", re.IGNORECASE),
                base_skill,
                category,
            )
        )
    return result


SKILL_PATTERNS: list[SkillPattern] = [
    *_patterns("React", r"React(?:\.js|JS)?", SkillCategory.FRAMEWORK_LIBRARY, trailing=True),
    *_patterns("Next.js", r"Next(?:\.js)?", SkillCategory.FRAMEWORK_LIBRARY, trailing=True),
    *_patterns("Node.js", r"Node(?:\.js)?", SkillCategory.PROGRAMMING_LANGUAGE, trailing=True),
    *_patterns("AWS", r"AWS", SkillCategory.CLOUD_PLATFORM),
    *_patterns("Azure", r"Azure", SkillCategory.CLOUD_PLATFORM),
    *_patterns("Cloudflare", r"Cloudflare", SkillCategory.CLOUD_PLATFORM),
    *_patterns("Google Cloud", r"Google Cloud", SkillCategory.CLOUD_PLATFORM),
    *_patterns("PostgreSQL", r"PostgreSQL", SkillCategory.DATABASE),
    *_patterns("MySQL", r"MySQL", SkillCategory.DATABASE),
    *_patterns("MongoDB", r"MongoDB", SkillCategory.DATABASE),
    *_patterns("JavaScript", r"JavaScript", SkillCategory.PROGRAMMING_LANGUAGE),
    *_patterns("TypeScript", r"TypeScript", SkillCategory.PROGRAMMING_LANGUAGE),
    *_patterns("Python", r"Python", SkillCategory.PROGRAMMING_LANGUAGE),
    *_patterns("Docker", r"Docker", SkillCategory.DEVOPS_TOOLS),
    *_patterns("Kubernetes", r"Kubernetes", SkillCategory.DEVOPS_TOOLS),
    *_patterns("Git", r"Git", SkillCategory.DEVOPS_TOOLS),
]

_PARENTHESES_RE = re.compile(r"^([^(]+)\s*\(([^)]+)\)$")
_SEPARATOR_RE = re.compile(r"^([^,-]+)[,-]\s*(.+)$")


def parse_skill_name(raw_name: str) -> SkillParseResult:
    """
    Split a raw skill string into a base skill and an optional detail.

    Args:
        raw_name (str): The skill text as extracted or entered.

    Returns:
        SkillParseResult: The base skill, detail, confidence and matched pattern.

    Notes:
        1. Known technology patterns win with confidence 0.9; the base skill is the pattern's fixed name.
        2. A generic "X (Y)" gives base X and detail Y with confidence 0.7.
        3. A generic "X - Y" or "X, Y" gives base X and detail Y with confidence 0.6.
        4. Anything else is its own base skill with confidence 1.0.
        5. Never raises for string input.

    """
    text = (raw_name or "").strip()

    for known in SKILL_PATTERNS:
        match = known.pattern.match(text)
        if match:
            detail = match.group("detail").strip() or None
            return SkillParseResult(
                base_skill=known.base_skill,
                details=detail,
                confidence=0.9,
                pattern=known.pattern.pattern,
            )

    match = _PARENTHESES_RE.match(text)
    if match and match.group(1).strip() and match.group(2).strip():
        return SkillParseResult(
            base_skill=match.group(1).strip(),
            details=match.group(2).strip(),
            confidence=0.7,
            pattern="parentheses",
        )

    match = _SEPARATOR_RE.match(text)
    if match and match.group(1).strip() and match.group(2).strip():
        return SkillParseResult(
            base_skill=match.group(1).strip(),
            details=match.group(2).strip(),
            confidence=0.6,
            pattern="separator",
        )

    return SkillParseResult(base_skill=text, details=None, confidence=1.0, pattern="exact")


def _pattern_category(raw_name: str, base_skill: str) -> SkillCategory | None:
    text = raw_name.strip()
    for known in SKILL_PATTERNS:
        if known.pattern.match(text) or known.base_skill.lower() == base_skill.lower():
            return known.category
    return None


class SkillNormalizer:
    """
    Resolves raw skill strings to canonical skills, keeping detailed variants as aliases.

    Attributes:
        db (Session): The database session.
        taxonomy (SkillTaxonomy): The canonical skill registry.

    """

    def __init__(self, db: Session, taxonomy: SkillTaxonomy | None = None):
        self.db = db
        self.taxonomy = taxonomy or SkillTaxonomy(db)

    def _category_for_new(
        self,
        raw_name: str,
        base_skill: str,
        default_category: SkillCategory,
    ) -> SkillCategory:
        category = _pattern_category(raw_name, base_skill)
        if category is not None:
            return category
        category = self.taxonomy.category_for(base_skill)
        if category != SkillCategory.OTHER:
            return category
        return default_category

    def _resolve_or_create(
        self,
        parsed: SkillParseResult,
        raw_name: str,
        default_category: SkillCategory,
    ) -> tuple[Skill, bool]:
        skill = self.taxonomy.resolve_existing(parsed.base_skill)
        if skill is not None:
            return skill, False

        category = self._category_for_new(raw_name, parsed.base_skill, default_category)
        description = (
            f"Base skill for {parsed.base_skill} variants" if parsed.details else None
        )
        try:
            skill = self.taxonomy.create_canonical(
                parsed.base_skill,
                category,
                description=description,
            )
        except IntegrityError:
            # Another writer created the same base skill first.
            skill = self.taxonomy.resolve_existing(parsed.base_skill)
            if skill is None:
                raise
            _msg = f"Base skill '{parsed.base_skill}' was created concurrently, reusing {skill.id}"
            log.warning(_msg)
            return skill, False
        return skill, True

    def _ensure_variant(self, skill: Skill, raw_name: str, parsed: SkillParseResult) -> bool:
        if not parsed.details or raw_name.lower() == skill.name.lower():
            return False
        return self.taxonomy.add_alias(skill, raw_name)

    def normalize(
        self,
        raw_name: str,
        default_category: SkillCategory = SkillCategory.OTHER,
    ) -> NormalizedSkill:
        """
        Resolve a raw skill string to its canonical skill, creating it if needed.

        Args:
            raw_name (str): The skill text, e.g. "React (Native)".
            default_category (SkillCategory): Category used for a new skill when neither
                a known pattern nor the classifier gives one.

        Returns:
            NormalizedSkill: The canonical skill and whether anything was created.

        Raises:
            ValueError: If `raw_name` is blank.

        Notes:
            1. Parse the string with `parse_skill_name`.
            2. Resolve the base skill by name or alias; create it when absent.
            3. When a detail was parsed, keep the full raw string as an alias of the base skill.
            4. Normalizing the same string twice returns the same skill without creating anything.
            5. This function performs database read and write operations.

        """
        text = (raw_name or "").strip()
        if not text:
            raise ValueError("Skill name must not be blank")

        _msg = f"normalize starting for '{text}'"
        log.debug(_msg)

        parsed = parse_skill_name(text)
        skill, is_new_base = self._resolve_or_create(parsed, text, default_category)
        is_new_variant = self._ensure_variant(skill, text, parsed)

        result = NormalizedSkill(
            base_skill_id=skill.id,
            base_skill_name=skill.name,
            detailed_variant=text if parsed.details else None,
            category=skill.category,
            is_new_base_skill=is_new_base,
            is_new_variant=is_new_variant,
        )

        _msg = f"normalize returning skill {skill.id} for '{text}'"
        log.debug(_msg)
        return result

    def normalize_many(
        self,
        raw_names: list[str],
        default_category: SkillCategory = SkillCategory.OTHER,
    ) -> list[NormalizedSkill]:
        """
        Normalize a batch of raw skill strings with one resolution per base skill.

        Args:
            raw_names (list[str]): Raw skill strings; blanks are dropped.
            default_category (SkillCategory): Category for new skills, see `normalize`.

        Returns:
            list[NormalizedSkill]: One entry per distinct base skill, in first-seen order.

        Notes:
            1. Parse every string and group by lowercased base skill.
            2. The first string of each group goes through `normalize`.
            3. Later strings of the same group only add their variant alias to the resolved skill.
            4. This function performs database read and write operations.

        """
        results: list[NormalizedSkill] = []
        resolved: dict[str, Skill] = {}
        seen_raw: set[str] = set()

        for raw_name in raw_names:
            text = (raw_name or "").strip()
            if not text or text in seen_raw:
                continue
            seen_raw.add(text)

            parsed = parse_skill_name(text)
            key = parsed.base_skill.lower()

            if key in resolved:
                self._ensure_variant(resolved[key], text, parsed)
                continue

            normalized = self.normalize(text, default_category)
            resolved[key] = self.db.get(Skill, normalized.base_skill_id)
            results.append(normalized)

        _msg = f"normalize_many returning {len(results)} skills for {len(raw_names)} inputs"
        log.debug(_msg)
        return results

    def migrate_existing_skills(self) -> dict[str, int]:
        """
        Fold detailed canonical skills into their existing base skills.

        Returns:
            dict[str, int]: `processed`, `normalized` and `aliases_created` counts.

        Notes:
            1. For every canonical skill, parse its name.
            2. When it parses to a detail and the base skill exists as a different
               canonical skill, merge it into that skill with `SkillTaxonomy.merge_skills`.
            3. The detailed name is kept as an alias of the base skill.
            4. This function performs database read and write operations.

        """
        _msg = "migrate_existing_skills starting"
        log.debug(_msg)

        skills = self.db.query(Skill).order_by(Skill.id).all()
        processed = len(skills)
        normalized = 0
        aliases_created = 0

        for skill in skills:
            parsed = parse_skill_name(skill.name)
            if not parsed.details or parsed.base_skill.lower() == skill.name.lower():
                continue

            base = self.taxonomy.resolve_existing(parsed.base_skill)
            if base is None or base.id == skill.id:
                continue

            counts = self.taxonomy.merge_skills(skill, base)
            normalized += 1
            aliases_created += counts["aliases_created"]

        result = {
            "processed": processed,
            "normalized": normalized,
            "aliases_created": aliases_created,
        }
        _msg = f"migrate_existing_skills returning {result}"
        log.debug(_msg)
        return result
