import logging

from sqlalchemy import func, or_
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from career_profile.app.logic.skill_classification import (
    SkillClassifier,
    classify_skill_category,
)
from career_profile.app.models.skill import Skill, SkillAlias, SkillCategory
from career_profile.app.models.user_skill import UserSkill

log = logging.getLogger(__name__)

# Seed aliases created alongside a new canonical skill.
SKILL_ALIASES: dict[str, list[str]] = {
    "React": ["ReactJS", "React.js", "React JS"],
    "Vue.js": ["Vue", "VueJS", "Vue JS"],
    "Angular": ["AngularJS", "Angular.js"],
    "Node.js": ["Node", "NodeJS", "Node JS"],
    "Next.js": ["Next", "NextJS", "Next JS"],
    "Express.js": ["Express", "ExpressJS"],
    "JavaScript": ["JS", "ECMAScript", "ES6", "ES2015"],
    "TypeScript": ["TS"],
    "PostgreSQL": ["Postgres", "PSQL"],
    "MongoDB": ["Mongo"],
    "Amazon Web Services": ["AWS"],
    "Google Cloud Platform": ["GCP", "Google Cloud"],
    "Microsoft Azure": ["Azure"],
}


def seed_aliases_for(base_name: str) -> list[str]:
    """Returns the seed aliases for a canonical skill name, matched case-insensitively."""
    key = base_name.strip().lower()
    for name, aliases in SKILL_ALIASES.items():
        if name.lower() == key:
            return list(aliases)
    return []


class SkillTaxonomy:
    """
    Canonical skill registry shared by every user.

    Resolves skill text against canonical names and aliases, creates new
    canonical skills with their seed aliases and infers categories. Every
    write is committed on its own so the registry never becomes part of a
    caller's record transaction.

    Attributes:
        db (Session): The database session.
        classifier (SkillClassifier): Function used by `category_for`.

    """

    def __init__(
        self,
        db: Session,
        classifier: SkillClassifier = classify_skill_category,
    ):
        self.db = db
        self.classifier = classifier

    def resolve_existing(self, name: str) -> Skill | None:
        """
        Look up a skill by canonical name or alias, case-insensitively.

        Args:
            name (str): The skill text to resolve.

        Returns:
            Skill | None: The canonical skill, or None when nothing matches.

        Notes:
            1. Lowercase and trim the input.
            2. Query skills whose lowercased name matches, or that own an alias whose lowercased text matches.
            3. This function performs a database read operation.

        """
        key = (name or "").strip().lower()
        if not key:
            return None

        return (
            self.db.query(Skill)
            .filter(
                or_(
                    func.lower(Skill.name) == key,
                    Skill.aliases.any(func.lower(SkillAlias.alias) == key),
                )
            )
            .order_by(Skill.id)
            .first()
        )

    def create_canonical(
        self,
        base_name: str,
        category: SkillCategory,
        seed_aliases: list[str] | None = None,
        description: str | None = None,
    ) -> Skill:
        """
        Create a new canonical skill with its seed aliases.

        Args:
            base_name (str): The canonical name.
            category (SkillCategory): Category of the new skill.
            seed_aliases (list[str] | None): Aliases to attach. Defaults to the static alias table entry.
            description (str | None): Optional description.

        Returns:
            Skill: The newly created skill.

        Raises:
            IntegrityError: If a skill with the same name was created concurrently.

        Notes:
            1. Insert and commit the skill.
            2. Attach each seed alias through `add_alias`; aliases already owned by
               another skill are logged and skipped.
            3. This function performs database write operations.

        """
        _msg = f"create_canonical starting for '{base_name}'"
        log.debug(_msg)

        skill = Skill(name=base_name.strip(), category=category, description=description)
        self.db.add(skill)
        try:
            self.db.commit()
        except IntegrityError:
            self.db.rollback()
            _msg = f"Skill '{base_name}' already exists"
            log.exception(_msg)
            raise
        self.db.refresh(skill)

        aliases = seed_aliases if seed_aliases is not None else seed_aliases_for(base_name)
        for alias in aliases:
            self.add_alias(skill, alias)

        _msg = f"create_canonical returning skill {skill.id}"
        log.debug(_msg)
        return skill

    def add_alias(self, skill: Skill, alias_text: str) -> bool:
        """
        Attach an alias to a skill. Idempotent.

        Args:
            skill (Skill): The owning skill.
            alias_text (str): The alias to add.

        Returns:
            bool: True if a new alias row was written.

        Notes:
            1. Ignore blank text and text equal to the skill's own name.
            2. If the alias already belongs to this skill, do nothing.
            3. If the text already belongs to another skill, as an alias or a
               canonical name, log a warning and do nothing.
            4. Insert and commit. An IntegrityError from a concurrent insert is
               rolled back and ignored.
            5. This function performs database read and write operations.

        """
        text = (alias_text or "").strip()
        key = text.lower()
        if not key or key == skill.name.lower():
            return False

        existing = (
            self.db.query(SkillAlias)
            .filter(func.lower(SkillAlias.alias) == key)
            .first()
        )
        if existing is not None:
            if existing.skill_id != skill.id:
                _msg = (
                    f"Alias '{text}' already belongs to skill {existing.skill_id}, "
                    f"not adding it to '{skill.name}'"
                )
                log.warning(_msg)
            return False

        owner = (
            self.db.query(Skill)
            .filter(func.lower(Skill.name) == key, Skill.id != skill.id)
            .first()
        )
        if owner is not None:
            _msg = f"Alias '{text}' is the canonical name of skill {owner.id}, skipping"
            log.warning(_msg)
            return False

        self.db.add(SkillAlias(alias=text, skill_id=skill.id))
        try:
            self.db.commit()
        except IntegrityError:
            self.db.rollback()
            _msg = f"Alias '{text}' was created concurrently, ignoring"
            log.warning(_msg)
            return False

        _msg = f"Added alias '{text}' to skill '{skill.name}'"
        log.debug(_msg)
        return True

    def category_for(self, name: str) -> SkillCategory:
        """Infer a category for a skill name with the configured classifier."""
        return self.classifier(name)

    def suggest(self, partial: str, limit: int = 10) -> list[Skill]:
        """
        Suggest canonical skills for a partial name.

        Args:
            partial (str): Text to search for.
            limit (int): Maximum number of skills to return.

        Returns:
            list[Skill]: Skills whose name or any alias contains the text, ordered by name.

        Notes:
            1. Case-insensitive substring match over names and aliases.
            2. This function performs a database read operation.

        """
        key = (partial or "").strip().lower()
        if not key:
            return []

        pattern = f"%{key}%"
        return (
            self.db.query(Skill)
            .filter(
                or_(
                    func.lower(Skill.name).like(pattern),
                    Skill.aliases.any(func.lower(SkillAlias.alias).like(pattern)),
                )
            )
            .order_by(Skill.name)
            .limit(limit)
            .all()
        )

    def merge_skills(self, source: Skill, target: Skill) -> dict[str, int]:
        """
        Fold one canonical skill into another and delete it.

        Args:
            source (Skill): The skill to remove.
            target (Skill): The skill that absorbs the source's references.

        Returns:
            dict[str, int]: Counts for `assignments_moved`, `assignments_dropped`,
                `aliases_moved` and `aliases_created`.

        Raises:
            ValueError: If source and target are the same skill.
            SQLAlchemyError: If the write fails; the transaction is rolled back.

        Notes:
            1. Point every user assignment of the source at the target. When the
               user already holds the target, the source assignment is dropped
               and its work history link is kept if the target's is empty.
            2. Move the source's aliases to the target, dropping any equal to the target's name.
            3. Delete the source and record its name as an alias of the target.
            4. All of the above is committed as one transaction.

        """
        if source.id == target.id:
            raise ValueError("Cannot merge a skill into itself")

        _msg = f"merge_skills starting: '{source.name}' -> '{target.name}'"
        log.debug(_msg)

        counts = {
            "assignments_moved": 0,
            "assignments_dropped": 0,
            "aliases_moved": 0,
            "aliases_created": 0,
        }
        source_name = source.name

        try:
            assignments = (
                self.db.query(UserSkill).filter(UserSkill.skill_id == source.id).all()
            )
            for assignment in assignments:
                held = (
                    self.db.query(UserSkill)
                    .filter(
                        UserSkill.user_id == assignment.user_id,
                        UserSkill.skill_id == target.id,
                    )
                    .first()
                )
                if held is None:
                    assignment.skill = target
                    counts["assignments_moved"] += 1
                    continue

                if held.work_history_id is None and assignment.work_history_id is not None:
                    held.work_history_id = assignment.work_history_id
                    held.notes = held.notes or assignment.notes
                self.db.delete(assignment)
                counts["assignments_dropped"] += 1

            for alias in list(source.aliases):
                if alias.alias.lower() == target.name.lower():
                    self.db.delete(alias)
                    continue
                alias.skill = target
                counts["aliases_moved"] += 1

            self.db.flush()
            self.db.expire(source, ["aliases", "user_skills"])
            self.db.delete(source)
            self.db.flush()

            already_alias = (
                self.db.query(SkillAlias)
                .filter(func.lower(SkillAlias.alias) == source_name.lower())
                .first()
            )
            if already_alias is None and source_name.lower() != target.name.lower():
                self.db.add(SkillAlias(alias=source_name, skill_id=target.id))
                counts["aliases_created"] += 1

            self.db.commit()
        except SQLAlchemyError:
            self.db.rollback()
            _msg = f"Failed to merge skill '{source_name}' into '{target.name}'"
            log.exception(_msg)
            raise

        _msg = f"merge_skills returning {counts}"
        log.debug(_msg)
        return counts
