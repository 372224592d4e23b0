import pytest

from career_profile.app.logic.skill_taxonomy import SkillTaxonomy, seed_aliases_for
from career_profile.app.models.skill import Skill, SkillAlias, SkillCategory
from career_profile.app.models.user_skill import UserSkill


@pytest.fixture
def taxonomy(db_session):
    return SkillTaxonomy(db_session)


def test_seed_aliases_for_is_case_insensitive():
    """Test seed alias lookup ignores case."""
    assert seed_aliases_for("react") == ["ReactJS", "React.js", "React JS"]
    assert seed_aliases_for("Unknown Skill") == []


def test_create_canonical_seeds_aliases(taxonomy, db_session):
    """Test a new skill gets its static aliases."""
    skill = taxonomy.create_canonical("React", SkillCategory.FRAMEWORK_LIBRARY)

    aliases = sorted(a.alias for a in db_session.query(SkillAlias).all())
    assert aliases == ["React JS", "React.js", "ReactJS"]
    assert skill.category == SkillCategory.FRAMEWORK_LIBRARY


def test_resolve_existing_by_name_and_alias(taxonomy):
    """Test lookup by canonical name or alias, ignoring case."""
    skill = taxonomy.create_canonical("PostgreSQL", SkillCategory.DATABASE)

    assert taxonomy.resolve_existing("postgresql").id == skill.id
    assert taxonomy.resolve_existing("POSTGRES").id == skill.id
    assert taxonomy.resolve_existing(" psql ").id == skill.id
    assert taxonomy.resolve_existing("MySQL") is None
    assert taxonomy.resolve_existing("") is None


def test_create_canonical_skips_alias_owned_by_other_skill(taxonomy, db_session):
    """Test a seed alias already on another skill is logged and skipped."""
    other = taxonomy.create_canonical("Google Cloud", SkillCategory.CLOUD_PLATFORM, seed_aliases=[])
    gcp = taxonomy.create_canonical("Google Cloud Platform", SkillCategory.CLOUD_PLATFORM)

    aliases = {a.alias: a.skill_id for a in db_session.query(SkillAlias).all()}
    assert aliases == {"GCP": gcp.id}
    assert taxonomy.resolve_existing("Google Cloud").id == other.id


def test_add_alias_is_idempotent(taxonomy, db_session):
    """Test adding the same alias twice writes one row."""
    skill = taxonomy.create_canonical("Docker", SkillCategory.DEVOPS_TOOLS)

    assert taxonomy.add_alias(skill, "Docker (Compose)") is True
    assert taxonomy.add_alias(skill, "docker (compose)") is False
    assert taxonomy.add_alias(skill, "Docker") is False
    assert taxonomy.add_alias(skill, "   ") is False
    assert db_session.query(SkillAlias).count() == 1


def test_add_alias_rejects_alias_owned_elsewhere(taxonomy):
    """Test an alias maps to at most one skill."""
    first = taxonomy.create_canonical("Alpha", SkillCategory.OTHER)
    second = taxonomy.create_canonical("Beta", SkillCategory.OTHER)

    assert taxonomy.add_alias(first, "Shared") is True
    assert taxonomy.add_alias(second, "Shared") is False
    assert taxonomy.add_alias(second, "alpha") is False
    assert taxonomy.resolve_existing("shared").id == first.id


def test_category_for_uses_classifier(db_session):
    """Test the classifier is replaceable."""
    taxonomy = SkillTaxonomy(db_session, classifier=lambda name: SkillCategory.LANGUAGES)
    assert taxonomy.category_for("anything") == SkillCategory.LANGUAGES


def test_suggest_matches_names_and_aliases(taxonomy):
    """Test suggestions search names and aliases, ordered by name."""
    taxonomy.create_canonical("TypeScript", SkillCategory.PROGRAMMING_LANGUAGE)
    taxonomy.create_canonical("JavaScript", SkillCategory.PROGRAMMING_LANGUAGE)
    taxonomy.create_canonical("Python", SkillCategory.PROGRAMMING_LANGUAGE)

    assert [s.name for s in taxonomy.suggest("script")] == ["JavaScript", "TypeScript"]
    assert [s.name for s in taxonomy.suggest("ecma")] == ["JavaScript"]
    assert [s.name for s in taxonomy.suggest("script", limit=1)] == ["JavaScript"]
    assert taxonomy.suggest("") == []


def test_merge_skills_moves_references(taxonomy, db_session):
    """Test merging rewrites assignments and aliases, then deletes the source."""
    target = taxonomy.create_canonical("React", SkillCategory.FRAMEWORK_LIBRARY)
    source = taxonomy.create_canonical("React Hooks", SkillCategory.OTHER, seed_aliases=[])
    taxonomy.add_alias(source, "Hooks")

    db_session.add_all(
        [
            UserSkill(user_id=1, skill_id=source.id),
            UserSkill(user_id=2, skill_id=source.id, work_history_id=None, notes="hooks"),
            UserSkill(user_id=2, skill_id=target.id),
        ]
    )
    db_session.commit()
    source_id = source.id

    counts = taxonomy.merge_skills(source, target)

    assert counts == {
        "assignments_moved": 1,
        "assignments_dropped": 1,
        "aliases_moved": 1,
        "aliases_created": 1,
    }
    assert db_session.get(Skill, source_id) is None
    assignments = db_session.query(UserSkill).order_by(UserSkill.user_id).all()
    assert [(a.user_id, a.skill_id) for a in assignments] == [(1, target.id), (2, target.id)]
    assert taxonomy.resolve_existing("React Hooks").id == target.id
    assert taxonomy.resolve_existing("Hooks").id == target.id


def test_merge_skills_into_itself_raises(taxonomy):
    """Test a skill cannot be merged into itself."""
    skill = taxonomy.create_canonical("Git", SkillCategory.DEVOPS_TOOLS)
    with pytest.raises(ValueError):
        taxonomy.merge_skills(skill, skill)
