import asyncio
import logging

import click
from sqlalchemy.exc import SQLAlchemyError

from career_profile.app.core.config import get_settings
from career_profile.app.core.errors import ProfileEngineError
from career_profile.app.database.database import get_engine, session_scope
from career_profile.app.llm.orchestration import create_llm_achievement_merger
from career_profile.app.logic.achievement_dedup import (
    deduplicate_key_achievements,
    deduplicate_work_achievements,
)
from career_profile.app.logic.skill_normalization import SkillNormalizer, parse_skill_name
from career_profile.app.logic.skill_taxonomy import SkillTaxonomy
from career_profile.app.models import Base
from career_profile.app.models.skill import SkillCategory
from career_profile.app.schemas.profile import DeduplicationResult

log = logging.getLogger(__name__)


def _echo_dedup_result(result: DeduplicationResult):
    click.echo(result.message)
    click.echo(
        f"Original: {result.original_count}, final: {result.final_count}, "
        f"exact duplicates removed: {result.exact_duplicates_removed}, "
        f"groups merged: {result.similar_groups_merged}"
    )
    for item in result.preview:
        click.echo(f"  [{item.action}] {item.description}")


@click.group()
def cli():
    """Management script for the Career Profile reconciliation engine."""
    pass


@cli.command("init-db")
def init_db():
    """
    Create all tables in the configured database.

    Notes:
        1. Builds the engine from the application settings.
        2. Creates every table registered on the declarative base.
        3. On failure, prints an error message.

    """
    _msg = "init_db starting"
    log.debug(_msg)
    click.echo("Creating database tables...")
    try:
        Base.metadata.create_all(bind=get_engine())
        _success_msg = "Database tables created."
        click.echo(_success_msg)
        log.info(_success_msg)
    except SQLAlchemyError as e:
        _error_msg = f"An error occurred while creating tables: {e}"
        click.echo(_error_msg, err=True)
        log.exception(_error_msg)
    _msg = "init_db returning"
    log.debug(_msg)


@cli.command("parse-skill")
@click.argument("name")
def parse_skill(name: str):
    """Show how a raw skill string splits into a base skill and a detail."""
    result = parse_skill_name(name)
    click.echo(f"Base skill: {result.base_skill}")
    click.echo(f"Details: {result.details or '-'}")
    click.echo(f"Confidence: {result.confidence}")
    click.echo(f"Pattern: {result.pattern}")


@cli.command("normalize-skill")
@click.argument("name")
@click.option(
    "--category",
    type=click.Choice([c.value for c in SkillCategory]),
    default=SkillCategory.OTHER.value,
    show_default=True,
    help="Category for a new skill when none can be inferred.",
)
def normalize_skill(name: str, category: str):
    """
    Resolve a raw skill string to its canonical skill, creating it if needed.

    Args:
        name (str): The raw skill string.
        category (str): Fallback category for a new skill.

    Returns:
        None

    """
    _msg = "normalize_skill starting"
    log.debug(_msg)

    try:
        with session_scope() as db:
            normalized = SkillNormalizer(db).normalize(name, SkillCategory(category))
        click.echo(
            f"{normalized.base_skill_name} (id {normalized.base_skill_id}, "
            f"{normalized.category.value})"
        )
        if normalized.detailed_variant:
            click.echo(f"Variant: {normalized.detailed_variant}")
        if normalized.is_new_base_skill:
            click.echo("Created new base skill.")
        if normalized.is_new_variant:
            click.echo("Created new variant alias.")
    except (ValueError, SQLAlchemyError) as e:
        _error_msg = f"Error normalizing skill: {e}"
        click.echo(_error_msg, err=True)
        log.exception(_error_msg)

    _msg = "normalize_skill returning"
    log.debug(_msg)


@cli.command("suggest-skills")
@click.argument("query")
@click.option("--limit", default=10, show_default=True, help="Maximum suggestions.")
def suggest_skills(query: str, limit: int):
    """List canonical skills whose name or alias contains QUERY."""
    try:
        with session_scope() as db:
            rows = [
                (skill.id, skill.name, skill.category.value)
                for skill in SkillTaxonomy(db).suggest(query, limit=limit)
            ]
        if not rows:
            click.echo("No matching skills.")
        for skill_id, name, category in rows:
            click.echo(f"{skill_id}\t{name}\t{category}")
    except SQLAlchemyError as e:
        _error_msg = f"Error looking up skills: {e}"
        click.echo(_error_msg, err=True)
        log.exception(_error_msg)


@cli.command("migrate-skills")
def migrate_skills():
    """
    Fold detailed canonical skills into their base skills.

    Notes:
        1. Runs `SkillNormalizer.migrate_existing_skills`.
        2. Prints the processed, normalized and alias counts.

    """
    _msg = "migrate_skills starting"
    log.debug(_msg)
    click.echo("Migrating existing skills...")

    try:
        with session_scope() as db:
            counts = SkillNormalizer(db).migrate_existing_skills()
        _success_msg = (
            f"Processed {counts['processed']} skills, normalized {counts['normalized']}, "
            f"created {counts['aliases_created']} aliases."
        )
        click.echo(_success_msg)
        log.info(_success_msg)
    except SQLAlchemyError as e:
        _error_msg = f"Error migrating skills: {e}"
        click.echo(_error_msg, err=True)
        log.exception(_error_msg)

    _msg = "migrate_skills returning"
    log.debug(_msg)


@cli.command("dedupe-work-achievements")
@click.option("--user-id", required=True, type=int, help="Owning user ID.")
@click.option("--work-history-id", required=True, type=int, help="Work history record ID.")
@click.option("--dry-run", is_flag=True, help="Show the result without writing it.")
def dedupe_work_achievements(user_id: int, work_history_id: int, dry_run: bool):
    """
    Deduplicate and merge the achievements of one work history record.

    Args:
        user_id (int): The owning user.
        work_history_id (int): The work history record.
        dry_run (bool): Preview only.

    Returns:
        None

    """
    _msg = "dedupe_work_achievements starting"
    log.debug(_msg)

    settings = get_settings()
    try:
        with session_scope() as db:
            result = asyncio.run(
                deduplicate_work_achievements(
                    db,
                    user_id,
                    work_history_id,
                    create_llm_achievement_merger(),
                    dry_run=dry_run,
                    max_attempts=settings.achievement_merge_max_attempts,
                )
            )
        _echo_dedup_result(result)
    except (ProfileEngineError, SQLAlchemyError) as e:
        _error_msg = f"Error deduplicating work achievements: {e}"
        click.echo(_error_msg, err=True)
        log.exception(_error_msg)

    _msg = "dedupe_work_achievements returning"
    log.debug(_msg)


@cli.command("dedupe-key-achievements")
@click.option("--user-id", required=True, type=int, help="Owning user ID.")
@click.option("--dry-run", is_flag=True, help="Show the result without writing it.")
def dedupe_key_achievements(user_id: int, dry_run: bool):
    """Deduplicate and merge a user's key achievements."""
    _msg = "dedupe_key_achievements starting"
    log.debug(_msg)

    settings = get_settings()
    try:
        with session_scope() as db:
            result = asyncio.run(
                deduplicate_key_achievements(
                    db,
                    user_id,
                    create_llm_achievement_merger(),
                    dry_run=dry_run,
                    max_attempts=settings.achievement_merge_max_attempts,
                )
            )
        _echo_dedup_result(result)
    except (ProfileEngineError, SQLAlchemyError) as e:
        _error_msg = f"Error deduplicating key achievements: {e}"
        click.echo(_error_msg, err=True)
        log.exception(_error_msg)

    _msg = "dedupe_key_achievements returning"
    log.debug(_msg)


def main():
    """Run the command line interface."""
    logging.basicConfig(
        level=logging.INFO,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    cli()


if __name__ == "__main__":
    main()
