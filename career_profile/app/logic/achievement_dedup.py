import asyncio
import logging
from dataclasses import dataclass, field

import openai
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from career_profile.app.core.errors import AchievementMergeError
from career_profile.app.llm.orchestration import (
    AchievementMerger,
    validate_merge_completeness,
)
from career_profile.app.logic.achievement_store import (
    get_user_work_history,
    load_key_achievement_records,
    load_work_achievement_records,
    stage_key_achievement_replace,
    stage_work_achievement_replace,
)
from career_profile.app.schemas.profile import (
    AchievementPreviewItem,
    AchievementRecord,
    DeduplicationResult,
)

log = logging.getLogger(__name__)

# Oracle failures that fall back to the unmerged list.
MERGE_FAILURES = (AchievementMergeError, openai.OpenAIError, asyncio.TimeoutError)


def normalize_achievement_text(text: str) -> str:
    return text.strip().lower()


def remove_exact_duplicates(
    records: list[AchievementRecord],
) -> tuple[list[AchievementRecord], int]:
    """
    Drop records whose trimmed, lowercased text was already seen.

    Args:
        records (list[AchievementRecord]): Records in creation order.

    Returns:
        tuple[list[AchievementRecord], int]: The first occurrence of each text, in
            order, and the number of records dropped.

    """
    seen: set[str] = set()
    unique: list[AchievementRecord] = []
    removed = 0
    for record in records:
        key = normalize_achievement_text(record.text)
        if key in seen:
            removed += 1
            continue
        seen.add(key)
        unique.append(record)
    return unique, removed


@dataclass
class MergeOutcome:
    """Final statements after the semantic merge step, or the untouched input on fallback."""

    statements: list[str]
    preview: list[AchievementPreviewItem] = field(default_factory=list)
    merge_applied: bool = False
    groups_merged: int = 0


def _kept(statements: list[str]) -> MergeOutcome:
    return MergeOutcome(
        statements=list(statements),
        preview=[AchievementPreviewItem(description=s, action="kept") for s in statements],
    )


class AchievementDeduplicator:
    """
    Removes exact duplicates and merges near-duplicate achievement statements.

    The merge is delegated to an `AchievementMerger`. Its output is accepted only
    when every input statement is accounted for; otherwise the call is retried up
    to `max_attempts` times and then the unmerged list is kept.

    Attributes:
        merger (AchievementMerger | None): The merge capability. None skips the merge step.
        max_attempts (int): Merge calls tried before falling back.

    """

    def __init__(self, merger: AchievementMerger | None, max_attempts: int = 1):
        self.merger = merger
        self.max_attempts = max(1, max_attempts)

    async def merge(self, statements: list[str]) -> MergeOutcome:
        """
        Merge near-duplicate statements, falling back to the input on any oracle failure.

        Args:
            statements (list[str]): Unique statements in creation order.

        Returns:
            MergeOutcome: The merged statements, or the input marked as kept.

        Notes:
            1. With one statement or fewer, or without a merger, return the input unchanged.
            2. Call the merger and validate completeness against the input count.
            3. On any merge failure, expected or not, retry until `max_attempts` is reached,
               then fall back.
            4. `groups_merged` is the number of statements the merge removed.

        """
        if len(statements) <= 1 or self.merger is None:
            return _kept(statements)

        for attempt in range(1, self.max_attempts + 1):
            try:
                result = await self.merger(statements)
                validate_merge_completeness(result, len(statements))
            except MERGE_FAILURES as e:
                _msg = (
                    f"Achievement merge attempt {attempt}/{self.max_attempts} failed: {e!s}"
                )
                log.warning(_msg)
                continue
            except Exception as e:
                # Any other merger error also falls back to the unmerged list.
                _msg = (
                    f"Achievement merger raised unexpectedly on attempt "
                    f"{attempt}/{self.max_attempts}: {e!s}"
                )
                log.exception(_msg)
                continue

            final = [item.description.strip() for item in result.final_achievements]
            _msg = f"Merged {len(statements)} statements into {len(final)}"
            log.debug(_msg)
            return MergeOutcome(
                statements=final,
                preview=[
                    AchievementPreviewItem(description=text, action=item.action)
                    for text, item in zip(final, result.final_achievements)
                ],
                merge_applied=True,
                groups_merged=max(0, len(statements) - len(final)),
            )

        _msg = "Achievement merge failed, keeping statements unmerged"
        log.warning(_msg)
        return _kept(statements)

    async def deduplicate(
        self,
        records: list[AchievementRecord],
    ) -> tuple[list[str], DeduplicationResult]:
        """
        Run exact-duplicate removal and the semantic merge over one owner's records.

        Args:
            records (list[AchievementRecord]): The owner's records in creation order.

        Returns:
            tuple[list[str], DeduplicationResult]: The final statements and a result
                describing what changed. Nothing is written.

        """
        original_count = len(records)
        if original_count <= 1:
            return [r.text for r in records], DeduplicationResult(
                message="No deduplication needed: 1 or fewer achievements.",
                original_count=original_count,
                final_count=original_count,
            )

        unique, exact_removed = remove_exact_duplicates(records)
        outcome = await self.merge([r.text for r in unique])

        if outcome.merge_applied:
            message = (
                f"Removed {exact_removed} exact duplicates and merged "
                f"{outcome.groups_merged} similar achievements."
            )
        elif len(unique) <= 1:
            message = (
                f"Removed {exact_removed} exact duplicates. "
                "No similar achievements to merge."
            )
        else:
            message = (
                f"Removed {exact_removed} exact duplicates. "
                "Similar achievements were left unmerged."
            )

        return outcome.statements, DeduplicationResult(
            message=message,
            original_count=original_count,
            final_count=len(outcome.statements),
            exact_duplicates_removed=exact_removed,
            similar_groups_merged=outcome.groups_merged,
            merge_applied=outcome.merge_applied,
            preview=outcome.preview,
        )


async def _deduplicate_and_apply(
    db: Session,
    deduplicator: AchievementDeduplicator,
    records: list[AchievementRecord],
    dry_run: bool,
    stage_replace,
    owner_label: str,
) -> DeduplicationResult:
    statements, result = await deduplicator.deduplicate(records)
    result.dry_run = dry_run

    if dry_run:
        result.message = f"Preview: {result.message}"
        return result

    if result.original_count <= 1 or statements == [r.text for r in records]:
        return result

    try:
        stage_replace(statements)
        db.commit()
    except SQLAlchemyError:
        db.rollback()
        _msg = f"Failed to apply deduplicated achievements for {owner_label}"
        log.exception(_msg)
        raise

    _msg = f"Applied {len(statements)} deduplicated achievements for {owner_label}"
    log.info(_msg)
    return result


async def deduplicate_work_achievements(
    db: Session,
    user_id: int,
    work_history_id: int,
    merger: AchievementMerger | None,
    dry_run: bool = False,
    max_attempts: int = 1,
) -> DeduplicationResult:
    """
    Deduplicate the achievements of one work history record.

    Args:
        db (Session): The database session.
        user_id (int): The owning user.
        work_history_id (int): The record whose achievements are deduplicated.
        merger (AchievementMerger | None): The merge capability.
        dry_run (bool): Compute and return the preview without writing.
        max_attempts (int): Merge calls tried before falling back.

    Returns:
        DeduplicationResult: Counts and the preview of the final list.

    Raises:
        ResourceNotFoundError: If the record does not belong to the user.
        SQLAlchemyError: If applying the result fails; nothing is applied.

    Notes:
        1. Load the record's achievements in creation order.
        2. Remove exact duplicates, then merge near-duplicates.
        3. Unless `dry_run`, delete every stored achievement and insert the final list in one transaction.

    """
    _msg = f"deduplicate_work_achievements starting for work history {work_history_id}"
    log.debug(_msg)

    record = get_user_work_history(db, user_id, work_history_id)
    records = load_work_achievement_records(db, record.id)
    result = await _deduplicate_and_apply(
        db,
        AchievementDeduplicator(merger, max_attempts),
        records,
        dry_run,
        lambda statements: stage_work_achievement_replace(db, record.id, statements),
        f"work history {record.id}",
    )

    _msg = "deduplicate_work_achievements returning"
    log.debug(_msg)
    return result


async def deduplicate_key_achievements(
    db: Session,
    user_id: int,
    merger: AchievementMerger | None,
    dry_run: bool = False,
    max_attempts: int = 1,
) -> DeduplicationResult:
    """Deduplicate a user's key achievements. See `deduplicate_work_achievements`."""
    _msg = f"deduplicate_key_achievements starting for user {user_id}"
    log.debug(_msg)

    records = load_key_achievement_records(db, user_id)
    result = await _deduplicate_and_apply(
        db,
        AchievementDeduplicator(merger, max_attempts),
        records,
        dry_run,
        lambda statements: stage_key_achievement_replace(db, user_id, statements),
        f"user {user_id} key achievements",
    )

    _msg = "deduplicate_key_achievements returning"
    log.debug(_msg)
    return result
