import asyncio
import logging
from unittest.mock import AsyncMock, MagicMock

import pytest
from openai import APITimeoutError

from career_profile.app.core.errors import AchievementMergeError, ResourceNotFoundError
from career_profile.app.llm.models import AchievementMergeResult, FinalAchievement
from career_profile.app.logic.achievement_dedup import (
    AchievementDeduplicator,
    deduplicate_key_achievements,
    deduplicate_work_achievements,
    remove_exact_duplicates,
)
from career_profile.app.models.key_achievement import KeyAchievement
from career_profile.app.models.work_history import WorkAchievement
from career_profile.app.schemas.profile import AchievementRecord

log = logging.getLogger(__name__)


def _records(*texts):
    return [AchievementRecord(id=i, text=t) for i, t in enumerate(texts, start=1)]


def _merge_first_two(statements):
    return AchievementMergeResult(
        final_achievements=[
            FinalAchievement(
                description="Increased productivity by 20% through process improvements",
                original_indices=[1, 2],
                action="merged",
            ),
            *[
                FinalAchievement(description=text, original_indices=[i], action="optimized")
                for i, text in enumerate(statements[2:], start=3)
            ],
        ]
    )


def test_remove_exact_duplicates_keeps_first_occurrence():
    """Test case and whitespace are ignored and order is kept."""
    unique, removed = remove_exact_duplicates(_records("Led team", "led team ", "Built API"))

    assert [r.text for r in unique] == ["Led team", "Built API"]
    assert [r.id for r in unique] == [1, 3]
    assert removed == 1


@pytest.mark.asyncio
async def test_merge_skipped_for_single_statement():
    """Test the merger is not called with one statement."""
    merger = AsyncMock()
    outcome = await AchievementDeduplicator(merger).merge(["only"])

    merger.assert_not_called()
    assert outcome.statements == ["only"]
    assert outcome.merge_applied is False


@pytest.mark.asyncio
async def test_merge_applies_valid_result():
    """Test a complete merge result is applied."""
    merger = AsyncMock(side_effect=_merge_first_two)
    statements = ["Increased productivity 20%", "Boosted efficiency by 20%", "Managed budget"]

    outcome = await AchievementDeduplicator(merger).merge(statements)

    assert outcome.merge_applied is True
    assert outcome.statements == [
        "Increased productivity by 20% through process improvements",
        "Managed budget",
    ]
    assert outcome.groups_merged == 1
    assert [p.action for p in outcome.preview] == ["merged", "optimized"]


@pytest.mark.asyncio
async def test_merge_rejects_incomplete_result_and_falls_back():
    """Test a result that drops a statement is never applied."""
    incomplete = AchievementMergeResult(
        final_achievements=[
            FinalAchievement(description="merged", original_indices=[1, 2], action="merged")
        ]
    )
    merger = AsyncMock(return_value=incomplete)
    statements = ["a", "b", "c"]

    outcome = await AchievementDeduplicator(merger, max_attempts=2).merge(statements)

    assert merger.await_count == 2
    assert outcome.merge_applied is False
    assert outcome.statements == statements
    assert [p.action for p in outcome.preview] == ["kept", "kept", "kept"]


@pytest.mark.asyncio
async def test_merge_retries_then_succeeds():
    """Test a failed attempt is retried."""
    merger = AsyncMock(
        side_effect=[AchievementMergeError("bad json"), _merge_first_two(["a", "b"])]
    )

    outcome = await AchievementDeduplicator(merger, max_attempts=2).merge(["a", "b"])

    assert merger.await_count == 2
    assert outcome.merge_applied is True
    assert len(outcome.statements) == 1


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "error",
    [
        asyncio.TimeoutError(),
        APITimeoutError(request=MagicMock()),
        AchievementMergeError("schema mismatch"),
    ],
)
async def test_merge_falls_back_on_oracle_failure(error):
    """Test timeouts, API errors and bad output fall back to the input."""
    merger = AsyncMock(side_effect=error)

    outcome = await AchievementDeduplicator(merger).merge(["a", "b"])

    assert outcome.merge_applied is False
    assert outcome.statements == ["a", "b"]


@pytest.mark.asyncio
async def test_deduplicate_reports_counts(passthrough_merger):
    """Test the result counts for exact duplicates and merges."""
    statements, result = await AchievementDeduplicator(passthrough_merger).deduplicate(
        _records("Led team", "led team ", "Built API")
    )

    assert statements == ["Led team", "Built API"]
    assert result.original_count == 3
    assert result.final_count == 2
    assert result.exact_duplicates_removed == 1
    assert result.similar_groups_merged == 0
    assert passthrough_merger.calls == [["Led team", "Built API"]]


@pytest.mark.asyncio
async def test_deduplicate_nothing_to_do():
    """Test one record needs no deduplication."""
    statements, result = await AchievementDeduplicator(None).deduplicate(_records("only"))

    assert statements == ["only"]
    assert result.original_count == 1
    assert result.final_count == 1
    assert result.preview == []


@pytest.mark.asyncio
async def test_deduplicate_work_achievements_full_replace(db_session, make_work_history):
    """Test the stored set equals the final list after a run."""
    record = make_work_history(
        achievements=[
            "Increased productivity 20%",
            "Boosted efficiency by 20%",
            "increased productivity 20% ",
            "Managed budget",
        ]
    )
    merger = AsyncMock(side_effect=_merge_first_two)

    result = await deduplicate_work_achievements(db_session, 1, record.id, merger)

    stored = [
        a.description
        for a in db_session.query(WorkAchievement)
        .filter(WorkAchievement.work_history_id == record.id)
        .order_by(WorkAchievement.id)
    ]
    assert stored == [p.description for p in result.preview]
    assert stored == [
        "Increased productivity by 20% through process improvements",
        "Managed budget",
    ]
    assert result.exact_duplicates_removed == 1
    assert result.similar_groups_merged == 1
    assert result.dry_run is False


@pytest.mark.asyncio
async def test_deduplicate_work_achievements_dry_run_has_no_side_effects(
    db_session, make_work_history
):
    """Test a dry run leaves the stored rows untouched."""
    record = make_work_history(achievements=["Led team", "led team ", "Built API"])
    before = [
        (a.id, a.description)
        for a in db_session.query(WorkAchievement).order_by(WorkAchievement.id)
    ]

    result = await deduplicate_work_achievements(
        db_session, 1, record.id, AsyncMock(side_effect=_merge_first_two), dry_run=True
    )

    after = [
        (a.id, a.description)
        for a in db_session.query(WorkAchievement).order_by(WorkAchievement.id)
    ]
    assert after == before
    assert result.dry_run is True
    assert result.final_count == 1
    assert result.message.startswith("Preview")


@pytest.mark.asyncio
async def test_deduplicate_work_achievements_fallback_keeps_unique(db_session, make_work_history):
    """Test an oracle failure still applies the exact-duplicate removal."""
    record = make_work_history(achievements=["Led team", "led team ", "Built API"])
    merger = AsyncMock(side_effect=AchievementMergeError("bad"))

    result = await deduplicate_work_achievements(db_session, 1, record.id, merger)

    stored = [
        a.description
        for a in db_session.query(WorkAchievement).order_by(WorkAchievement.id)
    ]
    assert stored == ["Led team", "Built API"]
    assert result.merge_applied is False


@pytest.mark.asyncio
async def test_deduplicate_work_achievements_wrong_user(db_session, make_work_history):
    """Test another user's record is not found."""
    record = make_work_history(user_id=1)

    with pytest.raises(ResourceNotFoundError):
        await deduplicate_work_achievements(db_session, 2, record.id, None)


@pytest.mark.asyncio
async def test_deduplicate_key_achievements(db_session, passthrough_merger):
    """Test key achievements are deduplicated and replaced."""
    db_session.add_all(
        [
            KeyAchievement(user_id=1, content="Won award"),
            KeyAchievement(user_id=1, content="won award"),
            KeyAchievement(user_id=1, content="Spoke at conference"),
            KeyAchievement(user_id=2, content="Won award"),
        ]
    )
    db_session.commit()

    result = await deduplicate_key_achievements(db_session, 1, passthrough_merger)

    mine = [
        k.content
        for k in db_session.query(KeyAchievement)
        .filter(KeyAchievement.user_id == 1)
        .order_by(KeyAchievement.id)
    ]
    assert mine == ["Won award", "Spoke at conference"]
    assert db_session.query(KeyAchievement).filter(KeyAchievement.user_id == 2).count() == 1
    assert result.exact_duplicates_removed == 1


def _blank_third(statements):
    return AchievementMergeResult.model_construct(
        final_achievements=[
            FinalAchievement(description=statements[0], original_indices=[1], action="optimized"),
            FinalAchievement(description=statements[1], original_indices=[2], action="optimized"),
            FinalAchievement.model_construct(
                description="   ", original_indices=[3], action="optimized"
            ),
        ]
    )


@pytest.mark.asyncio
async def test_merge_rejects_blank_description():
    """Test a result that blanks out an accounted-for statement is not applied."""
    merger = AsyncMock(side_effect=_blank_third)
    statements = ["Led team", "Built API", "Cut cost 10%"]

    outcome = await AchievementDeduplicator(merger).merge(statements)

    assert outcome.merge_applied is False
    assert outcome.statements == statements


@pytest.mark.asyncio
async def test_merge_falls_back_on_unexpected_merger_error():
    """Test any exception from the merger is retried and then falls back."""
    merger = AsyncMock(side_effect=RuntimeError("merger crashed"))

    outcome = await AchievementDeduplicator(merger, max_attempts=2).merge(["a", "b"])

    assert merger.await_count == 2
    assert outcome.merge_applied is False
    assert outcome.statements == ["a", "b"]


@pytest.mark.asyncio
async def test_deduplicate_work_achievements_blank_description_keeps_everything(
    db_session, make_work_history
):
    """Test stored achievements match the reported final count when the merge is rejected."""
    record = make_work_history(achievements=["Led team", "Built API", "Cut cost 10%"])

    result = await deduplicate_work_achievements(
        db_session, 1, record.id, AsyncMock(side_effect=_blank_third)
    )

    stored = [
        a.description
        for a in db_session.query(WorkAchievement).order_by(WorkAchievement.id)
    ]
    assert stored == ["Led team", "Built API", "Cut cost 10%"]
    assert result.final_count == len(stored)
    assert result.merge_applied is False
