import logging
from datetime import date

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from career_profile.app.core.config import Settings, get_settings
from career_profile.app.llm.orchestration import AchievementMerger
from career_profile.app.logic.achievement_dedup import AchievementDeduplicator
from career_profile.app.logic.achievement_store import (
    clean_statements,
    load_key_achievement_records,
    load_work_achievement_records,
    stage_key_achievement_replace,
    stage_work_achievement_replace,
)
from career_profile.app.logic.record_matching import find_matching_record, month_key
from career_profile.app.logic.skill_normalization import SkillNormalizer
from career_profile.app.logic.user_skills import SkillLinkPolicy, link_skills_to_work_history
from career_profile.app.models.work_history import WorkHistory, WorkHistoryData
from career_profile.app.schemas.profile import (
    AchievementRecord,
    ExtractedProfile,
    ReconciliationCounts,
    WorkExperienceFact,
)

log = logging.getLogger(__name__)


def prefer_date(stored: date | None, incoming: date | None) -> date | None:
    """
    Choose between a stored date and an extracted one without losing specificity.

    Args:
        stored (date | None): The date on the stored record.
        incoming (date | None): The date from the extracted fact.

    Returns:
        date | None: The incoming date when the stored one is missing, or when both
            fall in the same month and only the incoming one names a day other than
            the first. Otherwise the stored date.

    """
    if incoming is None:
        return stored
    if stored is None:
        return incoming
    if month_key(stored) == month_key(incoming) and stored.day == 1 and incoming.day != 1:
        return incoming
    return stored


def apply_fact_fields(record: WorkHistory, fact: WorkExperienceFact) -> bool:
    """Updates a matched record's title, dates and missing company from a fact. Returns True if anything changed."""
    changed = False
    if fact.company and not record.company_name:
        record.company_name = fact.company
        changed = True

    if fact.job_title and fact.job_title != record.job_title:
        record.job_title = fact.job_title
        changed = True

    start_date = prefer_date(record.start_date, fact.start_date)
    if start_date != record.start_date:
        record.start_date = start_date
        changed = True

    end_date = prefer_date(record.end_date, fact.end_date)
    if end_date != record.end_date:
        record.end_date = end_date
        changed = True

    return changed


def _merge_counts(target: ReconciliationCounts, other: ReconciliationCounts) -> ReconciliationCounts:
    for name in ReconciliationCounts.model_fields:
        if name == "errors":
            target.errors.extend(other.errors)
        else:
            setattr(target, name, getattr(target, name) + getattr(other, name))
    return target


class ProfileReconciler:
    """
    Applies a batch of extracted profile facts onto a user's stored profile.

    Facts are reconciled one after another. Each work experience fact is its
    own transaction: a failure rolls back that fact only and is reported in
    the returned counts.

    Attributes:
        db (Session): The database session.
        deduplicator (AchievementDeduplicator): Reconciles achievement statements.
        normalizer (SkillNormalizer): Resolves skill strings.
        link_policy (SkillLinkPolicy): Handling of skills seen in a second job.
        max_distance (int): Company name edit distance tolerated by the matcher.

    """

    def __init__(
        self,
        db: Session,
        merger: AchievementMerger | None = None,
        normalizer: SkillNormalizer | None = None,
        settings: Settings | None = None,
        link_policy: SkillLinkPolicy | None = None,
    ):
        settings = settings or get_settings()
        self.db = db
        self.deduplicator = AchievementDeduplicator(
            merger,
            max_attempts=settings.achievement_merge_max_attempts,
        )
        self.normalizer = normalizer or SkillNormalizer(db)
        self.link_policy = link_policy or SkillLinkPolicy(settings.skill_link_policy)
        self.max_distance = settings.company_name_max_distance

    def _create_record(self, user_id: int, fact: WorkExperienceFact) -> tuple[WorkHistory, int]:
        record = WorkHistory(
            WorkHistoryData(
                user_id=user_id,
                company_name=fact.company or "",
                job_title=fact.job_title or "",
                start_date=fact.start_date,
                end_date=fact.end_date,
            )
        )
        try:
            self.db.add(record)
            self.db.flush()
            _, added = stage_work_achievement_replace(self.db, record.id, fact.achievements)
            self.db.commit()
        except SQLAlchemyError:
            self.db.rollback()
            raise
        self.db.refresh(record)
        return record, added

    async def _update_record(self, record: WorkHistory, fact: WorkExperienceFact) -> int:
        merged = 0
        statements = None
        if fact.achievements:
            combined = load_work_achievement_records(self.db, record.id) + [
                AchievementRecord(text=text) for text in fact.achievements
            ]
            statements, _ = await self.deduplicator.deduplicate(combined)
            merged = len(combined) - len(statements)

        try:
            apply_fact_fields(record, fact)
            if statements is not None:
                stage_work_achievement_replace(self.db, record.id, statements)
            self.db.commit()
        except SQLAlchemyError:
            self.db.rollback()
            raise
        self.db.expire(record, ["achievements"])
        return merged

    async def reconcile_work_experience(
        self,
        user_id: int,
        facts: list[WorkExperienceFact],
    ) -> ReconciliationCounts:
        """
        Reconcile extracted work experience facts into the user's work history.

        Args:
            user_id (int): The owning user.
            facts (list[WorkExperienceFact]): Extracted facts, in document order.

        Returns:
            ReconciliationCounts: Per-category counts, including skipped and failed facts.

        Notes:
            1. Load the user's work history records once for the whole batch.
            2. For each fact, find a matching record by company name, start month and end month.
            3. A matched record gets its title and dates updated and its achievements
               replaced by the deduplicated union of stored and new statements, in one transaction.
            4. An unmatched fact with a start date becomes a new record with its achievements
               stored as given; a missing company or job title is stored as an empty string.
               Records created earlier in the batch are matched by later facts.
            5. An unmatched fact without a start date is skipped.
            6. After the record is committed, the fact's skills are normalized and linked.
            7. A storage error rolls back the fact, is counted as failed and the batch continues.

        """
        _msg = f"reconcile_work_experience starting for user {user_id} with {len(facts)} facts"
        log.debug(_msg)

        counts = ReconciliationCounts()
        existing_records = (
            self.db.query(WorkHistory)
            .filter(WorkHistory.user_id == user_id)
            .order_by(WorkHistory.id)
            .all()
        )

        for index, fact in enumerate(facts, start=1):
            label = f"Work experience {index} ({fact.company or 'unknown company'})"
            try:
                record = find_matching_record(existing_records, fact, self.max_distance)
                if record is None:
                    if fact.start_date is None:
                        _msg = f"{label}: no start date, skipping"
                        log.warning(_msg)
                        counts.skipped += 1
                        counts.errors.append(_msg)
                        continue
                    record, added = self._create_record(user_id, fact)
                    existing_records.append(record)
                    counts.records_created += 1
                    counts.achievements_added += added
                else:
                    counts.achievements_merged += await self._update_record(record, fact)
                    counts.records_updated += 1
            except SQLAlchemyError as e:
                self.db.rollback()
                _msg = f"{label}: failed to reconcile: {e!s}"
                log.exception(_msg)
                counts.failed += 1
                counts.errors.append(_msg)
                continue

            counts.work_experience_processed += 1

            if not fact.skills:
                continue
            try:
                normalized = self.normalizer.normalize_many(fact.skills)
                counts.skills_linked += link_skills_to_work_history(
                    self.db,
                    user_id,
                    record,
                    normalized,
                    self.link_policy,
                )
            except SQLAlchemyError as e:
                self.db.rollback()
                _msg = f"{label}: failed to link skills: {e!s}"
                log.exception(_msg)
                counts.errors.append(_msg)

        _msg = f"reconcile_work_experience returning {counts.model_dump()}"
        log.debug(_msg)
        return counts

    async def reconcile_key_achievements(
        self,
        user_id: int,
        statements: list[str],
    ) -> ReconciliationCounts:
        """
        Merge new key achievements into the user's stored ones.

        Args:
            user_id (int): The owning user.
            statements (list[str]): Newly extracted statements.

        Returns:
            ReconciliationCounts: `key_achievements_stored` and `achievements_merged`,
                or `failed` when the write was rolled back.

        Notes:
            1. Deduplicate the stored statements together with the new ones.
            2. Replace the stored set with the result in one transaction.

        """
        counts = ReconciliationCounts()
        new_statements = clean_statements(statements)
        if not new_statements:
            return counts

        combined = load_key_achievement_records(self.db, user_id) + [
            AchievementRecord(text=text) for text in new_statements
        ]
        final, _ = await self.deduplicator.deduplicate(combined)

        try:
            _, stored = stage_key_achievement_replace(self.db, user_id, final)
            self.db.commit()
        except SQLAlchemyError as e:
            self.db.rollback()
            _msg = f"Key achievements: failed to reconcile: {e!s}"
            log.exception(_msg)
            counts.failed += 1
            counts.errors.append(_msg)
            return counts

        counts.key_achievements_stored = stored
        counts.achievements_merged = len(combined) - len(final)
        _msg = f"reconcile_key_achievements stored {stored} for user {user_id}"
        log.debug(_msg)
        return counts

    async def reconcile_profile(
        self,
        user_id: int,
        profile: ExtractedProfile,
    ) -> ReconciliationCounts:
        """Reconciles work experience, then key achievements, and returns the combined counts."""
        counts = await self.reconcile_work_experience(user_id, profile.work_experience)
        key_counts = await self.reconcile_key_achievements(user_id, profile.key_achievements)
        return _merge_counts(counts, key_counts)


async def reconcile_work_experience(
    db: Session,
    user_id: int,
    facts: list[WorkExperienceFact],
    merger: AchievementMerger | None = None,
) -> ReconciliationCounts:
    return await ProfileReconciler(db, merger).reconcile_work_experience(user_id, facts)


async def reconcile_key_achievements(
    db: Session,
    user_id: int,
    statements: list[str],
    merger: AchievementMerger | None = None,
) -> ReconciliationCounts:
    return await ProfileReconciler(db, merger).reconcile_key_achievements(user_id, statements)


async def reconcile_profile(
    db: Session,
    user_id: int,
    profile: ExtractedProfile,
    merger: AchievementMerger | None = None,
) -> ReconciliationCounts:
    return await ProfileReconciler(db, merger).reconcile_profile(user_id, profile)
