from datetime import date

import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker

from career_profile.app.core.config import Settings, get_settings
from career_profile.app.llm.models import AchievementMergeResult, FinalAchievement
from career_profile.app.models import Base
from career_profile.app.models.work_history import (
    WorkAchievement,
    WorkHistory,
    WorkHistoryData,
)


@pytest.fixture(autouse=True)
def clear_settings_cache():
    """Ensure every test sees freshly loaded settings."""
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()


@pytest.fixture
def test_settings() -> Settings:
    """Settings with defaults only, ignoring any .env file."""
    return Settings(_env_file=None)


@pytest.fixture
def db_session():
    """Create an in-memory SQLite database session for tests."""
    engine = create_engine("sqlite:///:memory:")
    Base.metadata.create_all(bind=engine)
    SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)
    db = SessionLocal()

    yield db

    db.close()
    Base.metadata.drop_all(bind=engine)
    engine.dispose()


@pytest.fixture
def make_work_history(db_session):
    """Factory that stores a work history record with achievements."""

    def _make(
        user_id=1,
        company_name="Acme Inc",
        job_title="Engineer",
        start_date=date(2019, 1, 1),
        end_date=date(2021, 6, 1),
        achievements=(),
    ) -> WorkHistory:
        record = WorkHistory(
            WorkHistoryData(
                user_id=user_id,
                company_name=company_name,
                job_title=job_title,
                start_date=start_date,
                end_date=end_date,
            )
        )
        db_session.add(record)
        db_session.flush()
        for text in achievements:
            db_session.add(WorkAchievement(work_history_id=record.id, description=text))
        db_session.commit()
        db_session.refresh(record)
        return record

    return _make


def optimized_result(statements: list[str]) -> AchievementMergeResult:
    """A merge result that keeps every statement as its own optimized entry."""
    return AchievementMergeResult(
        final_achievements=[
            FinalAchievement(description=text, original_indices=[i], action="optimized")
            for i, text in enumerate(statements, start=1)
        ]
    )


@pytest.fixture
def passthrough_merger():
    """Async merger that returns every statement unchanged, recording its calls."""
    calls: list[list[str]] = []

    async def _merge(statements: list[str]) -> AchievementMergeResult:
        calls.append(list(statements))
        return optimized_result(statements)

    _merge.calls = calls
    return _merge
