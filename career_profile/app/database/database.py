import logging
from collections.abc import Iterator
from contextlib import contextmanager

from sqlalchemy import create_engine
from sqlalchemy.engine import Engine
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session, sessionmaker

from career_profile.app.core.config import get_settings

log = logging.getLogger(__name__)

# Built on first use so importing the package never opens a connection.
_engine: Engine | None = None
_SessionLocal: sessionmaker | None = None


def get_engine() -> Engine:
    """Return the process-wide engine for the profile store, creating it on first use.

    Returns:
        Engine: Engine bound to `Settings.database_url`.

    Notes:
        1. `pool_pre_ping` is on because reconciliation batches can sit idle
           while the merge LLM call is awaited.
        2. SQL echo follows the `db_echo` setting.

    """
    global _engine
    if _engine is None:
        settings = get_settings()
        _msg = f"Creating profile store engine for {settings.db_host}/{settings.db_name}"
        log.debug(_msg)
        _engine = create_engine(
            str(settings.database_url),
            echo=settings.db_echo,
            pool_pre_ping=True,
        )
    return _engine


def get_session_local() -> sessionmaker:
    """Return the session factory bound to `get_engine()`."""
    global _SessionLocal
    if _SessionLocal is None:
        _SessionLocal = sessionmaker(
            autocommit=False,
            autoflush=False,
            bind=get_engine(),
        )
    return _SessionLocal


@contextmanager
def session_scope() -> Iterator[Session]:
    """
    Open a session for one unit of profile work.

    Yields:
        Session: A new session from `get_session_local()`.

    Raises:
        SQLAlchemyError: Re-raised after rolling back whatever the caller left pending.

    Notes:
        1. The caller commits; the reconciliation and taxonomy functions commit their own
           transactions.
        2. A storage error escaping the block rolls back the session before propagating.
        3. The session is always closed.

    """
    db = get_session_local()()
    try:
        yield db
    except SQLAlchemyError:
        _msg = "Rolling back profile store session after storage error"
        log.warning(_msg)
        db.rollback()
        raise
    finally:
        db.close()
