"""This module provides database configuration and session management for the application.

The module sets up the database engine and session factory, which are used to interact with the database.

Functions:
    get_engine: Returns the SQLAlchemy engine instance for the database.
    get_session_local: Returns the SQLAlchemy session factory for creating database sessions.
    session_scope: Context manager yielding a session, rolling back on storage errors.

Notes:
    1. The engine is created lazily from the application settings.
    2. Sessions are configured with autocommit=False and autoflush=False; the
       reconciliation logic commits explicitly at each transaction boundary.

"""

from .database import get_engine, get_session_local, session_scope

__all__ = ["get_engine", "get_session_local", "session_scope"]
