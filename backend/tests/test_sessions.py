# backend/tests/test_sessions.py
"""Tests for SessionManager and SqlSessionStore."""
import re
from datetime import datetime, timezone, timedelta
from unittest.mock import AsyncMock, MagicMock

import pytest
from sqlalchemy import create_engine, func, select
from sqlalchemy.exc import OperationalError
from sqlalchemy.ext.asyncio import AsyncSession

from forum.models.session import Session
from forum.models.user import User
from forum.services.auth.sessions import (
    IssuedSession,
    SessionManager,
    SessionStore,
    SqlSessionStore,
)

UUID4_RE = re.compile(r"^[0-9a-f]{8}-[0-9a-f]{4}-4[0-9a-f]{3}-[89ab][0-9a-f]{3}-[0-9a-f]{12}$")


def test_create_token_is_uuid4_shaped():
    token = SessionManager.create_token()
    assert UUID4_RE.match(token)


def test_create_token_unique():
    tokens = {SessionManager.create_token() for _ in range(1000)}
    assert len(tokens) == 1000


@pytest.mark.asyncio
async def test_issue_session_persists_token_with_expiry():
    """issue_session hands the new token and expiry to the store."""
    store = MagicMock(spec=SessionStore)
    store.create = AsyncMock()
    manager = SessionManager(store, ttl=timedelta(hours=2))

    before = datetime.now(timezone.utc)
    issued = await manager.issue_session(42)

    assert isinstance(issued, IssuedSession)
    assert UUID4_RE.match(issued.token)
    kwargs = store.create.call_args.kwargs
    assert kwargs["user_id"] == 42
    assert kwargs["token"] == issued.token
    assert kwargs["expires_at"] == issued.expires_at
    assert kwargs["expires_at"] - kwargs["created_at"] == timedelta(hours=2)
    assert kwargs["created_at"] >= before


@pytest.mark.asyncio
async def test_resolve_session_without_token_skips_storage():
    store = MagicMock(spec=SessionStore)
    store.get_user_id = AsyncMock()
    manager = SessionManager(store)

    assert await manager.resolve_session(None) is None
    assert await manager.resolve_session("") is None
    store.get_user_id.assert_not_called()


@pytest.mark.asyncio
async def test_resolve_session_storage_error_means_no_session():
    """A failing database reads as an anonymous caller, not a crash."""
    store = MagicMock(spec=SessionStore)
    store.get_user_id = AsyncMock(
        side_effect=OperationalError("SELECT", {}, Exception("database is locked"))
    )
    manager = SessionManager(store)

    assert await manager.resolve_session("some-token") is None


@pytest.mark.asyncio
async def test_issue_resolve_invalidate(db):
    """A token resolves to its user until invalidated."""
    manager = SessionManager(SqlSessionStore(db))

    issued = await manager.issue_session(7)
    await db.commit()

    assert await manager.resolve_session(issued.token) == 7

    await manager.invalidate(issued.token)
    await db.commit()

    assert await manager.resolve_session(issued.token) is None


@pytest.mark.asyncio
async def test_resolve_unknown_token(db):
    manager = SessionManager(SqlSessionStore(db))
    assert await manager.resolve_session(SessionManager.create_token()) is None


@pytest.mark.asyncio
async def test_invalidate_is_idempotent(db):
    manager = SessionManager(SqlSessionStore(db))
    issued = await manager.issue_session(3)
    await db.commit()

    await manager.invalidate(issued.token)
    await manager.invalidate(issued.token)
    await manager.invalidate("never-issued")
    await db.commit()

    assert await manager.resolve_session(issued.token) is None


@pytest.mark.asyncio
async def test_expired_session_does_not_resolve(db):
    manager = SessionManager(SqlSessionStore(db), ttl=timedelta(seconds=-1))
    issued = await manager.issue_session(9)
    await db.commit()

    assert await manager.resolve_session(issued.token) is None


@pytest.mark.asyncio
async def test_multiple_sessions_per_user(db):
    """Logging in twice leaves both sessions usable; logging out one keeps the other."""
    manager = SessionManager(SqlSessionStore(db))
    first = await manager.issue_session(11)
    second = await manager.issue_session(11)
    await db.commit()

    assert first.token != second.token
    assert await manager.resolve_session(first.token) == 11
    assert await manager.resolve_session(second.token) == 11

    await manager.invalidate(first.token)
    await db.commit()

    assert await manager.resolve_session(first.token) is None
    assert await manager.resolve_session(second.token) == 11


@pytest.mark.asyncio
async def test_purge_expired_removes_only_expired_rows(db):
    live = SessionManager(SqlSessionStore(db))
    stale = SessionManager(SqlSessionStore(db), ttl=timedelta(minutes=-5))

    kept = await live.issue_session(1)
    await stale.issue_session(1)
    await stale.issue_session(2)
    await db.commit()

    purged = await live.purge_expired()
    await db.commit()

    assert purged == 2
    remaining = (await db.execute(select(func.count(Session.id)))).scalar_one()
    assert remaining == 1
    assert await live.resolve_session(kept.token) == 1


@pytest.mark.asyncio
async def test_store_lookup_error_rolls_back_request_session():
    """A failed lookup resets the transaction before the error surfaces."""
    mock_db = MagicMock(spec=AsyncSession)
    mock_db.execute = AsyncMock(
        side_effect=OperationalError("SELECT", {}, Exception("current transaction is aborted"))
    )
    mock_db.rollback = AsyncMock()
    store = SqlSessionStore(mock_db)

    with pytest.raises(OperationalError):
        await store.get_user_id("token", datetime.now(timezone.utc))

    mock_db.rollback.assert_awaited_once()
    assert await SessionManager(store).resolve_session("token") is None


@pytest.mark.asyncio
async def test_failed_resolve_leaves_session_usable(db, db_path):
    engine = create_engine(f"sqlite:///{db_path}")
    Session.__table__.drop(engine)
    engine.dispose()

    manager = SessionManager(SqlSessionStore(db))
    assert await manager.resolve_session(SessionManager.create_token()) is None

    # The same request can still read users afterwards
    count = (await db.execute(select(func.count(User.id)))).scalar_one()
    assert count == 0
