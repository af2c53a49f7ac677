# backend/tests/test_deps.py
import pytest
from unittest.mock import AsyncMock, MagicMock
from fastapi import HTTPException
from sqlalchemy.ext.asyncio import AsyncSession

from forum.core.deps import (
    get_account_service,
    get_current_user,
    get_reaction_ledger,
    get_session_manager,
    require_user,
)
from forum.models.user import User, UserRole
from forum.services.auth.accounts import AccountService
from forum.services.auth.sessions import SessionManager, SqlSessionStore
from forum.services.reactions.ledger import SqlReactionLedger


def test_get_session_manager_binds_request_session():
    mock_db = MagicMock(spec=AsyncSession)

    manager = get_session_manager(db=mock_db)

    assert isinstance(manager, SessionManager)
    assert isinstance(manager.store, SqlSessionStore)
    assert manager.store.session is mock_db


def test_get_account_service_binds_request_session():
    mock_db = MagicMock(spec=AsyncSession)

    accounts = get_account_service(db=mock_db)

    assert isinstance(accounts, AccountService)
    assert accounts.session is mock_db


def test_get_reaction_ledger_binds_request_session():
    mock_db = MagicMock(spec=AsyncSession)

    ledger = get_reaction_ledger(db=mock_db)

    assert isinstance(ledger, SqlReactionLedger)
    assert ledger.session is mock_db


@pytest.mark.asyncio
async def test_get_current_user_from_session_cookie():
    """Test that a resolvable session cookie returns the user"""
    mock_user = User(id=5, username="alice", email="alice@example.com", role=UserRole.MEMBER)

    mock_sessions = MagicMock(spec=SessionManager)
    mock_sessions.resolve_session = AsyncMock(return_value=5)

    mock_result = MagicMock()
    mock_result.scalar_one_or_none.return_value = mock_user
    mock_db = MagicMock(spec=AsyncSession)
    mock_db.execute = AsyncMock(return_value=mock_result)

    user = await get_current_user(
        session_token="token-abc",
        db=mock_db,
        sessions=mock_sessions,
    )

    assert user is mock_user
    mock_sessions.resolve_session.assert_called_once_with("token-abc")


@pytest.mark.asyncio
async def test_get_current_user_no_cookie_is_anonymous():
    mock_db = MagicMock(spec=AsyncSession)
    mock_sessions = MagicMock(spec=SessionManager)
    mock_sessions.resolve_session = AsyncMock()

    user = await get_current_user(session_token=None, db=mock_db, sessions=mock_sessions)

    assert user is None
    mock_sessions.resolve_session.assert_not_called()
    mock_db.execute.assert_not_called()


@pytest.mark.asyncio
async def test_get_current_user_unresolvable_token_is_anonymous():
    """Unknown or expired tokens mean anonymous, not an error"""
    mock_db = MagicMock(spec=AsyncSession)
    mock_sessions = MagicMock(spec=SessionManager)
    mock_sessions.resolve_session = AsyncMock(return_value=None)

    user = await get_current_user(session_token="stale", db=mock_db, sessions=mock_sessions)

    assert user is None
    mock_db.execute.assert_not_called()


@pytest.mark.asyncio
async def test_require_user_with_valid_user():
    mock_user = User(id=1, username="bob", email="bob@example.com")

    user = await require_user(user=mock_user)

    assert user == mock_user


@pytest.mark.asyncio
async def test_require_user_raises_401_when_no_user():
    with pytest.raises(HTTPException) as exc_info:
        await require_user(user=None)

    assert exc_info.value.status_code == 401
    assert exc_info.value.detail == "Authentication required"
