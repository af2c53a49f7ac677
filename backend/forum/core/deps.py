# backend/forum/core/deps.py
from fastapi import Depends, HTTPException, status, Cookie
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select

from forum.core.database import get_session
from forum.core.security import SESSION_COOKIE
from forum.models.user import User
from forum.services.auth.accounts import AccountService
from forum.services.auth.sessions import SessionManager, SqlSessionStore
from forum.services.reactions.ledger import ReactionLedger, SqlReactionLedger


def get_session_manager(
    db: AsyncSession = Depends(get_session),
) -> SessionManager:
    """Dependency for the session manager, bound to the request's db session."""
    return SessionManager(SqlSessionStore(db))


def get_account_service(
    db: AsyncSession = Depends(get_session),
) -> AccountService:
    return AccountService(db)


def get_reaction_ledger(
    db: AsyncSession = Depends(get_session),
) -> ReactionLedger:
    return SqlReactionLedger(db)


async def get_current_user(
    session_token: str | None = Cookie(default=None, alias=SESSION_COOKIE),
    db: AsyncSession = Depends(get_session),
    sessions: SessionManager = Depends(get_session_manager),
) -> User | None:
    """Get user from session cookie. Anonymous callers get None."""
    if not session_token:
        return None

    user_id = await sessions.resolve_session(session_token)
    if user_id is None:
        return None

    result = await db.execute(select(User).where(User.id == user_id))
    return result.scalar_one_or_none()


async def require_user(
    user: User | None = Depends(get_current_user),
) -> User:
    if not user:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Authentication required",
        )
    return user
