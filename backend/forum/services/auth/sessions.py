# backend/forum/services/auth/sessions.py
import logging
import uuid
from abc import ABC, abstractmethod
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone

from sqlalchemy import select, delete
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from forum.core.config import settings
from forum.models.session import Session

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class IssuedSession:
    token: str
    expires_at: datetime


class SessionStore(ABC):
    """Storage operations the session manager relies on."""

    @abstractmethod
    async def create(
        self,
        user_id: int,
        token: str,
        created_at: datetime,
        expires_at: datetime,
    ) -> None:
        pass

    @abstractmethod
    async def get_user_id(self, token: str, now: datetime) -> int | None:
        """Return the owner of an unexpired session, or None."""
        pass

    @abstractmethod
    async def delete(self, token: str) -> None:
        pass

    @abstractmethod
    async def delete_expired(self, now: datetime) -> int:
        pass


class SqlSessionStore(SessionStore):
    """SessionStore backed by the ``sessions`` table.

    Writes are left uncommitted; the caller owns the transaction.
    """

    def __init__(self, session: AsyncSession):
        self.session = session

    async def create(
        self,
        user_id: int,
        token: str,
        created_at: datetime,
        expires_at: datetime,
    ) -> None:
        self.session.add(
            Session(
                user_id=user_id,
                session_token=token,
                created_at=created_at,
                expires_at=expires_at,
            )
        )
        await self.session.flush()

    async def get_user_id(self, token: str, now: datetime) -> int | None:
        try:
            result = await self.session.execute(
                select(Session.user_id).where(
                    Session.session_token == token,
                    Session.expires_at > now,
                )
            )
        except SQLAlchemyError:
            # A failed statement aborts the transaction on Postgres; reset it
            # so the rest of the request can keep using the session
            await self.session.rollback()
            raise
        return result.scalar_one_or_none()

    async def delete(self, token: str) -> None:
        await self.session.execute(
            delete(Session).where(Session.session_token == token)
        )

    async def delete_expired(self, now: datetime) -> int:
        result = await self.session.execute(
            delete(Session).where(Session.expires_at <= now)
        )
        return result.rowcount or 0


class SessionManager:
    """Issues and resolves opaque session tokens.

    The client cookie carries only the token; everything else lives in the
    store, so invalidating a row revokes the session immediately.
    """

    def __init__(self, store: SessionStore, ttl: timedelta | None = None):
        self.store = store
        self.ttl = ttl or timedelta(hours=settings.session_expire_hours)

    @staticmethod
    def create_token() -> str:
        """Generate a random UUID4 token from 16 bytes of os.urandom."""
        return str(uuid.uuid4())

    async def issue_session(self, user_id: int) -> IssuedSession:
        token = self.create_token()
        now = datetime.now(timezone.utc)
        expires_at = now + self.ttl
        await self.store.create(
            user_id=user_id,
            token=token,
            created_at=now,
            expires_at=expires_at,
        )
        return IssuedSession(token=token, expires_at=expires_at)

    async def resolve_session(self, token: str | None) -> int | None:
        """Return the user id behind a token; missing, expired and errors all yield None."""
        if not token:
            return None
        try:
            return await self.store.get_user_id(token, datetime.now(timezone.utc))
        except SQLAlchemyError:
            logger.exception("Failed to resolve session")
            return None

    async def invalidate(self, token: str) -> None:
        await self.store.delete(token)

    async def purge_expired(self) -> int:
        return await self.store.delete_expired(datetime.now(timezone.utc))
