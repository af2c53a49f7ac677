# backend/forum/services/reactions/ledger.py
import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass
from datetime import datetime, timezone

from sqlalchemy import case, func, select
from sqlalchemy.dialects import postgresql, sqlite
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from forum.models.reaction import Reaction

logger = logging.getLogger(__name__)


class ReactionLedgerError(Exception):
    """Storage failure while reading or writing reactions."""
    pass


@dataclass(frozen=True)
class ReactionCounts:
    likes: int
    dislikes: int


class ReactionLedger(ABC):
    """Abstract interface for the like/dislike ledger."""

    @abstractmethod
    async def upsert(
        self,
        user_id: int,
        target_id: int,
        target_type: str,
        is_like: bool,
    ) -> None:
        """Record a reaction, replacing the user's previous one on the same target."""
        pass

    @abstractmethod
    async def count_likes(self, target_id: int, target_type: str) -> int:
        pass

    @abstractmethod
    async def count_dislikes(self, target_id: int, target_type: str) -> int:
        pass

    @abstractmethod
    async def counts(self, target_id: int, target_type: str) -> ReactionCounts:
        pass

    @abstractmethod
    async def get_reaction(
        self,
        user_id: int,
        target_id: int,
        target_type: str,
    ) -> Reaction | None:
        pass

    @abstractmethod
    async def liked_targets(self, user_id: int) -> list[Reaction]:
        pass


class SqlReactionLedger(ReactionLedger):
    """Ledger over the ``likes_dislikes`` table.

    Upserts are a single INSERT ... ON CONFLICT statement keyed by the
    (user_id, target_id, target_type) unique constraint, so concurrent
    requests for the same key never race into a duplicate-row error.
    Writes are left uncommitted; the caller owns the transaction.
    """

    CONFLICT_COLUMNS = ("user_id", "target_id", "target_type")

    def __init__(self, session: AsyncSession):
        self.session = session

    def _insert(self):
        dialect = self.session.get_bind().dialect.name
        if dialect == "postgresql":
            return postgresql.insert(Reaction)
        if dialect == "sqlite":
            return sqlite.insert(Reaction)
        raise ReactionLedgerError(f"Upsert not supported for dialect: {dialect}")

    async def upsert(
        self,
        user_id: int,
        target_id: int,
        target_type: str,
        is_like: bool,
    ) -> None:
        now = datetime.now(timezone.utc)
        stmt = self._insert().values(
            user_id=user_id,
            target_id=target_id,
            target_type=target_type,
            is_like=is_like,
            created_at=now,
        )
        stmt = stmt.on_conflict_do_update(
            index_elements=list(self.CONFLICT_COLUMNS),
            set_={
                "is_like": stmt.excluded.is_like,
                "created_at": stmt.excluded.created_at,
            },
        )
        try:
            await self.session.execute(stmt)
        except SQLAlchemyError as e:
            logger.exception(
                f"Error recording reaction user={user_id} target={target_type}:{target_id}"
            )
            raise ReactionLedgerError("Error updating like/dislike") from e

    async def _count(self, target_id: int, target_type: str, is_like: bool) -> int:
        try:
            result = await self.session.execute(
                select(func.count(Reaction.id)).where(
                    Reaction.target_id == target_id,
                    Reaction.target_type == target_type,
                    Reaction.is_like.is_(is_like),
                )
            )
        except SQLAlchemyError as e:
            logger.exception(f"Error counting reactions for {target_type}:{target_id}")
            raise ReactionLedgerError("Error counting likes/dislikes") from e
        return result.scalar_one()

    async def count_likes(self, target_id: int, target_type: str) -> int:
        return await self._count(target_id, target_type, True)

    async def count_dislikes(self, target_id: int, target_type: str) -> int:
        return await self._count(target_id, target_type, False)

    async def counts(self, target_id: int, target_type: str) -> ReactionCounts:
        """Likes and dislikes for a target in one conditional-aggregation query."""
        try:
            result = await self.session.execute(
                select(
                    func.count(case((Reaction.is_like.is_(True), 1))).label("likes"),
                    func.count(case((Reaction.is_like.is_(False), 1))).label("dislikes"),
                ).where(
                    Reaction.target_id == target_id,
                    Reaction.target_type == target_type,
                )
            )
        except SQLAlchemyError as e:
            logger.exception(f"Error counting reactions for {target_type}:{target_id}")
            raise ReactionLedgerError("Error counting likes/dislikes") from e
        row = result.one()
        return ReactionCounts(likes=row.likes, dislikes=row.dislikes)

    async def get_reaction(
        self,
        user_id: int,
        target_id: int,
        target_type: str,
    ) -> Reaction | None:
        try:
            result = await self.session.execute(
                select(Reaction).where(
                    Reaction.user_id == user_id,
                    Reaction.target_id == target_id,
                    Reaction.target_type == target_type,
                )
            )
        except SQLAlchemyError as e:
            logger.exception(f"Error loading reaction for user {user_id}")
            raise ReactionLedgerError("Error loading like/dislike") from e
        return result.scalar_one_or_none()

    async def liked_targets(self, user_id: int) -> list[Reaction]:
        try:
            result = await self.session.execute(
                select(Reaction)
                .where(Reaction.user_id == user_id, Reaction.is_like.is_(True))
                .order_by(Reaction.created_at.desc(), Reaction.id.desc())
            )
        except SQLAlchemyError as e:
            logger.exception(f"Error loading likes for user {user_id}")
            raise ReactionLedgerError("Error loading likes") from e
        return list(result.scalars().all())
