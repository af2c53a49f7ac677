# backend/forum/models/reaction.py
"""Like/dislike reactions on posts and comments."""
import enum
from datetime import datetime

from sqlalchemy import Boolean, DateTime, ForeignKey, Index, Integer, String, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column

from forum.models.base import Base, utcnow


class TargetType(str, enum.Enum):
    """Kinds of content a reaction can point at."""
    POST = "post"
    COMMENT = "comment"


class Reaction(Base):
    """A single user's like or dislike of a post or comment.

    At most one row exists per (user_id, target_id, target_type); a second
    reaction from the same user overwrites ``is_like`` and ``created_at``.
    """
    __tablename__ = "likes_dislikes"
    __table_args__ = (
        UniqueConstraint(
            "user_id", "target_id", "target_type",
            name="uq_likes_dislikes_user_target",
        ),
        Index("ix_likes_dislikes_target", "target_id", "target_type"),
    )

    id: Mapped[int] = mapped_column(primary_key=True)
    user_id: Mapped[int] = mapped_column(
        ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True
    )
    target_id: Mapped[int] = mapped_column(Integer, nullable=False)
    # Open string at the storage boundary, callers validate against TargetType
    target_type: Mapped[str] = mapped_column(String(16), nullable=False)
    is_like: Mapped[bool] = mapped_column(Boolean, nullable=False)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=utcnow, nullable=False
    )
