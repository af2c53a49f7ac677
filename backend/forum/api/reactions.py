# backend/forum/api/reactions.py
import logging

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from forum.core.database import get_session
from forum.core.deps import get_current_user, get_reaction_ledger, require_user
from forum.models.reaction import TargetType
from forum.models.user import User
from forum.schemas.reaction import ReactionRequest, ReactionResponse, ReactionSummary
from forum.services.reactions.ledger import ReactionLedger, ReactionLedgerError

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/reactions", tags=["reactions"])


@router.post("", response_model=ReactionResponse)
async def react(
    payload: ReactionRequest,
    user: User = Depends(require_user),
    db: AsyncSession = Depends(get_session),
    ledger: ReactionLedger = Depends(get_reaction_ledger),
) -> ReactionResponse:
    """Like or dislike a post or comment.

    Repeating the same value is a no-op; sending the opposite value flips
    the existing reaction instead of adding a second one.
    """
    user_id = user.id
    try:
        await ledger.upsert(
            user_id=user_id,
            target_id=payload.target_id,
            target_type=payload.target_type.value,
            is_like=payload.is_like,
        )
        await db.commit()
        counts = await ledger.counts(payload.target_id, payload.target_type.value)
    except (ReactionLedgerError, SQLAlchemyError):
        # Rollback expires the user, so log with the id saved above
        await db.rollback()
        logger.exception(f"Reaction from user {user_id} failed")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Error updating like/dislike",
        )

    return ReactionResponse(
        target_id=payload.target_id,
        target_type=payload.target_type,
        is_like=payload.is_like,
        likes=counts.likes,
        dislikes=counts.dislikes,
    )


@router.get("/{target_type}/{target_id}", response_model=ReactionSummary)
async def get_reaction_summary(
    target_type: TargetType,
    target_id: int,
    user: User | None = Depends(get_current_user),
    ledger: ReactionLedger = Depends(get_reaction_ledger),
) -> ReactionSummary:
    """Like/dislike counts for a target, plus the caller's own reaction."""
    try:
        counts = await ledger.counts(target_id, target_type.value)
        own = None
        if user:
            own = await ledger.get_reaction(user.id, target_id, target_type.value)
    except ReactionLedgerError:
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Error loading likes/dislikes",
        )

    return ReactionSummary(
        target_id=target_id,
        target_type=target_type,
        likes=counts.likes,
        dislikes=counts.dislikes,
        user_reaction=own.is_like if own else None,
    )
