# backend/forum/api/users.py
import logging

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from forum.core.database import get_session
from forum.core.deps import get_account_service, get_reaction_ledger, require_user
from forum.models.user import User
from forum.schemas.auth import (
    ChangeBioRequest,
    ChangePasswordRequest,
    ChangeUsernameRequest,
    UserResponse,
)
from forum.schemas.reaction import LikedTargetResponse
from forum.services.auth.accounts import (
    AccountService,
    AccountValidationError,
    InvalidCredentialsError,
    UserExistsError,
)
from forum.services.reactions.ledger import ReactionLedger, ReactionLedgerError

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/users", tags=["users"])


@router.patch("/me/password")
async def change_password(
    payload: ChangePasswordRequest,
    user: User = Depends(require_user),
    db: AsyncSession = Depends(get_session),
    accounts: AccountService = Depends(get_account_service),
):
    """Change the caller's password after checking the current one."""
    try:
        await accounts.change_password(
            user,
            current_password=payload.current_password,
            new_password=payload.new_password,
            confirm_password=payload.confirm_password,
        )
    except (AccountValidationError, InvalidCredentialsError) as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))

    await db.commit()
    return {"message": "Password updated"}


@router.patch("/me/username", response_model=UserResponse)
async def change_username(
    payload: ChangeUsernameRequest,
    user: User = Depends(require_user),
    db: AsyncSession = Depends(get_session),
    accounts: AccountService = Depends(get_account_service),
) -> UserResponse:
    user_id = user.id
    try:
        await accounts.change_username(user, payload.username)
    except AccountValidationError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))
    except UserExistsError as e:
        # Rollback expires the user; only the saved id is safe to read afterwards
        await db.rollback()
        logger.info(f"User {user_id} asked for a username that is taken")
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=str(e))

    await db.commit()
    return UserResponse.model_validate(user)


@router.patch("/me/bio", response_model=UserResponse)
async def change_bio(
    payload: ChangeBioRequest,
    user: User = Depends(require_user),
    db: AsyncSession = Depends(get_session),
    accounts: AccountService = Depends(get_account_service),
) -> UserResponse:
    await accounts.change_bio(user, payload.bio)
    await db.commit()
    return UserResponse.model_validate(user)


@router.get("/{user_id}/likes", response_model=list[LikedTargetResponse])
async def list_user_likes(
    user_id: int,
    db: AsyncSession = Depends(get_session),
    ledger: ReactionLedger = Depends(get_reaction_ledger),
) -> list[LikedTargetResponse]:
    """Posts and comments a user has liked, newest first."""
    result = await db.execute(select(User.id).where(User.id == user_id))
    if result.scalar_one_or_none() is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="User not found",
        )

    try:
        likes = await ledger.liked_targets(user_id)
    except ReactionLedgerError:
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Error loading likes",
        )

    return [LikedTargetResponse.model_validate(like) for like in likes]
