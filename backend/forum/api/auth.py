# backend/forum/api/auth.py
import logging

from fastapi import APIRouter, Depends, HTTPException, Response, Cookie, status
from sqlalchemy.ext.asyncio import AsyncSession

from forum.core.config import settings
from forum.core.database import get_session
from forum.core.deps import get_account_service, get_session_manager, require_user
from forum.core.security import (
    CAPTCHA_COOKIE,
    CAPTCHA_COOKIE_PATH,
    SESSION_COOKIE,
)
from forum.models.user import User
from forum.schemas.auth import CaptchaResponse, LoginRequest, RegisterRequest, UserResponse
from forum.services.auth.accounts import AccountService, InvalidCredentialsError, UserExistsError
from forum.services.auth.captcha import (
    CaptchaDecodeError,
    decode_challenge,
    encode_challenge,
    generate_challenge,
    verify_challenge,
)
from forum.services.auth.sessions import IssuedSession, SessionManager

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/auth", tags=["auth"])


def set_session_cookie(response: Response, issued: IssuedSession) -> None:
    response.set_cookie(
        key=SESSION_COOKIE,
        value=issued.token,
        path="/",
        httponly=True,
        secure=settings.cookie_secure,
        samesite="lax",
        max_age=settings.session_expire_hours * 60 * 60,
    )


def check_captcha(answer: str, cookie_value: str | None) -> None:
    """Raise 400 unless the answer solves the challenge in the captcha cookie."""
    if not cookie_value:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Captcha expired or missing",
        )
    if not answer.strip():
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Captcha answer cannot be empty",
        )

    try:
        challenge = decode_challenge(cookie_value)
    except CaptchaDecodeError:
        logger.warning("Rejected malformed captcha cookie")
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Error parsing captcha",
        )

    if not verify_challenge(answer, challenge):
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Incorrect captcha answer",
        )


def check_registration_fields(payload: RegisterRequest) -> None:
    """Raise 400 for empty fields or mismatched passwords."""
    required = [
        ("username", "Username"),
        ("password", "Password"),
        ("email", "Email"),
        ("confirm_password", "Password confirmation"),
    ]
    for field, label in required:
        if not getattr(payload, field).strip():
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail=f"{label} cannot be empty",
            )

    if payload.password.strip() != payload.confirm_password.strip():
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Passwords don't match",
        )


@router.get("/register", response_model=CaptchaResponse)
async def registration_challenge(response: Response) -> CaptchaResponse:
    """Issue a fresh captcha, replacing any previous one for this client."""
    challenge = generate_challenge()
    response.set_cookie(
        key=CAPTCHA_COOKIE,
        value=encode_challenge(challenge),
        path=CAPTCHA_COOKIE_PATH,
        httponly=True,
        secure=settings.cookie_secure,
        samesite="lax",
        max_age=settings.captcha_ttl_seconds,
    )
    return CaptchaResponse(question=challenge.question)


@router.post("/register", response_model=UserResponse, status_code=status.HTTP_201_CREATED)
async def register(
    payload: RegisterRequest,
    response: Response,
    captcha_cookie: str | None = Cookie(default=None, alias=CAPTCHA_COOKIE),
    db: AsyncSession = Depends(get_session),
    accounts: AccountService = Depends(get_account_service),
    sessions: SessionManager = Depends(get_session_manager),
) -> UserResponse:
    """Create an account once the captcha is solved, then log the user in."""
    check_captcha(payload.captcha, captcha_cookie)
    check_registration_fields(payload)

    try:
        user = await accounts.register(payload.username, payload.email, payload.password)
        issued = await sessions.issue_session(user.id)
        await db.commit()
    except UserExistsError as e:
        await db.rollback()
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=str(e))

    set_session_cookie(response, issued)
    response.delete_cookie(CAPTCHA_COOKIE, path=CAPTCHA_COOKIE_PATH)
    return UserResponse.model_validate(user)


@router.post("/login", response_model=UserResponse)
async def login(
    payload: LoginRequest,
    response: Response,
    db: AsyncSession = Depends(get_session),
    accounts: AccountService = Depends(get_account_service),
    sessions: SessionManager = Depends(get_session_manager),
) -> UserResponse:
    """Log in with username or email."""
    try:
        user = await accounts.authenticate(payload.login, payload.password)
    except InvalidCredentialsError as e:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail=str(e))

    issued = await sessions.issue_session(user.id)
    await db.commit()

    logger.info(f"User {user.id} logged in")

    set_session_cookie(response, issued)
    return UserResponse.model_validate(user)


@router.post("/logout")
async def logout(
    response: Response,
    session_token: str | None = Cookie(default=None, alias=SESSION_COOKIE),
    db: AsyncSession = Depends(get_session),
    sessions: SessionManager = Depends(get_session_manager),
):
    """Logout and clear session."""
    if session_token:
        await sessions.invalidate(session_token)
        await db.commit()

    response.delete_cookie(SESSION_COOKIE, path="/")
    return {"message": "Logged out"}


@router.get("/me", response_model=UserResponse)
async def get_current_user_info(
    user: User = Depends(require_user),
) -> UserResponse:
    """Get current authenticated user info."""
    return UserResponse.model_validate(user)
