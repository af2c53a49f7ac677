# backend/forum/services/auth/accounts.py
"""Member accounts: registration, login and profile changes.

The service flushes but never commits; callers own the transaction and must
roll back when an ``AuthError`` escapes a write.
"""
import logging

from sqlalchemy import select, or_
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from forum.core.security import hash_password, verify_password
from forum.models.user import User, UserRole

logger = logging.getLogger(__name__)


class AuthError(Exception):
    """Base class for account errors."""


class InvalidCredentialsError(AuthError):
    """Login name or password did not match."""


class UserExistsError(AuthError):
    """Username or email is already taken."""


class AccountValidationError(AuthError):
    """Submitted account fields are empty or inconsistent."""


class AccountService:
    def __init__(self, session: AsyncSession):
        self.session = session

    async def _taken(self, username: str, email: str | None = None, exclude_id: int | None = None) -> bool:
        condition = User.username == username
        if email is not None:
            condition = or_(condition, User.email == email)
        stmt = select(User.id).where(condition)
        if exclude_id is not None:
            stmt = stmt.where(User.id != exclude_id)
        result = await self.session.execute(stmt)
        return result.first() is not None

    async def _flush_unique(self) -> None:
        # A concurrent writer can still win between the check and the flush
        try:
            await self.session.flush()
        except IntegrityError as e:
            raise UserExistsError("User with this username or email already exists") from e

    async def register(self, username: str, email: str, password: str) -> User:
        username = username.strip()
        email = email.strip()
        if await self._taken(username, email):
            raise UserExistsError("User with this username or email already exists")

        user = User(
            username=username,
            email=email,
            password_hash=hash_password(password.strip()),
            role=UserRole.MEMBER,
        )
        self.session.add(user)
        await self._flush_unique()
        logger.info(f"Registered user {user.id} ({user.username})")
        return user

    async def authenticate(self, login: str, password: str) -> User:
        """Look a member up by username or email and check the password."""
        login = login.strip()
        result = await self.session.execute(
            select(User).where(or_(User.username == login, User.email == login))
        )
        user = result.scalar_one_or_none()
        if not user or not verify_password(password.strip(), user.password_hash):
            raise InvalidCredentialsError("Invalid username, email or password")
        return user

    async def change_password(
        self, user: User, current_password: str, new_password: str, confirm_password: str
    ) -> None:
        new_password = new_password.strip()
        if not new_password:
            raise AccountValidationError("Password cannot be empty")
        if new_password != confirm_password.strip():
            raise AccountValidationError("Passwords don't match")
        if not verify_password(current_password.strip(), user.password_hash):
            raise InvalidCredentialsError("Incorrect current password")

        user.password_hash = hash_password(new_password)
        await self.session.flush()
        logger.info(f"User {user.id} changed password")

    async def change_username(self, user: User, new_username: str) -> None:
        new_username = new_username.strip()
        if not new_username:
            raise AccountValidationError("Username cannot be empty")
        if new_username == user.username:
            return
        if await self._taken(new_username, exclude_id=user.id):
            raise UserExistsError("Username is already taken")

        user.username = new_username
        await self._flush_unique()

    async def change_bio(self, user: User, bio: str) -> None:
        user.bio = bio
        await self.session.flush()
