from datetime import datetime, timezone

from pydantic import BaseModel, ConfigDict, Field, field_serializer

from forum.models.user import UserRole


def serialize_datetime(dt: datetime | None) -> str | None:
    """Serialize datetime to ISO format with UTC timezone."""
    if dt is None:
        return None
    # SQLite hands back naive datetimes; they are stored as UTC
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=timezone.utc)
    return dt.isoformat()


class CaptchaResponse(BaseModel):
    question: str


class RegisterRequest(BaseModel):
    username: str = Field(default="", max_length=64)
    email: str = Field(default="", max_length=255)
    password: str = Field(default="", max_length=128)
    confirm_password: str = Field(default="", max_length=128)
    captcha: str = Field(default="", max_length=16)


class LoginRequest(BaseModel):
    login: str  # username or email
    password: str


class UserResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    username: str
    email: str
    role: UserRole
    bio: str | None
    profile_image: str | None
    created_at: datetime

    @field_serializer("created_at")
    def serialize_created_at(self, dt: datetime) -> str:
        return serialize_datetime(dt) or ""


class ChangePasswordRequest(BaseModel):
    current_password: str = Field(default="", max_length=128)
    new_password: str = Field(default="", max_length=128)
    confirm_password: str = Field(default="", max_length=128)


class ChangeUsernameRequest(BaseModel):
    username: str = Field(default="", max_length=64)


class ChangeBioRequest(BaseModel):
    bio: str = Field(default="", max_length=2000)
