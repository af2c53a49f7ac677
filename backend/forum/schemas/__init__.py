from forum.schemas.auth import (
    CaptchaResponse,
    RegisterRequest,
    LoginRequest,
    UserResponse,
    ChangePasswordRequest,
    ChangeUsernameRequest,
    ChangeBioRequest,
)
from forum.schemas.reaction import (
    ReactionRequest,
    ReactionResponse,
    ReactionSummary,
    LikedTargetResponse,
)

__all__ = [
    "CaptchaResponse",
    "RegisterRequest",
    "LoginRequest",
    "UserResponse",
    "ChangePasswordRequest",
    "ChangeUsernameRequest",
    "ChangeBioRequest",
    "ReactionRequest",
    "ReactionResponse",
    "ReactionSummary",
    "LikedTargetResponse",
]
