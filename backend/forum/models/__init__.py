from forum.models.base import Base
from forum.models.user import User, UserRole
from forum.models.session import Session
from forum.models.reaction import Reaction, TargetType

__all__ = [
    "Base",
    "User", "UserRole",
    "Session",
    "Reaction", "TargetType",
]
