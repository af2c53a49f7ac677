from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field, field_serializer

from forum.models.reaction import TargetType
from forum.schemas.auth import serialize_datetime


class ReactionRequest(BaseModel):
    """Like (is_like=true) or dislike (is_like=false) a post or comment."""
    target_id: int = Field(ge=1)
    target_type: TargetType
    is_like: bool


class ReactionResponse(BaseModel):
    target_id: int
    target_type: TargetType
    is_like: bool
    likes: int
    dislikes: int


class ReactionSummary(BaseModel):
    target_id: int
    target_type: TargetType
    likes: int
    dislikes: int
    # None when anonymous or the caller hasn't reacted
    user_reaction: bool | None = None


class LikedTargetResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    target_id: int
    target_type: str
    created_at: datetime

    @field_serializer("created_at")
    def serialize_created_at(self, dt: datetime) -> str:
        return serialize_datetime(dt) or ""
