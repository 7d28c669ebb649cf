"""Comment Pydantic schemas for request/response validation."""

from datetime import datetime
from typing import Optional
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field


class CommentAuthor(BaseModel):
    """Public author info shown next to a comment."""

    model_config = ConfigDict(from_attributes=True)

    id: UUID
    username: str


class CommentCreateRequest(BaseModel):
    """Request to create a new comment or reply."""

    model_config = ConfigDict(str_strip_whitespace=True)

    content: str = Field(min_length=1, max_length=2000)
    parent_id: Optional[UUID] = None


class CommentResponse(BaseModel):
    """Single comment. Replies carry ``parent_id``; the list is flat."""

    model_config = ConfigDict(from_attributes=True)

    id: UUID
    deal_id: UUID
    parent_id: Optional[UUID] = None
    user: CommentAuthor
    content: str
    created_at: datetime
