from typing import Optional
from pydantic import BaseModel, Field, field_validator
from datetime import datetime


# -------------------------------------------------------------------
# STORED COMMENT
# -------------------------------------------------------------------
class Comment(BaseModel):
    id: str
    request_id: str
    author_id: Optional[str] = None     # None for public-link authors
    author_name: Optional[str] = None
    body: str
    is_public: bool = False
    created_at: datetime

    @field_validator("created_at", mode="before")
    def normalize_timestamp(cls, v):
        if isinstance(v, str) and v.endswith("Z"):
            return v.replace("Z", "+00:00")
        return v


# -------------------------------------------------------------------
# CREATE MODEL (authenticated caller)
# -------------------------------------------------------------------
class CommentCreate(BaseModel):
    body: str = Field(..., min_length=1, max_length=5000)

    @field_validator("body", mode="before")
    def strip_body(cls, v):
        return v.strip() if isinstance(v, str) else v


# -------------------------------------------------------------------
# CREATE MODEL (public-link holder: vendor without an account)
# -------------------------------------------------------------------
class PublicCommentCreate(CommentCreate):
    name: str = Field(..., min_length=1, max_length=120)
    phone: Optional[str] = Field(None, max_length=40)
