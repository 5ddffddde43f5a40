from datetime import datetime
from typing import List, Optional
from pydantic import Field
from . import CamelModel
from .users import UserOut


class PostIn(CamelModel):
    title: str = Field(min_length=1)
    content: str = Field(min_length=1)
    excerpt: Optional[str] = None
    image_url: Optional[str] = None
    status: Optional[str] = None


class PostPatch(CamelModel):
    """Partial update: a field counts only if it was present in the request body."""

    title: Optional[str] = None
    content: Optional[str] = None
    excerpt: Optional[str] = None
    image_url: Optional[str] = None
    status: Optional[str] = None

    def provided(self, name: str) -> bool:
        return name in self.model_fields_set


class PostOut(CamelModel):
    id: int
    title: str
    content: str
    excerpt: Optional[str] = None
    image_url: Optional[str] = None
    user_id: int
    status: str
    created_at: datetime
    updated_at: datetime
    user: Optional[UserOut] = None


class PostListOut(CamelModel):
    posts: List[PostOut]
    total: int
    page: int
    page_size: int
    total_pages: int
