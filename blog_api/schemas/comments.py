from datetime import datetime
from typing import List, Optional
from pydantic import Field
from . import CamelModel
from .posts import PostOut
from .users import UserOut


class CommentIn(CamelModel):
    content: str = Field(min_length=1)
    parent_id: Optional[int] = Field(default=None, ge=0, le=2 ** 32 - 1)


class CommentOut(CamelModel):
    id: int
    content: str
    post_id: int
    user_id: int
    parent_id: Optional[int] = None
    created_at: datetime
    updated_at: datetime
    user: Optional[UserOut] = None
    replies: List['CommentOut'] = []


class CommentListOut(CamelModel):
    comments: List[CommentOut]
    total: int
    page: int
    page_size: int
    total_pages: int


class CommentCreatedOut(CommentOut):
    post: Optional[PostOut] = None
