import logging
from typing import Optional
from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.ext.asyncio import AsyncSession
from ..auth import Principal
from ..crud import (
    count_comments,
    create_comment,
    get_comment,
    get_post,
    list_replies,
    list_top_level_comments,
)
from ..deps import get_principal, get_session
from ..errors import NotFoundError
from ..pagination import normalize, offset, parse_id, total_pages
from ..responses import success
from ..schemas.comments import CommentCreatedOut, CommentIn, CommentListOut, CommentOut
from ..schemas.posts import PostOut
from ..schemas.users import CountOut

logger = logging.getLogger(__name__)

router = APIRouter()


@router.get('/count')
async def comments_count(session: AsyncSession = Depends(get_session)):
    return success(CountOut(total=await count_comments(session)))


@router.get('/post/{post_id}')
async def list_comments(
    post_id: str,
    page: Optional[str] = Query(None),
    page_size: Optional[str] = Query(None, alias='pageSize'),
    session: AsyncSession = Depends(get_session),
):
    pid = parse_id(post_id, 'Invalid post ID')
    page, page_size = normalize(page, page_size)

    top_level, total = await list_top_level_comments(session, pid, offset(page, page_size), page_size)
    replies = await list_replies(session, [c.id for c in top_level])

    comments = []
    for c in top_level:
        out = CommentOut.model_validate(c)
        out.replies = [CommentOut.model_validate(r) for r in replies[c.id]]
        comments.append(out)

    return success(CommentListOut(
        comments=comments,
        total=total,
        page=page,
        page_size=page_size,
        total_pages=total_pages(total, page_size),
    ))


@router.post('/post/{post_id}', status_code=status.HTTP_201_CREATED)
async def add_comment(
    post_id: str,
    payload: CommentIn,
    principal: Principal = Depends(get_principal),
    session: AsyncSession = Depends(get_session),
):
    pid = parse_id(post_id, 'Invalid post ID')
    post = await get_post(session, pid)
    if not post:
        raise NotFoundError('post not found')

    if payload.parent_id is not None:
        parent = await get_comment(session, payload.parent_id)
        if not parent or parent.post_id != post.id:
            raise NotFoundError('parent comment not found')

    c = await create_comment(session, principal.user_id, post.id, payload.content, payload.parent_id)
    logger.info({'msg': 'comment_created', 'comment_id': c.id, 'post_id': post.id})
    out = CommentCreatedOut.model_validate(c)
    out.post = PostOut.model_validate(post)
    return success(out)
