from typing import Optional
from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.ext.asyncio import AsyncSession
from ..auth import Principal
from ..crud import create_post, get_post, list_published_posts, soft_delete_post, update_post
from ..deps import get_principal, get_session
from ..errors import NotFoundError
from ..pagination import normalize, offset, parse_id, total_pages
from ..permissions import ensure_can_modify
from ..responses import message, success
from ..schemas.posts import PostIn, PostListOut, PostOut, PostPatch

router = APIRouter()


async def _paged(session: AsyncSession, page_raw, page_size_raw, user_id: Optional[int] = None) -> PostListOut:
    page, page_size = normalize(page_raw, page_size_raw)
    posts, total = await list_published_posts(session, offset(page, page_size), page_size, user_id=user_id)
    return PostListOut(
        posts=[PostOut.model_validate(p) for p in posts],
        total=total,
        page=page,
        page_size=page_size,
        total_pages=total_pages(total, page_size),
    )


async def _load_post(session: AsyncSession, raw_id: str):
    post = await get_post(session, parse_id(raw_id, 'Invalid post ID'))
    if not post:
        raise NotFoundError('post not found')
    return post


@router.get('')
async def list_posts(
    page: Optional[str] = Query(None),
    page_size: Optional[str] = Query(None, alias='pageSize'),
    session: AsyncSession = Depends(get_session),
):
    return success(await _paged(session, page, page_size))


@router.post('', status_code=status.HTTP_201_CREATED)
async def create(
    payload: PostIn,
    principal: Principal = Depends(get_principal),
    session: AsyncSession = Depends(get_session),
):
    post = await create_post(session, principal.user_id, payload)
    return success(PostOut.model_validate(post))


@router.get('/user/{user_id}')
async def list_posts_by_user(
    user_id: str,
    page: Optional[str] = Query(None),
    page_size: Optional[str] = Query(None, alias='pageSize'),
    session: AsyncSession = Depends(get_session),
):
    uid = parse_id(user_id, 'Invalid user ID')
    return success(await _paged(session, page, page_size, user_id=uid))


# NOTE: drafts are returned here too; lists only ever show published posts
@router.get('/{post_id}')
async def read(post_id: str, session: AsyncSession = Depends(get_session)):
    post = await _load_post(session, post_id)
    return success(PostOut.model_validate(post))


@router.put('/{post_id}')
async def update(
    post_id: str,
    patch: PostPatch,
    principal: Principal = Depends(get_principal),
    session: AsyncSession = Depends(get_session),
):
    post = await _load_post(session, post_id)
    ensure_can_modify(post.user_id, principal)
    post = await update_post(session, post, patch)
    return success(PostOut.model_validate(post))


@router.delete('/{post_id}')
async def remove(
    post_id: str,
    principal: Principal = Depends(get_principal),
    session: AsyncSession = Depends(get_session),
):
    post = await _load_post(session, post_id)
    ensure_can_modify(post.user_id, principal)
    await soft_delete_post(session, post)
    return message('Post deleted successfully')
