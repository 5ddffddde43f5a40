from datetime import datetime
from typing import Dict, List, Optional, Sequence, Tuple
from sqlalchemy import select, func, delete, or_
from sqlalchemy.ext.asyncio import AsyncSession
from .models import User, Post, PostStatus, Comment, RefreshToken, utcnow
from .schemas.posts import PostPatch

# users

async def get_user_by_id(session: AsyncSession, user_id: int) -> Optional[User]:
    q = await session.execute(select(User).where(User.id == user_id))
    return q.scalars().first()

async def get_user_by_email(session: AsyncSession, email: str) -> Optional[User]:
    q = await session.execute(select(User).where(User.email == email))
    return q.scalars().first()

async def user_exists(session: AsyncSession, email: str, username: str) -> bool:
    q = await session.execute(
        select(User.id).where(or_(User.email == email, User.username == username)).limit(1)
    )
    return q.scalars().first() is not None

async def create_user(session: AsyncSession, payload, hashed_password: str) -> User:
    user = User(
        email=payload.email,
        username=payload.username,
        hashed_password=hashed_password,
        first_name=payload.first_name,
        last_name=payload.last_name,
        role='user',
    )
    session.add(user)
    await session.commit()
    await session.refresh(user)
    return user

async def count_users(session: AsyncSession) -> int:
    q = await session.execute(select(func.count()).select_from(User))
    return q.scalar_one()

# refresh tokens

async def store_refresh_token(session: AsyncSession, user_id: int, token: str, expires_at: datetime) -> RefreshToken:
    rt = RefreshToken(token=token, user_id=user_id, expires_at=expires_at)
    session.add(rt)
    await session.commit()
    return rt

async def delete_refresh_token(session: AsyncSession, token: str) -> int:
    """Delete the stored refresh token; returns how many rows went away (0 is fine)."""
    res = await session.execute(delete(RefreshToken).where(RefreshToken.token == token))
    await session.commit()
    return res.rowcount or 0

# posts

def _live_posts():
    return select(Post).where(Post.deleted_at.is_(None))

async def get_post(session: AsyncSession, post_id: int) -> Optional[Post]:
    q = await session.execute(_live_posts().where(Post.id == post_id))
    return q.scalars().first()

async def list_published_posts(
    session: AsyncSession, offset: int, limit: int, user_id: Optional[int] = None
) -> Tuple[Sequence[Post], int]:
    filters = [Post.deleted_at.is_(None), Post.status == PostStatus.published.value]
    if user_id is not None:
        filters.append(Post.user_id == user_id)

    total = (await session.execute(select(func.count()).select_from(Post).where(*filters))).scalar_one()
    q = await session.execute(
        select(Post).where(*filters)
        .order_by(Post.created_at.desc(), Post.id.desc())
        .limit(limit).offset(offset)
    )
    return q.scalars().all(), total

async def create_post(session: AsyncSession, user_id: int, payload) -> Post:
    post = Post(
        title=payload.title,
        content=payload.content,
        excerpt=payload.excerpt,
        image_url=payload.image_url,
        user_id=user_id,
        status=PostStatus.from_request(payload.status).value,
    )
    session.add(post)
    await session.commit()
    await session.refresh(post)
    return post

def apply_post_patch(post: Post, patch: PostPatch) -> bool:
    """Copy the fields present in ``patch`` onto ``post``.

    Fields sent as null are treated like absent ones. Returns whether
    anything changed.
    """
    changed = False
    if patch.provided('title') and patch.title is not None:
        post.title = patch.title
        changed = True
    if patch.provided('content') and patch.content is not None:
        post.content = patch.content
        changed = True
    if patch.provided('excerpt') and patch.excerpt is not None:
        post.excerpt = patch.excerpt
        changed = True
    if patch.provided('image_url') and patch.image_url is not None:
        post.image_url = patch.image_url
        changed = True
    if patch.provided('status') and patch.status is not None:
        post.status = PostStatus.from_request(patch.status).value
        changed = True
    if changed:
        post.updated_at = utcnow()
    return changed

async def update_post(session: AsyncSession, post: Post, patch: PostPatch) -> Post:
    if apply_post_patch(post, patch):
        await session.commit()
        await session.refresh(post)
    return post

async def soft_delete_post(session: AsyncSession, post: Post):
    post.deleted_at = utcnow()
    await session.commit()

# comments

def _live_comments():
    return select(Comment).where(Comment.deleted_at.is_(None))

async def get_comment(session: AsyncSession, comment_id: int) -> Optional[Comment]:
    q = await session.execute(_live_comments().where(Comment.id == comment_id))
    return q.scalars().first()

async def create_comment(
    session: AsyncSession, user_id: int, post_id: int, content: str, parent_id: Optional[int] = None
) -> Comment:
    c = Comment(content=content, post_id=post_id, user_id=user_id, parent_id=parent_id)
    session.add(c)
    await session.commit()
    await session.refresh(c)
    return c

async def list_top_level_comments(
    session: AsyncSession, post_id: int, offset: int, limit: int
) -> Tuple[Sequence[Comment], int]:
    filters = [Comment.deleted_at.is_(None), Comment.post_id == post_id, Comment.parent_id.is_(None)]
    total = (await session.execute(select(func.count()).select_from(Comment).where(*filters))).scalar_one()
    q = await session.execute(
        select(Comment).where(*filters)
        .order_by(Comment.created_at.desc(), Comment.id.desc())
        .limit(limit).offset(offset)
    )
    return q.scalars().all(), total

async def list_replies(session: AsyncSession, parent_ids: List[int]) -> Dict[int, List[Comment]]:
    """Direct replies of the given comments, oldest first, grouped by parent id."""
    grouped: Dict[int, List[Comment]] = {pid: [] for pid in parent_ids}
    if not parent_ids:
        return grouped
    q = await session.execute(
        _live_comments().where(Comment.parent_id.in_(parent_ids))
        .order_by(Comment.created_at.asc(), Comment.id.asc())
    )
    for reply in q.scalars().all():
        grouped[reply.parent_id].append(reply)
    return grouped

async def count_comments(session: AsyncSession) -> int:
    q = await session.execute(select(func.count()).select_from(Comment).where(Comment.deleted_at.is_(None)))
    return q.scalar_one()
