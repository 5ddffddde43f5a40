import logging
from fastapi import APIRouter, Depends, status
from fastapi.concurrency import run_in_threadpool
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession
from ..auth import Principal, TokenService
from ..crud import (
    create_user,
    delete_refresh_token,
    get_user_by_email,
    get_user_by_id,
    store_refresh_token,
    user_exists,
)
from ..deps import get_hasher, get_principal, get_session, get_tokens
from ..errors import AuthError, ConflictError, NotFoundError
from ..models import User
from ..passwords import PasswordHasher
from ..responses import message, success
from ..schemas.users import LoginIn, LogoutIn, RegisterIn, TokenOut, UserOut

logger = logging.getLogger(__name__)

router = APIRouter()

DUPLICATE_USER = 'user with this email or username already exists'
BAD_CREDENTIALS = 'invalid email or password'


async def _issue_tokens(session: AsyncSession, tokens: TokenService, user: User) -> TokenOut:
    access = tokens.issue_access_token(user.id, user.email, user.role)
    refresh = tokens.issue_refresh_token(user.id, user.email, user.role)
    await store_refresh_token(session, user.id, refresh, tokens.refresh_expires_at())
    return TokenOut(access_token=access, refresh_token=refresh, user=UserOut.model_validate(user))


@router.post('/register', status_code=status.HTTP_201_CREATED)
async def register(
    payload: RegisterIn,
    session: AsyncSession = Depends(get_session),
    tokens: TokenService = Depends(get_tokens),
    hasher: PasswordHasher = Depends(get_hasher),
):
    if await user_exists(session, payload.email, payload.username):
        raise ConflictError(DUPLICATE_USER)

    hashed = await run_in_threadpool(hasher.hash, payload.password)
    try:
        user = await create_user(session, payload, hashed)
    except IntegrityError:
        # lost a race against a concurrent registration
        await session.rollback()
        raise ConflictError(DUPLICATE_USER)

    logger.info({'msg': 'user_registered', 'user_id': user.id})
    return success(await _issue_tokens(session, tokens, user))


@router.post('/login')
async def login(
    payload: LoginIn,
    session: AsyncSession = Depends(get_session),
    tokens: TokenService = Depends(get_tokens),
    hasher: PasswordHasher = Depends(get_hasher),
):
    user = await get_user_by_email(session, payload.email)
    if not user or not await run_in_threadpool(hasher.verify, payload.password, user.hashed_password):
        raise AuthError(BAD_CREDENTIALS)

    logger.info({'msg': 'user_logged_in', 'user_id': user.id})
    return success(await _issue_tokens(session, tokens, user))


@router.post('/logout')
async def logout(
    payload: LogoutIn,
    principal: Principal = Depends(get_principal),
    session: AsyncSession = Depends(get_session),
):
    removed = await delete_refresh_token(session, payload.refresh_token)
    logger.info({'msg': 'user_logged_out', 'user_id': principal.user_id, 'removed': removed})
    return message('Logged out successfully')


@router.get('/me')
async def me(
    principal: Principal = Depends(get_principal),
    session: AsyncSession = Depends(get_session),
):
    user = await get_user_by_id(session, principal.user_id)
    if not user:
        raise NotFoundError('user not found')
    return success(UserOut.model_validate(user))
