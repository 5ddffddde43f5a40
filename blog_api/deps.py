from typing import AsyncIterator, Optional
from fastapi import Depends, Header, Request
from sqlalchemy.ext.asyncio import AsyncSession
from .auth import Principal, TokenService
from .errors import AuthError
from .passwords import PasswordHasher


async def get_session(request: Request) -> AsyncIterator[AsyncSession]:
    async with request.app.state.db.sessionmaker() as session:
        yield session


def get_tokens(request: Request) -> TokenService:
    return request.app.state.tokens


def get_hasher(request: Request) -> PasswordHasher:
    return request.app.state.hasher


def get_principal(
    authorization: Optional[str] = Header(None),
    tokens: TokenService = Depends(get_tokens),
) -> Principal:
    """Authentication gate for protected routes: Bearer token -> Principal."""
    if not authorization:
        raise AuthError('Authorization header required')

    parts = authorization.split(' ')
    if len(parts) != 2 or parts[0] != 'Bearer' or not parts[1]:
        raise AuthError('Invalid authorization header format')

    try:
        claims = tokens.validate(parts[1])
    except AuthError:
        raise AuthError('Invalid or expired token')
    return Principal.from_claims(claims)
