"""
Error taxonomy for the API.

Every error is an HTTPException so FastAPI's exception handling picks it up;
main.py renders them into the response envelope.
"""
from typing import Optional
from fastapi import HTTPException, status


class ApiError(HTTPException):
    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR
    default_detail = 'Internal server error'

    def __init__(self, detail: Optional[str] = None, headers: Optional[dict] = None):
        super().__init__(
            status_code=type(self).status_code,
            detail=detail or self.default_detail,
            headers=headers,
        )


class ValidationError(ApiError):
    status_code = status.HTTP_400_BAD_REQUEST
    default_detail = 'Invalid request data'


class AuthError(ApiError):
    status_code = status.HTTP_401_UNAUTHORIZED
    default_detail = 'User not authenticated'

    def __init__(self, detail: Optional[str] = None):
        super().__init__(detail, headers={'WWW-Authenticate': 'Bearer'})


class InvalidToken(AuthError):
    default_detail = 'invalid token'


class ExpiredToken(AuthError):
    default_detail = 'token expired'


class ForbiddenError(ApiError):
    status_code = status.HTTP_403_FORBIDDEN
    default_detail = 'permission denied'


class NotFoundError(ApiError):
    status_code = status.HTTP_404_NOT_FOUND
    default_detail = 'not found'


class ConflictError(ApiError):
    status_code = status.HTTP_409_CONFLICT
    default_detail = 'conflict'


class InternalError(ApiError):
    pass
