from datetime import datetime
from typing import Optional
from pydantic import EmailStr, Field
from . import CamelModel


class RegisterIn(CamelModel):
    email: EmailStr
    username: str = Field(min_length=3, max_length=50)
    password: str = Field(min_length=6)
    first_name: Optional[str] = None
    last_name: Optional[str] = None


class LoginIn(CamelModel):
    email: EmailStr
    password: str = Field(min_length=1)


class LogoutIn(CamelModel):
    refresh_token: str = Field(min_length=1)


class UserOut(CamelModel):
    # hashed_password is deliberately absent
    id: int
    email: str
    username: str
    first_name: Optional[str] = None
    last_name: Optional[str] = None
    avatar: Optional[str] = None
    bio: Optional[str] = None
    role: str
    created_at: datetime
    updated_at: datetime


class TokenOut(CamelModel):
    access_token: str
    refresh_token: str
    user: UserOut


class CountOut(CamelModel):
    total: int
