from fastapi import APIRouter
from .auth import router as auth_router
from .posts import router as posts_router
from .comments import router as comments_router
from .users import router as users_router

router = APIRouter()
router.include_router(auth_router, prefix='/auth', tags=['auth'])
router.include_router(posts_router, prefix='/posts', tags=['posts'])
router.include_router(comments_router, prefix='/comments', tags=['comments'])
router.include_router(users_router, prefix='/users', tags=['users'])
