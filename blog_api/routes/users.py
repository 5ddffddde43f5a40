from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession
from ..crud import count_users
from ..deps import get_session
from ..responses import success
from ..schemas.users import CountOut

router = APIRouter()


@router.get('/count')
async def users_count(session: AsyncSession = Depends(get_session)):
    return success(CountOut(total=await count_users(session)))
