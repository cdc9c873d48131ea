from fastapi import Depends
from sqlalchemy.ext.asyncio import AsyncSession

from appletree.database.session import get_async_session
from appletree.repositories.school_repository import SchoolRepository


async def get_school_repository(db: AsyncSession = Depends(get_async_session)) -> SchoolRepository:
    # one repository per request, bound to that request's session
    return SchoolRepository(db)
