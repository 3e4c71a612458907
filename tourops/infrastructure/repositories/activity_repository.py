from typing import Optional, List, Tuple
from sqlalchemy import select, func
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from tourops.core import BaseRepository
from tourops.models import Activity, ActivityType, ActivitySchedule


class ActivityTypeRepository(BaseRepository[ActivityType]):
    """Activity type repository implementation"""

    default_order = (ActivityType.name,)

    def __init__(self, session: AsyncSession):
        super().__init__(ActivityType, session)

    async def get_by_code(self, code: str) -> Optional[ActivityType]:
        """Get activity type by code"""
        query = select(ActivityType).where(ActivityType.code == code)
        result = await self.session.execute(query)
        return result.scalar_one_or_none()

    async def is_referenced(self, activity_type_id: str) -> bool:
        """Check if any activity uses this type"""
        query = select(Activity.id).where(Activity.activity_type_id == activity_type_id).limit(1)
        result = await self.session.execute(query)
        return result.scalar() is not None


class ActivityRepository(BaseRepository[Activity]):
    """Activity repository implementation"""

    def __init__(self, session: AsyncSession):
        super().__init__(Activity, session)

    async def get(self, id: str) -> Optional[Activity]:
        """Override get method to eagerly load the activity type"""
        query = (
            select(Activity)
            .options(selectinload(Activity.activity_type))
            .where(Activity.id == id)
        )
        result = await self.session.execute(query)
        return result.scalar_one_or_none()

    async def list_paginated(
        self,
        *,
        status: Optional[bool] = None,
        skip: int = 0,
        limit: int = 10
    ) -> Tuple[List[Activity], int]:
        """List activities by title with the total count"""
        filters = []
        if status is not None:
            filters.append(Activity.status.is_(status))

        query = (
            select(Activity)
            .options(selectinload(Activity.activity_type))
            .where(*filters)
            .order_by(Activity.title, Activity.id)
            .offset(skip)
            .limit(limit)
        )
        result = await self.session.execute(query)
        items = list(result.scalars().all())

        total = await self.session.scalar(
            select(func.count()).select_from(Activity).where(*filters)
        )
        return items, total or 0

    async def count_schedules(self, activity_id: str) -> int:
        """Count schedules attached to an activity"""
        stmt = select(func.count()).select_from(ActivitySchedule).where(
            ActivitySchedule.activity_id == activity_id
        )
        return await self.session.scalar(stmt) or 0
