from typing import Optional, List, Tuple, Sequence
from datetime import datetime
from sqlalchemy import select, delete, func
from sqlalchemy.ext.asyncio import AsyncSession

from tourops.core import BaseRepository
from tourops.models import Guide, Language, ActivityAssignment, ActivitySchedule


class LanguageRepository(BaseRepository[Language]):
    """Language repository implementation"""

    default_order = (Language.name,)

    def __init__(self, session: AsyncSession):
        super().__init__(Language, session)

    async def get_by_code(self, code: str) -> Optional[Language]:
        query = select(Language).where(Language.code == code)
        result = await self.session.execute(query)
        return result.scalar_one_or_none()

    async def get_many(self, ids: Sequence[str]) -> List[Language]:
        if not ids:
            return []
        result = await self.session.execute(select(Language).where(Language.id.in_(ids)))
        return list(result.scalars().all())


class GuideRepository(BaseRepository[Guide]):
    """Guide repository implementation"""

    def __init__(self, session: AsyncSession):
        super().__init__(Guide, session)

    async def get_many(self, ids: Sequence[str]) -> List[Guide]:
        if not ids:
            return []
        result = await self.session.execute(select(Guide).where(Guide.id.in_(ids)))
        return list(result.scalars().all())

    async def list_paginated(
        self,
        *,
        status: Optional[bool] = None,
        skip: int = 0,
        limit: int = 10
    ) -> Tuple[List[Guide], int]:
        filters = []
        if status is not None:
            filters.append(Guide.status.is_(status))

        query = select(Guide).where(*filters).order_by(Guide.name, Guide.id).offset(skip).limit(limit)
        result = await self.session.execute(query)
        total = await self.session.scalar(select(func.count()).select_from(Guide).where(*filters))
        return list(result.scalars().all()), total or 0

    async def list_free_between(self, start: datetime, end: datetime) -> List[Guide]:
        """Active guides with no assignment on an active schedule overlapping [start, end)"""
        busy = (
            select(ActivityAssignment.guide_id)
            .join(ActivitySchedule, ActivityAssignment.activity_schedule_id == ActivitySchedule.id)
            .where(
                ActivitySchedule.status.is_(True),
                ActivitySchedule.scheduled_start < end,
                ActivitySchedule.scheduled_end > start,
            )
        )
        query = (
            select(Guide)
            .where(Guide.status.is_(True), Guide.id.not_in(busy))
            .order_by(Guide.can_lead.desc(), Guide.max_party_size.desc(), Guide.name)
        )
        result = await self.session.execute(query)
        return list(result.scalars().all())

    async def count_assignments(self, guide_id: str) -> int:
        stmt = select(func.count()).select_from(ActivityAssignment).where(
            ActivityAssignment.guide_id == guide_id
        )
        return await self.session.scalar(stmt) or 0


class AssignmentRepository(BaseRepository[ActivityAssignment]):
    """Guide-to-schedule assignment repository implementation"""

    def __init__(self, session: AsyncSession):
        super().__init__(ActivityAssignment, session)

    async def list_by_schedule(self, schedule_id: str) -> List[ActivityAssignment]:
        query = (
            select(ActivityAssignment)
            .where(ActivityAssignment.activity_schedule_id == schedule_id)
            .order_by(ActivityAssignment.is_leader.desc(), ActivityAssignment.assigned_at)
        )
        result = await self.session.execute(query)
        return list(result.scalars().unique().all())

    async def delete_by_schedule(self, schedule_id: str) -> None:
        await self.session.execute(
            delete(ActivityAssignment)
            .where(ActivityAssignment.activity_schedule_id == schedule_id)
            .execution_options(synchronize_session=False)
        )

    async def find_guide_conflicts(
        self,
        guide_ids: Sequence[str],
        start: datetime,
        end: datetime,
        *,
        exclude_schedule_id: str,
    ) -> List[Tuple[str, str]]:
        """(guide_id, schedule_id) pairs where a guide already works an overlapping active schedule"""
        if not guide_ids:
            return []
        query = (
            select(ActivityAssignment.guide_id, ActivitySchedule.id)
            .join(ActivitySchedule, ActivityAssignment.activity_schedule_id == ActivitySchedule.id)
            .where(
                ActivityAssignment.guide_id.in_(guide_ids),
                ActivitySchedule.id != exclude_schedule_id,
                ActivitySchedule.status.is_(True),
                ActivitySchedule.scheduled_start < end,
                ActivitySchedule.scheduled_end > start,
            )
        )
        result = await self.session.execute(query)
        return [(row[0], row[1]) for row in result.all()]
