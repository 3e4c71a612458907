from typing import Optional, List, Tuple
from sqlalchemy import select, func
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from tourops.core import BaseRepository
from tourops.models import Booking, ActivitySchedule


class BookingRepository(BaseRepository[Booking]):
    """Booking repository implementation"""

    def __init__(self, session: AsyncSession):
        super().__init__(Booking, session)

    def _details(self):
        return (
            selectinload(Booking.schedule).selectinload(ActivitySchedule.activity),
            selectinload(Booking.company),
        )

    async def get_with_details(self, booking_id: str) -> Optional[Booking]:
        """Get booking with schedule, activity and company loaded"""
        query = (
            select(Booking)
            .options(*self._details())
            .where(Booking.id == booking_id)
            .execution_options(populate_existing=True)
        )
        result = await self.session.execute(query)
        return result.scalar_one_or_none()

    async def lock_for_update(self, booking_id: str) -> Optional[Booking]:
        """Get booking with exclusive lock so concurrent edits serialise"""
        query = (
            select(Booking)
            .where(Booking.id == booking_id)
            .with_for_update()
            .execution_options(populate_existing=True)
        )
        result = await self.session.execute(query)
        return result.scalar_one_or_none()

    async def list_paginated(
        self,
        *,
        status: Optional[str] = None,
        activity_schedule_id: Optional[str] = None,
        skip: int = 0,
        limit: int = 10
    ) -> Tuple[List[Booking], int]:
        """List bookings newest first, returning the page and the total count"""
        filters = []
        if status:
            filters.append(Booking.status == status)
        if activity_schedule_id:
            filters.append(Booking.activity_schedule_id == activity_schedule_id)

        query = (
            select(Booking)
            .options(*self._details())
            .where(*filters)
            .order_by(Booking.created_at.desc(), Booking.id)
            .offset(skip)
            .limit(limit)
        )
        result = await self.session.execute(query)
        items = list(result.scalars().all())

        total = await self.session.scalar(
            select(func.count()).select_from(Booking).where(*filters)
        )
        return items, total or 0

    async def count_active_by_schedule(self, schedule_id: str) -> int:
        """Count non-cancelled bookings for a schedule"""
        stmt = select(func.count()).select_from(Booking).where(
            Booking.activity_schedule_id == schedule_id,
            Booking.status != "cancelled",
        )
        return await self.session.scalar(stmt) or 0

    async def count_active_by_activity(self, activity_id: str) -> int:
        """Count non-cancelled bookings across an activity's schedules"""
        stmt = (
            select(func.count())
            .select_from(Booking)
            .join(ActivitySchedule, Booking.activity_schedule_id == ActivitySchedule.id)
            .where(
                ActivitySchedule.activity_id == activity_id,
                Booking.status != "cancelled",
            )
        )
        return await self.session.scalar(stmt) or 0

    async def count_by_company(self, company_id: str) -> int:
        """Count bookings referencing a company"""
        return await self.count(filters={"company_id": company_id})
