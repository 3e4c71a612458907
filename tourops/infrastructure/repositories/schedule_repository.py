from typing import Optional, List
from datetime import datetime
from sqlalchemy import select, update, func
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from tourops.core import BaseRepository
from tourops.models import ActivitySchedule, Activity, Booking


class ScheduleRepository(BaseRepository[ActivitySchedule]):
    """Activity schedule (occurrence) repository implementation"""

    default_order = (ActivitySchedule.scheduled_start,)

    def __init__(self, session: AsyncSession):
        super().__init__(ActivitySchedule, session)

    async def get_with_activity(self, schedule_id: str) -> Optional[ActivitySchedule]:
        """Get schedule with its activity loaded"""
        query = (
            select(ActivitySchedule)
            .options(selectinload(ActivitySchedule.activity))
            .where(ActivitySchedule.id == schedule_id)
            .execution_options(populate_existing=True)
        )
        result = await self.session.execute(query)
        return result.scalar_one_or_none()

    async def list_with_activity(
        self,
        *,
        activity_id: Optional[str] = None,
        starts_from: Optional[datetime] = None,
        starts_before: Optional[datetime] = None,
        active_only: bool = False,
    ) -> List[ActivitySchedule]:
        """List schedules ordered by start, optionally bounded by start time"""
        query = select(ActivitySchedule).options(selectinload(ActivitySchedule.activity))

        if activity_id:
            query = query.where(ActivitySchedule.activity_id == activity_id)
        if starts_from:
            query = query.where(ActivitySchedule.scheduled_start >= starts_from)
        if starts_before:
            query = query.where(ActivitySchedule.scheduled_start < starts_before)
        if active_only:
            query = query.where(ActivitySchedule.status.is_(True))

        query = query.order_by(ActivitySchedule.scheduled_start).execution_options(populate_existing=True)
        result = await self.session.execute(query)
        return list(result.scalars().all())

    async def find_overlapping(
        self,
        activity_id: str,
        start: datetime,
        end: datetime,
        *,
        exclude_id: Optional[str] = None,
    ) -> List[ActivitySchedule]:
        """Active schedules of an activity whose time range intersects [start, end)"""
        query = select(ActivitySchedule).where(
            ActivitySchedule.activity_id == activity_id,
            ActivitySchedule.status.is_(True),
            ActivitySchedule.scheduled_start < end,
            ActivitySchedule.scheduled_end > start,
        )
        if exclude_id:
            query = query.where(ActivitySchedule.id != exclude_id)

        result = await self.session.execute(query)
        return list(result.scalars().all())

    async def adjust_booked_count(self, schedule_id: str, delta: int, walk_ins: int = 0) -> bool:
        """Atomically add *delta* seats to booked_count.

        The update only matches while the result stays within
        [0, capacity], so the capacity check and the write happen in one
        statement. Returns False when the guard rejected the change.
        *walk_ins* is added to walk_in_count in the same statement.
        """
        new_count = ActivitySchedule.booked_count + delta
        values = {"booked_count": new_count}
        if walk_ins:
            values["walk_in_count"] = ActivitySchedule.walk_in_count + walk_ins
        stmt = (
            update(ActivitySchedule)
            .where(
                ActivitySchedule.id == schedule_id,
                new_count >= 0,
                new_count <= ActivitySchedule.capacity,
            )
            .values(**values)
            .execution_options(synchronize_session=False)
        )
        result = await self.session.execute(stmt)
        return result.rowcount == 1

    async def reload(self, schedule: ActivitySchedule) -> ActivitySchedule:
        """Refresh counters after a statement-level update"""
        await self.session.refresh(schedule, attribute_names=["booked_count", "capacity", "status", "updated_at"])
        return schedule

    async def get_seats_taken(self, schedule_id: str) -> int:
        """Sum of seats held by non-cancelled bookings of a schedule"""
        stmt = (
            select(func.coalesce(func.sum(Booking.number_of_people), 0))
            .where(
                Booking.activity_schedule_id == schedule_id,
                Booking.status != "cancelled",
            )
        )
        result = await self.session.execute(stmt)
        return result.scalar() or 0

    async def lock_for_update(self, schedule_id: str) -> Optional[ActivitySchedule]:
        """Get schedule with exclusive lock for updates"""
        query = (
            select(ActivitySchedule)
            .where(ActivitySchedule.id == schedule_id)
            .with_for_update()
            .execution_options(populate_existing=True)
        )
        result = await self.session.execute(query)
        return result.scalar_one_or_none()

    async def lock_activity(self, activity_id: str) -> Optional[Activity]:
        """Lock the parent activity row so overlap checks for it serialise"""
        query = select(Activity).where(Activity.id == activity_id).with_for_update()
        result = await self.session.execute(query)
        return result.scalar_one_or_none()

    async def count_by_activity(self, activity_id: str) -> int:
        return await self.count(filters={"activity_id": activity_id})
