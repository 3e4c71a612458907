import logging
from decimal import Decimal, InvalidOperation
from typing import Optional, List, Dict, Any, Tuple

from sqlalchemy import delete, select

from tourops.core import BaseService, NotFoundError, ValidationError, ConflictError
from tourops.infrastructure.repositories import (
    ActivityRepository, ActivityTypeRepository, BookingRepository
)
from tourops.models import Activity, ActivityType, ActivitySchedule, ActivityAssignment, Booking

logger = logging.getLogger(__name__)

PRICE_FIELDS = ("adult_price", "child_price", "senior_price")


def validate_price(value: Any, field: str) -> Decimal:
    """Coerce a unit price to Decimal and reject negatives"""
    try:
        price = Decimal(str(value))
    except (InvalidOperation, ValueError):
        raise ValidationError(f"{field} must be a number", field=field)
    if not price.is_finite() or price < 0:
        raise ValidationError(f"{field} must be greater than or equal to 0", field=field)
    return price


class ActivityTypeService(BaseService):
    """Activity type catalog"""

    def __init__(self, session, type_repo: Optional[ActivityTypeRepository] = None):
        super().__init__(session)
        self.type_repo = type_repo or ActivityTypeRepository(session)

    async def list_types(self) -> List[ActivityType]:
        return await self.type_repo.get_multi(limit=1000)

    async def get_type(self, type_id: str) -> ActivityType:
        activity_type = await self.type_repo.get(type_id)
        if not activity_type:
            raise NotFoundError("ActivityType", type_id)
        return activity_type

    async def create_type(self, code: str, name: str, description: Optional[str] = None) -> ActivityType:
        code = (code or "").strip()
        name = (name or "").strip()
        if not code:
            raise ValidationError("Code is required", field="code")
        if not name:
            raise ValidationError("Name is required", field="name")
        if await self.type_repo.get_by_code(code):
            raise ConflictError(f"Activity type with code '{code}' already exists", reason="duplicate_code")

        return await self.type_repo.create(obj_in={"code": code, "name": name, "description": description})

    async def update_type(self, type_id: str, changes: Dict[str, Any]) -> ActivityType:
        activity_type = await self.get_type(type_id)

        if "code" in changes:
            code = (changes["code"] or "").strip()
            if not code:
                raise ValidationError("Code is required", field="code")
            existing = await self.type_repo.get_by_code(code)
            if existing and existing.id != type_id:
                raise ConflictError(f"Activity type with code '{code}' already exists", reason="duplicate_code")
            changes["code"] = code
        if "name" in changes:
            changes["name"] = (changes["name"] or "").strip()
            if not changes["name"]:
                raise ValidationError("Name is required", field="name")

        return await self.type_repo.update(id=activity_type.id, obj_in=changes)

    async def delete_type(self, type_id: str) -> bool:
        await self.get_type(type_id)
        if await self.type_repo.is_referenced(type_id):
            raise ConflictError("Activity type is used by existing activities", reason="in_use")
        return await self.type_repo.delete(id=type_id)


class ActivityService(BaseService):
    """Activity catalog: bookable activities with party size and unit prices"""

    def __init__(
        self,
        session,
        activity_repo: Optional[ActivityRepository] = None,
        type_repo: Optional[ActivityTypeRepository] = None,
        booking_repo: Optional[BookingRepository] = None,
    ):
        super().__init__(session)
        self.activity_repo = activity_repo or ActivityRepository(session)
        self.type_repo = type_repo or ActivityTypeRepository(session)
        self.booking_repo = booking_repo or BookingRepository(session)

    async def _validate_fields(self, data: Dict[str, Any]) -> Dict[str, Any]:
        if "activity_type_id" in data:
            if not data["activity_type_id"]:
                raise ValidationError("Activity type is required", field="activity_type_id")
            if not await self.type_repo.get(data["activity_type_id"]):
                raise NotFoundError("ActivityType", data["activity_type_id"])

        if "title" in data:
            data["title"] = (data["title"] or "").strip()
            if not data["title"]:
                raise ValidationError("Title is required", field="title")

        if "party_size" in data:
            party_size = data["party_size"]
            if not isinstance(party_size, int) or isinstance(party_size, bool) or party_size <= 0:
                raise ValidationError("Party size must be a positive integer", field="party_size")

        for field in PRICE_FIELDS:
            if field in data:
                data[field] = validate_price(data[field], field)

        return data

    async def create_activity(
        self,
        activity_type_id: str,
        title: str,
        party_size: int,
        adult_price: Any = 0,
        child_price: Any = 0,
        senior_price: Any = 0,
        status: bool = True,
    ) -> Activity:
        """Create a new activity with validation"""
        data = await self._validate_fields({
            "activity_type_id": activity_type_id,
            "title": title,
            "party_size": party_size,
            "adult_price": adult_price,
            "child_price": child_price,
            "senior_price": senior_price,
        })
        data["status"] = status

        activity = await self.activity_repo.create(obj_in=data)
        logger.info("Activity %s created (%s)", activity.id, activity.title)
        return await self.get_activity(activity.id)

    async def get_activity(self, activity_id: str) -> Activity:
        activity = await self.activity_repo.get(activity_id)
        if not activity:
            raise NotFoundError("Activity", activity_id)
        return activity

    async def list_activities(
        self,
        *,
        status: Optional[bool] = None,
        skip: int = 0,
        limit: int = 10,
    ) -> Tuple[List[Activity], int]:
        return await self.activity_repo.list_paginated(status=status, skip=skip, limit=limit)

    async def update_activity(self, activity_id: str, changes: Dict[str, Any]) -> Activity:
        """Update provided fields only.

        Prices apply to future bookings; existing bookings keep their
        snapshot.
        """
        await self.get_activity(activity_id)
        data = await self._validate_fields(dict(changes))
        if data:
            await self.activity_repo.update(id=activity_id, obj_in=data)
        return await self.get_activity(activity_id)

    async def set_status(self, activity_id: str, status: bool) -> Activity:
        await self.get_activity(activity_id)
        await self.activity_repo.update(id=activity_id, obj_in={"status": status})
        return await self.get_activity(activity_id)

    async def delete_activity(self, activity_id: str) -> Activity:
        """Delete an activity that has no live bookings.

        Its schedules, guide assignments and cancelled bookings go with it.
        """
        activity = await self.get_activity(activity_id)

        live = await self.booking_repo.count_active_by_activity(activity_id)
        if live > 0:
            raise ConflictError(
                "Cannot delete activity with existing bookings",
                reason="has_bookings",
                bookings=live,
            )

        schedule_ids = select(ActivitySchedule.id).where(ActivitySchedule.activity_id == activity_id)
        await self.session.execute(
            delete(Booking).where(Booking.activity_schedule_id.in_(schedule_ids))
            .execution_options(synchronize_session=False)
        )
        await self.session.execute(
            delete(ActivityAssignment).where(ActivityAssignment.activity_schedule_id.in_(schedule_ids))
            .execution_options(synchronize_session=False)
        )
        await self.session.execute(
            delete(ActivitySchedule).where(ActivitySchedule.activity_id == activity_id)
            .execution_options(synchronize_session=False)
        )
        await self.session.delete(activity)
        await self.session.flush()

        logger.info("Activity %s deleted", activity_id)
        return activity
