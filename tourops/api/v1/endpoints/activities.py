from typing import List, Optional
from fastapi import APIRouter, Query, status

from tourops.api.v1.schemas import (
    ActivityIn, ActivityUpdate, ActivityOut, MessageOut, Page,
    ScheduleIn, ScheduleOut, BulkScheduleIn, BulkScheduleOut, ScheduleConflictOut,
    TimeSlotIn, AvailabilityOut,
)
from tourops.deps import SessionDep, PaginationDep
from tourops.services import ActivityService, ScheduleService, TimeSlot
from tourops.services.schedule_service import parse_iso_date


router = APIRouter()


@router.get("", response_model=Page[ActivityOut])
async def list_activities(
    sess: SessionDep,
    paging: PaginationDep,
    status: Optional[bool] = Query(None),
):
    """Paginated activity catalog"""
    service = ActivityService(sess)
    items, total = await service.list_activities(status=status, skip=paging.skip, limit=paging.limit)
    return Page[ActivityOut].build(
        [ActivityOut.model_validate(a) for a in items], total, paging.page, paging.limit
    )


@router.post("", response_model=ActivityOut, status_code=status.HTTP_201_CREATED)
async def create_activity(payload: ActivityIn, sess: SessionDep):
    service = ActivityService(sess)
    activity = await service.create_activity(**payload.model_dump())
    await sess.commit()
    return ActivityOut.model_validate(activity)


@router.get("/{activity_id}", response_model=ActivityOut)
async def get_activity(activity_id: str, sess: SessionDep):
    service = ActivityService(sess)
    return ActivityOut.model_validate(await service.get_activity(activity_id))


@router.put("/{activity_id}", response_model=ActivityOut)
async def update_activity(activity_id: str, payload: ActivityUpdate, sess: SessionDep):
    service = ActivityService(sess)
    changes = {k: v for k, v in payload.model_dump(exclude_unset=True).items() if v is not None}
    activity = await service.update_activity(activity_id, changes)
    await sess.commit()
    return ActivityOut.model_validate(activity)


@router.put("/{activity_id}/toggle-status", response_model=ActivityOut)
async def toggle_activity_status(activity_id: str, sess: SessionDep):
    service = ActivityService(sess)
    activity = await service.get_activity(activity_id)
    activity = await service.set_status(activity_id, not activity.status)
    await sess.commit()
    return ActivityOut.model_validate(activity)


@router.delete("/{activity_id}", response_model=MessageOut)
async def delete_activity(activity_id: str, sess: SessionDep):
    service = ActivityService(sess)
    await service.delete_activity(activity_id)
    await sess.commit()
    return MessageOut(message="Activity deleted", id=activity_id)


# ---------------------------------------------------------------------------
#  Schedules of an activity
# ---------------------------------------------------------------------------

@router.get("/{activity_id}/schedules", response_model=List[ScheduleOut])
async def list_activity_schedules(activity_id: str, sess: SessionDep):
    service = ScheduleService(sess)
    schedules = await service.list_schedules(activity_id)
    return [ScheduleOut.model_validate(s) for s in schedules]


@router.post("/{activity_id}/schedules", response_model=ScheduleOut, status_code=status.HTTP_201_CREATED)
async def create_activity_schedule(activity_id: str, payload: ScheduleIn, sess: SessionDep):
    service = ScheduleService(sess)
    schedule = await service.create_schedule(
        activity_id=activity_id,
        scheduled_start=payload.scheduled_start,
        scheduled_end=payload.scheduled_end,
        capacity=payload.capacity,
        status=payload.status,
        prices={
            "adult_price": payload.adult_price,
            "child_price": payload.child_price,
            "senior_price": payload.senior_price,
        },
        assignments=payload.assignments,
        auto_assign=payload.auto_assign,
        validate_overlaps=payload.validate_overlaps,
    )
    await sess.commit()
    return ScheduleOut.model_validate(schedule)


@router.post("/{activity_id}/schedules/bulk", response_model=BulkScheduleOut, status_code=status.HTTP_201_CREATED)
async def bulk_create_schedules(activity_id: str, payload: BulkScheduleIn, sess: SessionDep):
    """Generate occurrences for every date in the range and every time slot"""
    service = ScheduleService(sess)
    result = await service.bulk_create_schedules(
        activity_id=activity_id,
        start_date=parse_iso_date(payload.start_date, "start_date"),
        end_date=parse_iso_date(payload.end_date, "end_date"),
        time_slots=[
            TimeSlot(start_time=s.start_time, end_time=s.end_time, capacity=s.capacity)
            for s in payload.time_slots
        ],
        validate_overlaps=payload.validate_overlaps,
    )
    await sess.commit()

    return BulkScheduleOut(
        created=result.created,
        conflicts=[
            ScheduleConflictOut(
                date=c.date,
                time_slot=TimeSlotIn(
                    start_time=c.time_slot.start_time,
                    end_time=c.time_slot.end_time,
                    capacity=c.time_slot.capacity,
                ),
                reason=c.reason,
                conflicting_schedule_ids=list(c.conflicting_schedule_ids),
            )
            for c in result.conflicts
        ],
        schedule_ids=[s.id for s in result.schedules],
    )


@router.get("/{activity_id}/schedules/available", response_model=List[AvailabilityOut])
async def list_available_schedules(
    activity_id: str,
    sess: SessionDep,
    start_date: Optional[str] = Query(None, alias="startDate"),
    end_date: Optional[str] = Query(None, alias="endDate"),
):
    """Occurrences of the activity with capacity, booked and available seats"""
    service = ScheduleService(sess)
    rows = await service.list_available_schedules(
        activity_id,
        start_date=parse_iso_date(start_date, "start_date") if start_date else None,
        end_date=parse_iso_date(end_date, "end_date") if end_date else None,
    )
    return [AvailabilityOut.model_validate(r) for r in rows]
