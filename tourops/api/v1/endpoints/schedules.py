from typing import List, Optional
from fastapi import APIRouter, Query

from tourops.api.v1.schemas import (
    ScheduleUpdate, ScheduleOut, AvailabilityOut, AttendeesIn, MessageOut,
    AssignmentReplaceIn, AutoAssignIn, AssignmentOut,
)
from tourops.deps import SessionDep
from tourops.services import ScheduleService, AssignmentService
from tourops.services.schedule_service import parse_iso_date


router = APIRouter()


@router.get("/availability", response_model=List[AvailabilityOut])
async def list_availability(
    sess: SessionDep,
    activity_id: Optional[str] = Query(None, alias="activityId"),
    start_date: Optional[str] = Query(None, alias="startDate"),
    end_date: Optional[str] = Query(None, alias="endDate"),
):
    """Availability of occurrences across activities, earliest first"""
    service = ScheduleService(sess)
    rows = await service.list_availability(
        activity_id=activity_id,
        start_date=parse_iso_date(start_date, "start_date") if start_date else None,
        end_date=parse_iso_date(end_date, "end_date") if end_date else None,
    )
    return [AvailabilityOut.model_validate(r) for r in rows]


@router.get("/{schedule_id}", response_model=ScheduleOut)
async def get_schedule(schedule_id: str, sess: SessionDep):
    service = ScheduleService(sess)
    return ScheduleOut.model_validate(await service.get_schedule(schedule_id))


@router.put("/{schedule_id}", response_model=ScheduleOut)
async def update_schedule(schedule_id: str, payload: ScheduleUpdate, sess: SessionDep):
    service = ScheduleService(sess)
    schedule = await service.update_schedule(schedule_id, payload.model_dump(exclude_unset=True))
    await sess.commit()
    return ScheduleOut.model_validate(schedule)


@router.put("/{schedule_id}/toggle-status", response_model=ScheduleOut)
async def toggle_schedule_status(schedule_id: str, sess: SessionDep):
    service = ScheduleService(sess)
    schedule = await service.get_schedule(schedule_id)
    schedule = await service.set_status(schedule_id, not schedule.status)
    await sess.commit()
    return ScheduleOut.model_validate(schedule)


@router.delete("/{schedule_id}", response_model=MessageOut)
async def delete_schedule(schedule_id: str, sess: SessionDep):
    service = ScheduleService(sess)
    await service.delete_schedule(schedule_id)
    await sess.commit()
    return MessageOut(message="Schedule deleted", id=schedule_id)


@router.get("/{schedule_id}/availability", response_model=AvailabilityOut)
async def get_availability(schedule_id: str, sess: SessionDep):
    service = ScheduleService(sess)
    return AvailabilityOut.model_validate(await service.get_availability(schedule_id))


@router.post("/{schedule_id}/attendees", response_model=AvailabilityOut)
async def add_attendees(schedule_id: str, payload: AttendeesIn, sess: SessionDep):
    """Seat walk-in attendees on the schedule's capacity"""
    service = ScheduleService(sess)
    availability = await service.add_attendees(schedule_id, payload.quantity)
    await sess.commit()
    return AvailabilityOut.model_validate(availability)


@router.post("/{schedule_id}/recount", response_model=AvailabilityOut)
async def recount_schedule(schedule_id: str, sess: SessionDep):
    """Rebuild booked_count from non-cancelled bookings and walk-ins"""
    service = ScheduleService(sess)
    availability = await service.recount(schedule_id)
    await sess.commit()
    return AvailabilityOut.model_validate(availability)


# ---------------------------------------------------------------------------
#  Guide assignments
# ---------------------------------------------------------------------------

@router.get("/{schedule_id}/assignments", response_model=List[AssignmentOut])
async def list_assignments(schedule_id: str, sess: SessionDep):
    service = AssignmentService(sess)
    assignments = await service.list_assignments(schedule_id)
    return [AssignmentOut.model_validate(a) for a in assignments]


@router.put("/{schedule_id}/assignments", response_model=List[AssignmentOut])
async def replace_assignments(schedule_id: str, payload: AssignmentReplaceIn, sess: SessionDep):
    """Replace all guide assignments of a schedule"""
    service = AssignmentService(sess)
    assignments = await service.replace_assignments(schedule_id, payload.assignments)
    await sess.commit()
    return [AssignmentOut.model_validate(a) for a in assignments]


@router.post("/{schedule_id}/assignments/auto", response_model=List[AssignmentOut])
async def auto_assign(schedule_id: str, sess: SessionDep, payload: Optional[AutoAssignIn] = None):
    service = AssignmentService(sess)
    assignments = await service.auto_assign(schedule_id, payload.party_size if payload else None)
    await sess.commit()
    return [AssignmentOut.model_validate(a) for a in assignments]
