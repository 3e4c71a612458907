from datetime import date, datetime
from decimal import Decimal
from typing import Optional, List

from pydantic import AwareDatetime

from .common import CamelModel


class AssignmentIn(CamelModel):
    guide_id: str
    is_leader: bool = False


class AssignmentReplaceIn(CamelModel):
    assignments: List[AssignmentIn]


class AutoAssignIn(CamelModel):
    party_size: Optional[int] = None


class GuideBriefOut(CamelModel):
    id: str
    name: str
    can_lead: bool


class AssignmentOut(CamelModel):
    id: str
    activity_schedule_id: str
    guide_id: str
    guide: Optional[GuideBriefOut] = None
    is_leader: bool
    assigned_at: datetime


class ScheduleIn(CamelModel):
    """Single occurrence; capacity defaults to the activity party size"""
    scheduled_start: AwareDatetime
    scheduled_end: AwareDatetime
    capacity: Optional[int] = None
    status: bool = True
    adult_price: Optional[Decimal] = None
    child_price: Optional[Decimal] = None
    senior_price: Optional[Decimal] = None
    assignments: Optional[List[AssignmentIn]] = None
    auto_assign: bool = False
    validate_overlaps: bool = True


class ScheduleUpdate(CamelModel):
    scheduled_start: Optional[AwareDatetime] = None
    scheduled_end: Optional[AwareDatetime] = None
    capacity: Optional[int] = None
    status: Optional[bool] = None
    adult_price: Optional[Decimal] = None
    child_price: Optional[Decimal] = None
    senior_price: Optional[Decimal] = None


class ScheduleOut(CamelModel):
    id: str
    activity_id: str
    scheduled_start: datetime
    scheduled_end: datetime
    capacity: int
    booked_count: int
    walk_in_count: int = 0
    available_spaces: int
    status: bool
    adult_price: Optional[Decimal] = None
    child_price: Optional[Decimal] = None
    senior_price: Optional[Decimal] = None
    created_at: datetime
    updated_at: datetime


class TimeSlotIn(CamelModel):
    start_time: str
    end_time: str
    capacity: int


class BulkScheduleIn(CamelModel):
    """Dates are YYYY-MM-DD, slot times HH:mm in the business timezone"""
    start_date: str
    end_date: str
    time_slots: List[TimeSlotIn]
    validate_overlaps: bool = True


class ScheduleConflictOut(CamelModel):
    date: date
    time_slot: TimeSlotIn
    reason: str
    conflicting_schedule_ids: List[str] = []


class BulkScheduleOut(CamelModel):
    created: int
    conflicts: List[ScheduleConflictOut]
    schedule_ids: List[str] = []


class AvailabilityOut(CamelModel):
    schedule_id: str
    activity_id: str
    activity_title: Optional[str] = None
    scheduled_start: datetime
    scheduled_end: datetime
    status: bool
    capacity: int
    booked_count: int
    available_spaces: int


class AttendeesIn(CamelModel):
    """Walk-in attendees to seat without a booking"""
    quantity: int
