"""Schedule registry: occurrences of an activity and their seat availability.

Occurrence times are absolute (UTC in storage). Wall-clock inputs such as
bulk-generation slots and date filters are interpreted in the configured
business timezone.
"""

import logging
import re
from dataclasses import dataclass, field
from datetime import date, datetime, time, timedelta, timezone
from typing import Optional, List, Dict, Any, Sequence

import pytz
from sqlalchemy import delete

from tourops.core import (
    BaseService, NotFoundError, ValidationError, ConflictError, CapacityExceededError,
    get_settings
)
from tourops.infrastructure.repositories import (
    ScheduleRepository, ActivityRepository, BookingRepository
)
from tourops.models import ActivitySchedule, ActivityAssignment, Booking
from tourops.services.activity_service import PRICE_FIELDS, validate_price

logger = logging.getLogger(__name__)

_HHMM = re.compile(r"^([01]\d|2[0-3]):([0-5]\d)$")


@dataclass(frozen=True)
class TimeSlot:
    """Daily time window used as bulk-generation input"""

    start_time: str
    end_time: str
    capacity: int


@dataclass(frozen=True)
class ScheduleConflict:
    date: date
    time_slot: TimeSlot
    reason: str
    conflicting_schedule_ids: tuple = ()


@dataclass
class BulkScheduleResult:
    created: int = 0
    conflicts: List[ScheduleConflict] = field(default_factory=list)
    schedules: List[ActivitySchedule] = field(default_factory=list)


@dataclass(frozen=True)
class Availability:
    """Seat accounting for one occurrence, always derived from current state"""

    schedule_id: str
    activity_id: str
    activity_title: Optional[str]
    scheduled_start: datetime
    scheduled_end: datetime
    status: bool
    capacity: int
    booked_count: int

    @property
    def available_spaces(self) -> int:
        return max(0, self.capacity - self.booked_count)

    @classmethod
    def of(cls, schedule: ActivitySchedule, activity_title: Optional[str] = None) -> "Availability":
        return cls(
            schedule_id=schedule.id,
            activity_id=schedule.activity_id,
            activity_title=activity_title,
            scheduled_start=schedule.scheduled_start,
            scheduled_end=schedule.scheduled_end,
            status=schedule.status,
            capacity=schedule.capacity,
            booked_count=schedule.booked_count,
        )


def parse_hhmm(value: str, field_name: str) -> time:
    """Parse a zero-padded 24h HH:mm string"""
    match = _HHMM.match((value or "").strip())
    if not match:
        raise ValidationError(f"{field_name} must use HH:mm format", field=field_name)
    return time(hour=int(match.group(1)), minute=int(match.group(2)))


def parse_iso_date(value: Any, field_name: str) -> date:
    """Parse YYYY-MM-DD, rejecting impossible dates such as 2024-02-30"""
    if isinstance(value, date) and not isinstance(value, datetime):
        return value
    try:
        return date.fromisoformat(str(value).strip())
    except ValueError:
        raise ValidationError(f"{field_name} must be a valid date (YYYY-MM-DD)", field=field_name)


def require_aware(value: datetime, field_name: str) -> datetime:
    if value.tzinfo is None or value.tzinfo.utcoffset(value) is None:
        raise ValidationError(f"{field_name} must include a timezone offset", field=field_name)
    return value.astimezone(timezone.utc)


class ScheduleService(BaseService):
    """Schedule (occurrence) registry"""

    def __init__(
        self,
        session,
        schedule_repo: Optional[ScheduleRepository] = None,
        activity_repo: Optional[ActivityRepository] = None,
        booking_repo: Optional[BookingRepository] = None,
        settings=None,
    ):
        super().__init__(session)
        self.schedule_repo = schedule_repo or ScheduleRepository(session)
        self.activity_repo = activity_repo or ActivityRepository(session)
        self.booking_repo = booking_repo or BookingRepository(session)
        self.settings = settings or get_settings()

    # ------------------------------------------------------------------
    #  Time helpers
    # ------------------------------------------------------------------

    def _local_to_utc(self, day: date, at: time) -> datetime:
        local = self.settings.tz.localize(datetime.combine(day, at))
        return local.astimezone(timezone.utc)

    def _slot_to_utc(self, day: date, at: time) -> datetime:
        """Like _local_to_utc, but a wall-clock time skipped by a DST jump
        raises pytz.NonExistentTimeError. Repeated times take the later
        (standard time) instant.
        """
        naive = datetime.combine(day, at)
        try:
            local = self.settings.tz.localize(naive, is_dst=None)
        except pytz.AmbiguousTimeError:
            local = self.settings.tz.localize(naive, is_dst=False)
        return local.astimezone(timezone.utc)

    def _day_bounds(self, start_date: Optional[date], end_date: Optional[date]):
        """UTC bounds covering whole local calendar days, end inclusive"""
        lower = self._local_to_utc(start_date, time.min) if start_date else None
        upper = self._local_to_utc(end_date + timedelta(days=1), time.min) if end_date else None
        if start_date and end_date and start_date > end_date:
            raise ValidationError("startDate must be on or before endDate", field="start_date")
        return lower, upper

    # ------------------------------------------------------------------
    #  Queries
    # ------------------------------------------------------------------

    async def get_schedule(self, schedule_id: str) -> ActivitySchedule:
        schedule = await self.schedule_repo.get_with_activity(schedule_id)
        if not schedule:
            raise NotFoundError("Schedule", schedule_id)
        return schedule

    async def list_schedules(self, activity_id: str) -> List[ActivitySchedule]:
        """All schedules of an activity ordered by start"""
        await self._get_activity(activity_id)
        return await self.schedule_repo.list_with_activity(activity_id=activity_id)

    async def get_availability(self, schedule_id: str) -> Availability:
        """Capacity, booked count and available spaces, re-read on every call"""
        schedule = await self.get_schedule(schedule_id)
        return Availability.of(schedule, schedule.activity.title if schedule.activity else None)

    async def list_available_schedules(
        self,
        activity_id: str,
        start_date: Optional[date] = None,
        end_date: Optional[date] = None,
    ) -> List[Availability]:
        """Occurrences of one activity with availability, sorted by start"""
        await self._get_activity(activity_id)
        return await self.list_availability(activity_id=activity_id, start_date=start_date, end_date=end_date)

    async def list_availability(
        self,
        activity_id: Optional[str] = None,
        start_date: Optional[date] = None,
        end_date: Optional[date] = None,
    ) -> List[Availability]:
        lower, upper = self._day_bounds(start_date, end_date)
        schedules = await self.schedule_repo.list_with_activity(
            activity_id=activity_id,
            starts_from=lower,
            starts_before=upper,
        )
        return [Availability.of(s, s.activity.title if s.activity else None) for s in schedules]

    # ------------------------------------------------------------------
    #  Single occurrence CRUD
    # ------------------------------------------------------------------

    async def _get_activity(self, activity_id: str):
        activity = await self.activity_repo.get(activity_id)
        if not activity:
            raise NotFoundError("Activity", activity_id)
        return activity

    def _validate_capacity(self, capacity: Any) -> int:
        if not isinstance(capacity, int) or isinstance(capacity, bool) or capacity < 0:
            raise ValidationError("Capacity must be a non-negative integer", field="capacity")
        return capacity

    async def _ensure_no_overlap(
        self,
        activity_id: str,
        start: datetime,
        end: datetime,
        exclude_id: Optional[str] = None,
    ) -> None:
        clashes = await self.schedule_repo.find_overlapping(activity_id, start, end, exclude_id=exclude_id)
        if clashes:
            raise ConflictError(
                "Schedule overlaps an existing active schedule of this activity",
                reason="overlap",
                conflicting_schedule_ids=[s.id for s in clashes],
            )

    async def create_schedule(
        self,
        activity_id: str,
        scheduled_start: datetime,
        scheduled_end: datetime,
        capacity: Optional[int] = None,
        status: bool = True,
        prices: Optional[Dict[str, Any]] = None,
        assignments: Optional[Sequence] = None,
        auto_assign: bool = False,
        validate_overlaps: bool = True,
    ) -> ActivitySchedule:
        """Create one occurrence.

        Capacity defaults to the activity's party size. Explicit guide
        assignments win; auto-assignment only runs when none are given.
        """
        activity = await self.schedule_repo.lock_activity(activity_id)
        if not activity:
            raise NotFoundError("Activity", activity_id)

        start = require_aware(scheduled_start, "scheduled_start")
        end = require_aware(scheduled_end, "scheduled_end")
        if end <= start:
            raise ValidationError("scheduledEnd must be after scheduledStart", field="scheduled_end")

        capacity = activity.party_size if capacity is None else self._validate_capacity(capacity)

        data: Dict[str, Any] = {
            "activity_id": activity_id,
            "scheduled_start": start,
            "scheduled_end": end,
            "capacity": capacity,
            "booked_count": 0,
            "status": status,
        }
        for name, value in (prices or {}).items():
            if name in PRICE_FIELDS and value is not None:
                data[name] = validate_price(value, name)

        if validate_overlaps and status:
            await self._ensure_no_overlap(activity_id, start, end)

        schedule = await self.schedule_repo.create(obj_in=data)
        logger.info("Schedule %s created for activity %s (%s - %s, capacity %s)",
                    schedule.id, activity_id, start.isoformat(), end.isoformat(), capacity)

        # Imported here: the assignment service depends on schedule lookups too
        from tourops.services.assignment_service import AssignmentService

        if assignments:
            await AssignmentService(self.session).replace_assignments(schedule.id, assignments)
        elif auto_assign:
            await AssignmentService(self.session).auto_assign(schedule.id, capacity)

        return await self.get_schedule(schedule.id)

    async def update_schedule(self, schedule_id: str, changes: Dict[str, Any]) -> ActivitySchedule:
        """Update times, capacity, status or price overrides of an occurrence"""
        schedule = await self.schedule_repo.lock_for_update(schedule_id)
        if not schedule:
            raise NotFoundError("Schedule", schedule_id)

        data: Dict[str, Any] = {}
        start = schedule.scheduled_start
        end = schedule.scheduled_end

        if changes.get("scheduled_start") is not None:
            start = data["scheduled_start"] = require_aware(changes["scheduled_start"], "scheduled_start")
        if changes.get("scheduled_end") is not None:
            end = data["scheduled_end"] = require_aware(changes["scheduled_end"], "scheduled_end")
        if end <= start:
            raise ValidationError("scheduledEnd must be after scheduledStart", field="scheduled_end")

        if changes.get("capacity") is not None:
            capacity = self._validate_capacity(changes["capacity"])
            if capacity < schedule.booked_count:
                raise ConflictError(
                    f"Cannot set capacity to {capacity}, {schedule.booked_count} seats already booked",
                    reason="capacity_below_booked",
                    booked_count=schedule.booked_count,
                )
            data["capacity"] = capacity

        status = schedule.status
        if changes.get("status") is not None:
            status = data["status"] = bool(changes["status"])

        for name in PRICE_FIELDS:
            if name in changes:
                value = changes[name]
                data[name] = None if value is None else validate_price(value, name)

        moved = "scheduled_start" in data or "scheduled_end" in data
        if status and (moved or (not schedule.status and status)):
            await self._ensure_no_overlap(schedule.activity_id, start, end, exclude_id=schedule_id)

        if data:
            await self.schedule_repo.update(id=schedule_id, obj_in=data)
            logger.info("Schedule %s updated: %s", schedule_id, sorted(data))

        return await self.get_schedule(schedule_id)

    async def set_status(self, schedule_id: str, status: bool) -> ActivitySchedule:
        return await self.update_schedule(schedule_id, {"status": status})

    async def delete_schedule(self, schedule_id: str) -> bool:
        """Delete an occurrence with no live bookings; cancelled ones go with it"""
        schedule = await self.schedule_repo.lock_for_update(schedule_id)
        if not schedule:
            raise NotFoundError("Schedule", schedule_id)

        live = await self.booking_repo.count_active_by_schedule(schedule_id)
        if live > 0:
            raise ConflictError(
                "Cannot delete schedule with existing bookings",
                reason="has_bookings",
                bookings=live,
            )

        await self.session.execute(
            delete(Booking).where(Booking.activity_schedule_id == schedule_id)
            .execution_options(synchronize_session=False)
        )
        await self.session.execute(
            delete(ActivityAssignment).where(ActivityAssignment.activity_schedule_id == schedule_id)
            .execution_options(synchronize_session=False)
        )
        await self.session.delete(schedule)
        await self.session.flush()
        logger.info("Schedule %s deleted", schedule_id)
        return True

    async def add_attendees(self, schedule_id: str, quantity: int) -> Availability:
        """Seat walk-in attendees that have no booking record"""
        if not isinstance(quantity, int) or isinstance(quantity, bool) or quantity < 1:
            raise ValidationError("quantity must be at least 1", field="quantity")

        schedule = await self.get_schedule(schedule_id)
        if not schedule.status:
            raise ValidationError("Schedule is not active", field="status")

        if not await self.schedule_repo.adjust_booked_count(schedule_id, quantity, walk_ins=quantity):
            availability = await self.get_availability(schedule_id)
            logger.warning("Walk-in attendees rejected on schedule %s: requested %s, available %s",
                           schedule_id, quantity, availability.available_spaces)
            raise CapacityExceededError(requested=quantity, available=availability.available_spaces)

        logger.info("Schedule %s: %s walk-in attendees added", schedule_id, quantity)
        return await self.get_availability(schedule_id)

    async def recount(self, schedule_id: str) -> Availability:
        """Recompute booked_count from non-cancelled bookings plus walk-ins"""
        schedule = await self.schedule_repo.lock_for_update(schedule_id)
        if not schedule:
            raise NotFoundError("Schedule", schedule_id)

        taken = await self.schedule_repo.get_seats_taken(schedule_id) + schedule.walk_in_count
        if taken != schedule.booked_count:
            logger.warning("Schedule %s booked_count drifted: stored %s, actual %s",
                           schedule_id, schedule.booked_count, taken)
            if taken > schedule.capacity:
                raise ConflictError(
                    f"Bookings hold {taken} seats but capacity is {schedule.capacity}",
                    reason="over_capacity",
                    booked_count=taken,
                )
            await self.schedule_repo.update(id=schedule_id, obj_in={"booked_count": taken})

        return await self.get_availability(schedule_id)

    # ------------------------------------------------------------------
    #  Bulk generation
    # ------------------------------------------------------------------

    def _validate_bulk_request(
        self,
        start_date: Any,
        end_date: Any,
        time_slots: Sequence[TimeSlot],
    ) -> List[tuple]:
        """Check the whole request up front; returns parsed (slot, start, end) triples"""
        if not isinstance(start_date, date) or not isinstance(end_date, date):
            raise ValidationError("startDate and endDate must be calendar dates (YYYY-MM-DD)", field="start_date")
        if isinstance(start_date, datetime) or isinstance(end_date, datetime):
            raise ValidationError("startDate and endDate must not include a time", field="start_date")
        if start_date > end_date:
            raise ValidationError("startDate must be on or before endDate", field="start_date")

        days = (end_date - start_date).days + 1
        if days > self.settings.BULK_MAX_DAYS:
            raise ValidationError(
                f"Date range spans {days} days, maximum is {self.settings.BULK_MAX_DAYS}",
                field="end_date",
            )

        if not time_slots:
            raise ValidationError("At least one time slot is required", field="time_slots")

        parsed = []
        for index, slot in enumerate(time_slots):
            prefix = f"time_slots[{index}]"
            if not slot.start_time or not slot.end_time:
                raise ValidationError(f"{prefix}: startTime and endTime are required", field=prefix)
            slot_start = parse_hhmm(slot.start_time, f"{prefix}.start_time")
            slot_end = parse_hhmm(slot.end_time, f"{prefix}.end_time")
            if slot_start >= slot_end:
                raise ValidationError(f"{prefix}: startTime must be before endTime", field=prefix)
            if not isinstance(slot.capacity, int) or isinstance(slot.capacity, bool) or slot.capacity <= 0:
                raise ValidationError(f"{prefix}: capacity must be greater than 0", field=f"{prefix}.capacity")
            parsed.append((slot, slot_start, slot_end))
        return parsed

    async def bulk_create_schedules(
        self,
        activity_id: str,
        start_date: date,
        end_date: date,
        time_slots: Sequence[TimeSlot],
        validate_overlaps: bool = True,
    ) -> BulkScheduleResult:
        """Create one occurrence per (date in range) x (time slot).

        Invalid input fails the whole request before anything is written.
        Candidates overlapping an active occurrence of the same activity, or
        whose local times fall in a DST gap, are skipped and reported; the
        rest are created.
        """
        parsed = self._validate_bulk_request(start_date, end_date, time_slots)

        # Serialises concurrent bulk requests for the same activity
        activity = await self.schedule_repo.lock_activity(activity_id)
        if not activity:
            raise NotFoundError("Activity", activity_id)

        result = BulkScheduleResult()
        day = start_date
        while day <= end_date:
            for slot, slot_start, slot_end in parsed:
                try:
                    start = self._slot_to_utc(day, slot_start)
                    end = self._slot_to_utc(day, slot_end)
                except pytz.NonExistentTimeError:
                    start = end = None
                if start is None or end <= start:
                    result.conflicts.append(ScheduleConflict(
                        date=day, time_slot=slot, reason="nonexistent_local_time"
                    ))
                    continue

                if validate_overlaps:
                    clashes = await self.schedule_repo.find_overlapping(activity_id, start, end)
                    if clashes:
                        result.conflicts.append(ScheduleConflict(
                            date=day,
                            time_slot=slot,
                            reason="overlap",
                            conflicting_schedule_ids=tuple(s.id for s in clashes),
                        ))
                        continue

                schedule = await self.schedule_repo.create(obj_in={
                    "activity_id": activity_id,
                    "scheduled_start": start,
                    "scheduled_end": end,
                    "capacity": slot.capacity,
                    "booked_count": 0,
                    "status": True,
                })
                result.schedules.append(schedule)
                result.created += 1
            day += timedelta(days=1)

        logger.info("Bulk generation for activity %s (%s..%s): %s created, %s conflicts",
                    activity_id, start_date, end_date, result.created, len(result.conflicts))
        return result
