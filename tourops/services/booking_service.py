import logging
from dataclasses import dataclass
from datetime import datetime, timezone
from decimal import Decimal, InvalidOperation
from typing import Optional, List, Dict, Any, Tuple

import phonenumbers

from tourops.core import (
    BaseService,
    NotFoundError,
    ValidationError,
    CapacityExceededError,
    CountMismatchError,
)
from tourops.infrastructure.repositories import (
    BookingRepository, ScheduleRepository, CompanyRepository
)
from tourops.models import Booking, ActivitySchedule
from tourops.services.pricing import (
    CategoryPrices, PartyCounts, resolve_prices, compute_total, commission_amount
)
from tourops.services.schedule_service import Availability, ScheduleService

logger = logging.getLogger(__name__)

BOOKING_STATUSES = ("pending", "confirmed", "cancelled")

# Fields a caller may supply when creating or updating a booking
BOOKING_FIELDS = (
    "activity_schedule_id",
    "company_id",
    "transport",
    "number_of_people",
    "adult_count",
    "child_count",
    "senior_count",
    "passenger_count",
    "commission_percentage",
    "customer_name",
    "customer_email",
    "customer_phone",
    "status",
)


def normalize_phone(phone_number: Optional[str], field: str = "customer_phone") -> Optional[str]:
    """Validate a phone number and format it as E.164.

    Numbers must carry a country code (e.g. +44 20 7946 0958).
    Blank input is treated as no phone.
    """
    if not phone_number or phone_number.strip() == "":
        return None

    try:
        parsed = phonenumbers.parse(phone_number, None)
    except phonenumbers.NumberParseException:
        raise ValidationError(
            "Invalid phone number format. Please include country code (e.g. +1).",
            field=field,
        )

    if not phonenumbers.is_valid_number(parsed):
        raise ValidationError("Invalid phone number", field=field)

    return phonenumbers.format_number(parsed, phonenumbers.PhoneNumberFormat.E164)


def _require_int(value: Any, field: str, *, minimum: int) -> int:
    if not isinstance(value, int) or isinstance(value, bool):
        raise ValidationError(f"{field} must be an integer", field=field)
    if value < minimum:
        raise ValidationError(f"{field} must be greater than or equal to {minimum}", field=field)
    return value


@dataclass
class BookingResult:
    """A booking together with the availability of its schedule after the change"""

    booking: Booking
    availability: Availability


@dataclass(frozen=True)
class Quote:
    schedule_id: str
    counts: PartyCounts
    prices: CategoryPrices
    total_amount: Decimal
    commission_percentage: Decimal
    commission_amount: Decimal


class BookingService(BaseService):
    """Booking ledger: seat reservations against schedule capacity"""

    def __init__(
        self,
        session,
        booking_repo: Optional[BookingRepository] = None,
        schedule_repo: Optional[ScheduleRepository] = None,
        company_repo: Optional[CompanyRepository] = None,
    ):
        super().__init__(session)
        self.booking_repo = booking_repo or BookingRepository(session)
        self.schedule_repo = schedule_repo or ScheduleRepository(session)
        self.company_repo = company_repo or CompanyRepository(session)
        self.schedule_service = ScheduleService(session, schedule_repo=self.schedule_repo)

    # ------------------------------------------------------------------
    #  Validation
    # ------------------------------------------------------------------

    async def _get_active_schedule(self, schedule_id: Optional[str]) -> ActivitySchedule:
        if not schedule_id:
            raise ValidationError("activityScheduleId is required", field="activity_schedule_id")
        schedule = await self.schedule_repo.get_with_activity(schedule_id)
        if not schedule:
            raise NotFoundError("Schedule", schedule_id)
        if not schedule.status:
            raise ValidationError("Schedule is not active", field="activity_schedule_id")
        return schedule

    async def _resolve_commission(self, company_id: Optional[str], explicit: Any) -> Decimal:
        """Explicit commission wins (0 included); otherwise the company default"""
        if not company_id:
            return Decimal("0")

        company = await self.company_repo.get(company_id)
        if not company:
            raise NotFoundError("Company", company_id)
        if not company.status:
            raise ValidationError("Company is not active", field="company_id")

        value = company.commission_percentage if explicit is None else explicit
        try:
            pct = Decimal(str(value))
        except (InvalidOperation, ValueError):
            raise ValidationError("commissionPercentage must be a number", field="commission_percentage")
        if not pct.is_finite() or pct < 0 or pct > 100:
            raise ValidationError(
                "commissionPercentage must be between 0 and 100", field="commission_percentage"
            )
        return pct

    async def _validate(self, data: Dict[str, Any], available: int) -> Dict[str, Any]:
        """Run the booking rules in order and return normalised column values.

        *available* is the number of seats this booking may hold on its
        schedule, i.e. free seats plus whatever the booking already holds.
        """
        name = (data.get("customer_name") or "").strip()
        if not name:
            raise ValidationError("Customer name is required", field="customer_name")

        people = data.get("number_of_people")
        if people is None:
            raise ValidationError("numberOfPeople is required", field="number_of_people")
        people = _require_int(people, "number_of_people", minimum=1)
        if people > available:
            raise CapacityExceededError(requested=people, available=available)

        counts = PartyCounts(
            adult=_require_int(data.get("adult_count") or 0, "adult_count", minimum=0),
            child=_require_int(data.get("child_count") or 0, "child_count", minimum=0),
            senior=_require_int(data.get("senior_count") or 0, "senior_count", minimum=0),
        )
        if counts.total != people:
            raise CountMismatchError(computed=counts.total, required=people)

        transport = bool(data.get("transport"))
        passenger_count = None
        if transport:
            passenger_count = data.get("passenger_count")
            if passenger_count is None:
                raise ValidationError(
                    "passengerCount is required when transport is requested", field="passenger_count"
                )
            passenger_count = _require_int(passenger_count, "passenger_count", minimum=1)

        company_id = data.get("company_id") or None
        commission = await self._resolve_commission(company_id, data.get("commission_percentage"))

        status = data.get("status") or "pending"
        if status not in ("pending", "confirmed"):
            raise ValidationError("status must be 'pending' or 'confirmed'", field="status")

        email = data.get("customer_email")
        email = email.strip() if isinstance(email, str) and email.strip() else None

        return {
            "activity_schedule_id": data["activity_schedule_id"],
            "customer_name": name,
            "customer_email": email,
            "customer_phone": normalize_phone(data.get("customer_phone")),
            "number_of_people": people,
            "adult_count": counts.adult,
            "child_count": counts.child,
            "senior_count": counts.senior,
            "transport": transport,
            "passenger_count": passenger_count,
            "company_id": company_id,
            "commission_percentage": commission,
            "status": status,
        }

    async def _reserve(self, schedule_id: str, delta: int, requested: int, held: int = 0) -> None:
        """Apply a seat delta through the guarded counter update"""
        if delta == 0:
            return
        if await self.schedule_repo.adjust_booked_count(schedule_id, delta):
            return

        availability = await self.schedule_service.get_availability(schedule_id)
        logger.warning("Seat reservation rejected on schedule %s: requested %s, available %s",
                       schedule_id, requested, availability.available_spaces + held)
        raise CapacityExceededError(requested=requested, available=availability.available_spaces + held)

    async def _release(self, schedule_id: str, seats: int) -> None:
        if seats <= 0:
            return
        if not await self.schedule_repo.adjust_booked_count(schedule_id, -seats):
            # Counter is below what this booking holds; leave it for recount
            logger.warning("Schedule %s booked_count lower than %s released seats, not decremented",
                           schedule_id, seats)

    async def _result(self, booking_id: str, schedule_id: str) -> BookingResult:
        booking = await self.get_booking(booking_id)
        availability = await self.schedule_service.get_availability(schedule_id)
        return BookingResult(booking=booking, availability=availability)

    # ------------------------------------------------------------------
    #  Commands
    # ------------------------------------------------------------------

    async def create_booking(self, payload: Dict[str, Any]) -> BookingResult:
        """Validate and store a booking, reserving its seats on the schedule"""
        data = {k: v for k, v in payload.items() if k in BOOKING_FIELDS}

        schedule = await self._get_active_schedule(data.get("activity_schedule_id"))
        values = await self._validate(data, available=schedule.available_spaces)

        prices = resolve_prices(schedule.activity, schedule)
        counts = PartyCounts(values["adult_count"], values["child_count"], values["senior_count"])
        values.update(
            adult_price=prices.adult,
            child_price=prices.child,
            senior_price=prices.senior,
            total_amount=compute_total(counts, prices),
        )

        people = values["number_of_people"]
        await self._reserve(schedule.id, people, requested=people)
        booking = await self.booking_repo.create(obj_in=values)

        logger.info("Booking %s created on schedule %s: %s seats reserved",
                    booking.id, schedule.id, people)
        return await self._result(booking.id, schedule.id)

    async def update_booking(self, booking_id: str, changes: Dict[str, Any]) -> BookingResult:
        """Merge *changes* over the stored booking and re-validate.

        Seat deltas go through the guarded counter; moving to another
        schedule releases the old seats and reserves the full count there.
        """
        booking = await self.booking_repo.lock_for_update(booking_id)
        if not booking:
            raise NotFoundError("Booking", booking_id)

        changes = {k: v for k, v in changes.items() if k in BOOKING_FIELDS}
        if changes.get("status") == "cancelled":
            return await self.cancel_booking(booking_id)
        if booking.status == "cancelled":
            raise ValidationError("Cancelled bookings cannot be updated", field="status")

        merged = {field: getattr(booking, field) for field in BOOKING_FIELDS}
        merged.update(changes)

        # A new company without explicit commission takes the company default
        if "commission_percentage" not in changes and merged.get("company_id") != booking.company_id:
            merged["commission_percentage"] = None
        if not merged.get("activity_schedule_id"):
            raise ValidationError("activityScheduleId is required", field="activity_schedule_id")

        old_schedule_id = booking.activity_schedule_id
        old_people = booking.number_of_people
        moved = merged["activity_schedule_id"] != old_schedule_id

        if moved:
            schedule = await self._get_active_schedule(merged["activity_schedule_id"])
            held = 0
        else:
            schedule = await self.schedule_repo.get_with_activity(old_schedule_id)
            held = old_people

        values = await self._validate(merged, available=schedule.available_spaces + held)
        new_people = values["number_of_people"]
        # An inactive occurrence keeps existing seats but takes no new ones
        if not moved and new_people > old_people and not schedule.status:
            raise ValidationError("Schedule is not active", field="activity_schedule_id")

        counts = PartyCounts(values["adult_count"], values["child_count"], values["senior_count"])
        if moved:
            prices = resolve_prices(schedule.activity, schedule)
            values.update(adult_price=prices.adult, child_price=prices.child, senior_price=prices.senior)
        else:
            prices = CategoryPrices(booking.adult_price, booking.child_price, booking.senior_price)
        values["total_amount"] = compute_total(counts, prices)

        if moved:
            await self._reserve(schedule.id, new_people, requested=new_people)
            await self._release(old_schedule_id, old_people)
        else:
            await self._reserve(schedule.id, new_people - old_people, requested=new_people, held=old_people)

        await self.booking_repo.update(id=booking_id, obj_in=values)

        if moved:
            logger.info("Booking %s moved from schedule %s to %s: %s seats released, %s reserved",
                        booking_id, old_schedule_id, schedule.id, old_people, new_people)
        else:
            logger.info("Booking %s updated on schedule %s: seat delta %s",
                        booking_id, schedule.id, new_people - old_people)
        return await self._result(booking_id, schedule.id)

    async def cancel_booking(self, booking_id: str) -> BookingResult:
        """Cancel a booking and release its seats. Repeated calls change nothing."""
        booking = await self.booking_repo.lock_for_update(booking_id)
        if not booking:
            raise NotFoundError("Booking", booking_id)

        if booking.status == "cancelled":
            logger.info("Booking %s already cancelled", booking_id)
            return await self._result(booking_id, booking.activity_schedule_id)

        await self._release(booking.activity_schedule_id, booking.number_of_people)
        await self.booking_repo.update(id=booking_id, obj_in={
            "status": "cancelled",
            "cancelled_at": datetime.now(timezone.utc),
        })

        logger.info("Booking %s cancelled: %s seats released on schedule %s",
                    booking_id, booking.number_of_people, booking.activity_schedule_id)
        return await self._result(booking_id, booking.activity_schedule_id)

    # ------------------------------------------------------------------
    #  Queries
    # ------------------------------------------------------------------

    async def get_booking(self, booking_id: str) -> Booking:
        booking = await self.booking_repo.get_with_details(booking_id)
        if not booking:
            raise NotFoundError("Booking", booking_id)
        return booking

    async def list_bookings(
        self,
        *,
        status: Optional[str] = None,
        activity_schedule_id: Optional[str] = None,
        skip: int = 0,
        limit: int = 10,
    ) -> Tuple[List[Booking], int]:
        if status and status not in BOOKING_STATUSES:
            raise ValidationError(f"Unknown booking status '{status}'", field="status")
        return await self.booking_repo.list_paginated(
            status=status,
            activity_schedule_id=activity_schedule_id,
            skip=skip,
            limit=limit,
        )

    async def quote(
        self,
        activity_schedule_id: str,
        adult_count: int = 0,
        child_count: int = 0,
        senior_count: int = 0,
        company_id: Optional[str] = None,
        commission_percentage: Any = None,
    ) -> Quote:
        """Price a party on a schedule without reserving anything"""
        schedule = await self.schedule_repo.get_with_activity(activity_schedule_id)
        if not schedule:
            raise NotFoundError("Schedule", activity_schedule_id)

        counts = PartyCounts(
            adult=_require_int(adult_count, "adult_count", minimum=0),
            child=_require_int(child_count, "child_count", minimum=0),
            senior=_require_int(senior_count, "senior_count", minimum=0),
        )
        prices = resolve_prices(schedule.activity, schedule)
        total = compute_total(counts, prices)
        pct = await self._resolve_commission(company_id, commission_percentage)

        return Quote(
            schedule_id=schedule.id,
            counts=counts,
            prices=prices,
            total_amount=total,
            commission_percentage=pct,
            commission_amount=commission_amount(total, pct),
        )
