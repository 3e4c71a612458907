"""
Booking ledger tests: capacity accounting, party composition, transport,
commission and the create/update/cancel lifecycle.
"""

import logging
from decimal import Decimal

import pytest

from tourops.core import (
    NotFoundError, ValidationError, CapacityExceededError, CountMismatchError
)
from tourops.infrastructure.repositories import ScheduleRepository
from tourops.services import BookingService, CompanyService, ScheduleService
from tourops.services.booking_service import normalize_phone

from conftest import booking_payload


async def _booked(session, schedule_id):
    return (await ScheduleService(session).get_availability(schedule_id)).booked_count


class TestCreateBooking:

    @pytest.mark.asyncio
    async def test_reserves_seats_and_snapshots_prices(self, session, make_activity, make_schedule):
        activity = await make_activity(adult="20.00", child="10.00", senior="15.00")
        schedule = await make_schedule(activity, capacity=10)

        result = await BookingService(session).create_booking(booking_payload(
            schedule.id, people=4, adult_count=2, child_count=1, senior_count=1,
        ))

        booking = result.booking
        assert booking.status == "pending"
        assert booking.adult_count + booking.child_count + booking.senior_count == booking.number_of_people
        assert booking.total_amount == Decimal("65.00")
        assert booking.adult_price == Decimal("20.00")
        assert result.availability.booked_count == 4
        assert result.availability.available_spaces == 6

    @pytest.mark.asyncio
    async def test_full_capacity_then_rejected(self, session, make_activity, make_schedule):
        activity = await make_activity()
        schedule = await make_schedule(activity, capacity=10)
        service = BookingService(session)

        result = await service.create_booking(booking_payload(schedule.id, people=10))
        assert result.availability.available_spaces == 0

        with pytest.raises(CapacityExceededError) as exc:
            await service.create_booking(booking_payload(schedule.id, people=1))
        assert exc.value.available == 0
        assert exc.value.requested == 1
        assert (await ScheduleService(session).get_availability(schedule.id)).available_spaces == 0

    @pytest.mark.asyncio
    async def test_count_mismatch(self, session, make_activity, make_schedule):
        activity = await make_activity()
        schedule = await make_schedule(activity)

        with pytest.raises(CountMismatchError) as exc:
            await BookingService(session).create_booking(booking_payload(
                schedule.id, people=4, adult_count=2, child_count=1, senior_count=0,
            ))
        assert exc.value.details == {"sum": 3, "required": 4}
        assert await _booked(session, schedule.id) == 0

    @pytest.mark.asyncio
    async def test_validation_order_capacity_before_counts(self, session, make_activity, make_schedule):
        activity = await make_activity()
        schedule = await make_schedule(activity, capacity=2)
        with pytest.raises(CapacityExceededError):
            await BookingService(session).create_booking(booking_payload(
                schedule.id, people=3, adult_count=1,
            ))

    @pytest.mark.asyncio
    @pytest.mark.parametrize("overrides", [
        {"customer_name": "   "},
        {"number_of_people": 0, "adult_count": 0},
        {"number_of_people": None},
        {"adult_count": -1, "child_count": 3},
    ])
    async def test_invalid_fields(self, session, make_activity, make_schedule, overrides):
        activity = await make_activity()
        schedule = await make_schedule(activity)
        with pytest.raises(ValidationError):
            await BookingService(session).create_booking(booking_payload(schedule.id, **overrides))

    @pytest.mark.asyncio
    async def test_unknown_schedule(self, session):
        with pytest.raises(NotFoundError):
            await BookingService(session).create_booking(booking_payload("missing"))

    @pytest.mark.asyncio
    async def test_inactive_schedule(self, session, make_activity, make_schedule):
        activity = await make_activity()
        schedule = await make_schedule(activity, status=False)
        with pytest.raises(ValidationError):
            await BookingService(session).create_booking(booking_payload(schedule.id))


class TestTransport:

    @pytest.mark.asyncio
    @pytest.mark.parametrize("passenger_count", [None, 0])
    async def test_transport_requires_passengers(self, session, make_activity, make_schedule, passenger_count):
        activity = await make_activity()
        schedule = await make_schedule(activity)
        with pytest.raises(ValidationError):
            await BookingService(session).create_booking(booking_payload(
                schedule.id, transport=True, passenger_count=passenger_count,
            ))

    @pytest.mark.asyncio
    async def test_no_transport_clears_passengers(self, session, make_activity, make_schedule):
        activity = await make_activity()
        schedule = await make_schedule(activity)
        result = await BookingService(session).create_booking(booking_payload(
            schedule.id, transport=False, passenger_count=3,
        ))
        assert result.booking.passenger_count is None

    @pytest.mark.asyncio
    async def test_transport_keeps_passengers(self, session, make_activity, make_schedule):
        activity = await make_activity()
        schedule = await make_schedule(activity)
        result = await BookingService(session).create_booking(booking_payload(
            schedule.id, transport=True, passenger_count=2,
        ))
        assert result.booking.transport is True
        assert result.booking.passenger_count == 2


class TestCommission:

    @pytest.mark.asyncio
    async def test_company_default_commission(self, session, make_activity, make_schedule):
        activity = await make_activity()
        schedule = await make_schedule(activity)
        company = await CompanyService(session).create_company("Sunny Travel", commission_percentage=Decimal("12.5"))

        result = await BookingService(session).create_booking(booking_payload(schedule.id, company_id=company.id))
        assert result.booking.commission_percentage == Decimal("12.5")

    @pytest.mark.asyncio
    async def test_explicit_zero_commission(self, session, make_activity, make_schedule):
        activity = await make_activity()
        schedule = await make_schedule(activity)
        company = await CompanyService(session).create_company("Sunny Travel", commission_percentage=Decimal("12.5"))

        result = await BookingService(session).create_booking(booking_payload(
            schedule.id, company_id=company.id, commission_percentage=Decimal("0"),
        ))
        assert result.booking.commission_percentage == Decimal("0")

    @pytest.mark.asyncio
    async def test_commission_out_of_range(self, session, make_activity, make_schedule):
        activity = await make_activity()
        schedule = await make_schedule(activity)
        company = await CompanyService(session).create_company("Sunny Travel")
        with pytest.raises(ValidationError):
            await BookingService(session).create_booking(booking_payload(
                schedule.id, company_id=company.id, commission_percentage=Decimal("101"),
            ))

    @pytest.mark.asyncio
    async def test_inactive_company(self, session, make_activity, make_schedule):
        activity = await make_activity()
        schedule = await make_schedule(activity)
        company = await CompanyService(session).create_company("Closed Travel", status=False)
        with pytest.raises(ValidationError):
            await BookingService(session).create_booking(booking_payload(schedule.id, company_id=company.id))

    @pytest.mark.asyncio
    async def test_unknown_company(self, session, make_activity, make_schedule):
        activity = await make_activity()
        schedule = await make_schedule(activity)
        with pytest.raises(NotFoundError):
            await BookingService(session).create_booking(booking_payload(schedule.id, company_id="missing"))

    @pytest.mark.asyncio
    async def test_no_company_means_no_commission(self, session, make_activity, make_schedule):
        activity = await make_activity()
        schedule = await make_schedule(activity)
        result = await BookingService(session).create_booking(booking_payload(
            schedule.id, commission_percentage=Decimal("30"),
        ))
        assert result.booking.commission_percentage == Decimal("0")


class TestCancelBooking:

    @pytest.mark.asyncio
    async def test_cancel_restores_seats_once(self, session, make_activity, make_schedule):
        activity = await make_activity()
        schedule = await make_schedule(activity, capacity=10)
        service = BookingService(session)
        await service.create_booking(booking_payload(schedule.id, people=2))
        result = await service.create_booking(booking_payload(schedule.id, people=3))
        assert result.availability.booked_count == 5

        cancelled = await service.cancel_booking(result.booking.id)
        assert cancelled.booking.status == "cancelled"
        assert cancelled.booking.cancelled_at is not None
        assert cancelled.availability.booked_count == 2

        again = await service.cancel_booking(result.booking.id)
        assert again.availability.booked_count == 2

    @pytest.mark.asyncio
    async def test_cancel_survives_counter_drift(self, session, make_activity, make_schedule, caplog):
        activity = await make_activity()
        schedule = await make_schedule(activity, capacity=10)
        service = BookingService(session)
        result = await service.create_booking(booking_payload(schedule.id, people=4))
        await ScheduleRepository(session).update(id=schedule.id, obj_in={"booked_count": 2})

        with caplog.at_level(logging.WARNING, logger="tourops.services.booking_service"):
            cancelled = await service.cancel_booking(result.booking.id)

        assert cancelled.booking.status == "cancelled"
        assert cancelled.availability.booked_count == 2
        assert "not decremented" in caplog.text

        repaired = await ScheduleService(session).recount(schedule.id)
        assert repaired.booked_count == 0

    @pytest.mark.asyncio
    async def test_cancel_missing(self, session):
        with pytest.raises(NotFoundError):
            await BookingService(session).cancel_booking("missing")


class TestUpdateBooking:

    @pytest.mark.asyncio
    @pytest.mark.parametrize("new_size,ok", [(10, True), (11, False), (1, True)])
    async def test_resize_against_capacity(self, session, make_activity, make_schedule, new_size, ok):
        activity = await make_activity()
        schedule = await make_schedule(activity, capacity=10)
        service = BookingService(session)
        result = await service.create_booking(booking_payload(schedule.id, people=4))

        changes = {"number_of_people": new_size, "adult_count": new_size}
        if ok:
            updated = await service.update_booking(result.booking.id, changes)
            assert updated.availability.booked_count == new_size
            assert updated.booking.total_amount == Decimal("20.00") * new_size
        else:
            with pytest.raises(CapacityExceededError) as exc:
                await service.update_booking(result.booking.id, changes)
            assert exc.value.available == 10
            assert await _booked(session, schedule.id) == 4

    @pytest.mark.asyncio
    async def test_partial_update_keeps_other_fields(self, session, make_activity, make_schedule):
        activity = await make_activity()
        schedule = await make_schedule(activity)
        service = BookingService(session)
        result = await service.create_booking(booking_payload(schedule.id, people=2))

        updated = await service.update_booking(result.booking.id, {"customer_name": "Luis Vega"})
        assert updated.booking.customer_name == "Luis Vega"
        assert updated.booking.number_of_people == 2
        assert updated.availability.booked_count == 2

    @pytest.mark.asyncio
    async def test_update_revalidates_counts(self, session, make_activity, make_schedule):
        activity = await make_activity()
        schedule = await make_schedule(activity)
        service = BookingService(session)
        result = await service.create_booking(booking_payload(schedule.id, people=2))

        with pytest.raises(CountMismatchError):
            await service.update_booking(result.booking.id, {"number_of_people": 3})

    @pytest.mark.asyncio
    async def test_move_between_schedules(self, session, make_activity, make_schedule):
        activity = await make_activity()
        first = await make_schedule(activity, capacity=10)
        second = await make_schedule(activity, capacity=5, offset_hours=24)
        service = BookingService(session)
        result = await service.create_booking(booking_payload(first.id, people=4))

        moved = await service.update_booking(result.booking.id, {"activity_schedule_id": second.id})
        assert moved.booking.activity_schedule_id == second.id
        assert moved.availability.booked_count == 4
        assert await _booked(session, first.id) == 0

    @pytest.mark.asyncio
    async def test_move_to_full_schedule_fails(self, session, make_activity, make_schedule):
        activity = await make_activity()
        first = await make_schedule(activity, capacity=10)
        second = await make_schedule(activity, capacity=3, offset_hours=24)
        service = BookingService(session)
        result = await service.create_booking(booking_payload(first.id, people=4))

        with pytest.raises(CapacityExceededError):
            await service.update_booking(result.booking.id, {"activity_schedule_id": second.id})
        assert await _booked(session, first.id) == 4

    @pytest.mark.asyncio
    async def test_status_cancelled_routes_to_cancel(self, session, make_activity, make_schedule):
        activity = await make_activity()
        schedule = await make_schedule(activity)
        service = BookingService(session)
        result = await service.create_booking(booking_payload(schedule.id, people=3))

        updated = await service.update_booking(result.booking.id, {"status": "cancelled"})
        assert updated.booking.status == "cancelled"
        assert updated.availability.booked_count == 0

    @pytest.mark.asyncio
    async def test_cancelled_booking_is_frozen(self, session, make_activity, make_schedule):
        activity = await make_activity()
        schedule = await make_schedule(activity)
        service = BookingService(session)
        result = await service.create_booking(booking_payload(schedule.id))
        await service.cancel_booking(result.booking.id)

        with pytest.raises(ValidationError):
            await service.update_booking(result.booking.id, {"customer_name": "Someone"})

    @pytest.mark.asyncio
    async def test_inactive_schedule_takes_no_new_seats(self, session, make_activity, make_schedule):
        activity = await make_activity()
        schedule = await make_schedule(activity, capacity=10)
        service = BookingService(session)
        result = await service.create_booking(booking_payload(schedule.id, people=4))
        await ScheduleService(session).set_status(schedule.id, False)

        with pytest.raises(ValidationError):
            await service.update_booking(result.booking.id, {"number_of_people": 6, "adult_count": 6})
        assert await _booked(session, schedule.id) == 4

        shrunk = await service.update_booking(result.booking.id, {"number_of_people": 2, "adult_count": 2})
        assert shrunk.availability.booked_count == 2

        renamed = await service.update_booking(result.booking.id, {"customer_name": "Luis Vega"})
        assert renamed.booking.customer_name == "Luis Vega"

    @pytest.mark.asyncio
    async def test_confirm(self, session, make_activity, make_schedule):
        activity = await make_activity()
        schedule = await make_schedule(activity)
        service = BookingService(session)
        result = await service.create_booking(booking_payload(schedule.id))

        updated = await service.update_booking(result.booking.id, {"status": "confirmed"})
        assert updated.booking.status == "confirmed"


class TestCapacityInvariant:

    @pytest.mark.asyncio
    async def test_counter_stays_in_bounds(self, session, make_activity, make_schedule):
        activity = await make_activity()
        schedule = await make_schedule(activity, capacity=6)
        service = BookingService(session)

        ids = []
        for size in (2, 3, 2, 1):
            try:
                result = await service.create_booking(booking_payload(schedule.id, people=size))
                ids.append(result.booking.id)
            except CapacityExceededError:
                pass
            availability = await ScheduleService(session).get_availability(schedule.id)
            assert 0 <= availability.booked_count <= availability.capacity

        for booking_id in ids:
            await service.cancel_booking(booking_id)
        assert await _booked(session, schedule.id) == 0

    @pytest.mark.asyncio
    async def test_competing_session_fills_schedule_first(
        self, session, session_factory, make_activity, make_schedule
    ):
        activity = await make_activity()
        schedule = await make_schedule(activity, capacity=4)
        await session.commit()

        class RacingScheduleRepository(ScheduleRepository):
            """Lets another session take the seats right before our write"""

            async def adjust_booked_count(self, schedule_id, delta, walk_ins=0):
                async with session_factory() as other:
                    await BookingService(other).create_booking(booking_payload(schedule_id, people=3))
                    await other.commit()
                return await super().adjust_booked_count(schedule_id, delta, walk_ins)

        service = BookingService(session, schedule_repo=RacingScheduleRepository(session))
        with pytest.raises(CapacityExceededError) as exc:
            await service.create_booking(booking_payload(schedule.id, people=2))

        assert exc.value.requested == 2
        assert exc.value.available == 1
        assert await _booked(session, schedule.id) == 3
        bookings, total = await service.list_bookings(activity_schedule_id=schedule.id)
        assert total == 1

    @pytest.mark.asyncio
    async def test_guarded_update_bounds(self, session, make_activity, make_schedule):
        activity = await make_activity()
        schedule = await make_schedule(activity, capacity=3)
        repo = ScheduleRepository(session)

        assert await repo.adjust_booked_count(schedule.id, -1) is False
        assert await _booked(session, schedule.id) == 0

        assert await repo.adjust_booked_count(schedule.id, 3) is True
        assert await repo.adjust_booked_count(schedule.id, 1) is False
        assert await _booked(session, schedule.id) == 3

        assert await repo.adjust_booked_count("missing", 1) is False


class TestQuote:

    @pytest.mark.asyncio
    async def test_quote_uses_schedule_override(self, session, make_activity, make_schedule):
        activity = await make_activity(adult="20.00", child="10.00", senior="15.00")
        schedule = await make_schedule(activity, prices={"adult_price": Decimal("25.00")})
        company = await CompanyService(session).create_company("Sunny Travel", commission_percentage=10)

        quote = await BookingService(session).quote(
            schedule.id, adult_count=2, child_count=1, company_id=company.id
        )
        assert quote.total_amount == Decimal("60.00")
        assert quote.commission_amount == Decimal("6.00")


class TestPhoneNormalisation:

    def test_e164(self):
        assert normalize_phone("+1 650-253-0000") == "+16502530000"

    def test_blank_is_none(self):
        assert normalize_phone("  ") is None

    @pytest.mark.parametrize("value", ["12345", "+1 000"])
    def test_invalid(self, value):
        with pytest.raises(ValidationError):
            normalize_phone(value)
