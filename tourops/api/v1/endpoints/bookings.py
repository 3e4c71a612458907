from typing import Optional
from fastapi import APIRouter, Query, status

from tourops.api.v1.schemas import (
    BookingIn, BookingUpdate, BookingOut, BookingWithAvailabilityOut,
    AvailabilityOut, QuoteIn, QuoteOut, Page,
)
from tourops.deps import SessionDep, PaginationDep
from tourops.services import BookingService, BookingResult, ConfigurationService


router = APIRouter()


def _with_availability(result: BookingResult) -> BookingWithAvailabilityOut:
    return BookingWithAvailabilityOut(
        booking=BookingOut.model_validate(result.booking),
        availability=AvailabilityOut.model_validate(result.availability),
    )


@router.get("", response_model=Page[BookingOut])
async def list_bookings(
    sess: SessionDep,
    paging: PaginationDep,
    status: Optional[str] = Query(None),
    activity_schedule_id: Optional[str] = Query(None, alias="activityScheduleId"),
):
    """Paginated bookings, newest first"""
    service = BookingService(sess)
    items, total = await service.list_bookings(
        status=status,
        activity_schedule_id=activity_schedule_id,
        skip=paging.skip,
        limit=paging.limit,
    )
    return Page[BookingOut].build(
        [BookingOut.model_validate(b) for b in items], total, paging.page, paging.limit
    )


@router.post("", response_model=BookingWithAvailabilityOut, status_code=status.HTTP_201_CREATED)
async def create_booking(payload: BookingIn, sess: SessionDep):
    """Create a booking and reserve its seats"""
    service = BookingService(sess)
    result = await service.create_booking(payload.model_dump())
    await sess.commit()
    return _with_availability(result)


@router.post("/quote", response_model=QuoteOut)
async def quote_booking(payload: QuoteIn, sess: SessionDep):
    """Price a party without booking it"""
    service = BookingService(sess)
    quote = await service.quote(
        activity_schedule_id=payload.activity_schedule_id,
        adult_count=payload.adult_count,
        child_count=payload.child_count,
        senior_count=payload.senior_count,
        company_id=payload.company_id,
        commission_percentage=payload.commission_percentage,
    )
    currency = await ConfigurationService(sess).get_value("currency")
    return QuoteOut(
        activity_schedule_id=quote.schedule_id,
        adult_count=quote.counts.adult,
        child_count=quote.counts.child,
        senior_count=quote.counts.senior,
        adult_price=quote.prices.adult,
        child_price=quote.prices.child,
        senior_price=quote.prices.senior,
        total_amount=quote.total_amount,
        commission_percentage=quote.commission_percentage,
        commission_amount=quote.commission_amount,
        currency=str(currency),
    )


@router.get("/{booking_id}", response_model=BookingOut)
async def get_booking(booking_id: str, sess: SessionDep):
    service = BookingService(sess)
    return BookingOut.model_validate(await service.get_booking(booking_id))


@router.put("/{booking_id}", response_model=BookingWithAvailabilityOut)
async def update_booking(booking_id: str, payload: BookingUpdate, sess: SessionDep):
    """Merge the supplied fields over the booking and re-check capacity"""
    service = BookingService(sess)
    result = await service.update_booking(booking_id, payload.model_dump(exclude_unset=True))
    await sess.commit()
    return _with_availability(result)


@router.put("/{booking_id}/cancel", response_model=BookingWithAvailabilityOut)
async def cancel_booking(booking_id: str, sess: SessionDep):
    service = BookingService(sess)
    result = await service.cancel_booking(booking_id)
    await sess.commit()
    return _with_availability(result)
