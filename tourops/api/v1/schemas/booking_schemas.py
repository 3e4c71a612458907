from datetime import datetime
from decimal import Decimal
from typing import Optional

from pydantic import EmailStr

from .common import CamelModel
from .schedule_schemas import AvailabilityOut


class BookingIn(CamelModel):
    """Schema for creating bookings.

    Counts are checked by the booking service, so the schema only fixes
    types here.
    """
    activity_schedule_id: str
    customer_name: Optional[str] = None
    customer_email: Optional[EmailStr] = None
    customer_phone: Optional[str] = None
    number_of_people: Optional[int] = None
    adult_count: int = 0
    child_count: int = 0
    senior_count: int = 0
    transport: bool = False
    passenger_count: Optional[int] = None
    company_id: Optional[str] = None
    commission_percentage: Optional[Decimal] = None
    status: Optional[str] = None


class BookingUpdate(CamelModel):
    """Partial update; only fields present in the request are merged"""
    activity_schedule_id: Optional[str] = None
    customer_name: Optional[str] = None
    customer_email: Optional[EmailStr] = None
    customer_phone: Optional[str] = None
    number_of_people: Optional[int] = None
    adult_count: Optional[int] = None
    child_count: Optional[int] = None
    senior_count: Optional[int] = None
    transport: Optional[bool] = None
    passenger_count: Optional[int] = None
    company_id: Optional[str] = None
    commission_percentage: Optional[Decimal] = None
    status: Optional[str] = None


class BookingOut(CamelModel):
    id: str
    activity_schedule_id: str
    company_id: Optional[str] = None
    customer_name: str
    customer_email: Optional[str] = None
    customer_phone: Optional[str] = None
    number_of_people: int
    adult_count: int
    child_count: int
    senior_count: int
    transport: bool
    passenger_count: Optional[int] = None
    commission_percentage: Decimal
    adult_price: Decimal
    child_price: Decimal
    senior_price: Decimal
    total_amount: Decimal
    status: str
    created_at: datetime
    updated_at: datetime
    cancelled_at: Optional[datetime] = None


class BookingWithAvailabilityOut(CamelModel):
    booking: BookingOut
    availability: AvailabilityOut


class QuoteIn(CamelModel):
    activity_schedule_id: str
    adult_count: int = 0
    child_count: int = 0
    senior_count: int = 0
    company_id: Optional[str] = None
    commission_percentage: Optional[Decimal] = None


class QuoteOut(CamelModel):
    activity_schedule_id: str
    adult_count: int
    child_count: int
    senior_count: int
    adult_price: Decimal
    child_price: Decimal
    senior_price: Decimal
    total_amount: Decimal
    commission_percentage: Decimal
    commission_amount: Decimal
    currency: str
