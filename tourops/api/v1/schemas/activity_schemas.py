from datetime import datetime
from decimal import Decimal
from typing import Optional

from .common import CamelModel


class ActivityTypeIn(CamelModel):
    code: str
    name: str
    description: Optional[str] = None


class ActivityTypeUpdate(CamelModel):
    code: Optional[str] = None
    name: Optional[str] = None
    description: Optional[str] = None


class ActivityTypeOut(CamelModel):
    id: str
    code: str
    name: str
    description: Optional[str] = None


class ActivityIn(CamelModel):
    """Schema for creating activities"""
    activity_type_id: str
    title: str
    party_size: int
    adult_price: Decimal = Decimal("0")
    child_price: Decimal = Decimal("0")
    senior_price: Decimal = Decimal("0")
    status: bool = True


class ActivityUpdate(CamelModel):
    """Schema for updating activities, omitted fields are left as they are"""
    activity_type_id: Optional[str] = None
    title: Optional[str] = None
    party_size: Optional[int] = None
    adult_price: Optional[Decimal] = None
    child_price: Optional[Decimal] = None
    senior_price: Optional[Decimal] = None
    status: Optional[bool] = None


class ActivityOut(CamelModel):
    id: str
    activity_type_id: str
    activity_type: Optional[ActivityTypeOut] = None
    title: str
    party_size: int
    adult_price: Decimal
    child_price: Decimal
    senior_price: Decimal
    status: bool
    created_at: datetime
    updated_at: datetime
