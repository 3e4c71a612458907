from datetime import datetime
from decimal import Decimal
from typing import Optional

from .common import CamelModel


class CompanyIn(CamelModel):
    name: str
    commission_percentage: Optional[Decimal] = None
    status: bool = True


class CompanyUpdate(CamelModel):
    name: Optional[str] = None
    commission_percentage: Optional[Decimal] = None
    status: Optional[bool] = None


class CompanyOut(CamelModel):
    id: str
    name: str
    commission_percentage: Decimal
    status: bool
    created_at: datetime
    updated_at: datetime
