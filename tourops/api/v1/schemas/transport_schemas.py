from datetime import datetime
from typing import Optional

from .common import CamelModel


class TransportIn(CamelModel):
    model: str
    capacity: int
    operational_status: bool = True
    status: bool = True


class TransportUpdate(CamelModel):
    model: Optional[str] = None
    capacity: Optional[int] = None
    operational_status: Optional[bool] = None
    status: Optional[bool] = None


class TransportOut(CamelModel):
    id: str
    model: str
    capacity: int
    operational_status: bool
    status: bool
    created_at: datetime
    updated_at: datetime
