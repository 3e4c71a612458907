from datetime import datetime
from typing import Any, Optional

from .common import CamelModel


class SettingUpdate(CamelModel):
    value: Any
    description: Optional[str] = None


class SettingOut(CamelModel):
    key: str
    value: Any
    description: Optional[str] = None
    updated_at: datetime
