from datetime import datetime
from typing import Optional, List

from pydantic import EmailStr

from .common import CamelModel


class LanguageIn(CamelModel):
    code: str
    name: str


class LanguageOut(CamelModel):
    id: str
    code: str
    name: str


class GuideIn(CamelModel):
    name: str
    email: Optional[EmailStr] = None
    phone: Optional[str] = None
    can_lead: bool = False
    max_party_size: Optional[int] = None
    status: bool = True
    language_ids: List[str] = []


class GuideUpdate(CamelModel):
    name: Optional[str] = None
    email: Optional[EmailStr] = None
    phone: Optional[str] = None
    can_lead: Optional[bool] = None
    max_party_size: Optional[int] = None
    status: Optional[bool] = None
    language_ids: Optional[List[str]] = None


class GuideOut(CamelModel):
    id: str
    name: str
    email: Optional[str] = None
    phone: Optional[str] = None
    can_lead: bool
    max_party_size: Optional[int] = None
    status: bool
    languages: List[LanguageOut] = []
    created_at: datetime
    updated_at: datetime
