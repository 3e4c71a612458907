from .common import CamelModel, Page, MessageOut
from .activity_schemas import (
    ActivityTypeIn, ActivityTypeUpdate, ActivityTypeOut,
    ActivityIn, ActivityUpdate, ActivityOut,
)
from .schedule_schemas import (
    ScheduleIn, ScheduleUpdate, ScheduleOut,
    TimeSlotIn, BulkScheduleIn, BulkScheduleOut, ScheduleConflictOut,
    AvailabilityOut, AttendeesIn, AssignmentIn, AssignmentReplaceIn, AutoAssignIn, AssignmentOut,
)
from .booking_schemas import (
    BookingIn, BookingUpdate, BookingOut, BookingWithAvailabilityOut, QuoteIn, QuoteOut
)
from .company_schemas import CompanyIn, CompanyUpdate, CompanyOut
from .guide_schemas import LanguageIn, LanguageOut, GuideIn, GuideUpdate, GuideOut
from .transport_schemas import TransportIn, TransportUpdate, TransportOut
from .config_schemas import SettingUpdate, SettingOut

__all__ = [
    # Common
    "CamelModel",
    "Page",
    "MessageOut",

    # Activity schemas
    "ActivityTypeIn",
    "ActivityTypeUpdate",
    "ActivityTypeOut",
    "ActivityIn",
    "ActivityUpdate",
    "ActivityOut",

    # Schedule schemas
    "ScheduleIn",
    "ScheduleUpdate",
    "ScheduleOut",
    "TimeSlotIn",
    "BulkScheduleIn",
    "BulkScheduleOut",
    "ScheduleConflictOut",
    "AvailabilityOut",
    "AttendeesIn",
    "AssignmentIn",
    "AssignmentReplaceIn",
    "AutoAssignIn",
    "AssignmentOut",

    # Booking schemas
    "BookingIn",
    "BookingUpdate",
    "BookingOut",
    "BookingWithAvailabilityOut",
    "QuoteIn",
    "QuoteOut",

    # Company schemas
    "CompanyIn",
    "CompanyUpdate",
    "CompanyOut",

    # Guide schemas
    "LanguageIn",
    "LanguageOut",
    "GuideIn",
    "GuideUpdate",
    "GuideOut",

    # Transport schemas
    "TransportIn",
    "TransportUpdate",
    "TransportOut",

    # Configuration schemas
    "SettingUpdate",
    "SettingOut",
]
