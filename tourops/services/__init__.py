from .activity_service import ActivityService, ActivityTypeService
from .schedule_service import ScheduleService, TimeSlot, BulkScheduleResult, Availability
from .booking_service import BookingService, BookingResult, Quote
from .assignment_service import AssignmentService
from .guide_selection import GuideSelector, CapacityGuideSelector, AssignmentDraft
from .company_service import CompanyService
from .guide_service import GuideService, LanguageService
from .transport_service import TransportService
from .configuration_service import ConfigurationService

__all__ = [
    "ActivityService",
    "ActivityTypeService",
    "ScheduleService",
    "TimeSlot",
    "BulkScheduleResult",
    "Availability",
    "BookingService",
    "BookingResult",
    "Quote",
    "AssignmentService",
    "GuideSelector",
    "CapacityGuideSelector",
    "AssignmentDraft",
    "CompanyService",
    "GuideService",
    "LanguageService",
    "TransportService",
    "ConfigurationService",
]
