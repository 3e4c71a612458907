from .activity_repository import ActivityRepository, ActivityTypeRepository
from .schedule_repository import ScheduleRepository
from .booking_repository import BookingRepository
from .company_repository import CompanyRepository
from .guide_repository import GuideRepository, LanguageRepository, AssignmentRepository
from .transport_repository import TransportRepository, SettingRepository

__all__ = [
    "ActivityRepository",
    "ActivityTypeRepository",
    "ScheduleRepository",
    "BookingRepository",
    "CompanyRepository",
    "GuideRepository",
    "LanguageRepository",
    "AssignmentRepository",
    "TransportRepository",
    "SettingRepository",
]
