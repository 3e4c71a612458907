from datetime import datetime, timezone

from sqlalchemy import (
    String, Integer, ForeignKey, Numeric, DateTime, Boolean, JSON, Text,
    UniqueConstraint, Index, CheckConstraint, func
)
from sqlalchemy.orm import mapped_column, relationship, DeclarativeBase
from sqlalchemy.types import TypeDecorator
import uuid


def _gen_id() -> str:
    """Return a new UUID4 primary key as text."""
    return str(uuid.uuid4())


class UTCDateTime(TypeDecorator):
    """Timezone-aware timestamp stored as UTC.

    Aware values are converted to UTC on the way in; values read back from
    backends that drop tzinfo (SQLite) are tagged as UTC again.
    """

    impl = DateTime(timezone=True)
    cache_ok = True

    def process_bind_param(self, value, dialect):
        if value is None:
            return None
        if value.tzinfo is None:
            raise ValueError("naive datetime cannot be stored; attach a timezone")
        return value.astimezone(timezone.utc)

    def process_result_value(self, value, dialect):
        if value is None:
            return None
        if value.tzinfo is None:
            return value.replace(tzinfo=timezone.utc)
        return value.astimezone(timezone.utc)


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class Base(DeclarativeBase): ...


# Association table for many-to-many relationship between Guide and Language
class GuideLanguage(Base):
    __tablename__ = "guide_languages"
    guide_id    = mapped_column(ForeignKey("guides.id", ondelete="CASCADE"), primary_key=True)
    language_id = mapped_column(ForeignKey("languages.id", ondelete="CASCADE"), primary_key=True)


# ---------- Catalog ----------
class ActivityType(Base):
    __tablename__ = "activity_types"
    id          = mapped_column(String(36), primary_key=True, default=_gen_id)
    code        = mapped_column(String(32), unique=True, nullable=False)
    name        = mapped_column(String(120), nullable=False)
    description = mapped_column(Text, nullable=True)

    activities  = relationship("Activity", back_populates="activity_type")


class Activity(Base):
    __tablename__ = "activities"
    __table_args__ = (
        CheckConstraint("party_size > 0", name="ck_activities_party_size"),
        CheckConstraint(
            "adult_price >= 0 AND child_price >= 0 AND senior_price >= 0",
            name="ck_activities_prices",
        ),
    )
    id               = mapped_column(String(36), primary_key=True, default=_gen_id)
    activity_type_id = mapped_column(ForeignKey("activity_types.id"), nullable=False, index=True)
    title            = mapped_column(String(200), nullable=False)
    party_size       = mapped_column(Integer, nullable=False)
    adult_price      = mapped_column(Numeric(10, 2), nullable=False, default=0)
    child_price      = mapped_column(Numeric(10, 2), nullable=False, default=0)
    senior_price     = mapped_column(Numeric(10, 2), nullable=False, default=0)
    status           = mapped_column(Boolean, nullable=False, default=True)
    created_at       = mapped_column(UTCDateTime, nullable=False, default=_utcnow)
    updated_at       = mapped_column(UTCDateTime, nullable=False, default=_utcnow, onupdate=_utcnow)

    activity_type    = relationship("ActivityType", back_populates="activities")
    schedules        = relationship("ActivitySchedule", back_populates="activity")


# ---------- Schedule registry ----------
class ActivitySchedule(Base):
    __tablename__ = "activity_schedules"
    __table_args__ = (
        CheckConstraint("scheduled_end > scheduled_start", name="ck_schedules_time_range"),
        CheckConstraint("capacity >= 0", name="ck_schedules_capacity"),
        CheckConstraint(
            "booked_count >= 0 AND booked_count <= capacity",
            name="ck_schedules_booked_count",
        ),
        CheckConstraint("walk_in_count >= 0", name="ck_schedules_walk_in_count"),
        Index("ix_activity_schedules_activity_start", "activity_id", "scheduled_start"),
    )
    id              = mapped_column(String(36), primary_key=True, default=_gen_id)
    activity_id     = mapped_column(ForeignKey("activities.id"), nullable=False)
    scheduled_start = mapped_column(UTCDateTime, nullable=False)
    scheduled_end   = mapped_column(UTCDateTime, nullable=False)
    capacity        = mapped_column(Integer, nullable=False)
    booked_count    = mapped_column(Integer, nullable=False, default=0)
    # Walk-in attendees seated without a booking; part of booked_count
    walk_in_count   = mapped_column(Integer, nullable=False, default=0, server_default="0")
    status          = mapped_column(Boolean, nullable=False, default=True)
    # Optional per-occurrence price overrides; NULL falls back to the activity
    adult_price     = mapped_column(Numeric(10, 2), nullable=True)
    child_price     = mapped_column(Numeric(10, 2), nullable=True)
    senior_price    = mapped_column(Numeric(10, 2), nullable=True)
    created_at      = mapped_column(UTCDateTime, nullable=False, default=_utcnow)
    updated_at      = mapped_column(UTCDateTime, nullable=False, default=_utcnow, onupdate=_utcnow)

    activity        = relationship("Activity", back_populates="schedules")
    bookings        = relationship("Booking", back_populates="schedule")
    assignments     = relationship(
        "ActivityAssignment",
        back_populates="schedule",
        cascade="all, delete-orphan",
    )

    @property
    def available_spaces(self) -> int:
        return max(0, self.capacity - self.booked_count)


# ---------- Partners ----------
class Company(Base):
    __tablename__ = "companies"
    __table_args__ = (
        CheckConstraint(
            "commission_percentage >= 0 AND commission_percentage <= 100",
            name="ck_companies_commission",
        ),
    )
    id                    = mapped_column(String(36), primary_key=True, default=_gen_id)
    name                  = mapped_column(String(120), unique=True, nullable=False)
    commission_percentage = mapped_column(Numeric(5, 2), nullable=False, default=0)
    status                = mapped_column(Boolean, nullable=False, default=True)
    created_at            = mapped_column(UTCDateTime, nullable=False, default=_utcnow)
    updated_at            = mapped_column(UTCDateTime, nullable=False, default=_utcnow, onupdate=_utcnow)


# ---------- Booking ledger ----------
class Booking(Base):
    __tablename__ = "bookings"
    __table_args__ = (
        CheckConstraint(
            "adult_count + child_count + senior_count = number_of_people",
            name="ck_bookings_count_sum",
        ),
        CheckConstraint("number_of_people > 0", name="ck_bookings_people"),
        CheckConstraint(
            "commission_percentage >= 0 AND commission_percentage <= 100",
            name="ck_bookings_commission",
        ),
        Index("ix_bookings_schedule_status", "activity_schedule_id", "status"),
    )
    id                    = mapped_column(String(36), primary_key=True, default=_gen_id)
    activity_schedule_id  = mapped_column(ForeignKey("activity_schedules.id"), nullable=False)
    company_id            = mapped_column(ForeignKey("companies.id"), nullable=True, index=True)
    transport             = mapped_column(Boolean, nullable=False, default=False)
    number_of_people      = mapped_column(Integer, nullable=False)
    adult_count           = mapped_column(Integer, nullable=False, default=0)
    child_count           = mapped_column(Integer, nullable=False, default=0)
    senior_count          = mapped_column(Integer, nullable=False, default=0)
    passenger_count       = mapped_column(Integer, nullable=True)
    commission_percentage = mapped_column(Numeric(5, 2), nullable=False, default=0)
    customer_name         = mapped_column(String(200), nullable=False)
    customer_email        = mapped_column(String(254), nullable=True)
    customer_phone        = mapped_column(String(32), nullable=True)
    status                = mapped_column(String(20), default="pending", nullable=False, comment="Booking status: pending, confirmed, cancelled")
    # Prices captured when the booking is made
    adult_price           = mapped_column(Numeric(10, 2), nullable=False, default=0)
    child_price           = mapped_column(Numeric(10, 2), nullable=False, default=0)
    senior_price          = mapped_column(Numeric(10, 2), nullable=False, default=0)
    total_amount          = mapped_column(Numeric(10, 2), nullable=False, default=0)
    created_at            = mapped_column(UTCDateTime, nullable=False, default=_utcnow)
    updated_at            = mapped_column(UTCDateTime, nullable=False, default=_utcnow, onupdate=_utcnow)
    cancelled_at          = mapped_column(UTCDateTime, nullable=True)

    schedule              = relationship("ActivitySchedule", back_populates="bookings")
    company               = relationship("Company")


# ---------- Guides ----------
class Language(Base):
    __tablename__ = "languages"
    id   = mapped_column(String(36), primary_key=True, default=_gen_id)
    code = mapped_column(String(8), unique=True, nullable=False)
    name = mapped_column(String(64), nullable=False)


class Guide(Base):
    __tablename__ = "guides"
    id             = mapped_column(String(36), primary_key=True, default=_gen_id)
    name           = mapped_column(String(120), nullable=False)
    email          = mapped_column(String(254), nullable=True)
    phone          = mapped_column(String(32), nullable=True)
    can_lead       = mapped_column(Boolean, nullable=False, default=False)
    max_party_size = mapped_column(Integer, nullable=True)
    status         = mapped_column(Boolean, nullable=False, default=True)
    created_at     = mapped_column(UTCDateTime, nullable=False, default=_utcnow)
    updated_at     = mapped_column(UTCDateTime, nullable=False, default=_utcnow, onupdate=_utcnow)

    languages      = relationship("Language", secondary="guide_languages", lazy="selectin")


class ActivityAssignment(Base):
    __tablename__ = "activity_assignments"
    __table_args__ = (
        UniqueConstraint("activity_schedule_id", "guide_id", name="uq_assignment_schedule_guide"),
    )
    id                   = mapped_column(String(36), primary_key=True, default=_gen_id)
    activity_schedule_id = mapped_column(ForeignKey("activity_schedules.id", ondelete="CASCADE"), nullable=False, index=True)
    guide_id             = mapped_column(ForeignKey("guides.id"), nullable=False, index=True)
    is_leader            = mapped_column(Boolean, nullable=False, default=False)
    assigned_at          = mapped_column(UTCDateTime, nullable=False, default=_utcnow)

    schedule             = relationship("ActivitySchedule", back_populates="assignments")
    guide                = relationship("Guide", lazy="joined")


# ---------- Fleet ----------
class Transport(Base):
    __tablename__ = "transports"
    id                 = mapped_column(String(36), primary_key=True, default=_gen_id)
    model              = mapped_column(String(120), nullable=False)
    capacity           = mapped_column(Integer, nullable=False)
    operational_status = mapped_column(Boolean, nullable=False, default=True)
    status             = mapped_column(Boolean, nullable=False, default=True)
    created_at         = mapped_column(UTCDateTime, nullable=False, default=_utcnow)
    updated_at         = mapped_column(UTCDateTime, nullable=False, default=_utcnow, onupdate=_utcnow)


# ---------- System configuration ----------
class Setting(Base):
    """Key/value store for system-wide configuration.

    Examples:
        key="default_commission_percentage", value=10
        key="booking_default_status", value="pending"
    """
    __tablename__ = "settings"

    key         = mapped_column(String(64), primary_key=True)
    value       = mapped_column(JSON, nullable=False)
    description = mapped_column(String(255), nullable=True)
    updated_at  = mapped_column(UTCDateTime, nullable=False, default=_utcnow, onupdate=_utcnow)
