"""Domain models for the facility booking scheduler."""

from __future__ import annotations

import uuid
from datetime import date, datetime, time, timedelta, timezone
from enum import StrEnum

from pydantic import BaseModel, ConfigDict, Field, model_validator


class ReservationStatus(StrEnum):
    PENDING = "pending"
    APPROVED = "approved"
    REJECTED = "rejected"
    NEEDS_REVISION = "needs_revision"


# Statuses that still hold a place on a facility's calendar. Revision requests
# keep their slot while the requester edits them.
DEFAULT_ACTIVE_STATUSES: frozenset[ReservationStatus] = frozenset(
    {
        ReservationStatus.PENDING,
        ReservationStatus.APPROVED,
        ReservationStatus.NEEDS_REVISION,
    }
)


class RulePolicy(StrEnum):
    BLOCK = "block"
    WARN = "warn"
    ALLOW = "allow"


class AuditAction(StrEnum):
    CREATED = "created"
    RESCHEDULED = "rescheduled"
    STATUS_CHANGED = "status_changed"
    DELETED = "deleted"


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def _new_id() -> str:
    return str(uuid.uuid4())


# ---------------------------------------------------------------------------
# Core domain models
# ---------------------------------------------------------------------------


class TimeInterval(BaseModel):
    """Half-open time range ``[start, end)``."""

    model_config = ConfigDict(frozen=True)

    start: datetime
    end: datetime

    @model_validator(mode="after")
    def _end_after_start(self) -> TimeInterval:
        if self.end <= self.start:
            raise ValueError("end must be after start")
        return self

    @property
    def duration(self) -> timedelta:
        return self.end - self.start


class Facility(BaseModel):
    id: str = Field(default_factory=_new_id)
    name: str
    capacity: int = Field(ge=0)
    location: str | None = None


class Reservation(BaseModel):
    id: str = Field(default_factory=_new_id)
    facility_id: str
    requester_id: str
    requester_name: str
    interval: TimeInterval
    status: ReservationStatus = ReservationStatus.PENDING
    purpose: str = ""
    created_at: datetime = Field(default_factory=_utcnow)


class ConflictDetail(BaseModel):
    reservation_id: str
    requester_id: str
    requester_name: str
    interval: TimeInterval
    status: ReservationStatus
    purpose: str

    @classmethod
    def from_reservation(cls, reservation: Reservation) -> ConflictDetail:
        return cls(
            reservation_id=reservation.id,
            requester_id=reservation.requester_id,
            requester_name=reservation.requester_name,
            interval=reservation.interval,
            status=reservation.status,
            purpose=reservation.purpose,
        )


class CandidateBooking(BaseModel):
    """A requested booking as submitted for validation.

    ``start`` and ``end`` are kept raw (a datetime or a timestamp string) so
    that unparsable or reversed bounds are reported as validation errors.
    """

    facility_id: str = Field(min_length=1)
    start: datetime | str
    end: datetime | str
    requester_id: str | None = None
    exclude_reservation_id: str | None = None


class ValidationResult(BaseModel):
    is_valid: bool
    errors: list[str] = Field(default_factory=list)
    warnings: list[str] = Field(default_factory=list)
    conflicts: list[ConflictDetail] | None = None


class WorkingHours(BaseModel):
    model_config = ConfigDict(frozen=True)

    start: time = time(8, 0)
    end: time = time(17, 0)

    @model_validator(mode="after")
    def _end_after_start(self) -> WorkingHours:
        if self.end <= self.start:
            raise ValueError("working hours must end after they start")
        return self


class BusinessRules(BaseModel):
    """Booking policy applied independently of other reservations."""

    model_config = ConfigDict(frozen=True)

    min_advance_days: int = Field(default=1, ge=0)
    max_advance_days: int = Field(default=30, ge=0)
    max_duration_days: int = Field(default=7, gt=0)
    min_same_day_minutes: int = Field(default=60, ge=0)
    max_span_days: int = Field(default=7, ge=0)
    weekend_policy: RulePolicy = RulePolicy.WARN
    holiday_policy: RulePolicy = RulePolicy.WARN
    holidays: frozenset[date] = frozenset()
    working_hours: WorkingHours = Field(default_factory=WorkingHours)
    working_hours_policy: RulePolicy = RulePolicy.ALLOW

    @model_validator(mode="after")
    def _advance_window_ordered(self) -> BusinessRules:
        if self.max_advance_days < self.min_advance_days:
            raise ValueError("max_advance_days must not be below min_advance_days")
        return self

    @property
    def allow_weekend_booking(self) -> bool:
        return self.weekend_policy == RulePolicy.ALLOW

    @property
    def allow_holiday_booking(self) -> bool:
        return self.holiday_policy == RulePolicy.ALLOW


class AuditEntry(BaseModel):
    id: str = Field(default_factory=_new_id)
    reservation_id: str
    timestamp: datetime = Field(default_factory=_utcnow)
    action: AuditAction
    actor_id: str | None = None
    payload: dict = Field(default_factory=dict)


# ---------------------------------------------------------------------------
# Request / Response DTOs
# ---------------------------------------------------------------------------


class CreateBookingRequest(BaseModel):
    facility_id: str = Field(min_length=1)
    start: datetime | str
    end: datetime | str
    requester_id: str = Field(min_length=1)
    requester_name: str
    purpose: str = ""


class RescheduleRequest(BaseModel):
    """New bounds for an existing booking; an omitted bound keeps its value."""

    start: datetime | str | None = None
    end: datetime | str | None = None
    actor_id: str | None = None


class StatusChangeRequest(BaseModel):
    status: ReservationStatus
    actor_id: str = Field(min_length=1)
    reason: str | None = None

    @model_validator(mode="after")
    def _rejection_has_reason(self) -> StatusChangeRequest:
        if self.status == ReservationStatus.REJECTED and not (self.reason or "").strip():
            raise ValueError("A reason is required when rejecting a booking")
        return self


class AvailabilityResponse(BaseModel):
    facility_id: str
    interval: TimeInterval
    available: bool


class FreeSlotsResponse(BaseModel):
    facility_id: str
    window: TimeInterval
    slots: list[TimeInterval]
    count: int
