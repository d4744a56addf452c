"""Domain events emitted during the booking lifecycle."""

from __future__ import annotations

from pydantic import BaseModel

from booking_scheduler.domain.models import ReservationStatus, TimeInterval


class BookingCreated(BaseModel):
    """Fired when a new reservation is stored."""

    reservation_id: str
    facility_id: str
    requester_id: str
    interval: TimeInterval


class BookingRescheduled(BaseModel):
    """Fired when an existing reservation moves to a new interval."""

    reservation_id: str
    actor_id: str | None = None
    previous: TimeInterval
    current: TimeInterval


class BookingStatusChanged(BaseModel):
    """Fired after a workflow status transition."""

    reservation_id: str
    actor_id: str
    previous: ReservationStatus
    current: ReservationStatus
    reason: str | None = None


class BookingDeleted(BaseModel):
    """Fired after a reservation is removed from the calendar."""

    reservation_id: str
    facility_id: str
    actor_id: str | None = None
    status: ReservationStatus
    interval: TimeInterval
