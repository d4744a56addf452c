"""Exceptions raised by the scheduler.

Invalid bookings are reported as data (``ValidationResult``); these exceptions
cover the cases where validity could not be decided or a write was refused.
"""

from __future__ import annotations

from booking_scheduler.domain.models import ReservationStatus, ValidationResult


class SchedulerError(Exception):
    """Base class for scheduler errors."""


class StorageUnavailableError(SchedulerError):
    """The reservation store failed; the booking's validity is unknown."""


class ReservationNotFoundError(SchedulerError):
    def __init__(self, reservation_id: str) -> None:
        super().__init__(f"Reservation {reservation_id} not found")
        self.reservation_id = reservation_id


class InvalidTransitionError(SchedulerError):
    def __init__(self, current: ReservationStatus, requested: ReservationStatus) -> None:
        super().__init__(f"Cannot change status from {current} to {requested}")
        self.current = current
        self.requested = requested


class BookingRejected(SchedulerError):
    """A create or reschedule was refused; ``result`` says why."""

    def __init__(self, result: ValidationResult) -> None:
        super().__init__("; ".join(result.errors) or "Booking rejected")
        self.result = result

    @property
    def has_conflicts(self) -> bool:
        return bool(self.result.conflicts)
