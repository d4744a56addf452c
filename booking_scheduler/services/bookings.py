"""Booking lifecycle: create, reschedule, delete and change the status of bookings."""

from __future__ import annotations

from booking_scheduler.domain.bus import EventBus
from booking_scheduler.domain.events import (
    BookingCreated,
    BookingDeleted,
    BookingRescheduled,
    BookingStatusChanged,
)
from booking_scheduler.domain.models import (
    CandidateBooking,
    ConflictDetail,
    CreateBookingRequest,
    RescheduleRequest,
    Reservation,
    ReservationStatus,
    StatusChangeRequest,
    ValidationResult,
)
from booking_scheduler.errors import (
    BookingRejected,
    InvalidTransitionError,
    ReservationNotFoundError,
    StorageUnavailableError,
)
from booking_scheduler.repos.base import (
    Conflict,
    NotFound,
    ReservationStore,
    StatusMismatch,
    StorageError,
    WriteResult,
)
from booking_scheduler.services.validator import CONFLICT_ERROR, BookingValidator
from booking_scheduler.services.workflow import (
    DELETABLE_STATUSES,
    EDITABLE_STATUSES,
    can_transition,
)
from booking_scheduler.utils.logger import get_logger

logger = get_logger(__name__)


class BookingService:
    """Validates and then writes bookings through the store's atomic primitives.

    Validation is advisory with respect to races: the final say belongs to
    ``insert_if_no_overlap`` / ``replace_if_no_overlap``.
    """

    def __init__(
        self, store: ReservationStore, validator: BookingValidator, bus: EventBus
    ) -> None:
        self.store = store
        self.validator = validator
        self.bus = bus

    async def get(self, reservation_id: str) -> Reservation:
        result = await self.store.get_reservation(reservation_id)
        if isinstance(result, StorageError):
            logger.error("Reservation lookup failed for %s: %s", reservation_id, result.message)
            raise StorageUnavailableError(result.message)
        if isinstance(result, NotFound):
            raise ReservationNotFoundError(reservation_id)
        return result.value

    async def create(self, request: CreateBookingRequest) -> Reservation:
        """Validate and store a new booking in ``pending`` status."""
        result = await self.validator.validate(
            CandidateBooking(
                facility_id=request.facility_id,
                start=request.start,
                end=request.end,
                requester_id=request.requester_id,
            )
        )
        if not result.is_valid:
            raise BookingRejected(result)

        reservation = Reservation(
            facility_id=request.facility_id,
            requester_id=request.requester_id,
            requester_name=request.requester_name,
            interval=self.validator.parse_interval(request.start, request.end),
            purpose=request.purpose,
        )
        written = await self.store.insert_if_no_overlap(
            reservation, self.validator.active_statuses
        )
        stored = self._unwrap_write(written, result)

        logger.info(
            "Created reservation %s on %s for %s",
            stored.id,
            stored.facility_id,
            stored.requester_id,
        )
        self.bus.publish(
            BookingCreated(
                reservation_id=stored.id,
                facility_id=stored.facility_id,
                requester_id=stored.requester_id,
                interval=stored.interval,
            )
        )
        return stored

    async def reschedule(self, reservation_id: str, request: RescheduleRequest) -> Reservation:
        """Move a pending or revision-requested booking to new bounds."""
        current = await self.get(reservation_id)
        if current.status not in EDITABLE_STATUSES:
            raise BookingRejected(
                ValidationResult(
                    is_valid=False,
                    errors=[f"Booking is {current.status} and can no longer be changed"],
                )
            )

        start = request.start if request.start is not None else current.interval.start
        end = request.end if request.end is not None else current.interval.end
        result = await self.validator.validate(
            CandidateBooking(
                facility_id=current.facility_id,
                start=start,
                end=end,
                requester_id=current.requester_id,
                exclude_reservation_id=current.id,
            )
        )
        if not result.is_valid:
            raise BookingRejected(result)

        moved = current.model_copy(
            update={"interval": self.validator.parse_interval(start, end)}
        )
        written = await self.store.replace_if_no_overlap(
            moved, self.validator.active_statuses
        )
        stored = self._unwrap_write(written, result)

        self.bus.publish(
            BookingRescheduled(
                reservation_id=stored.id,
                actor_id=request.actor_id,
                previous=current.interval,
                current=stored.interval,
            )
        )
        return stored

    async def change_status(
        self, reservation_id: str, request: StatusChangeRequest
    ) -> Reservation:
        current = await self.get(reservation_id)
        if not can_transition(current.status, request.status):
            raise InvalidTransitionError(current.status, request.status)

        result = await self.store.set_status(
            reservation_id,
            request.status,
            expected=current.status,
            statuses=self.validator.active_statuses,
        )
        if isinstance(result, StatusMismatch):
            # Someone else moved the booking after we read it.
            raise InvalidTransitionError(result.current, request.status)
        if isinstance(result, Conflict):
            logger.info(
                "Reservation %s cannot return to %s, slot taken by %s",
                reservation_id,
                request.status,
                [r.id for r in result.reservations],
            )
            raise BookingRejected(
                ValidationResult(
                    is_valid=False,
                    errors=[CONFLICT_ERROR],
                    conflicts=[ConflictDetail.from_reservation(r) for r in result.reservations],
                )
            )
        if isinstance(result, StorageError):
            raise StorageUnavailableError(result.message)
        if isinstance(result, NotFound):
            raise ReservationNotFoundError(reservation_id)
        updated = result.value

        logger.info(
            "Reservation %s moved from %s to %s by %s",
            reservation_id,
            current.status,
            updated.status,
            request.actor_id,
        )
        self.bus.publish(
            BookingStatusChanged(
                reservation_id=reservation_id,
                actor_id=request.actor_id,
                previous=current.status,
                current=updated.status,
                reason=request.reason,
            )
        )
        return updated

    async def delete(self, reservation_id: str, actor_id: str | None = None) -> Reservation:
        """Remove a pending or rejected booking from the calendar."""
        result = await self.store.delete_if_status(reservation_id, DELETABLE_STATUSES)
        if isinstance(result, StatusMismatch):
            raise BookingRejected(
                ValidationResult(
                    is_valid=False,
                    errors=[f"Booking is {result.current} and can no longer be deleted"],
                )
            )
        if isinstance(result, StorageError):
            logger.error("Reservation delete failed for %s: %s", reservation_id, result.message)
            raise StorageUnavailableError(result.message)
        if isinstance(result, NotFound):
            raise ReservationNotFoundError(reservation_id)
        removed = result.value

        logger.info("Deleted reservation %s on %s", removed.id, removed.facility_id)
        self.bus.publish(
            BookingDeleted(
                reservation_id=removed.id,
                facility_id=removed.facility_id,
                actor_id=actor_id,
                status=removed.status,
                interval=removed.interval,
            )
        )
        return removed

    async def list_bookings(
        self,
        facility_id: str | None = None,
        status: ReservationStatus | None = None,
        requester_id: str | None = None,
    ) -> list[Reservation]:
        """Bookings matching every given filter, newest first."""
        result = await self.store.list_reservations(
            facility_id=facility_id, status=status, requester_id=requester_id
        )
        if isinstance(result, StorageError):
            logger.error("Reservation listing failed: %s", result.message)
            raise StorageUnavailableError(result.message)
        return result.value

    def _unwrap_write(self, written: WriteResult, validated: ValidationResult) -> Reservation:
        if isinstance(written, Conflict):
            # Another booking landed between validation and the write.
            logger.info(
                "Write refused, overlapping reservations %s",
                [r.id for r in written.reservations],
            )
            raise BookingRejected(
                ValidationResult(
                    is_valid=False,
                    errors=[CONFLICT_ERROR],
                    warnings=validated.warnings,
                    conflicts=[
                        ConflictDetail.from_reservation(r) for r in written.reservations
                    ],
                )
            )
        if isinstance(written, StorageError):
            logger.error("Reservation write failed: %s", written.message)
            raise StorageUnavailableError(written.message)
        if isinstance(written, NotFound):
            raise ReservationNotFoundError(written.key)
        return written.value
