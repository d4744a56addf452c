"""Storage contract the scheduler reads reservations and facilities through.

Every call returns a tagged result instead of raising, so callers can tell
"not found" and "lost a race" apart from "storage is down".
"""

from __future__ import annotations

from collections.abc import Collection
from dataclasses import dataclass, field
from typing import Generic, Protocol, TypeVar, Union

from booking_scheduler.domain.models import (
    Facility,
    Reservation,
    ReservationStatus,
    TimeInterval,
)

T = TypeVar("T")


@dataclass(frozen=True)
class Ok(Generic[T]):
    value: T


@dataclass(frozen=True)
class NotFound:
    key: str


@dataclass(frozen=True)
class Conflict:
    """A write was refused because these active reservations overlap it."""

    reservations: list[Reservation] = field(default_factory=list)


@dataclass(frozen=True)
class StatusMismatch:
    """A status write was refused because the reservation is no longer in the
    status the caller read."""

    current: ReservationStatus


@dataclass(frozen=True)
class StorageError:
    message: str


ListResult = Union[Ok[list[Reservation]], StorageError]
FacilityResult = Union[Ok[Facility], NotFound, StorageError]
ReservationResult = Union[Ok[Reservation], NotFound, StorageError]
WriteResult = Union[Ok[Reservation], NotFound, Conflict, StorageError]
StatusResult = Union[Ok[Reservation], NotFound, Conflict, StatusMismatch, StorageError]
DeleteResult = Union[Ok[Reservation], NotFound, StatusMismatch, StorageError]


class ReservationStore(Protocol):
    """Persistence collaborator for the scheduler.

    ``insert_if_no_overlap`` and ``replace_if_no_overlap`` must check and write
    atomically with respect to other writes on the same facility; validation
    alone cannot stop two overlapping bookings from both being accepted.

    ``set_status`` is a compare-and-set on ``expected``. When it moves a
    reservation into ``statuses`` from outside them, it refuses with
    ``Conflict`` if an active reservation overlaps. ``delete_if_status`` only
    removes a reservation whose current status is in ``allowed``.
    """

    async def list_active_reservations(
        self,
        facility_id: str,
        statuses: Collection[ReservationStatus],
        overlapping: TimeInterval | None = None,
    ) -> ListResult: ...

    async def get_facility(self, facility_id: str) -> FacilityResult: ...

    async def get_reservation(self, reservation_id: str) -> ReservationResult: ...

    async def insert_if_no_overlap(
        self,
        reservation: Reservation,
        statuses: Collection[ReservationStatus],
    ) -> WriteResult: ...

    async def replace_if_no_overlap(
        self,
        reservation: Reservation,
        statuses: Collection[ReservationStatus],
    ) -> WriteResult: ...

    async def list_reservations(
        self,
        facility_id: str | None = None,
        status: ReservationStatus | None = None,
        requester_id: str | None = None,
    ) -> ListResult: ...

    async def set_status(
        self,
        reservation_id: str,
        status: ReservationStatus,
        *,
        expected: ReservationStatus,
        statuses: Collection[ReservationStatus],
    ) -> StatusResult: ...

    async def delete_if_status(
        self, reservation_id: str, allowed: Collection[ReservationStatus]
    ) -> DeleteResult: ...
