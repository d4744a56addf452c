"""Service for detecting scheduling conflicts between reservations."""

from __future__ import annotations

from collections.abc import Collection, Iterable

from booking_scheduler.domain.models import (
    DEFAULT_ACTIVE_STATUSES,
    ConflictDetail,
    Reservation,
    ReservationStatus,
    TimeInterval,
)
from booking_scheduler.errors import StorageUnavailableError
from booking_scheduler.repos.base import ReservationStore, StorageError
from booking_scheduler.services.overlap import overlaps
from booking_scheduler.utils.logger import get_logger

logger = get_logger(__name__)


def find_conflicts(
    interval: TimeInterval,
    existing: Iterable[Reservation],
    exclude_reservation_id: str | None = None,
) -> list[Reservation]:
    """Return existing reservations that overlap ``interval``.

    A reservation whose id equals ``exclude_reservation_id`` is skipped so an
    edited booking does not conflict with its own earlier version.
    """
    return [
        reservation
        for reservation in existing
        if reservation.id != exclude_reservation_id
        and overlaps(interval, reservation.interval)
    ]


async def fetch_active(
    store: ReservationStore,
    facility_id: str,
    statuses: Collection[ReservationStatus],
    overlapping: TimeInterval | None = None,
) -> list[Reservation]:
    """Read active reservations, raising if the store fails."""
    result = await store.list_active_reservations(facility_id, statuses, overlapping)
    if isinstance(result, StorageError):
        logger.error(
            "Reservation query failed for facility %s: %s", facility_id, result.message
        )
        raise StorageUnavailableError(result.message)
    return result.value


class ConflictDetector:
    """Finds active reservations on a facility that a requested interval overlaps."""

    def __init__(
        self,
        store: ReservationStore,
        active_statuses: Collection[ReservationStatus] = DEFAULT_ACTIVE_STATUSES,
    ) -> None:
        self.store = store
        self.active_statuses = frozenset(active_statuses)

    async def find_conflicts(
        self,
        facility_id: str,
        interval: TimeInterval,
        exclude_reservation_id: str | None = None,
    ) -> list[ConflictDetail]:
        existing = await fetch_active(
            self.store, facility_id, self.active_statuses, interval
        )
        clashes = find_conflicts(interval, existing, exclude_reservation_id)
        if clashes:
            logger.info(
                "Interval %s - %s on facility %s conflicts with %s",
                interval.start.isoformat(),
                interval.end.isoformat(),
                facility_id,
                [r.id for r in clashes],
            )
        return [ConflictDetail.from_reservation(r) for r in clashes]
