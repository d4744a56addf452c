"""Service for computing the free time left in a window on a facility."""

from __future__ import annotations

from collections.abc import Collection, Iterable

from booking_scheduler.domain.models import (
    DEFAULT_ACTIVE_STATUSES,
    ReservationStatus,
    TimeInterval,
)
from booking_scheduler.repos.base import ReservationStore
from booking_scheduler.services.conflicts import fetch_active


def subtract_busy(window: TimeInterval, busy: Iterable[TimeInterval]) -> list[TimeInterval]:
    """Return the parts of ``window`` not covered by any ``busy`` interval.

    ``busy`` may be unsorted, overlapping, or extend past the window. The
    result is sorted, non-overlapping and never contains an empty interval.
    """
    free: list[TimeInterval] = []
    cursor = window.start
    for interval in sorted(busy, key=lambda i: i.start):
        if interval.start >= window.end:
            break
        if cursor < interval.start:
            free.append(TimeInterval(start=cursor, end=interval.start))
        cursor = max(cursor, interval.end)
    if cursor < window.end:
        free.append(TimeInterval(start=cursor, end=window.end))
    return free


class FreeSlotComputer:
    def __init__(
        self,
        store: ReservationStore,
        active_statuses: Collection[ReservationStatus] = DEFAULT_ACTIVE_STATUSES,
    ) -> None:
        self.store = store
        self.active_statuses = frozenset(active_statuses)

    async def free_slots(self, facility_id: str, window: TimeInterval) -> list[TimeInterval]:
        """Return the free sub-intervals of ``window``, earliest first."""
        reservations = await fetch_active(
            self.store, facility_id, self.active_statuses, window
        )
        return subtract_busy(window, (r.interval for r in reservations))
