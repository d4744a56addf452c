"""In-memory repositories for facilities, reservations and the audit trail."""

from __future__ import annotations

import asyncio
from collections.abc import Collection
from datetime import datetime, time, timedelta, timezone

from booking_scheduler.domain.models import (
    AuditEntry,
    Facility,
    Reservation,
    ReservationStatus,
    TimeInterval,
)
from booking_scheduler.repos.base import (
    Conflict,
    DeleteResult,
    FacilityResult,
    ListResult,
    NotFound,
    Ok,
    ReservationResult,
    StatusMismatch,
    StatusResult,
    WriteResult,
)
from booking_scheduler.services.overlap import overlaps


class InMemoryReservationStore:
    """Dict-backed reservation store.

    Writes on one facility are serialized by a per-facility lock, which makes
    the check-then-insert in ``insert_if_no_overlap`` atomic.
    """

    def __init__(self) -> None:
        self._facilities: dict[str, Facility] = {}
        self._reservations: dict[str, Reservation] = {}
        self._locks: dict[str, asyncio.Lock] = {}

    # ------------------------------------------------------------------
    # Synchronous helpers (seeding, tests)
    # ------------------------------------------------------------------

    def add_facility(self, facility: Facility) -> None:
        self._facilities[facility.id] = facility

    def add_reservation(self, reservation: Reservation) -> None:
        """Store a reservation as-is, without any overlap check."""
        self._reservations[reservation.id] = reservation

    def list_facilities(self) -> list[Facility]:
        return list(self._facilities.values())

    def clear(self) -> None:
        self._facilities.clear()
        self._reservations.clear()
        self._locks.clear()

    # ------------------------------------------------------------------
    # ReservationStore
    # ------------------------------------------------------------------

    async def list_active_reservations(
        self,
        facility_id: str,
        statuses: Collection[ReservationStatus],
        overlapping: TimeInterval | None = None,
    ) -> ListResult:
        return Ok(self._active(facility_id, statuses, overlapping))

    async def get_facility(self, facility_id: str) -> FacilityResult:
        facility = self._facilities.get(facility_id)
        if facility is None:
            return NotFound(facility_id)
        return Ok(facility)

    async def get_reservation(self, reservation_id: str) -> ReservationResult:
        reservation = self._reservations.get(reservation_id)
        if reservation is None:
            return NotFound(reservation_id)
        return Ok(reservation)

    async def insert_if_no_overlap(
        self,
        reservation: Reservation,
        statuses: Collection[ReservationStatus],
    ) -> WriteResult:
        async with self._lock_for(reservation.facility_id):
            clashes = self._active(
                reservation.facility_id, statuses, reservation.interval
            )
            if clashes:
                return Conflict(clashes)
            self._reservations[reservation.id] = reservation
            return Ok(reservation)

    async def replace_if_no_overlap(
        self,
        reservation: Reservation,
        statuses: Collection[ReservationStatus],
    ) -> WriteResult:
        async with self._lock_for(reservation.facility_id):
            if reservation.id not in self._reservations:
                return NotFound(reservation.id)
            clashes = [
                r
                for r in self._active(
                    reservation.facility_id, statuses, reservation.interval
                )
                if r.id != reservation.id
            ]
            if clashes:
                return Conflict(clashes)
            self._reservations[reservation.id] = reservation
            return Ok(reservation)

    async def list_reservations(
        self,
        facility_id: str | None = None,
        status: ReservationStatus | None = None,
        requester_id: str | None = None,
    ) -> ListResult:
        matches = [
            r
            for r in self._reservations.values()
            if (facility_id is None or r.facility_id == facility_id)
            and (status is None or r.status == status)
            and (requester_id is None or r.requester_id == requester_id)
        ]
        return Ok(sorted(matches, key=lambda r: r.created_at, reverse=True))

    async def set_status(
        self,
        reservation_id: str,
        status: ReservationStatus,
        *,
        expected: ReservationStatus,
        statuses: Collection[ReservationStatus],
    ) -> StatusResult:
        found = self._reservations.get(reservation_id)
        if found is None:
            return NotFound(reservation_id)
        async with self._lock_for(found.facility_id):
            current = self._reservations.get(reservation_id)
            if current is None:
                return NotFound(reservation_id)
            if current.status != expected:
                return StatusMismatch(current.status)
            if status in statuses and current.status not in statuses:
                # Re-entering the calendar; the slot may have been taken meanwhile.
                clashes = [
                    r
                    for r in self._active(current.facility_id, statuses, current.interval)
                    if r.id != current.id
                ]
                if clashes:
                    return Conflict(clashes)
            updated = current.model_copy(update={"status": status})
            self._reservations[reservation_id] = updated
            return Ok(updated)

    async def delete_if_status(
        self, reservation_id: str, allowed: Collection[ReservationStatus]
    ) -> DeleteResult:
        found = self._reservations.get(reservation_id)
        if found is None:
            return NotFound(reservation_id)
        async with self._lock_for(found.facility_id):
            current = self._reservations.get(reservation_id)
            if current is None:
                return NotFound(reservation_id)
            if current.status not in allowed:
                return StatusMismatch(current.status)
            del self._reservations[reservation_id]
            return Ok(current)

    # ------------------------------------------------------------------

    def _active(
        self,
        facility_id: str,
        statuses: Collection[ReservationStatus],
        overlapping: TimeInterval | None,
    ) -> list[Reservation]:
        return sorted(
            (
                r
                for r in self._reservations.values()
                if r.facility_id == facility_id
                and r.status in statuses
                and (overlapping is None or overlaps(r.interval, overlapping))
            ),
            key=lambda r: r.interval.start,
        )

    def _lock_for(self, facility_id: str) -> asyncio.Lock:
        lock = self._locks.get(facility_id)
        if lock is None:
            lock = self._locks[facility_id] = asyncio.Lock()
        return lock


class AuditTrailRepository:
    """List-backed store for AuditEntry instances."""

    def __init__(self) -> None:
        self._entries: list[AuditEntry] = []

    def add(self, entry: AuditEntry) -> None:
        self._entries.append(entry)

    def list_for_reservation(self, reservation_id: str) -> list[AuditEntry]:
        return sorted(
            [e for e in self._entries if e.reservation_id == reservation_id],
            key=lambda e: e.timestamp,
        )

    def clear(self) -> None:
        self._entries.clear()


# ---------------------------------------------------------------------------
# Seed data – a couple of facilities with near-future bookings
# ---------------------------------------------------------------------------


def _seed(store: InMemoryReservationStore) -> None:
    today = datetime.now(timezone.utc).date()

    def at(days: int, hour: int) -> datetime:
        return datetime.combine(
            today + timedelta(days=days), time(hour), tzinfo=timezone.utc
        )

    hall = Facility(id="aula", name="Main Hall", capacity=300, location="Building A")
    lab = Facility(id="lab-1", name="Computer Lab 1", capacity=40, location="Building C")
    studio = Facility(id="studio", name="Recording Studio", capacity=6, location="Building B")
    for facility in (hall, lab, studio):
        store.add_facility(facility)

    store.add_reservation(
        Reservation(
            facility_id=hall.id,
            requester_id="u-100",
            requester_name="Student Council",
            interval=TimeInterval(start=at(2, 8), end=at(2, 12)),
            status=ReservationStatus.APPROVED,
            purpose="General assembly",
        )
    )
    store.add_reservation(
        Reservation(
            facility_id=hall.id,
            requester_id="u-101",
            requester_name="Music Club",
            interval=TimeInterval(start=at(3, 13), end=at(3, 17)),
            purpose="Rehearsal",
        )
    )
    store.add_reservation(
        Reservation(
            facility_id=lab.id,
            requester_id="u-102",
            requester_name="Informatics Dept.",
            interval=TimeInterval(start=at(4, 9), end=at(4, 15)),
            status=ReservationStatus.NEEDS_REVISION,
            purpose="Programming contest",
        )
    )


def create_reservation_store(seed: bool = False) -> InMemoryReservationStore:
    """Return an InMemoryReservationStore, optionally pre-loaded with sample data."""
    store = InMemoryReservationStore()
    if seed:
        _seed(store)
    return store
