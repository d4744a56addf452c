"""Tests for the conflict-detection service."""

from __future__ import annotations

import asyncio
import logging
from datetime import datetime, timezone

import pytest

from booking_scheduler.domain.models import (
    Reservation,
    ReservationStatus,
    TimeInterval,
)
from booking_scheduler.errors import StorageUnavailableError
from booking_scheduler.repos.base import StorageError
from booking_scheduler.repos.memory import InMemoryReservationStore
from booking_scheduler.services.conflicts import ConflictDetector, find_conflicts


def _interval(start_hour: int, end_hour: int, day: int = 1) -> TimeInterval:
    return TimeInterval(
        start=datetime(2025, 1, day, start_hour, 0, tzinfo=timezone.utc),
        end=datetime(2025, 1, day, end_hour, 0, tzinfo=timezone.utc),
    )


def _make_reservation(
    interval: TimeInterval,
    status: ReservationStatus = ReservationStatus.APPROVED,
    facility_id: str = "hall",
    **overrides,
) -> Reservation:
    defaults = dict(
        facility_id=facility_id,
        requester_id="u-1",
        requester_name="Existing",
        interval=interval,
        status=status,
        purpose="Seminar",
    )
    defaults.update(overrides)
    return Reservation(**defaults)


# ---------------------------------------------------------------------------
# Pure filter
# ---------------------------------------------------------------------------


def test_no_overlap():
    """Reservations that don't overlap should not be returned as conflicts."""
    existing = [_make_reservation(_interval(8, 9))]
    assert find_conflicts(_interval(10, 11), existing) == []


def test_partial_overlap():
    """A reservation that partially overlaps should be returned as a conflict."""
    existing = [_make_reservation(_interval(9, 11))]
    conflicts = find_conflicts(_interval(10, 12), existing)
    assert len(conflicts) == 1
    assert conflicts[0].interval.start == datetime(2025, 1, 1, 9, 0, tzinfo=timezone.utc)


def test_exact_boundary_no_conflict():
    """When existing.end == new.start, there is no conflict (boundary touch)."""
    existing = [_make_reservation(_interval(9, 10))]
    assert find_conflicts(_interval(10, 11), existing) == []


def test_excluded_reservation_is_skipped():
    """The excluded reservation is never reported as a conflict."""
    own = _make_reservation(_interval(9, 11))
    assert find_conflicts(_interval(9, 11), [own], exclude_reservation_id=own.id) == []


# ---------------------------------------------------------------------------
# Detector against a store
# ---------------------------------------------------------------------------


@pytest.fixture()
def store() -> InMemoryReservationStore:
    return InMemoryReservationStore()


def test_detector_returns_full_detail(store):
    """Conflicts carry requester, interval, status and purpose."""
    existing = _make_reservation(
        _interval(8, 12), requester_id="u-7", requester_name="Debate Club", purpose="Finals"
    )
    store.add_reservation(existing)

    conflicts = asyncio.run(ConflictDetector(store).find_conflicts("hall", _interval(10, 14)))

    assert len(conflicts) == 1
    detail = conflicts[0]
    assert detail.reservation_id == existing.id
    assert detail.requester_id == "u-7"
    assert detail.requester_name == "Debate Club"
    assert detail.purpose == "Finals"
    assert detail.status == ReservationStatus.APPROVED
    assert detail.interval == existing.interval


def test_detector_ignores_other_facilities(store):
    """Bookings on other facilities never conflict."""
    store.add_reservation(_make_reservation(_interval(8, 12), facility_id="lab"))
    assert asyncio.run(ConflictDetector(store).find_conflicts("hall", _interval(10, 14))) == []


def test_rejected_reservations_never_block(store):
    """Rejected bookings do not hold their slot."""
    store.add_reservation(_make_reservation(_interval(8, 12), ReservationStatus.REJECTED))
    assert asyncio.run(ConflictDetector(store).find_conflicts("hall", _interval(10, 14))) == []


@pytest.mark.parametrize(
    "status",
    [
        ReservationStatus.PENDING,
        ReservationStatus.APPROVED,
        ReservationStatus.NEEDS_REVISION,
    ],
)
def test_default_active_statuses_block(store, status):
    """Pending, approved and needs-revision bookings all block by default."""
    store.add_reservation(_make_reservation(_interval(8, 12), status))
    conflicts = asyncio.run(ConflictDetector(store).find_conflicts("hall", _interval(10, 14)))
    assert [c.status for c in conflicts] == [status]


def test_active_status_set_is_configurable(store):
    """A narrower active set lets revision requests give up their slot."""
    store.add_reservation(_make_reservation(_interval(8, 12), ReservationStatus.NEEDS_REVISION))
    detector = ConflictDetector(
        store, active_statuses={ReservationStatus.PENDING, ReservationStatus.APPROVED}
    )
    assert asyncio.run(detector.find_conflicts("hall", _interval(10, 14))) == []


def test_no_self_conflict_on_update(store):
    """Updating a booking does not conflict with its old interval."""
    own = _make_reservation(_interval(8, 12), ReservationStatus.PENDING)
    store.add_reservation(own)
    conflicts = asyncio.run(
        ConflictDetector(store).find_conflicts("hall", own.interval, exclude_reservation_id=own.id)
    )
    assert conflicts == []


def test_conflicts_are_logged(store, caplog):
    """Detected conflicts are logged at INFO."""
    store.add_reservation(_make_reservation(_interval(8, 12)))
    with caplog.at_level(logging.INFO, logger="booking_scheduler.services.conflicts"):
        asyncio.run(ConflictDetector(store).find_conflicts("hall", _interval(10, 14)))
    assert "conflicts with" in caplog.text


def test_storage_failure_raises():
    """A store error raises instead of returning no conflicts."""
    class BrokenStore(InMemoryReservationStore):
        async def list_active_reservations(self, facility_id, statuses, overlapping=None):
            return StorageError("connection reset")

    with pytest.raises(StorageUnavailableError, match="connection reset"):
        asyncio.run(ConflictDetector(BrokenStore()).find_conflicts("hall", _interval(10, 14)))
