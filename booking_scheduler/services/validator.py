"""Booking validation: business rules, conflicts and facility checks in one call."""

from __future__ import annotations

from collections.abc import Callable, Collection
from datetime import datetime, timezone, tzinfo

from booking_scheduler.domain.models import (
    DEFAULT_ACTIVE_STATUSES,
    BusinessRules,
    CandidateBooking,
    ReservationStatus,
    TimeInterval,
    ValidationResult,
)
from booking_scheduler.errors import StorageUnavailableError
from booking_scheduler.repos.base import NotFound, ReservationStore, StorageError
from booking_scheduler.services.conflicts import ConflictDetector
from booking_scheduler.services.free_slots import FreeSlotComputer
from booking_scheduler.services.rules import (
    BusinessRuleGate,
    localize_interval,
    parse_instant,
)
from booking_scheduler.utils.logger import get_logger

logger = get_logger(__name__)

CONFLICT_ERROR = "Facility is already booked for the requested period"


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class BookingValidator:
    """Decides whether a candidate booking may be accepted.

    Never writes. Storage failures raise ``StorageUnavailableError`` rather
    than producing an invalid result, so callers can tell "invalid" from
    "unknown".
    """

    def __init__(
        self,
        store: ReservationStore,
        rules: BusinessRules | None = None,
        *,
        zone: tzinfo | None = None,
        active_statuses: Collection[ReservationStatus] = DEFAULT_ACTIVE_STATUSES,
        low_capacity_threshold: int = 10,
        clock: Callable[[], datetime] = _utcnow,
    ) -> None:
        self.store = store
        self.zone = zone or timezone.utc
        self.gate = BusinessRuleGate(rules, self.zone)
        self.detector = ConflictDetector(store, active_statuses)
        self.slots = FreeSlotComputer(store, active_statuses)
        self.low_capacity_threshold = low_capacity_threshold
        self.clock = clock

    @property
    def rules(self) -> BusinessRules:
        return self.gate.rules

    @property
    def active_statuses(self) -> frozenset[ReservationStatus]:
        return self.detector.active_statuses

    def parse_interval(self, start: datetime | str, end: datetime | str) -> TimeInterval:
        """Parse raw bounds into a local interval; raises ValueError if malformed."""
        start_at = parse_instant(start, self.zone)
        end_at = parse_instant(end, self.zone)
        if start_at is None or end_at is None:
            raise ValueError("start and end must be valid timestamps")
        return TimeInterval(start=start_at, end=end_at)

    async def validate(self, candidate: CandidateBooking) -> ValidationResult:
        check = self.gate.check(candidate.start, candidate.end, now=self.clock())
        errors = list(check.errors)
        warnings = list(check.warnings)

        # Rule failures skip the reservation query; the facility check is
        # advisory and runs either way.
        conflicts = []
        if check.passed and check.interval is not None:
            conflicts = await self.detector.find_conflicts(
                candidate.facility_id, check.interval, candidate.exclude_reservation_id
            )
            if conflicts:
                errors.append(CONFLICT_ERROR)

        facility_error, capacity_warnings = await self._check_facility(
            candidate.facility_id
        )
        if facility_error:
            errors.append(facility_error)
        warnings.extend(capacity_warnings)

        result = ValidationResult(
            is_valid=not errors,
            errors=errors,
            warnings=warnings,
            conflicts=conflicts or None,
        )
        logger.debug(
            "Validated booking on %s (%s): valid=%s errors=%s",
            candidate.facility_id,
            check.interval,
            result.is_valid,
            result.errors,
        )
        return result

    async def check_availability(self, facility_id: str, interval: TimeInterval) -> bool:
        """True if no active reservation overlaps ``interval``; rules are ignored."""
        conflicts = await self.detector.find_conflicts(
            facility_id, localize_interval(interval, self.zone)
        )
        return not conflicts

    async def free_slots(self, facility_id: str, window: TimeInterval) -> list[TimeInterval]:
        return await self.slots.free_slots(facility_id, localize_interval(window, self.zone))

    async def _check_facility(self, facility_id: str) -> tuple[str | None, list[str]]:
        result = await self.store.get_facility(facility_id)
        if isinstance(result, StorageError):
            logger.error("Facility lookup failed for %s: %s", facility_id, result.message)
            raise StorageUnavailableError(result.message)
        if isinstance(result, NotFound):
            return f"Facility {facility_id} not found", []

        facility = result.value
        if facility.capacity < self.low_capacity_threshold:
            return None, [
                f"Facility {facility.name} has limited capacity ({facility.capacity} people)"
            ]
        return None, []
