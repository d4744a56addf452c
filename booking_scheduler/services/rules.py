"""Business-rule checks that a booking must pass regardless of other bookings."""

from __future__ import annotations

import math
from collections.abc import Collection
from dataclasses import dataclass, field
from datetime import date, datetime, timedelta, timezone, tzinfo

from dateutil import parser as date_parser
from dateutil import tz

from booking_scheduler.domain.models import BusinessRules, RulePolicy, TimeInterval
from booking_scheduler.utils.logger import get_logger

logger = get_logger(__name__)

_ONE_DAY = timedelta(days=1)


# ---------------------------------------------------------------------------
# Date helpers
# ---------------------------------------------------------------------------


def resolve_timezone(name: str) -> tzinfo:
    """Return the tzinfo for an IANA name such as ``Asia/Jakarta``."""
    zone = tz.gettz(name)
    if zone is None:
        raise ValueError(f"Unknown timezone: {name}")
    return zone


def to_zone(value: datetime, zone: tzinfo) -> datetime:
    """Express ``value`` in ``zone``; naive values are taken to be local to it."""
    if value.tzinfo is None:
        return value.replace(tzinfo=zone)
    return value.astimezone(zone)


def parse_instant(value: datetime | str, zone: tzinfo) -> datetime | None:
    """Parse an ISO-8601 timestamp, returning None if it is not a real instant."""
    if isinstance(value, datetime):
        return to_zone(value, zone)
    try:
        parsed = date_parser.isoparse(value.strip())
    except (ValueError, OverflowError):
        return None
    return to_zone(parsed, zone)


def localize_interval(interval: TimeInterval, zone: tzinfo) -> TimeInterval:
    return TimeInterval(start=to_zone(interval.start, zone), end=to_zone(interval.end, zone))


def duration_days(start: datetime, end: datetime) -> int:
    """Whole days between two instants, rounding any partial day up."""
    return math.ceil((end - start) / _ONE_DAY)


def is_weekend(day: date) -> bool:
    return day.weekday() >= 5


def next_working_day(day: date, holidays: Collection[date] = ()) -> date:
    """Return the first day after ``day`` that is neither a weekend nor a holiday."""
    candidate = day + _ONE_DAY
    while is_weekend(candidate) or candidate in holidays:
        candidate += _ONE_DAY
    return candidate


# ---------------------------------------------------------------------------
# Gate
# ---------------------------------------------------------------------------


@dataclass
class RuleCheck:
    errors: list[str] = field(default_factory=list)
    warnings: list[str] = field(default_factory=list)
    interval: TimeInterval | None = None

    @property
    def passed(self) -> bool:
        return not self.errors


def _apply_policy(
    policy: RulePolicy, check: RuleCheck, blocked: str, advisory: str
) -> None:
    if policy == RulePolicy.BLOCK:
        check.errors.append(blocked)
    elif policy == RulePolicy.WARN:
        check.warnings.append(advisory)


class BusinessRuleGate:
    """Checks a requested time range against ``BusinessRules``.

    Unparsable or reversed bounds stop the check immediately. Every other
    violation is collected so the caller sees all of them at once.
    """

    def __init__(
        self, rules: BusinessRules | None = None, zone: tzinfo | None = None
    ) -> None:
        self.rules = rules or BusinessRules()
        self.zone = zone or timezone.utc

    def check(
        self,
        start: datetime | str,
        end: datetime | str,
        now: datetime | None = None,
    ) -> RuleCheck:
        rules = self.rules
        result = RuleCheck()

        start_at = parse_instant(start, self.zone)
        end_at = parse_instant(end, self.zone)
        if start_at is None:
            result.errors.append("Start time is not a valid timestamp")
        if end_at is None:
            result.errors.append("End time is not a valid timestamp")
        if result.errors:
            return result

        if start_at >= end_at:
            result.errors.append("Start time must be before end time")
            return result

        result.interval = TimeInterval(start=start_at, end=end_at)

        current = to_zone(now or datetime.now(timezone.utc), self.zone)
        today = current.replace(hour=0, minute=0, second=0, microsecond=0)

        if start_at < today:
            result.errors.append("Start time cannot be in the past")

        days_from_now = duration_days(today, start_at)
        if days_from_now < rules.min_advance_days:
            result.errors.append(
                f"Bookings must be made at least {rules.min_advance_days} day(s) in advance"
            )
        if days_from_now > rules.max_advance_days:
            result.errors.append(
                f"Bookings cannot be made more than {rules.max_advance_days} days in advance"
            )

        if duration_days(start_at, end_at) > rules.max_duration_days:
            result.errors.append(
                f"Booking duration cannot exceed {rules.max_duration_days} days"
            )

        start_day, end_day = start_at.date(), end_at.date()
        if start_day == end_day:
            if end_at - start_at < timedelta(minutes=rules.min_same_day_minutes):
                result.errors.append(
                    f"Same-day bookings must last at least {rules.min_same_day_minutes} minutes"
                )
        elif (end_day - start_day).days > rules.max_span_days:
            result.errors.append(
                f"Multi-day bookings cannot span more than {rules.max_span_days} days"
            )

        if is_weekend(start_day) or is_weekend(end_day):
            _apply_policy(
                rules.weekend_policy,
                result,
                blocked="Bookings on weekends are not permitted",
                advisory="Bookings on weekends may not be permitted",
            )

        span = (start_day + timedelta(days=n) for n in range((end_day - start_day).days + 1))
        holidays = sorted(d for d in span if d in rules.holidays)
        if holidays:
            listed = ", ".join(d.isoformat() for d in holidays)
            _apply_policy(
                rules.holiday_policy,
                result,
                blocked=f"Bookings on holidays are not permitted ({listed})",
                advisory=f"Booking includes a holiday ({listed})",
            )

        hours = rules.working_hours
        # Any booking that runs past midnight covers the hours outside the window.
        if (
            start_day != end_day
            or start_at.time() < hours.start
            or end_at.time() > hours.end
        ):
            window = f"{hours.start:%H:%M}-{hours.end:%H:%M}"
            _apply_policy(
                rules.working_hours_policy,
                result,
                blocked=f"Bookings must fall within working hours ({window})",
                advisory=f"Booking extends outside working hours ({window})",
            )

        if result.errors:
            logger.debug("Business rules rejected %s: %s", result.interval, result.errors)
        return result
