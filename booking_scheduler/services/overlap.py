"""The overlap test used for every interval comparison in the project."""

from __future__ import annotations

from booking_scheduler.domain.models import TimeInterval


def overlaps(a: TimeInterval, b: TimeInterval) -> bool:
    """Return True if half-open intervals ``a`` and ``b`` intersect.

    Overlap rule: a.start < b.end AND b.start < a.end.
    Intervals that only touch (a.end == b.start) do NOT overlap.
    """
    return a.start < b.end and b.start < a.end
