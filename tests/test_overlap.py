"""Tests for the half-open interval overlap predicate."""

from __future__ import annotations

import random
from datetime import datetime, timedelta, timezone

import pytest
from pydantic import ValidationError

from booking_scheduler.domain.models import TimeInterval
from booking_scheduler.services.overlap import overlaps

_DAY = datetime(2025, 8, 5, tzinfo=timezone.utc)


def _at(hour: int, minute: int = 0) -> datetime:
    return _DAY + timedelta(hours=hour, minutes=minute)


def _interval(start_hour: int, end_hour: int) -> TimeInterval:
    return TimeInterval(start=_at(start_hour), end=_at(end_hour))


def test_touching_intervals_do_not_overlap():
    """Intervals that share only an endpoint do not overlap."""
    assert not overlaps(_interval(10, 11), _interval(11, 12))
    assert not overlaps(_interval(11, 12), _interval(10, 11))


def test_containment_overlaps_both_ways():
    """An interval inside another overlaps it, in either order."""
    outer, inner = _interval(9, 17), _interval(10, 11)
    assert overlaps(outer, inner)
    assert overlaps(inner, outer)


def test_partial_overlap():
    """Intervals that partly cover each other overlap."""
    assert overlaps(_interval(8, 12), _interval(10, 14))


def test_identical_intervals_overlap():
    """An interval overlaps itself."""
    assert overlaps(_interval(8, 9), _interval(8, 9))


def test_disjoint_intervals():
    """Separate intervals do not overlap."""
    assert not overlaps(_interval(8, 9), _interval(13, 14))


def test_overlap_is_symmetric():
    """overlaps(a, b) == overlaps(b, a) for random intervals."""
    rng = random.Random(20250805)
    for _ in range(500):
        a_start, b_start = rng.randrange(0, 96), rng.randrange(0, 96)
        a = TimeInterval(start=_at(0, a_start * 15), end=_at(0, (a_start + rng.randrange(1, 16)) * 15))
        b = TimeInterval(start=_at(0, b_start * 15), end=_at(0, (b_start + rng.randrange(1, 16)) * 15))
        assert overlaps(a, b) == overlaps(b, a)


def test_zero_length_interval_is_rejected():
    """Intervals must have positive length."""
    with pytest.raises(ValidationError):
        TimeInterval(start=_at(10), end=_at(10))


def test_reversed_interval_is_rejected():
    """An interval cannot end before it starts."""
    with pytest.raises(ValidationError):
        TimeInterval(start=_at(11), end=_at(10))
