"""Allowed reservation status transitions."""

from __future__ import annotations

from booking_scheduler.domain.models import ReservationStatus

VALID_TRANSITIONS: dict[ReservationStatus, frozenset[ReservationStatus]] = {
    ReservationStatus.PENDING: frozenset(
        {
            ReservationStatus.APPROVED,
            ReservationStatus.REJECTED,
            ReservationStatus.NEEDS_REVISION,
        }
    ),
    # An approved booking can still be cancelled by staff.
    ReservationStatus.APPROVED: frozenset({ReservationStatus.REJECTED}),
    ReservationStatus.REJECTED: frozenset(),
    # The requester resubmits, or staff reject outright.
    ReservationStatus.NEEDS_REVISION: frozenset(
        {ReservationStatus.PENDING, ReservationStatus.REJECTED}
    ),
}

# Statuses in which the requester may still move the booking.
EDITABLE_STATUSES: frozenset[ReservationStatus] = frozenset(
    {ReservationStatus.PENDING, ReservationStatus.NEEDS_REVISION}
)

# Statuses in which a booking may be withdrawn entirely. Approved bookings must
# be rejected by staff instead.
DELETABLE_STATUSES: frozenset[ReservationStatus] = frozenset(
    {ReservationStatus.PENDING, ReservationStatus.REJECTED}
)


def available_transitions(current: ReservationStatus) -> frozenset[ReservationStatus]:
    return VALID_TRANSITIONS.get(current, frozenset())


def can_transition(current: ReservationStatus, requested: ReservationStatus) -> bool:
    return requested in available_transitions(current)
