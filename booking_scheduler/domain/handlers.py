"""Domain event handlers — wired up at application startup."""

from __future__ import annotations

from booking_scheduler.domain.bus import EventBus
from booking_scheduler.domain.events import (
    BookingCreated,
    BookingDeleted,
    BookingRescheduled,
    BookingStatusChanged,
)
from booking_scheduler.domain.models import AuditAction, AuditEntry
from booking_scheduler.repos.memory import AuditTrailRepository
from booking_scheduler.utils.logger import get_logger

logger = get_logger(__name__)


class AuditHandlers:
    """Records an audit entry for every booking lifecycle event."""

    def __init__(self, bus: EventBus, audit_repo: AuditTrailRepository) -> None:
        self.bus = bus
        self.audit_repo = audit_repo
        self._register()

    def _register(self) -> None:
        self.bus.subscribe(BookingCreated, self.on_booking_created)
        self.bus.subscribe(BookingRescheduled, self.on_booking_rescheduled)
        self.bus.subscribe(BookingStatusChanged, self.on_status_changed)
        self.bus.subscribe(BookingDeleted, self.on_booking_deleted)

    # ------------------------------------------------------------------
    # Handlers
    # ------------------------------------------------------------------

    def on_booking_created(self, event: BookingCreated) -> None:
        self._record(
            AuditEntry(
                reservation_id=event.reservation_id,
                action=AuditAction.CREATED,
                actor_id=event.requester_id,
                payload={
                    "facility_id": event.facility_id,
                    "start": event.interval.start.isoformat(),
                    "end": event.interval.end.isoformat(),
                },
            )
        )

    def on_booking_rescheduled(self, event: BookingRescheduled) -> None:
        self._record(
            AuditEntry(
                reservation_id=event.reservation_id,
                action=AuditAction.RESCHEDULED,
                actor_id=event.actor_id,
                payload={
                    "previous": {
                        "start": event.previous.start.isoformat(),
                        "end": event.previous.end.isoformat(),
                    },
                    "current": {
                        "start": event.current.start.isoformat(),
                        "end": event.current.end.isoformat(),
                    },
                },
            )
        )

    def on_status_changed(self, event: BookingStatusChanged) -> None:
        payload = {"previous": str(event.previous), "current": str(event.current)}
        if event.reason:
            payload["reason"] = event.reason
        self._record(
            AuditEntry(
                reservation_id=event.reservation_id,
                action=AuditAction.STATUS_CHANGED,
                actor_id=event.actor_id,
                payload=payload,
            )
        )

    def on_booking_deleted(self, event: BookingDeleted) -> None:
        self._record(
            AuditEntry(
                reservation_id=event.reservation_id,
                action=AuditAction.DELETED,
                actor_id=event.actor_id,
                payload={
                    "facility_id": event.facility_id,
                    "status": str(event.status),
                    "start": event.interval.start.isoformat(),
                    "end": event.interval.end.isoformat(),
                },
            )
        )

    def _record(self, entry: AuditEntry) -> None:
        self.audit_repo.add(entry)
        logger.info(
            "audit reservation=%s action=%s actor=%s %s",
            entry.reservation_id,
            entry.action,
            entry.actor_id,
            entry.payload,
        )
