"""FastAPI application — HTTP adapter over the booking scheduler."""

from __future__ import annotations

from fastapi import FastAPI, HTTPException, Request
from fastapi.responses import JSONResponse

from booking_scheduler.domain.bus import EventBus
from booking_scheduler.domain.handlers import AuditHandlers
from booking_scheduler.domain.models import (
    AuditEntry,
    AvailabilityResponse,
    CandidateBooking,
    CreateBookingRequest,
    Facility,
    FreeSlotsResponse,
    RescheduleRequest,
    Reservation,
    ReservationStatus,
    StatusChangeRequest,
    TimeInterval,
    ValidationResult,
)
from booking_scheduler.errors import (
    BookingRejected,
    InvalidTransitionError,
    ReservationNotFoundError,
    StorageUnavailableError,
)
from booking_scheduler.repos.memory import AuditTrailRepository, create_reservation_store
from booking_scheduler.services.bookings import BookingService
from booking_scheduler.services.rules import resolve_timezone
from booking_scheduler.services.validator import BookingValidator
from booking_scheduler.utils.config import get_settings
from booking_scheduler.utils.logger import configure_logging, get_logger

settings = get_settings()
configure_logging(settings.log_level)
logger = get_logger(__name__)

app = FastAPI(title=settings.app_name)

# ── Singletons (created at import time for simplicity) ────────────────
event_bus = EventBus()
reservation_store = create_reservation_store(seed=settings.seed_demo_data)
audit_repo = AuditTrailRepository()

validator = BookingValidator(
    reservation_store,
    settings.rules,
    zone=resolve_timezone(settings.timezone),
    active_statuses=settings.active_statuses,
    low_capacity_threshold=settings.low_capacity_threshold,
)
booking_service = BookingService(reservation_store, validator, event_bus)
audit_handlers = AuditHandlers(bus=event_bus, audit_repo=audit_repo)


# ── Error mapping ─────────────────────────────────────────────────────


@app.exception_handler(StorageUnavailableError)
async def _storage_unavailable(request: Request, exc: StorageUnavailableError) -> JSONResponse:
    logger.error("Storage unavailable during %s %s: %s", request.method, request.url.path, exc)
    return JSONResponse(
        status_code=503,
        content={"detail": "Booking store is unavailable; validity could not be determined"},
    )


@app.exception_handler(BookingRejected)
async def _booking_rejected(request: Request, exc: BookingRejected) -> JSONResponse:
    return JSONResponse(
        status_code=409 if exc.has_conflicts else 422,
        content=exc.result.model_dump(mode="json"),
    )


@app.exception_handler(ReservationNotFoundError)
async def _not_found(request: Request, exc: ReservationNotFoundError) -> JSONResponse:
    return JSONResponse(status_code=404, content={"detail": str(exc)})


@app.exception_handler(InvalidTransitionError)
async def _invalid_transition(request: Request, exc: InvalidTransitionError) -> JSONResponse:
    return JSONResponse(status_code=400, content={"detail": str(exc)})


def _query_interval(start: str, end: str) -> TimeInterval:
    try:
        return validator.parse_interval(start, end)
    except ValueError as exc:
        raise HTTPException(
            status_code=400,
            detail="start and end must be valid timestamps with start before end",
        ) from exc


# ── Routes ────────────────────────────────────────────────────────────


@app.post("/bookings/validate", response_model=ValidationResult)
async def validate_booking(candidate: CandidateBooking) -> ValidationResult:
    """Check a candidate booking without storing anything."""
    return await validator.validate(candidate)


@app.get("/facilities", response_model=list[Facility])
def list_facilities() -> list[Facility]:
    return reservation_store.list_facilities()


@app.get("/facilities/{facility_id}/availability", response_model=AvailabilityResponse)
async def check_availability(facility_id: str, start: str, end: str) -> AvailabilityResponse:
    """Is this exact slot free? Business rules are not applied."""
    interval = _query_interval(start, end)
    available = await validator.check_availability(facility_id, interval)
    return AvailabilityResponse(facility_id=facility_id, interval=interval, available=available)


@app.get("/facilities/{facility_id}/free-slots", response_model=FreeSlotsResponse)
async def free_slots(facility_id: str, start: str, end: str) -> FreeSlotsResponse:
    """Return the free sub-intervals of the ``start``–``end`` window."""
    window = _query_interval(start, end)
    slots = await validator.free_slots(facility_id, window)
    return FreeSlotsResponse(
        facility_id=facility_id, window=window, slots=slots, count=len(slots)
    )


@app.get("/bookings", response_model=list[Reservation])
async def list_bookings(
    facility_id: str | None = None,
    status: ReservationStatus | None = None,
    requester_id: str | None = None,
) -> list[Reservation]:
    """List bookings, newest first, filtered by facility, status and requester."""
    return await booking_service.list_bookings(
        facility_id=facility_id, status=status, requester_id=requester_id
    )


@app.post("/bookings", response_model=Reservation, status_code=201)
async def create_booking(payload: CreateBookingRequest) -> Reservation:
    return await booking_service.create(payload)


@app.get("/bookings/{reservation_id}", response_model=Reservation)
async def get_booking(reservation_id: str) -> Reservation:
    return await booking_service.get(reservation_id)


@app.put("/bookings/{reservation_id}", response_model=Reservation)
async def reschedule_booking(reservation_id: str, payload: RescheduleRequest) -> Reservation:
    return await booking_service.reschedule(reservation_id, payload)


@app.delete("/bookings/{reservation_id}", response_model=Reservation)
async def delete_booking(reservation_id: str, actor_id: str | None = None) -> Reservation:
    """Withdraw a booking that is still pending or was rejected."""
    return await booking_service.delete(reservation_id, actor_id)


@app.post("/bookings/{reservation_id}/status", response_model=Reservation)
async def change_booking_status(
    reservation_id: str, payload: StatusChangeRequest
) -> Reservation:
    """Move a booking through the approval workflow."""
    return await booking_service.change_status(reservation_id, payload)


@app.get("/bookings/{reservation_id}/audit", response_model=list[AuditEntry])
async def booking_audit(reservation_id: str) -> list[AuditEntry]:
    entries = audit_repo.list_for_reservation(reservation_id)
    if not entries:
        # Raises 404 for ids that never existed.
        await booking_service.get(reservation_id)
    return entries
