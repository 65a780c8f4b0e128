import logging
from decimal import Decimal
from typing import List, Optional
from uuid import UUID

from fastapi import FastAPI, HTTPException, Depends, Query
from fastapi.security import OAuth2PasswordRequestForm

from api.schemas import (
    # Shared
    DateRangeResponse, ErrorResponse,
    # Availability
    AvailabilityResponse, BulkAvailabilityRequest, BulkAvailabilityResponse,
    RangeAvailabilityResponse,
    # Quotes
    QuoteRequest, QuoteResponse, ResourceResponse,
    # Reservation
    CreateReservationRequest, ReservationResponse, CalendarEntryResponse,
    # Auth
    Token, UserResponse
)

from api.dependencies import authenticate_user, get_current_active_user, get_engine
from infrastructure.bootstrap import build_engine
from infrastructure.config import settings
from infrastructure.security import create_access_token
from domain.auth import User

from application.engine import ReservationEngine
from domain.entities import Quote, Reservation, Resource
from domain.enums import HolderFilter, ReservationStatus
from domain.exceptions import (
    InvalidRange, InvalidTransition, NoPendingQuote, ReservationConflict, ReservationError,
    ReservationNotFound, ResourceNotFound, StoreUnavailable,
)
from domain.intervals import parse_calendar_date
from domain.value_objects import Money

logging.basicConfig(
    level=settings.log_level,
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)

app = FastAPI(
    title="Reservation Conflict Engine",
    description="Date-range reservations on single-unit resources without double booking",
    version="1.0.0"
)

# Sample catalog for the in-memory store; a database-backed catalog is filled separately
DEMO_RESOURCES = (
    Resource(resource_id="villa-1", title="Seaside Villa",
             nightly_price=Money(amount=Decimal("100.00"))),
    Resource(resource_id="cabin-7", title="Forest Cabin",
             nightly_price=Money(amount=Decimal("85.50"))),
)

app.state.engine = build_engine(settings, resources=DEMO_RESOURCES)


@app.on_event("startup")
async def prepare_store():
    await app.state.engine.store.prepare()
    logger.info("Reservation store ready")


@app.on_event("shutdown")
async def close_store():
    await app.state.engine.store.close()


# ============================================================================
# ERROR MAPPING
# ============================================================================

_ERROR_STATUS = (
    (ReservationConflict, 409),
    (InvalidRange, 400),
    (InvalidTransition, 400),
    (ResourceNotFound, 404),
    (ReservationNotFound, 404),
    (NoPendingQuote, 404),
    (StoreUnavailable, 503),
)


def _http_error(error: ReservationError) -> HTTPException:
    status_code = next((code for kind, code in _ERROR_STATUS if isinstance(error, kind)), 400)
    conflicts = []
    if isinstance(error, ReservationConflict):
        conflicts = [_range_to_response(r) for r in error.conflicting_ranges]
    detail = ErrorResponse(code=error.code, message=error.message, conflicts=conflicts)
    return HTTPException(status_code=status_code, detail=detail.model_dump(mode="json"))


# ============================================================================
# HEALTH & ENUM REFERENCE ENDPOINTS
# ============================================================================

@app.get("/api/health", tags=["Health"])
async def health_check():
    """Health check endpoint"""
    return {"status": "healthy", "message": "API is running"}

@app.get("/api/enums/reservation-status", tags=["Enum Reference"])
async def get_reservation_statuses():
    """Get all ReservationStatus enum values"""
    return {
        "values": [item.value for item in ReservationStatus],
        "blocking": [item.value for item in ReservationStatus if item.blocks_capacity],
        "description": "Reservation status values: pending, confirmed, cancelled, completed"
    }

@app.get("/api/enums/holder-filter", tags=["Enum Reference"])
async def get_holder_filters():
    """Get all HolderFilter enum values"""
    return {
        "values": [item.value for item in HolderFilter],
        "description": "Holder listing filters: active, upcoming, past, all"
    }

# ============================================================================
# AUTH ENDPOINTS
# ============================================================================

@app.post("/token", response_model=Token, tags=["Auth"])
async def login_for_access_token(form_data: OAuth2PasswordRequestForm = Depends()):
    user = authenticate_user(form_data.username, form_data.password)
    if user is None:
        raise HTTPException(
            status_code=401,
            detail="Incorrect username or password",
            headers={"WWW-Authenticate": "Bearer"},
        )
    return {"access_token": create_access_token(user.username), "token_type": "bearer"}

@app.get("/users/me", response_model=UserResponse, tags=["Auth"])
async def read_users_me(current_user: User = Depends(get_current_active_user)):
    return current_user

# ============================================================================
# AVAILABILITY ENDPOINTS
# ============================================================================

@app.get("/api/availability", response_model=AvailabilityResponse, tags=["Availability"])
async def check_availability(
    resource_id: str,
    check_in: str,
    check_out: str,
    engine: ReservationEngine = Depends(get_engine)
):
    """Check whether a resource is free for [check_in, check_out)"""
    try:
        result = await engine.checker.check_single(resource_id, check_in, check_out)
    except ReservationError as e:
        raise _http_error(e)
    return AvailabilityResponse(
        resource_id=result.resource_id,
        check_in=result.date_range.check_in,
        check_out=result.date_range.check_out,
        available=result.available,
        conflicts=[_range_to_response(r) for r in result.conflicts],
    )

@app.post("/api/availability/bulk", response_model=BulkAvailabilityResponse, tags=["Availability"])
async def check_bulk_availability(
    request: BulkAvailabilityRequest,
    engine: ReservationEngine = Depends(get_engine)
):
    """Check several date ranges for one resource; invalid ranges are reported per entry"""
    try:
        results = await engine.checker.check_bulk(request.resource_id, request.date_ranges)
    except ReservationError as e:
        raise _http_error(e)
    return BulkAvailabilityResponse(
        resource_id=request.resource_id,
        results=[
            RangeAvailabilityResponse(
                check_in=r.check_in,
                check_out=r.check_out,
                available=r.available,
                conflicts=[_range_to_response(c) for c in r.conflicts],
                error=r.error,
            )
            for r in results
        ],
    )

# ============================================================================
# QUOTE ENDPOINTS
# ============================================================================

@app.post("/api/quotes", response_model=QuoteResponse, tags=["Quotes"])
async def create_quote(
    request: QuoteRequest,
    engine: ReservationEngine = Depends(get_engine),
    current_user: User = Depends(get_current_active_user)
):
    """Price a stay without holding the dates; remembered as the caller's pending quote"""
    try:
        quote = await engine.coordinator.quote(
            request.resource_id, request.check_in, request.check_out,
            session_id=current_user.username,
        )
    except ReservationError as e:
        raise _http_error(e)
    return _quote_to_response(quote)

@app.get("/api/quotes/pending", response_model=QuoteResponse, tags=["Quotes"])
async def get_pending_quote(
    engine: ReservationEngine = Depends(get_engine),
    current_user: User = Depends(get_current_active_user)
):
    """Get the caller's latest quote"""
    quote = engine.coordinator.pending_quote(current_user.username)
    if quote is None:
        raise _http_error(NoPendingQuote(current_user.username))
    return _quote_to_response(quote)

@app.post("/api/quotes/pending/confirm", response_model=ReservationResponse, status_code=201, tags=["Quotes"])
async def confirm_pending_quote(
    engine: ReservationEngine = Depends(get_engine),
    current_user: User = Depends(get_current_active_user)
):
    """Book the caller's latest quote; the dates are checked again"""
    try:
        reservation = await engine.coordinator.commit_pending(
            current_user.username, current_user.holder_id
        )
    except ReservationError as e:
        raise _http_error(e)
    return _reservation_to_response(reservation)

# ============================================================================
# RESERVATION ENDPOINTS
# ============================================================================

@app.post("/api/reservations", response_model=ReservationResponse, status_code=201, tags=["Reservations"])
async def create_reservation(
    request: CreateReservationRequest,
    engine: ReservationEngine = Depends(get_engine),
    current_user: User = Depends(get_current_active_user)
):
    """Create new reservation"""
    try:
        reservation = await engine.coordinator.commit(
            request.resource_id, current_user.holder_id, request.check_in, request.check_out,
            session_id=current_user.username,
        )
    except ReservationError as e:
        raise _http_error(e)
    return _reservation_to_response(reservation)

@app.get("/api/reservations", response_model=List[ReservationResponse], tags=["Reservations"])
async def get_my_reservations(
    holder_filter: HolderFilter = Query(HolderFilter.ACTIVE, alias="filter"),
    engine: ReservationEngine = Depends(get_engine),
    current_user: User = Depends(get_current_active_user)
):
    """Get the caller's reservations, upcoming first"""
    try:
        reservations = await engine.reservations.list_by_holder(current_user.holder_id, holder_filter)
    except ReservationError as e:
        raise _http_error(e)
    return [_reservation_to_response(r) for r in reservations]

@app.get("/api/reservations/{reservation_id}", response_model=ReservationResponse, tags=["Reservations"])
async def get_reservation(
    reservation_id: UUID,
    engine: ReservationEngine = Depends(get_engine),
    current_user: User = Depends(get_current_active_user)
):
    """Get reservation by ID"""
    try:
        reservation = await engine.reservations.get(reservation_id)
    except ReservationError as e:
        raise _http_error(e)
    _ensure_holder(reservation, current_user)
    return _reservation_to_response(reservation)

@app.post("/api/reservations/{reservation_id}/cancel", response_model=ReservationResponse, tags=["Reservations"])
async def cancel_reservation(
    reservation_id: UUID,
    engine: ReservationEngine = Depends(get_engine),
    current_user: User = Depends(get_current_active_user)
):
    """Cancel reservation, freeing its dates"""
    try:
        reservation = await engine.reservations.get(reservation_id)
        _ensure_holder(reservation, current_user)
        reservation = await engine.reservations.cancel(reservation_id)
    except ReservationError as e:
        raise _http_error(e)
    return _reservation_to_response(reservation)

# ============================================================================
# RESOURCE CALENDAR ENDPOINTS
# ============================================================================

@app.get("/api/resources/{resource_id}/reservations", response_model=List[CalendarEntryResponse], tags=["Resources"])
async def get_resource_calendar(
    resource_id: str,
    from_date: Optional[str] = None,
    engine: ReservationEngine = Depends(get_engine)
):
    """Blocked date ranges of a resource from from_date (default today) on"""
    try:
        start = parse_calendar_date(from_date, "from_date") if from_date else None
        reservations = await engine.reservations.list_by_resource(resource_id, start)
    except ReservationError as e:
        raise _http_error(e)
    return [
        CalendarEntryResponse(check_in=r.check_in, check_out=r.check_out, status=r.status.value)
        for r in reservations
    ]

# ============================================================================
# HELPER FUNCTIONS
# ============================================================================

def _ensure_holder(reservation: Reservation, current_user: User) -> None:
    if reservation.holder_id != current_user.holder_id:
        raise HTTPException(status_code=403, detail="Reservation belongs to another holder")

def _range_to_response(date_range) -> DateRangeResponse:
    return DateRangeResponse(check_in=date_range.check_in, check_out=date_range.check_out)

def _quote_to_response(quote: Quote) -> QuoteResponse:
    resource = quote.resource
    return QuoteResponse(
        resource=ResourceResponse(
            resource_id=resource.resource_id,
            title=resource.title,
            nightly_price=resource.nightly_price.amount,
            currency=resource.nightly_price.currency,
        ),
        check_in=quote.date_range.check_in,
        check_out=quote.date_range.check_out,
        nights=quote.nights,
        total_price=quote.total_price.amount,
        currency=quote.total_price.currency,
        quoted_at=quote.quoted_at,
        message=quote.message,
    )

def _reservation_to_response(reservation: Reservation) -> ReservationResponse:
    return ReservationResponse(
        reservation_id=reservation.reservation_id,
        resource_id=reservation.resource_id,
        holder_id=reservation.holder_id,
        check_in=reservation.check_in,
        check_out=reservation.check_out,
        nights=reservation.get_nights(),
        total_price=reservation.total_price.amount,
        currency=reservation.total_price.currency,
        status=reservation.status.value,
        created_at=reservation.created_at,
        updated_at=reservation.updated_at,
    )

if __name__ == "__main__":
    import uvicorn
    uvicorn.run(app, host="0.0.0.0", port=8000)
