"""API Schemas - Request and Response DTOs"""
from pydantic import BaseModel, Field
from datetime import date, datetime
from decimal import Decimal
from uuid import UUID
from typing import List, Optional


# ============================================================================
# SHARED
# ============================================================================

class DateRangeResponse(BaseModel):
    """Date range DTO (check_out exclusive)"""
    check_in: date
    check_out: date


class ErrorResponse(BaseModel):
    """Typed engine failure"""
    code: str
    message: str
    conflicts: List[DateRangeResponse] = []


# ============================================================================
# AVAILABILITY SCHEMAS
# ============================================================================

class StayDates(BaseModel):
    """Stay dates as YYYY-MM-DD strings; parsed by the engine"""
    check_in: str
    check_out: str


class AvailabilityResponse(BaseModel):
    """Single availability check response DTO"""
    resource_id: str
    check_in: date
    check_out: date
    available: bool
    conflicts: List[DateRangeResponse] = []


class BulkAvailabilityRequest(BaseModel):
    """Bulk availability request DTO"""
    resource_id: str
    date_ranges: List[StayDates] = Field(min_length=1)


class RangeAvailabilityResponse(BaseModel):
    check_in: str
    check_out: str
    available: bool
    conflicts: List[DateRangeResponse] = []
    error: Optional[str] = None


class BulkAvailabilityResponse(BaseModel):
    resource_id: str
    results: List[RangeAvailabilityResponse]


# ============================================================================
# QUOTE SCHEMAS
# ============================================================================

class QuoteRequest(StayDates):
    """Quote request DTO"""
    resource_id: str


class ResourceResponse(BaseModel):
    resource_id: str
    title: Optional[str] = None
    nightly_price: Decimal
    currency: str


class QuoteResponse(BaseModel):
    """Quote response DTO"""
    resource: ResourceResponse
    check_in: date
    check_out: date
    nights: int
    total_price: Decimal
    currency: str
    quoted_at: datetime
    message: str


# ============================================================================
# RESERVATION SCHEMAS
# ============================================================================

class CreateReservationRequest(StayDates):
    """Create reservation request DTO"""
    resource_id: str


class CalendarEntryResponse(BaseModel):
    """Blocked dates on a resource calendar"""
    check_in: date
    check_out: date
    status: str


class ReservationResponse(BaseModel):
    """Reservation response DTO"""
    reservation_id: UUID
    resource_id: str
    holder_id: str
    check_in: date
    check_out: date
    nights: int
    total_price: Decimal
    currency: str
    status: str
    created_at: datetime
    updated_at: datetime


# ============================================================================
# AUTH SCHEMAS
# ============================================================================

class Token(BaseModel):
    """Token response DTO"""
    access_token: str
    token_type: str

class UserResponse(BaseModel):
    """User response DTO"""
    user_id: UUID
    username: str
    email: Optional[str] = None
    full_name: Optional[str] = None
    disabled: bool
