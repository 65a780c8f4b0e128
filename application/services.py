"""Application Services - Business use cases"""
import asyncio
import logging
from collections import OrderedDict
from datetime import date
from typing import Callable, List, Optional, Sequence
from uuid import UUID

from pydantic import BaseModel, ConfigDict

from domain.entities import Quote, Reservation, Resource
from domain.enums import HolderFilter, ReservationStatus
from domain.exceptions import (
    DatesNotAvailable, InvalidRange, NoPendingQuote, ReservationConflict,
)
from domain.repositories import ReservationStore, ResourceCatalog
from domain.value_objects import DateRange, MAX_STAY_NIGHTS
from application.retry import NO_RETRY, RetryPolicy

logger = logging.getLogger(__name__)

Clock = Callable[[], date]


def validate_stay(check_in, check_out, today: date, max_nights: int = MAX_STAY_NIGHTS) -> DateRange:
    """Parse and check stay dates: format, order, not past, length"""
    return DateRange.parse(check_in, check_out).ensure_bookable(today, max_nights)


# ============================================================================
# RESULTS
# ============================================================================

class AvailabilityResult(BaseModel):
    """Point-in-time availability of one range"""
    model_config = ConfigDict(frozen=True)

    resource_id: str
    date_range: DateRange
    available: bool
    conflicts: List[DateRange] = []


class RangeAvailability(BaseModel):
    """One entry of a bulk availability check"""
    model_config = ConfigDict(frozen=True)

    check_in: str
    check_out: str
    available: bool
    conflicts: List[DateRange] = []
    error: Optional[str] = None


class Assessment(BaseModel):
    resource: Resource
    date_range: DateRange
    conflicts: List[Reservation] = []

    @property
    def available(self) -> bool:
        return not self.conflicts


# ============================================================================
# AVAILABILITY CHECKER
# ============================================================================

class AvailabilityChecker:
    """Read-only availability queries.

    Results are snapshots taken without locks; a free range can be taken
    before the caller commits, so creation always revalidates.
    """

    def __init__(self,
                 store: ReservationStore,
                 catalog: ResourceCatalog,
                 today: Clock = date.today,
                 retry: RetryPolicy = NO_RETRY,
                 max_nights: int = MAX_STAY_NIGHTS):
        self.store = store
        self.catalog = catalog
        self.today = today
        self.retry = retry
        self.max_nights = max_nights

    async def assess(self, resource_id: str, check_in, check_out) -> Assessment:
        date_range = validate_stay(check_in, check_out, self.today(), self.max_nights)
        resource = await self.retry.run(
            lambda: self.catalog.resolve(resource_id), "resource lookup"
        )
        conflicts = await self._conflicts(resource_id, date_range)
        return Assessment(resource=resource, date_range=date_range, conflicts=conflicts)

    async def _conflicts(self, resource_id: str, date_range: DateRange) -> List[Reservation]:
        return await self.retry.run(
            lambda: self.store.find_conflicting(resource_id, date_range.check_in, date_range.check_out),
            "availability query",
        )

    async def check_single(self, resource_id: str, check_in, check_out) -> AvailabilityResult:
        """Check whether a resource is free for [check_in, check_out)"""
        assessment = await self.assess(resource_id, check_in, check_out)
        return AvailabilityResult(
            resource_id=resource_id,
            date_range=assessment.date_range,
            available=assessment.available,
            conflicts=[r.date_range for r in assessment.conflicts],
        )

    async def check_bulk(self, resource_id: str, ranges: Sequence) -> List[RangeAvailability]:
        """Check several ranges; a bad range is reported, not fatal"""
        await self.retry.run(lambda: self.catalog.resolve(resource_id), "resource lookup")
        return list(await asyncio.gather(*(self._check_range(resource_id, r) for r in ranges)))

    async def _check_range(self, resource_id: str, requested) -> RangeAvailability:
        try:
            check_in, check_out = _range_bounds(requested)
        except (TypeError, ValueError):
            return RangeAvailability(
                check_in=str(requested), check_out="", available=False,
                error=f"Invalid date range {requested!r}. Expected a check-in and a check-out date",
            )
        try:
            date_range = validate_stay(check_in, check_out, self.today(), self.max_nights)
        except InvalidRange as e:
            return RangeAvailability(
                check_in=str(check_in), check_out=str(check_out), available=False, error=e.message
            )
        conflicts = await self._conflicts(resource_id, date_range)
        return RangeAvailability(
            check_in=date_range.check_in.isoformat(),
            check_out=date_range.check_out.isoformat(),
            available=not conflicts,
            conflicts=[r.date_range for r in conflicts],
        )


def _range_bounds(requested):
    if isinstance(requested, dict):
        return requested.get("check_in"), requested.get("check_out")
    if isinstance(requested, DateRange):
        return requested.check_in, requested.check_out
    if hasattr(requested, "check_in"):
        return requested.check_in, requested.check_out
    check_in, check_out = requested
    return check_in, check_out


# ============================================================================
# CONFLICT-SAFE CREATOR
# ============================================================================

class ReservationCreator:
    """The only write path that creates reservations"""

    def __init__(self,
                 store: ReservationStore,
                 catalog: ResourceCatalog,
                 today: Clock = date.today,
                 retry: RetryPolicy = NO_RETRY,
                 max_nights: int = MAX_STAY_NIGHTS):
        self.store = store
        self.catalog = catalog
        self.today = today
        self.retry = retry
        self.max_nights = max_nights

    async def create(self, resource_id: str, holder_id: str, check_in, check_out) -> Reservation:
        """Create a confirmed reservation unless the dates are already taken"""
        date_range = validate_stay(check_in, check_out, self.today(), self.max_nights)
        resource = await self.retry.run(
            lambda: self.catalog.resolve(resource_id), "resource lookup"
        )
        reservation = Reservation.create(resource, holder_id, date_range)

        try:
            await self.retry.run(lambda: self._insert(reservation), "reservation insert")
        except ReservationConflict as e:
            logger.warning(
                "Reservation conflict on resource %s for %s: overlaps %s",
                resource_id, date_range, ", ".join(str(r) for r in e.conflicting_ranges),
            )
            raise

        logger.info(
            "Created reservation %s on resource %s for %s (%d nights, %s)",
            reservation.reservation_id, resource_id, date_range,
            reservation.get_nights(), reservation.total_price,
        )
        return reservation

    async def _insert(self, reservation: Reservation) -> None:
        async with self.store.transaction(reservation.resource_id) as tx:
            conflicts = await tx.find_conflicting(reservation.date_range)
            if any(c.reservation_id == reservation.reservation_id for c in conflicts):
                # an earlier attempt committed before the store became unreachable
                return
            if conflicts:
                raise ReservationConflict(reservation.resource_id, reservation.date_range, conflicts)
            await tx.add(reservation)


# ============================================================================
# QUOTE / COMMIT COORDINATOR
# ============================================================================

class QuoteCoordinator:
    """Two-step price-then-book flow with no hold in between.

    A session's latest quote is remembered so a later "confirm" can refer to
    it, but commit always revalidates through the creator.
    """

    def __init__(self,
                 checker: AvailabilityChecker,
                 creator: ReservationCreator,
                 cache_size: int = 1000):
        self.checker = checker
        self.creator = creator
        self.cache_size = cache_size
        self._pending: "OrderedDict[str, Quote]" = OrderedDict()

    async def quote(self, resource_id: str, check_in, check_out, session_id: Optional[str] = None) -> Quote:
        """Price a stay if the dates are currently free"""
        assessment = await self.checker.assess(resource_id, check_in, check_out)
        if not assessment.available:
            raise DatesNotAvailable(resource_id, assessment.date_range, assessment.conflicts)

        quote = Quote.for_stay(assessment.resource, assessment.date_range)
        if session_id is not None:
            self._remember(session_id, quote)
        logger.debug("Quoted %s for resource %s: %s", assessment.date_range, resource_id, quote.total_price)
        return quote

    async def commit(self, resource_id: str, holder_id: str, check_in, check_out,
                     session_id: Optional[str] = None) -> Reservation:
        """Book the stay; may still conflict after a successful quote.

        The session's pending quote is cleared only when it is for this stay.
        """
        reservation = await self.creator.create(resource_id, holder_id, check_in, check_out)
        if session_id is not None and self._quotes_booking(session_id, reservation):
            self.discard(session_id)
        return reservation

    async def commit_pending(self, session_id: str, holder_id: str) -> Reservation:
        quote = self.pending_quote(session_id)
        if quote is None:
            raise NoPendingQuote(session_id)
        return await self.commit(
            quote.resource.resource_id, holder_id,
            quote.date_range.check_in, quote.date_range.check_out,
            session_id=session_id,
        )

    def pending_quote(self, session_id: str) -> Optional[Quote]:
        return self._pending.get(session_id)

    def discard(self, session_id: str) -> None:
        self._pending.pop(session_id, None)

    def _quotes_booking(self, session_id: str, reservation: Reservation) -> bool:
        quote = self._pending.get(session_id)
        return (
            quote is not None
            and quote.resource.resource_id == reservation.resource_id
            and quote.date_range == reservation.date_range
        )

    def _remember(self, session_id: str, quote: Quote) -> None:
        self._pending[session_id] = quote
        self._pending.move_to_end(session_id)
        while len(self._pending) > self.cache_size:
            self._pending.popitem(last=False)


# ============================================================================
# RESERVATION LIFECYCLE
# ============================================================================

class ReservationService:
    """Lookups, listings and status changes for existing reservations"""

    def __init__(self,
                 store: ReservationStore,
                 today: Clock = date.today,
                 retry: RetryPolicy = NO_RETRY):
        self.store = store
        self.today = today
        self.retry = retry

    async def get(self, reservation_id: UUID) -> Reservation:
        return await self.retry.run(lambda: self.store.get(reservation_id), "reservation lookup")

    async def cancel(self, reservation_id: UUID) -> Reservation:
        """Cancel reservation, freeing its dates"""
        reservation = await self.store.set_status(reservation_id, ReservationStatus.CANCELLED)
        logger.info(
            "Cancelled reservation %s on resource %s for %s",
            reservation.reservation_id, reservation.resource_id, reservation.date_range,
        )
        return reservation

    async def complete(self, reservation_id: UUID) -> Reservation:
        return await self.store.set_status(reservation_id, ReservationStatus.COMPLETED)

    async def list_by_holder(self, holder_id: str,
                             holder_filter: HolderFilter = HolderFilter.ACTIVE) -> List[Reservation]:
        return await self.retry.run(
            lambda: self.store.list_by_holder(holder_id, HolderFilter(holder_filter), self.today()),
            "holder listing",
        )

    async def list_by_resource(self, resource_id: str, from_date: Optional[date] = None) -> List[Reservation]:
        """Reservations still blocking the resource calendar from from_date on"""
        from_date = from_date or self.today()
        return await self.retry.run(
            lambda: self.store.list_by_resource(resource_id, from_date), "resource listing"
        )
