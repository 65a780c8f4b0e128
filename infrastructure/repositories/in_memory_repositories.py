"""In-Memory Repository Implementations"""
import asyncio
import logging
from contextlib import asynccontextmanager
from datetime import date
from typing import AsyncIterator, Dict, List, Optional
from uuid import UUID

from domain.entities import Reservation, Resource
from domain.enums import HolderFilter, ReservationStatus
from domain.exceptions import ReservationNotFound, ResourceNotFound
from domain.listing import occupies_from, select_for_holder
from domain.repositories import ReservationStore, ReservationTransaction, ResourceCatalog
from domain.value_objects import DateRange

logger = logging.getLogger(__name__)


class ResourceLocks:
    """One asyncio.Lock per resource id, created on first use"""

    def __init__(self):
        self._locks: Dict[str, asyncio.Lock] = {}

    def for_resource(self, resource_id: str) -> asyncio.Lock:
        lock = self._locks.get(resource_id)
        if lock is None:
            lock = self._locks.setdefault(resource_id, asyncio.Lock())
        return lock


class InMemoryReservationTransaction(ReservationTransaction):

    def __init__(self, store: "InMemoryReservationStore", resource_id: str):
        self._store = store
        self._resource_id = resource_id
        self._staged: List[Reservation] = []

    async def find_conflicting(
        self, date_range: DateRange, exclude_id: Optional[UUID] = None
    ) -> List[Reservation]:
        candidates = self._store._for_resource(self._resource_id) + self._staged
        return [
            r.model_copy() for r in candidates
            if r.reservation_id != exclude_id and r.conflicts_with(date_range)
        ]

    async def add(self, reservation: Reservation) -> Reservation:
        if reservation.resource_id != self._resource_id:
            raise ValueError(
                f"Transaction for resource {self._resource_id} cannot write "
                f"a reservation for {reservation.resource_id}"
            )
        reservation.validate_for_storage()
        self._staged.append(reservation.model_copy(deep=True))
        return reservation

    def _commit(self) -> None:
        for reservation in self._staged:
            self._store._storage[reservation.reservation_id] = reservation
        self._staged.clear()


class InMemoryReservationStore(ReservationStore):
    """In-memory implementation of ReservationStore"""

    transaction_type = InMemoryReservationTransaction

    def __init__(self):
        self._storage: Dict[UUID, Reservation] = {}
        self._locks = ResourceLocks()

    @asynccontextmanager
    async def transaction(self, resource_id: str) -> AsyncIterator[ReservationTransaction]:
        async with self._locks.for_resource(resource_id):
            tx = self.transaction_type(self, resource_id)
            try:
                yield tx
            except BaseException:
                logger.debug("Rolling back reservation transaction for resource %s", resource_id)
                raise
            tx._commit()

    def _for_resource(self, resource_id: str) -> List[Reservation]:
        return [r for r in self._storage.values() if r.resource_id == resource_id]

    async def find_conflicting(
        self,
        resource_id: str,
        check_in: date,
        check_out: date,
        exclude_id: Optional[UUID] = None,
    ) -> List[Reservation]:
        date_range = DateRange(check_in=check_in, check_out=check_out)
        return [
            r.model_copy() for r in self._for_resource(resource_id)
            if r.reservation_id != exclude_id and r.conflicts_with(date_range)
        ]

    async def get(self, reservation_id: UUID) -> Reservation:
        reservation = self._storage.get(reservation_id)
        if reservation is None:
            raise ReservationNotFound(reservation_id)
        return reservation.model_copy()

    async def set_status(self, reservation_id: UUID, status: ReservationStatus) -> Reservation:
        reservation = self._storage.get(reservation_id)
        if reservation is None:
            raise ReservationNotFound(reservation_id)
        updated = reservation.model_copy()
        updated.transition_to(status)
        self._storage[reservation_id] = updated
        return updated.model_copy()

    async def list_by_resource(self, resource_id: str, from_date: Optional[date] = None) -> List[Reservation]:
        return sorted(
            (r.model_copy() for r in self._for_resource(resource_id) if occupies_from(r, from_date)),
            key=lambda r: r.check_in,
        )

    async def list_by_holder(
        self,
        holder_id: str,
        holder_filter: HolderFilter = HolderFilter.ACTIVE,
        today: Optional[date] = None,
    ) -> List[Reservation]:
        today = today or date.today()
        mine = [r.model_copy() for r in self._storage.values() if r.holder_id == str(holder_id)]
        return select_for_holder(mine, holder_filter, today)

    async def find_all(self) -> List[Reservation]:
        return [r.model_copy() for r in self._storage.values()]


class InMemoryResourceCatalog(ResourceCatalog):
    """In-memory implementation of ResourceCatalog"""

    def __init__(self, resources=()):
        self._storage: Dict[str, Resource] = {}
        for resource in resources:
            self.add(resource)

    def add(self, resource: Resource) -> Resource:
        self._storage[resource.resource_id] = resource
        return resource

    async def resolve(self, resource_id: str) -> Resource:
        resource = self._storage.get(resource_id)
        if resource is None:
            raise ResourceNotFound(resource_id)
        return resource
