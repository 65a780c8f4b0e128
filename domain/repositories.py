"""Domain Repository Interfaces"""
from abc import ABC, abstractmethod
from datetime import date
from typing import AsyncContextManager, List, Optional
from uuid import UUID

from domain.entities import Reservation, Resource
from domain.enums import HolderFilter, ReservationStatus
from domain.value_objects import DateRange


class ReservationTransaction(ABC):
    """Unit of work over one resource's reservations.

    Reads observe the transaction's own staged inserts. Nothing becomes
    visible to other callers until the owning context exits cleanly.
    """

    @abstractmethod
    async def find_conflicting(
        self, date_range: DateRange, exclude_id: Optional[UUID] = None
    ) -> List[Reservation]:
        """Capacity-blocking reservations overlapping date_range"""
        pass

    @abstractmethod
    async def add(self, reservation: Reservation) -> Reservation:
        """Stage a new reservation for insert"""
        pass


class ReservationStore(ABC):
    """Repository interface for Reservation Aggregate"""

    async def prepare(self) -> None:
        """Create whatever backing structures the store needs"""
        pass

    async def close(self) -> None:
        """Release connections held by the store"""
        pass

    @abstractmethod
    def transaction(self, resource_id: str) -> AsyncContextManager[ReservationTransaction]:
        """Open a transaction isolated from concurrent writers on resource_id"""
        pass

    async def create(self, reservation: Reservation) -> Reservation:
        """Insert a reservation without a conflict check"""
        reservation.validate_for_storage()
        async with self.transaction(reservation.resource_id) as tx:
            await tx.add(reservation)
        return reservation

    @abstractmethod
    async def find_conflicting(
        self,
        resource_id: str,
        check_in: date,
        check_out: date,
        exclude_id: Optional[UUID] = None,
    ) -> List[Reservation]:
        """Lock-free snapshot of blocking reservations overlapping [check_in, check_out)"""
        pass

    @abstractmethod
    async def get(self, reservation_id: UUID) -> Reservation:
        """Find reservation by ID or raise ReservationNotFound"""
        pass

    @abstractmethod
    async def set_status(self, reservation_id: UUID, status: ReservationStatus) -> Reservation:
        """Apply a status transition and persist it"""
        pass

    @abstractmethod
    async def list_by_resource(self, resource_id: str, from_date: Optional[date] = None) -> List[Reservation]:
        """Non-cancelled reservations for a resource, ordered by check-in"""
        pass

    @abstractmethod
    async def list_by_holder(
        self,
        holder_id: str,
        holder_filter: HolderFilter = HolderFilter.ACTIVE,
        today: Optional[date] = None,
    ) -> List[Reservation]:
        """Reservations made by a holder"""
        pass


class ResourceCatalog(ABC):
    """Read-only port onto the property catalog"""

    @abstractmethod
    async def resolve(self, resource_id: str) -> Resource:
        """Return the resource or raise ResourceNotFound"""
        pass
