"""Domain Entities - Aggregates"""
from datetime import datetime, timezone
from typing import Optional
from uuid import UUID, uuid4

from pydantic import BaseModel, ConfigDict, Field

from domain.enums import ReservationStatus
from domain.exceptions import InvalidRange, InvalidTransition
from domain.value_objects import DateRange, Money


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


class Resource(BaseModel):
    """Catalog view of a reservable property: identity, nightly price and title"""
    model_config = ConfigDict(frozen=True, from_attributes=True)

    resource_id: str
    nightly_price: Money
    title: Optional[str] = None

    @property
    def display_name(self) -> str:
        return self.title or self.resource_id


class Reservation(BaseModel):
    """Reservation Aggregate Root Entity"""
    model_config = ConfigDict(from_attributes=True)

    # Identity
    reservation_id: UUID = Field(default_factory=uuid4)

    # References to other contexts
    resource_id: str
    holder_id: str

    # Value Objects
    date_range: DateRange
    total_price: Money

    status: ReservationStatus = ReservationStatus.CONFIRMED

    # Metadata
    created_at: datetime = Field(default_factory=utcnow)
    updated_at: datetime = Field(default_factory=utcnow)

    # ==================== FACTORY METHOD ====================
    @staticmethod
    def create(resource: Resource, holder_id: str, date_range: DateRange) -> "Reservation":
        """Price the stay against the resource and build a confirmed reservation"""
        total_price = resource.nightly_price.times(date_range.nights())
        now = utcnow()
        return Reservation(
            resource_id=resource.resource_id,
            holder_id=str(holder_id),
            date_range=date_range,
            total_price=total_price,
            status=ReservationStatus.CONFIRMED,
            created_at=now,
            updated_at=now,
        )

    # ==================== STATE TRANSITION METHODS ====================
    def transition_to(self, target: ReservationStatus) -> None:
        target = ReservationStatus(target)
        if not self.status.can_transition_to(target):
            raise InvalidTransition(self.reservation_id, self.status, target)
        self.status = target
        self.updated_at = utcnow()

    def cancel(self) -> None:
        """Cancel reservation, releasing its dates"""
        self.transition_to(ReservationStatus.CANCELLED)

    def complete(self) -> None:
        self.transition_to(ReservationStatus.COMPLETED)

    # ==================== QUERY METHODS ====================
    @property
    def check_in(self):
        return self.date_range.check_in

    @property
    def check_out(self):
        return self.date_range.check_out

    @property
    def blocks_capacity(self) -> bool:
        return self.status.blocks_capacity

    def get_nights(self) -> int:
        """Get number of nights"""
        return self.date_range.nights()

    def conflicts_with(self, date_range: DateRange) -> bool:
        return self.blocks_capacity and self.date_range.overlaps_with(date_range)

    def validate_for_storage(self) -> None:
        if self.date_range.check_in >= self.date_range.check_out:
            raise InvalidRange(
                f"Reservation {self.reservation_id} has an empty or inverted range {self.date_range}"
            )


class Quote(BaseModel):
    """Advisory price for a stay; holds nothing"""
    model_config = ConfigDict(frozen=True)

    resource: Resource
    date_range: DateRange
    nights: int
    total_price: Money
    quoted_at: datetime = Field(default_factory=utcnow)

    @staticmethod
    def for_stay(resource: Resource, date_range: DateRange) -> "Quote":
        stay = date_range.nights()
        return Quote(
            resource=resource,
            date_range=date_range,
            nights=stay,
            total_price=resource.nightly_price.times(stay),
        )

    @property
    def message(self) -> str:
        return (
            f"Ready to book {self.resource.display_name} for {self.nights} night(s) "
            f"at {self.total_price} total. Please confirm to proceed."
        )
