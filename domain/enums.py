"""Domain Enums"""
from enum import Enum


class ReservationStatus(str, Enum):
    PENDING = "pending"
    CONFIRMED = "confirmed"
    CANCELLED = "cancelled"
    COMPLETED = "completed"

    @property
    def blocks_capacity(self) -> bool:
        """Whether a reservation in this status occupies its dates"""
        return self in (ReservationStatus.PENDING, ReservationStatus.CONFIRMED)

    @property
    def is_terminal(self) -> bool:
        return self in (ReservationStatus.CANCELLED, ReservationStatus.COMPLETED)

    def can_transition_to(self, target: "ReservationStatus") -> bool:
        return target in _TRANSITIONS[self]


_TRANSITIONS = {
    ReservationStatus.PENDING: {
        ReservationStatus.CONFIRMED,
        ReservationStatus.CANCELLED,
        ReservationStatus.COMPLETED,
    },
    ReservationStatus.CONFIRMED: {
        ReservationStatus.CANCELLED,
        ReservationStatus.COMPLETED,
    },
    ReservationStatus.CANCELLED: set(),
    ReservationStatus.COMPLETED: set(),
}


def blocks_capacity(status: ReservationStatus) -> bool:
    return ReservationStatus(status).blocks_capacity


BLOCKING_STATUSES = tuple(s for s in ReservationStatus if s.blocks_capacity)


class HolderFilter(str, Enum):
    ACTIVE = "active"
    UPCOMING = "upcoming"
    PAST = "past"
    ALL = "all"
