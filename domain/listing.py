"""Read-side selection and ordering rules shared by store implementations"""
from datetime import date
from typing import Iterable, List, Optional

from domain.entities import Reservation
from domain.enums import HolderFilter, ReservationStatus


def matches_holder_filter(reservation: Reservation, holder_filter: HolderFilter, today: date) -> bool:
    if holder_filter == HolderFilter.ALL:
        return True
    if reservation.status == ReservationStatus.CANCELLED:
        return False
    if holder_filter == HolderFilter.UPCOMING:
        return reservation.check_in >= today
    if holder_filter == HolderFilter.PAST:
        return reservation.check_out < today
    return True


def order_for_holder(reservations: Iterable[Reservation], today: date) -> List[Reservation]:
    """Upcoming stays soonest first, then earlier stays most recent first"""
    reservations = list(reservations)
    upcoming = sorted((r for r in reservations if r.check_in >= today), key=lambda r: r.check_in)
    past = sorted((r for r in reservations if r.check_in < today), key=lambda r: r.check_in, reverse=True)
    return upcoming + past


def select_for_holder(
    reservations: Iterable[Reservation], holder_filter: HolderFilter, today: date
) -> List[Reservation]:
    holder_filter = HolderFilter(holder_filter)
    return order_for_holder(
        (r for r in reservations if matches_holder_filter(r, holder_filter, today)), today
    )


def occupies_from(reservation: Reservation, from_date: Optional[date]) -> bool:
    """Non-cancelled and still holding a night on or after from_date"""
    if reservation.status == ReservationStatus.CANCELLED:
        return False
    return from_date is None or reservation.check_out > from_date
