"""Domain Exceptions

Every failure the engine reports is one of these, so callers can branch on
the kind (or on ``code``) instead of parsing messages.
"""
from typing import List, Optional, Sequence


class ReservationError(Exception):
    """Base class for reservation engine failures"""
    code = "reservation_error"
    retryable = False

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class InvalidRange(ReservationError, ValueError):
    """Unparseable, inverted, past or out-of-bounds stay dates"""
    code = "invalid_range"

    def __init__(self, message: str, check_in=None, check_out=None):
        super().__init__(message)
        self.check_in = check_in
        self.check_out = check_out


class ResourceNotFound(ReservationError):
    code = "resource_not_found"

    def __init__(self, resource_id: str):
        super().__init__(f"Resource {resource_id} not found")
        self.resource_id = resource_id


class ReservationNotFound(ReservationError):
    code = "not_found"

    def __init__(self, reservation_id):
        super().__init__(f"Reservation {reservation_id} not found")
        self.reservation_id = reservation_id


class InvalidTransition(ReservationError):
    code = "invalid_transition"

    def __init__(self, reservation_id, current, target):
        current_value = getattr(current, "value", current)
        target_value = getattr(target, "value", target)
        if current_value == target_value:
            message = f"Reservation {reservation_id} is already {current_value}"
        else:
            message = (
                f"Cannot move reservation {reservation_id} "
                f"from {current_value} to {target_value}"
            )
        super().__init__(message)
        self.reservation_id = reservation_id
        self.current = current
        self.target = target


class ReservationConflict(ReservationError):
    """Requested dates overlap reservations that already hold the resource.

    ``conflicts`` holds the overlapping reservations (or bare date ranges when
    only the intervals are known) so the caller can show which dates are taken.
    """
    code = "conflict"

    def __init__(self, resource_id: str, date_range, conflicts: Sequence, message: Optional[str] = None):
        self.resource_id = resource_id
        self.date_range = date_range
        self.conflicts = list(conflicts)
        super().__init__(message or self._describe())

    @property
    def conflicting_ranges(self) -> List:
        return [getattr(c, "date_range", c) for c in self.conflicts]

    def _describe(self) -> str:
        taken = ", ".join(str(r) for r in self.conflicting_ranges)
        return (
            f"Resource {self.resource_id} is already booked for {taken}; "
            f"requested {self.date_range} is not available"
        )


class DatesNotAvailable(ReservationConflict):
    """Raised by quoting when the dates are taken at quote time"""
    code = "not_available"


class NoPendingQuote(ReservationError):
    code = "no_pending_quote"

    def __init__(self, session_id: str):
        super().__init__(f"No pending quote for session {session_id}")
        self.session_id = session_id


class StoreUnavailable(ReservationError):
    """Transient storage failure; the only retryable kind"""
    code = "store_unavailable"
    retryable = True
