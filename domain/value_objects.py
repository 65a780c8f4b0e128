"""Domain Value Objects"""
from datetime import date
from decimal import Decimal

from pydantic import BaseModel, ConfigDict, Field, field_validator, ValidationInfo

from domain.exceptions import InvalidRange
from domain.intervals import nights, overlaps, parse_calendar_date

MIN_STAY_NIGHTS = 1
MAX_STAY_NIGHTS = 365


class DateRange(BaseModel):
    """Value Object for a half-open stay interval [check_in, check_out)"""
    model_config = ConfigDict(frozen=True)

    check_in: date
    check_out: date

    @field_validator('check_out')
    @classmethod
    def check_out_after_check_in(cls, v, info: ValidationInfo):
        if 'check_in' in info.data and v <= info.data['check_in']:
            raise ValueError('Check-out must be after check-in')
        return v

    @classmethod
    def parse(cls, check_in, check_out) -> "DateRange":
        """Build a range from dates or YYYY-MM-DD strings"""
        start = parse_calendar_date(check_in, "check-in date")
        end = parse_calendar_date(check_out, "check-out date")
        if start >= end:
            raise InvalidRange(
                f"Check-out date {end.isoformat()} must be after check-in date {start.isoformat()}",
                check_in=start,
                check_out=end,
            )
        return cls(check_in=start, check_out=end)

    def nights(self) -> int:
        """Calculate number of nights"""
        return nights(self.check_in, self.check_out)

    def overlaps_with(self, other: "DateRange") -> bool:
        return overlaps(self.check_in, self.check_out, other.check_in, other.check_out)

    def ensure_bookable(self, today: date, max_nights: int = MAX_STAY_NIGHTS) -> "DateRange":
        """Reject stays starting before today or outside the allowed length"""
        if self.check_in < today:
            raise InvalidRange(
                f"Check-in date {self.check_in.isoformat()} cannot be in the past",
                check_in=self.check_in,
                check_out=self.check_out,
            )
        stay = self.nights()
        if stay > max_nights:
            raise InvalidRange(
                f"Stay from {self} is {stay} nights; bookings cannot exceed {max_nights} days",
                check_in=self.check_in,
                check_out=self.check_out,
            )
        if stay < MIN_STAY_NIGHTS:
            raise InvalidRange(
                f"Stay from {self} must be at least {MIN_STAY_NIGHTS} day",
                check_in=self.check_in,
                check_out=self.check_out,
            )
        return self

    def __str__(self) -> str:
        return f"{self.check_in.isoformat()} to {self.check_out.isoformat()}"


class Money(BaseModel):
    """Value Object for monetary amounts"""
    model_config = ConfigDict(frozen=True)

    amount: Decimal = Field(ge=0)
    currency: str = "USD"

    def times(self, count: int) -> "Money":
        return Money(amount=self.amount * count, currency=self.currency)

    def __str__(self) -> str:
        return f"{self.amount:.2f} {self.currency}"
