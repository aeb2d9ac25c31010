"""Bi-monthly billing period models."""

from datetime import MAXYEAR, MINYEAR, date
from enum import IntEnum
from typing import NamedTuple

from pydantic import BaseModel, Field, computed_field

from core.exceptions import InvalidPeriodError


class PeriodHalf(IntEnum):
    """Which half of the month a period covers."""

    FIRST = 1   # days 1-14
    SECOND = 2  # day 15 to the last day of the month

    @property
    def start_day(self) -> int:
        return 1 if self is PeriodHalf.FIRST else 15


class PeriodKey(NamedTuple):
    """Composite identity of a period. Month is 1-based."""

    year: int
    month: int
    half: PeriodHalf

    @property
    def id(self) -> str:
        """Wire id, e.g. '2026-3-15'."""
        return f"{self.year}-{self.month}-{self.half.start_day}"

    @classmethod
    def parse(cls, period_id: str) -> "PeriodKey":
        """
        Parse a wire id back into a key.

        Raises:
            InvalidPeriodError: If the id is not YYYY-M-D with D in {1, 15}
        """
        parts = period_id.split("-")
        if len(parts) != 3 or not all(p.isdigit() for p in parts):
            raise InvalidPeriodError(f"Invalid period id '{period_id}'")

        year, month, day = (int(p) for p in parts)
        if not MINYEAR <= year <= MAXYEAR or not 1 <= month <= 12 or day not in (1, 15):
            raise InvalidPeriodError(f"Invalid period id '{period_id}'")

        half = PeriodHalf.FIRST if day == 1 else PeriodHalf.SECOND
        return cls(year, month, half)


class Period(BaseModel):
    """
    One bi-monthly billing window.

    start and end are both inclusive calendar days. is_future and is_current
    are evaluated against the clock passed to the generator.
    """

    key: PeriodKey = Field(..., exclude=True)
    start: date
    end: date
    payment_date: date
    is_future: bool
    is_current: bool

    model_config = {"frozen": True}

    @computed_field
    @property
    def id(self) -> str:
        return self.key.id

    @computed_field
    @property
    def label(self) -> str:
        return f"{self.start.month}.{self.start.day}-{self.end.month}.{self.end.day}"
