"""
Bi-monthly period generation.

A year splits into 24 periods: days 1-14 and day 15 to the last day of the
month. Each period is paid on its last day, moved back to Friday when that
day is a weekend. No holiday calendar is applied.

Flags are evaluated against an explicit clock. "Today" is the calendar day of
that instant in the billing timezone.
"""

import calendar
from datetime import date, datetime, time, timedelta
from functools import lru_cache
from typing import Sequence

from core.models import Period, PeriodHalf, PeriodKey
from utils.timezone import local_date, local_datetime, now_utc

DEFAULT_TIMEZONE = "Europe/Berlin"

# Display-only: payment is due at 11:30 CET on the payment date.
PAYMENT_DUE_TIME = time(11, 30)
PAYMENT_TIMEZONE = "Europe/Berlin"


def get_payment_date(period_end: date) -> date:
    """Move a weekend due date back to the preceding Friday."""
    weekday = period_end.weekday()
    if weekday == 6:  # Sunday
        return period_end - timedelta(days=2)
    if weekday == 5:  # Saturday
        return period_end - timedelta(days=1)
    return period_end


def period_bounds(key: PeriodKey) -> tuple[date, date]:
    """Inclusive (start, end) calendar days of a period."""
    if key.half is PeriodHalf.FIRST:
        return date(key.year, key.month, 1), date(key.year, key.month, 14)

    last_day = calendar.monthrange(key.year, key.month)[1]
    return date(key.year, key.month, 15), date(key.year, key.month, last_day)


def build_period(key: PeriodKey, today: date) -> Period:
    start, end = period_bounds(key)
    return Period(
        key=key,
        start=start,
        end=end,
        payment_date=get_payment_date(end),
        is_future=start > today,
        is_current=start <= today <= end,
    )


@lru_cache(maxsize=32)
def _periods_for(year: int, today: date) -> tuple[Period, ...]:
    return tuple(
        build_period(PeriodKey(year, month, half), today)
        for month in range(1, 13)
        for half in PeriodHalf
    )


def generate_periods(
    year: int,
    now: datetime | None = None,
    tz_name: str = DEFAULT_TIMEZONE,
) -> list[Period]:
    """
    All 24 periods of a year, ordered by start date.

    Args:
        year: Calendar year
        now: Clock reading used for is_future/is_current (defaults to now)
        tz_name: Billing timezone that defines "today"

    Raises:
        ValueError: If year is outside the supported date range
    """
    today = local_date(now or now_utc(), tz_name)
    return list(_periods_for(year, today))


def period_for_id(
    period_id: str,
    now: datetime | None = None,
    tz_name: str = DEFAULT_TIMEZONE,
) -> Period:
    """
    Build the single period named by a wire id.

    Raises:
        InvalidPeriodError: If period_id is malformed
    """
    key = PeriodKey.parse(period_id)
    return build_period(key, local_date(now or now_utc(), tz_name))


def current_period(periods: Sequence[Period]) -> Period:
    """The current period, or the first one when none is current."""
    if not periods:
        raise ValueError("No periods to choose from")

    for period in periods:
        if period.is_current:
            return period
    return periods[0]


def find_period(periods: Sequence[Period], period_id: str) -> Period | None:
    for period in periods:
        if period.id == period_id:
            return period
    return None


def selectable_periods(periods: Sequence[Period]) -> list[Period]:
    """Periods that have started, newest first."""
    return [p for p in reversed(periods) if not p.is_future or p.is_current]


def upcoming_locked_periods(periods: Sequence[Period], limit: int = 2) -> list[Period]:
    """The next periods that have not started yet, soonest first."""
    return [p for p in periods if p.is_future and not p.is_current][:limit]


def payment_due_at(
    period: Period,
    due_time: time = PAYMENT_DUE_TIME,
    tz_name: str = PAYMENT_TIMEZONE,
) -> datetime:
    """Moment payment is due, for display. Not stored on the period."""
    return local_datetime(period.payment_date, due_time, tz_name)
