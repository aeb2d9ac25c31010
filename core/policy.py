"""
Edit-lock and duplicate-deployment rules.

A period is locked until it starts: strictly future periods are read-only,
the current and all past periods stay editable. The check is evaluated live
against the clock, on the client-side draft and again in the store on save.
"""

from datetime import datetime
from typing import Iterable

from core.exceptions import PeriodLockedError
from core.models import InvoiceSave, Period
from core.periods import DEFAULT_TIMEZONE
from utils.timezone import local_date, now_utc


def can_edit(
    period: Period,
    now: datetime | None = None,
    tz_name: str = DEFAULT_TIMEZONE,
) -> bool:
    """True unless the period is in the future and not current."""
    today = local_date(now or now_utc(), tz_name)
    is_future = period.start > today
    is_current = period.start <= today <= period.end
    return not (is_future and not is_current)


def ensure_editable(
    period: Period,
    now: datetime | None = None,
    tz_name: str = DEFAULT_TIMEZONE,
) -> None:
    """
    Raises:
        PeriodLockedError: If the period has not started yet
    """
    if not can_edit(period, now, tz_name):
        raise PeriodLockedError(period.id)


def is_duplicate_deployment(
    details: str,
    known_invoices: Iterable[InvoiceSave],
    draft: InvoiceSave | None = None,
) -> bool:
    """
    Case-insensitive match against the user's loaded invoices and the draft.

    A match is only a warning; duplicates are valid data.
    """
    candidate = details.strip().lower()
    invoices = list(known_invoices)
    if draft is not None:
        invoices.append(draft)

    return any(
        dep.details.lower() == candidate
        for invoice in invoices
        for dep in invoice.app_deployments
    )


def duplicate_warning(deployment_label: str) -> str:
    return f"Warning: This {deployment_label.lower()} is a duplicate. Added anyway."
