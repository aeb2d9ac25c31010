"""
In-memory invoice draft for one (user, period).

A draft is opened from the stored invoice, or synthesized from the user's
rate config when nothing is stored yet. It is persisted only by an explicit
save. Every mutation is checked against the edit lock first.
"""

import logging
from dataclasses import dataclass
from datetime import datetime, time
from decimal import Decimal
from typing import Callable, Sequence

from pydantic import BaseModel

from core.calculator import ZERO, InvoiceBreakdown, build_breakdown, calculate_total
from core.exceptions import ConfigurationError
from core.models import (
    AppDeployment,
    CustomEntry,
    Invoice,
    InvoiceSave,
    Period,
    RateConfig,
)
from core.periods import DEFAULT_TIMEZONE
from core.policy import can_edit, ensure_editable, is_duplicate_deployment
from utils.timezone import local_datetime, now_utc

logger = logging.getLogger(__name__)


def new_draft_invoice(
    user_id: str,
    period: Period,
    rate_config: RateConfig | None,
    tz_name: str = DEFAULT_TIMEZONE,
) -> Invoice:
    """Fresh invoice for a period: empty lists, no meetings, current base rate."""
    return Invoice(
        id=period.id,
        user_id=user_id,
        period_start=local_datetime(period.start, time.min, tz_name),
        period_end=local_datetime(period.end, time.min, tz_name),
        meetings=0,
        base_rate=rate_config.base_rate if rate_config else ZERO,
    )


@dataclass(frozen=True)
class DeploymentAdded:
    """Result of add_deployment. is_duplicate is a warning, not an error."""

    entry: AppDeployment
    is_duplicate: bool


class DraftSnapshot(BaseModel):
    """Serializable view of a draft."""

    invoice: Invoice
    period: Period
    total: Decimal
    saved: bool
    editable: bool
    breakdown: InvoiceBreakdown | None


class InvoiceDraft:
    """
    Caller-held editing session.

    Usage:
        draft = invoice_service.open_draft("dimitar", period)
        result = draft.add_deployment("billing-api v2")
        if result.is_duplicate:
            ...  # warn, the entry was added anyway
        draft.total  # recomputed on every read
        invoice_service.save_draft(draft)
    """

    def __init__(
        self,
        invoice: Invoice,
        period: Period,
        rate_config: RateConfig | None,
        known_invoices: Sequence[Invoice] = (),
        is_saved: bool = False,
        tz_name: str = DEFAULT_TIMEZONE,
        clock: Callable[[], datetime] = now_utc,
    ):
        if invoice.id != period.id:
            raise ValueError(f"Invoice {invoice.id} does not belong to period {period.id}")

        self.invoice = invoice
        self.period = period
        self.rate_config = rate_config
        self.known_invoices = list(known_invoices)
        self.is_saved = is_saved
        self.tz_name = tz_name
        self._clock = clock

    # -------------------------------------------------------------------------
    # Read
    # -------------------------------------------------------------------------

    @property
    def editable(self) -> bool:
        """Editing needs a loaded rate config and a period that has started."""
        return self.rate_config is not None and can_edit(self.period, self._clock(), self.tz_name)

    @property
    def total(self) -> Decimal:
        return calculate_total(self.invoice, self.rate_config)

    def breakdown(self) -> InvoiceBreakdown | None:
        if self.rate_config is None:
            return None
        return build_breakdown(self.invoice, self.rate_config, self.period.label)

    def snapshot(self) -> DraftSnapshot:
        return DraftSnapshot(
            invoice=self.invoice,
            period=self.period,
            total=self.total,
            saved=self.is_saved,
            editable=self.editable,
            breakdown=self.breakdown(),
        )

    # -------------------------------------------------------------------------
    # Mutations
    # -------------------------------------------------------------------------

    def _check_editable(self) -> None:
        if self.rate_config is None:
            raise ConfigurationError(
                f"No rate configuration loaded for {self.invoice.user_id}"
            )
        ensure_editable(self.period, self._clock(), self.tz_name)

    def _update(self, **fields) -> None:
        """
        Apply field changes through model validation.

        Raises:
            ValidationError: If a value would be rejected on save
        """
        self.invoice = Invoice.model_validate({**self.invoice.model_dump(), **fields})

    def load(self, data: InvoiceSave) -> None:
        """
        Replace the editable fields with a client-held copy.

        Raises:
            ValueError: If data belongs to a different period
        """
        if data.id != self.period.id:
            raise ValueError(f"Invoice {data.id} does not belong to period {self.period.id}")
        self._update(
            app_deployments=list(data.app_deployments),
            custom_entries=list(data.custom_entries),
            meetings=data.meetings,
            base_rate=data.base_rate,
        )

    def add_deployment(self, details: str) -> DeploymentAdded:
        """
        Append a deployment entry. Duplicates are appended too.

        Raises:
            PeriodLockedError: If the period has not started
            ValueError: If details is blank
        """
        self._check_editable()

        details = details.strip()
        if not details:
            raise ValueError("Deployment details must not be blank")

        is_duplicate = is_duplicate_deployment(details, self.known_invoices, self.invoice)
        if is_duplicate:
            logger.warning(
                f"Duplicate deployment '{details}' added to {self.invoice.user_id}/{self.period.id}"
            )

        entry = AppDeployment(details=details)
        self._update(app_deployments=[*self.invoice.app_deployments, entry])
        return DeploymentAdded(entry=entry, is_duplicate=is_duplicate)

    def remove_deployment(self, entry_id: str) -> bool:
        """Remove a deployment by entry id. False if no such entry."""
        self._check_editable()

        remaining = [d for d in self.invoice.app_deployments if d.id != entry_id]
        if len(remaining) == len(self.invoice.app_deployments):
            return False
        self._update(app_deployments=remaining)
        return True

    def add_custom_entry(self, description: str, amount: Decimal | int | str) -> CustomEntry:
        """
        Append a custom line. Negative amounts are allowed.

        Raises:
            PeriodLockedError: If the period has not started
            ValueError: If description is blank
        """
        self._check_editable()

        description = description.strip()
        if not description:
            raise ValueError("Custom entry description must not be blank")

        entry = CustomEntry(description=description, amount=Decimal(str(amount)))
        self._update(custom_entries=[*self.invoice.custom_entries, entry])
        return entry

    def remove_custom_entry(self, entry_id: str) -> bool:
        self._check_editable()

        remaining = [e for e in self.invoice.custom_entries if e.id != entry_id]
        if len(remaining) == len(self.invoice.custom_entries):
            return False
        self._update(custom_entries=remaining)
        return True

    def set_meetings(self, count: int) -> None:
        """
        Raises:
            ValueError: If count is negative or not a whole number
        """
        self._check_editable()
        self._update(meetings=count)

    def set_base_rate(self, value: Decimal | int | str) -> None:
        """
        Raises:
            ValueError: If value is negative, non-finite or has sub-cent digits
        """
        self._check_editable()
        self._update(base_rate=value)

    def mark_saved(self, invoice: Invoice) -> None:
        """Adopt the stored copy after a successful save."""
        self.invoice = invoice
        self.is_saved = True
        self.known_invoices = [i for i in self.known_invoices if i.id != invoice.id]
        self.known_invoices.append(invoice)
