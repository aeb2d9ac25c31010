"""
Invoice total calculation.

    total = base_rate
          + deployments * deployment_rate
          + (meetings // meeting_rate_unit) * meeting_rate_value
          + sum(custom entry amounts)

Pure and exact (Decimal). Totals are recomputed on demand and never stored.
The rate config is whatever the caller passes; the calculator does not care
whether it is the owner's current settings or a historical copy.
"""

from decimal import Decimal

from pydantic import BaseModel

from core.exceptions import ZeroMeetingUnitError
from core.models import InvoiceSave, RateConfig

ZERO = Decimal("0")


def deployment_subtotal(invoice: InvoiceSave, rate_config: RateConfig) -> Decimal:
    """Every deployment is priced the same, whatever its details."""
    return len(invoice.app_deployments) * rate_config.deployment_rate


def meeting_subtotal(invoice: InvoiceSave, rate_config: RateConfig) -> Decimal:
    """
    Whole meeting units only; the remainder earns nothing.

    Raises:
        ZeroMeetingUnitError: If meeting_rate_unit is zero
    """
    if rate_config.meeting_rate_unit == 0:
        raise ZeroMeetingUnitError()
    units = invoice.meetings // rate_config.meeting_rate_unit
    return units * rate_config.meeting_rate_value


def custom_subtotal(invoice: InvoiceSave) -> Decimal:
    """Signed sum of custom entries."""
    return sum((entry.amount for entry in invoice.custom_entries), ZERO)


def calculate_total(
    invoice: InvoiceSave | None,
    rate_config: RateConfig | None,
) -> Decimal:
    """
    Invoice total in USD.

    Returns Decimal("0") while either input is missing (not loaded yet).
    """
    if invoice is None or rate_config is None:
        return ZERO

    return (
        invoice.base_rate
        + deployment_subtotal(invoice, rate_config)
        + meeting_subtotal(invoice, rate_config)
        + custom_subtotal(invoice)
    )


class BreakdownRow(BaseModel):
    description: str
    amount: Decimal


class InvoiceBreakdown(BaseModel):
    """Line-by-line view of an invoice, as exported."""

    period_label: str
    rows: list[BreakdownRow]
    total: Decimal


def _plain(value: Decimal) -> str:
    # 2.50 -> 2.5, 10 -> 10 (never 1E+1)
    return f"{value.normalize():f}"


def build_breakdown(
    invoice: InvoiceSave,
    rate_config: RateConfig,
    period_label: str,
) -> InvoiceBreakdown:
    """
    Rows in export order: deployments, custom entries, meetings, base rate.

    Raises:
        ZeroMeetingUnitError: If meeting_rate_unit is zero
    """
    rows = [
        BreakdownRow(description=dep.details, amount=rate_config.deployment_rate)
        for dep in invoice.app_deployments
    ]
    rows.extend(
        BreakdownRow(description=entry.description, amount=entry.amount)
        for entry in invoice.custom_entries
    )

    meetings = meeting_subtotal(invoice, rate_config)
    per_meeting = rate_config.meeting_rate_value / rate_config.meeting_rate_unit
    rows.append(BreakdownRow(
        description=(
            f"Meetings ({invoice.meetings} in total, "
            f"{rate_config.meeting_rate_unit}x{_plain(per_meeting)}USD)"
        ),
        amount=meetings,
    ))
    rows.append(BreakdownRow(description="Base rate", amount=invoice.base_rate))

    return InvoiceBreakdown(
        period_label=period_label,
        rows=rows,
        total=calculate_total(invoice, rate_config),
    )
