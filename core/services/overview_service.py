"""
Cross-account payment overview.

Totals are recomputed with each owner's current rate config, then converted
to EUR at the current USD to EUR rate. Received amounts are what was actually
booked in EUR.
"""

import logging
from decimal import ROUND_HALF_UP, Decimal

from pydantic import BaseModel

from clients.exchange_rate_client import ExchangeRateClient
from core.calculator import ZERO, calculate_total
from core.exceptions import InvalidPeriodError
from core.models import Invoice
from core.periods import DEFAULT_TIMEZONE, period_for_id
from core.services.invoice_service import InvoiceService
from core.services.settings_service import SettingsService
from utils.timezone import local_date

logger = logging.getLogger(__name__)

CENT = Decimal("0.01")


class OverviewRow(BaseModel):
    invoice_id: str
    user_id: str
    period_label: str
    year: int
    total_usd: Decimal
    total_eur: Decimal
    is_paid: bool
    received_amount_eur: Decimal


class Overview(BaseModel):
    exchange_rate: Decimal
    total_usd: Decimal
    total_eur_estimated: Decimal
    total_eur_received: Decimal
    rows: list[OverviewRow]


def _to_eur(amount_usd: Decimal, rate: Decimal) -> Decimal:
    return (amount_usd * rate).quantize(CENT, rounding=ROUND_HALF_UP)


class OverviewService:
    """Read-only reporting across both accounts."""

    def __init__(
        self,
        invoices: InvoiceService,
        settings: SettingsService,
        exchange_rates: ExchangeRateClient,
        tz_name: str = DEFAULT_TIMEZONE,
    ):
        self.invoices = invoices
        self.settings = settings
        self.exchange_rates = exchange_rates
        self.tz_name = tz_name

    def _period_label(self, invoice: Invoice) -> str:
        try:
            return period_for_id(invoice.id, tz_name=self.tz_name).label
        except InvalidPeriodError:
            logger.warning(f"Invoice {invoice.user_id}/{invoice.id} has no period id")
            return invoice.id

    def build_overview(self) -> Overview:
        """Every invoice of every account with USD/EUR totals and payment state."""
        invoices = self.invoices.list_all()
        settings = self.settings.get_all()
        rate = self.exchange_rates.get_usd_to_eur_rate()

        rows = []
        for invoice in invoices:
            total_usd = calculate_total(invoice, settings.get(invoice.user_id))
            rows.append(OverviewRow(
                invoice_id=invoice.id,
                user_id=invoice.user_id,
                period_label=self._period_label(invoice),
                year=local_date(invoice.period_start, self.tz_name).year,
                total_usd=total_usd,
                total_eur=_to_eur(total_usd, rate),
                is_paid=invoice.is_paid,
                received_amount_eur=invoice.received_amount_eur,
            ))

        total_usd = sum((row.total_usd for row in rows), ZERO)
        return Overview(
            exchange_rate=rate,
            total_usd=total_usd,
            total_eur_estimated=_to_eur(total_usd, rate),
            total_eur_received=sum((row.received_amount_eur for row in rows), ZERO),
            rows=rows,
        )

    def user_earnings(self, user_id: str) -> Decimal:
        """Sum of all invoice totals of one account, in USD."""
        self.settings.require_account(user_id)
        rate_config = self.settings.get_rate_config(user_id)
        return sum(
            (calculate_total(invoice, rate_config) for invoice in self.invoices.list_for_user(user_id)),
            ZERO,
        )
