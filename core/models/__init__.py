"""Core domain models."""

from core.models.period import Period, PeriodKey, PeriodHalf
from core.models.settings import RateConfig, UserSettings, UserSettingsUpdate
from core.models.invoice import (
    AppDeployment,
    CustomEntry,
    Invoice,
    InvoiceSave,
    PaymentStatusUpdate,
    new_entry_id,
)

__all__ = [
    # Period
    "Period", "PeriodKey", "PeriodHalf",
    # Settings
    "RateConfig", "UserSettings", "UserSettingsUpdate",
    # Invoice
    "AppDeployment", "CustomEntry", "Invoice", "InvoiceSave", "PaymentStatusUpdate",
    "new_entry_id",
]
