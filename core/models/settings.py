"""Per-account rate configuration models.

Money is Decimal in the invoice currency (USD), at most two decimal places
to match the NUMERIC(12, 2) columns.
"""

from decimal import Decimal

from pydantic import BaseModel, Field


class RateConfig(BaseModel):
    """Pricing parameters used to compute invoice totals."""

    base_rate: Decimal = Field(..., ge=0, max_digits=12, decimal_places=2)
    deployment_rate: Decimal = Field(..., ge=0, max_digits=12, decimal_places=2)
    deployment_label: str = Field("App Deployments", min_length=1, max_length=100)
    meeting_rate_unit: int = Field(..., ge=1)  # meetings per paid unit
    meeting_rate_value: Decimal = Field(..., ge=0, max_digits=12, decimal_places=2)  # amount per unit

    model_config = {"from_attributes": True}


class UserSettingsUpdate(RateConfig):
    """Full settings row as submitted by the account owner."""

    pin: str = Field(..., pattern=r"^\d{4}$")


class UserSettings(RateConfig):
    """Settings row as stored."""

    user_id: str
    pin: str
