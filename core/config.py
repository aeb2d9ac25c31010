"""Billing configuration."""

import os
from datetime import time
from decimal import Decimal

from pydantic import BaseModel, Field


class AccountDefaults(BaseModel):
    """Seed settings for one account, inserted when the account has no row."""

    user_id: str = Field(..., min_length=1, max_length=64)
    display_name: str
    pin: str = "0000"
    base_rate: Decimal = Field(..., ge=0, max_digits=12, decimal_places=2)
    deployment_rate: Decimal = Field(..., ge=0, max_digits=12, decimal_places=2)
    deployment_label: str = "App Deployments"
    meeting_rate_unit: int = Field(2, ge=1)
    meeting_rate_value: Decimal = Field(Decimal("5"), ge=0, max_digits=12, decimal_places=2)


def _default_accounts() -> list[AccountDefaults]:
    return [
        AccountDefaults(
            user_id="dimitar",
            display_name="Dimitar",
            base_rate=Decimal("104"),
            deployment_rate=Decimal("12"),
            deployment_label="App Deployments",
        ),
        AccountDefaults(
            user_id="gordana",
            display_name="Gordana",
            base_rate=Decimal("90"),
            deployment_rate=Decimal("8"),
            deployment_label="App Marketings",
        ),
    ]


class BillingConfig(BaseModel):
    """
    Billing configuration.

    Periods are calendar dates in `timezone`. Payment is due at
    `payment_due_time` on the adjusted payment date, in the same zone.
    """

    timezone: str = Field(
        default="Europe/Berlin",
        description="IANA zone that defines calendar days for periods",
    )
    payment_due_time: time = Field(
        default=time(11, 30),
        description="Wall-clock time payment is due (CET)",
    )

    exchange_rate_url: str = Field(
        default="https://api.exchangerate-api.com/v4/latest/USD",
        description="USD-based rates endpoint",
    )
    fallback_exchange_rate: Decimal = Field(
        default=Decimal("0.95"),
        description="USD to EUR rate used when the rate source fails",
        gt=0,
    )
    exchange_rate_cache_seconds: int = Field(
        default=3600,
        description="How long a fetched rate is cached",
        ge=0,
    )

    accounts: list[AccountDefaults] = Field(default_factory=_default_accounts)

    @classmethod
    def from_env(cls) -> "BillingConfig":
        """Defaults, with BILLING_TIMEZONE overriding the billing zone."""
        overrides = {}
        tz_name = os.getenv("BILLING_TIMEZONE")
        if tz_name:
            overrides["timezone"] = tz_name
        return cls(**overrides)

    @property
    def account_ids(self) -> list[str]:
        return [a.user_id for a in self.accounts]

    def get_account(self, user_id: str) -> AccountDefaults | None:
        for account in self.accounts:
            if account.user_id == user_id:
                return account
        return None
