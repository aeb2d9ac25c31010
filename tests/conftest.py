"""Shared test fixtures for the invoicing test suite."""

from datetime import datetime, time, timezone
from decimal import Decimal
from pathlib import Path
from unittest.mock import Mock

import pytest
from dotenv import load_dotenv

# Load .env file BEFORE any other imports that might use env vars
load_dotenv(Path(__file__).parent.parent / ".env", override=True)

# Reset vault client singleton to pick up env vars
import clients.vault_client as vault_module
vault_module._vault_client_instance = None
vault_module._secret_cache.clear()

from clients.postgres_client import PostgresClient
from core.audit import AuditLogger
from core.config import BillingConfig
from core.models import AppDeployment, CustomEntry, Invoice, RateConfig, UserSettings
from core.periods import period_for_id
from utils.timezone import local_datetime


# =============================================================================
# CLOCK
# =============================================================================

TZ = "Europe/Berlin"

# Friday 2026-03-20, 10:00 in Berlin. Current period is 2026-3-15 (3.15-3.31).
NOW = datetime(2026, 3, 20, 9, 0, tzinfo=timezone.utc)


@pytest.fixture
def now() -> datetime:
    return NOW


@pytest.fixture
def billing_config() -> BillingConfig:
    return BillingConfig(timezone=TZ)


# =============================================================================
# RATES
# =============================================================================


@pytest.fixture
def rate_config() -> RateConfig:
    """Dimitar's seeded rates."""
    return RateConfig(
        base_rate=Decimal("104"),
        deployment_rate=Decimal("12"),
        deployment_label="App Deployments",
        meeting_rate_unit=2,
        meeting_rate_value=Decimal("5"),
    )


@pytest.fixture
def user_settings(rate_config) -> UserSettings:
    return UserSettings(user_id="dimitar", pin="0000", **rate_config.model_dump())


# =============================================================================
# INVOICES
# =============================================================================


def build_invoice(
    period_id: str = "2026-3-15",
    user_id: str = "dimitar",
    deployments: tuple[str, ...] = (),
    custom: tuple[tuple[str, str], ...] = (),
    meetings: int = 0,
    base_rate: str = "104",
    **fields,
) -> Invoice:
    period = period_for_id(period_id, NOW, TZ)
    return Invoice(
        id=period_id,
        user_id=user_id,
        period_start=local_datetime(period.start, time.min, TZ),
        period_end=local_datetime(period.end, time.min, TZ),
        app_deployments=[AppDeployment(details=d) for d in deployments],
        custom_entries=[CustomEntry(description=desc, amount=Decimal(amount)) for desc, amount in custom],
        meetings=meetings,
        base_rate=Decimal(base_rate),
        **fields,
    )


@pytest.fixture
def make_invoice():
    """Factory for invoices on real period bounds."""
    return build_invoice


@pytest.fixture
def example_invoice(make_invoice) -> Invoice:
    """2 deployments, 5 meetings, custom +20 and -5. Total 153 at Dimitar's rates."""
    return make_invoice(
        deployments=("billing-api v2", "mobile release 4.1"),
        custom=(("Hosting refund", "20"), ("Late fee", "-5")),
        meetings=5,
    )


# =============================================================================
# INFRASTRUCTURE DOUBLES
# =============================================================================


@pytest.fixture
def db():
    """PostgresClient double. Query methods return nothing unless configured."""
    mock = Mock(spec=PostgresClient)
    mock.execute.return_value = []
    mock.execute_single.return_value = None
    mock.execute_returning.return_value = []
    return mock


@pytest.fixture
def audit():
    return Mock(spec=AuditLogger)
