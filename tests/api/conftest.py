"""API test fixtures - TestClient over service doubles and a fixed clock."""

from datetime import datetime, timezone
from decimal import Decimal
from unittest.mock import Mock

import pytest
from fastapi import FastAPI
from starlette.testclient import TestClient

from api.errors import register_error_handlers
from api.invoices import create_invoices_router
from api.middleware import RequestIDMiddleware
from api.overview import create_overview_router
from api.periods import create_periods_router
from api.settings import create_settings_router
from clients.exchange_rate_client import ExchangeRateClient
from core.config import BillingConfig
from core.draft import InvoiceDraft, new_draft_invoice
from core.services.invoice_service import InvoiceService
from core.services.overview_service import OverviewService
from core.services.settings_service import SettingsService

TZ = "Europe/Berlin"
NOW = datetime(2026, 3, 20, 9, 0, tzinfo=timezone.utc)


# =============================================================================
# SERVICE FIXTURES
# =============================================================================


@pytest.fixture
def known_invoices():
    """The user's stored invoices, as open_draft loads them."""
    return []


@pytest.fixture
def settings_service(billing_config, user_settings):
    mock = Mock(spec=SettingsService)
    mock.list_accounts.return_value = billing_config.accounts
    mock.get_rate_config.return_value = user_settings
    return mock


@pytest.fixture
def invoice_service(user_settings, known_invoices):
    mock = Mock(spec=InvoiceService)
    mock.tz_name = TZ
    mock.list_for_user.return_value = known_invoices
    mock.list_all.return_value = known_invoices

    def open_draft(user_id, period, now=None):
        existing = next((i for i in known_invoices if i.id == period.id), None)
        invoice = existing or new_draft_invoice(user_id, period, user_settings, TZ)
        return InvoiceDraft(
            invoice, period, user_settings, known_invoices,
            is_saved=existing is not None, tz_name=TZ, clock=lambda: now,
        )

    mock.open_draft.side_effect = open_draft
    return mock


@pytest.fixture
def overview_service():
    mock = Mock(spec=OverviewService)
    mock.user_earnings.return_value = Decimal("0")
    return mock


@pytest.fixture
def exchange_rates():
    mock = Mock(spec=ExchangeRateClient)
    mock.get_usd_to_eur_rate.return_value = Decimal("0.92")
    return mock


@pytest.fixture
def services(settings_service, invoice_service, overview_service, exchange_rates):
    return {
        "settings": settings_service,
        "invoice": invoice_service,
        "overview": overview_service,
        "exchange_rates": exchange_rates,
    }


# =============================================================================
# APP & CLIENT FIXTURES
# =============================================================================


@pytest.fixture
def app(services):
    """FastAPI app with request ids, error handlers and all routers, frozen at NOW."""
    clock = lambda: NOW

    app = FastAPI()
    app.add_middleware(RequestIDMiddleware)
    register_error_handlers(app)

    app.include_router(create_periods_router(BillingConfig(timezone=TZ), clock), prefix="/api")
    app.include_router(create_settings_router(services), prefix="/api")
    app.include_router(create_invoices_router(services, clock), prefix="/api")
    app.include_router(create_overview_router(services), prefix="/api")

    return app


@pytest.fixture
def client(app):
    return TestClient(app, raise_server_exceptions=False)
