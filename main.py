"""
Application factory.

Secrets come from Vault; rate defaults and accounts from BillingConfig.

    uvicorn main:create_app --factory
"""

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request

from api.base import success_response
from api.errors import register_error_handlers
from api.invoices import create_invoices_router
from api.middleware import RequestIDMiddleware
from api.overview import create_overview_router
from api.periods import create_periods_router
from api.settings import create_settings_router
from clients.exchange_rate_client import ExchangeRateClient
from clients.postgres_client import PostgresClient
from clients.valkey_client import ValkeyClient
from clients.vault_client import get_database_url, get_valkey_url
from core.audit import AuditLogger
from core.config import BillingConfig
from core.services.invoice_service import InvoiceService
from core.services.overview_service import OverviewService
from core.services.settings_service import SettingsService

logger = logging.getLogger(__name__)


def build_services(
    postgres: PostgresClient,
    config: BillingConfig,
    valkey: ValkeyClient | None = None,
) -> dict:
    """Wire services the way the routers expect them."""
    audit = AuditLogger(postgres)
    settings = SettingsService(postgres, audit, config)
    invoices = InvoiceService(postgres, audit, settings, config.timezone)
    exchange_rates = ExchangeRateClient(
        url=config.exchange_rate_url,
        fallback_rate=config.fallback_exchange_rate,
        valkey=valkey,
        cache_seconds=config.exchange_rate_cache_seconds,
    )
    overview = OverviewService(invoices, settings, exchange_rates, config.timezone)

    return {
        "settings": settings,
        "invoice": invoices,
        "overview": overview,
        "exchange_rates": exchange_rates,
    }


def create_app(config: BillingConfig | None = None) -> FastAPI:
    """Build the FastAPI app with live PostgreSQL and Valkey connections."""
    config = config or BillingConfig.from_env()

    postgres = PostgresClient(get_database_url())
    valkey = ValkeyClient(get_valkey_url())
    services = build_services(postgres, config, valkey)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        initialized = services["settings"].initialize_defaults()
        if initialized:
            logger.info(f"Seeded settings for: {', '.join(initialized)}")
        yield
        valkey.close()
        postgres.close()

    app = FastAPI(title="Invoicing", lifespan=lifespan)
    app.add_middleware(RequestIDMiddleware)
    register_error_handlers(app)

    @app.get("/health")
    async def health(request: Request):
        valkey.ping()
        return success_response({"status": "ok"}, request.state.request_id).model_dump(mode="json")

    app.include_router(create_periods_router(config), prefix="/api")
    app.include_router(create_settings_router(services), prefix="/api")
    app.include_router(create_invoices_router(services), prefix="/api")
    app.include_router(create_overview_router(services), prefix="/api")

    return app


if __name__ == "__main__":
    import uvicorn

    logging.basicConfig(level=logging.INFO)
    uvicorn.run(create_app(), host="0.0.0.0", port=3000)
