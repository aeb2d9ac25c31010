"""Cross-account reporting routes."""

from fastapi import APIRouter, Request

from api.base import success_response


def create_overview_router(services: dict) -> APIRouter:
    router = APIRouter(tags=["overview"])

    invoice_svc = services["invoice"]
    overview_svc = services["overview"]
    exchange_rates = services["exchange_rates"]

    @router.get("/all-invoices")
    async def all_invoices(request: Request):
        invoices = invoice_svc.list_all()
        return success_response(
            [i.model_dump(mode="json") for i in invoices], request.state.request_id
        ).model_dump(mode="json")

    @router.get("/overview")
    async def overview(request: Request):
        return success_response(
            overview_svc.build_overview().model_dump(mode="json"), request.state.request_id
        ).model_dump(mode="json")

    @router.get("/exchange-rate")
    async def exchange_rate(request: Request):
        rate = exchange_rates.get_usd_to_eur_rate()
        return success_response({"rate": str(rate)}, request.state.request_id).model_dump(mode="json")

    return router
