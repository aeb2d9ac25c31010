"""Invoice routes: per-account listing, drafts, save, delete, history, payment status."""

from datetime import datetime
from typing import Callable

from fastapi import APIRouter, Request
from pydantic import BaseModel

from api.base import success_response
from core.models import InvoiceSave, PaymentStatusUpdate
from core.periods import period_for_id
from core.policy import duplicate_warning
from utils.timezone import now_utc


class AddDeploymentRequest(BaseModel):
    details: str
    draft: InvoiceSave | None = None  # client-held draft; stored/fresh copy if omitted


def create_invoices_router(services: dict, clock: Callable[[], datetime] = now_utc) -> APIRouter:
    router = APIRouter(tags=["invoices"])

    invoice_svc = services["invoice"]
    settings_svc = services["settings"]
    overview_svc = services["overview"]
    tz_name = invoice_svc.tz_name

    def _open_draft(user_id: str, period_id: str, data: InvoiceSave | None = None):
        now = clock()
        period = period_for_id(period_id, now, tz_name)
        draft = invoice_svc.open_draft(user_id, period, now)
        if data is not None:
            draft.load(data)
        return draft

    @router.get("/invoices/{user_id}")
    async def list_invoices(request: Request, user_id: str):
        settings_svc.require_account(user_id)
        invoices = invoice_svc.list_for_user(user_id)
        data = {
            "invoices": [i.model_dump(mode="json") for i in invoices],
            "total_earned": str(overview_svc.user_earnings(user_id)),
        }
        return success_response(data, request.state.request_id).model_dump(mode="json")

    @router.post("/invoices/{user_id}")
    async def save_invoice(request: Request, user_id: str, body: InvoiceSave):
        invoice = invoice_svc.upsert(user_id, body, clock())
        return success_response(
            invoice.model_dump(mode="json"), request.state.request_id
        ).model_dump(mode="json")

    @router.post("/invoices/{user_id}/preview")
    async def preview_invoice(request: Request, user_id: str, body: InvoiceSave):
        draft = _open_draft(user_id, body.id, body)
        return success_response(
            draft.snapshot().model_dump(mode="json"), request.state.request_id
        ).model_dump(mode="json")

    @router.get("/invoices/{user_id}/periods/{period_id}")
    async def open_draft(request: Request, user_id: str, period_id: str):
        draft = _open_draft(user_id, period_id)
        return success_response(
            draft.snapshot().model_dump(mode="json"), request.state.request_id
        ).model_dump(mode="json")

    @router.post("/invoices/{user_id}/periods/{period_id}/deployments")
    async def add_deployment(request: Request, user_id: str, period_id: str, body: AddDeploymentRequest):
        draft = _open_draft(user_id, period_id, body.draft)
        result = draft.add_deployment(body.details)

        warnings = []
        if result.is_duplicate:
            warnings.append(duplicate_warning(draft.rate_config.deployment_label))

        data = draft.snapshot().model_dump(mode="json")
        data["is_duplicate"] = result.is_duplicate
        data["entry"] = result.entry.model_dump(mode="json")
        return success_response(data, request.state.request_id, warnings).model_dump(mode="json")

    @router.delete("/invoices/{user_id}/{invoice_id}")
    async def delete_invoice(request: Request, user_id: str, invoice_id: str):
        settings_svc.require_account(user_id)
        deleted = invoice_svc.delete(user_id, invoice_id)
        if not deleted:
            raise ValueError(f"Invoice {invoice_id} not found")
        return success_response({"deleted": True}, request.state.request_id).model_dump(mode="json")

    @router.get("/invoices/{user_id}/{invoice_id}/history")
    async def invoice_history(request: Request, user_id: str, invoice_id: str):
        settings_svc.require_account(user_id)
        entries = invoice_svc.history(user_id, invoice_id)
        return success_response(entries, request.state.request_id).model_dump(mode="json")

    @router.patch("/invoices/{user_id}/{invoice_id}/payment")
    async def update_payment(request: Request, user_id: str, invoice_id: str, body: PaymentStatusUpdate):
        settings_svc.require_account(user_id)
        invoice = invoice_svc.update_payment_status(user_id, invoice_id, body)
        return success_response(
            invoice.model_dump(mode="json"), request.state.request_id
        ).model_dump(mode="json")

    return router
