"""Account and rate settings routes."""

from fastapi import APIRouter, Request

from api.base import success_response
from core.models import UserSettingsUpdate


def create_settings_router(services: dict) -> APIRouter:
    router = APIRouter(tags=["settings"])

    settings_svc = services["settings"]

    @router.get("/accounts")
    async def list_accounts(request: Request):
        accounts = [
            {"user_id": a.user_id, "display_name": a.display_name}
            for a in settings_svc.list_accounts()
        ]
        return success_response(accounts, request.state.request_id).model_dump(mode="json")

    @router.get("/settings/{user_id}")
    async def get_settings(request: Request, user_id: str):
        settings_svc.require_account(user_id)
        settings = settings_svc.get_rate_config(user_id)
        data = settings.model_dump(mode="json") if settings else None
        return success_response(data, request.state.request_id).model_dump(mode="json")

    @router.post("/settings/{user_id}")
    async def save_settings(request: Request, user_id: str, body: UserSettingsUpdate):
        settings = settings_svc.save_rate_config(user_id, body)
        return success_response(
            settings.model_dump(mode="json"), request.state.request_id
        ).model_dump(mode="json")

    return router
