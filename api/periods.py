"""GET /api/periods/{year}: the billing calendar."""

from datetime import datetime
from typing import Callable

from fastapi import APIRouter, Path, Request

from api.base import success_response
from core.config import BillingConfig
from core.models import Period
from core.periods import (
    current_period,
    generate_periods,
    payment_due_at,
    selectable_periods,
    upcoming_locked_periods,
)
from core.policy import can_edit
from utils.timezone import now_utc


def period_payload(period: Period, now: datetime, config: BillingConfig) -> dict:
    data = period.model_dump(mode="json")
    data["payment_due_at"] = payment_due_at(period, config.payment_due_time).isoformat()
    data["editable"] = can_edit(period, now, config.timezone)
    return data


def create_periods_router(config: BillingConfig, clock: Callable[[], datetime] = now_utc) -> APIRouter:
    router = APIRouter(tags=["periods"])

    @router.get("/periods/{year}")
    async def list_periods(request: Request, year: int = Path(..., ge=1, le=9999)):
        now = clock()
        periods = generate_periods(year, now, config.timezone)

        data = {
            "year": year,
            "periods": [period_payload(p, now, config) for p in periods],
            "current_period_id": current_period(periods).id,
            "selectable_period_ids": [p.id for p in selectable_periods(periods)],
            "upcoming_locked_period_ids": [p.id for p in upcoming_locked_periods(periods)],
        }
        return success_response(data, request.state.request_id).model_dump(mode="json")

    return router
