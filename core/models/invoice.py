"""Invoice domain models.

Amounts are Decimal in USD, except received_amount_eur. Stored amounts carry
at most two decimal places. The invoice total is never stored: see
core.calculator.
"""

from datetime import datetime
from decimal import Decimal
from typing import Any
from uuid import uuid4

from pydantic import AwareDatetime, BaseModel, Field, field_validator


def new_entry_id() -> str:
    return uuid4().hex


class AppDeployment(BaseModel):
    """A deployment line. Priced per entry regardless of details."""

    id: str = Field(default_factory=new_entry_id)
    details: str = Field(..., max_length=500)

    @field_validator("details")
    @classmethod
    def details_not_blank(cls, value: str) -> str:
        value = value.strip()
        if not value:
            raise ValueError("details must not be blank")
        return value


class CustomEntry(BaseModel):
    """Free-form line. Negative amounts are deductions."""

    id: str = Field(default_factory=new_entry_id)
    description: str = Field(..., min_length=1, max_length=500)
    amount: Decimal = Decimal("0")


class InvoiceSave(BaseModel):
    """Complete invoice body submitted on save. Replaces the stored row."""

    id: str
    period_start: AwareDatetime
    period_end: AwareDatetime
    app_deployments: list[AppDeployment] = Field(default_factory=list)
    custom_entries: list[CustomEntry] = Field(default_factory=list)
    meetings: int = Field(0, ge=0)
    base_rate: Decimal = Field(..., ge=0, max_digits=12, decimal_places=2)

    @field_validator("app_deployments", "custom_entries", mode="before")
    @classmethod
    def missing_list_is_empty(cls, value: Any) -> Any:
        return [] if value is None else value


class Invoice(InvoiceSave):
    """Full invoice entity, one per (user_id, id)."""

    user_id: str
    is_paid: bool = False
    received_amount_eur: Decimal = Field(Decimal("0"), ge=0, max_digits=12, decimal_places=2)
    updated_at: datetime | None = None  # None until first save

    model_config = {"from_attributes": True}

    @field_validator("is_paid", mode="before")
    @classmethod
    def null_is_unpaid(cls, value: Any) -> Any:
        return False if value is None else value

    @field_validator("received_amount_eur", mode="before")
    @classmethod
    def null_is_zero(cls, value: Any) -> Any:
        return Decimal("0") if value is None else value

    def to_save(self) -> InvoiceSave:
        """The editable part of the invoice, as submitted on save."""
        return InvoiceSave.model_validate(
            self.model_dump(include=set(InvoiceSave.model_fields))
        )

    def to_record(self) -> dict[str, Any]:
        """Record shape exchanged with the store (ISO timestamps, JSON lists)."""
        return self.model_dump(mode="json")


class PaymentStatusUpdate(BaseModel):
    """Partial update of the payment-tracking fields."""

    is_paid: bool
    received_amount_eur: Decimal = Field(Decimal("0"), ge=0, max_digits=12, decimal_places=2)
