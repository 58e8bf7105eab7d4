"""Invoice domain models.

Amounts are Decimal in the invoice currency. The balance fields are owned by
the settlement engine; the model refuses to exist in a state that breaks
conservation (paid + remaining == total) or carries a stale payment status.
"""

from datetime import date, datetime
from decimal import Decimal
from enum import Enum
from typing import Literal

from pydantic import BaseModel, Field, field_validator, model_validator


class PaymentStatus(str, Enum):
    """Invoice payment status, derived from the balances."""

    UNPAID = "unpaid"
    PARTIAL = "partial"
    PAID = "paid"


def payment_status_for(paid_amount: Decimal, remaining_balance: Decimal) -> PaymentStatus:
    """Status as a pure function of the balances."""
    if remaining_balance == 0:
        return PaymentStatus.PAID
    if paid_amount > 0:
        return PaymentStatus.PARTIAL
    return PaymentStatus.UNPAID


def normalize_currency(value: str) -> str:
    """Validate and upper-case a 3-letter ISO currency code."""
    if len(value) != 3 or not value.isalpha():
        raise ValueError("currency must be a 3-letter ISO code")
    return value.upper()


class InvoiceCreate(BaseModel):
    """Data required to issue a new, unpaid invoice."""

    customer_id: str = Field(..., min_length=1, max_length=64)
    customer_name: str = Field(..., min_length=1, max_length=200)
    customer_tax_id: str | None = Field(None, max_length=32)
    description: str = Field(..., min_length=1, max_length=2000)
    total_amount: Decimal = Field(..., gt=0, decimal_places=2)
    currency: str | None = None  # Defaults to the ledger currency
    issue_date: date

    @field_validator("currency")
    @classmethod
    def check_currency(cls, value: str | None) -> str | None:
        return normalize_currency(value) if value is not None else None


class Invoice(BaseModel):
    """Full invoice entity as stored."""

    id: str
    document_type: Literal["invoice"] = "invoice"
    document_number: str
    customer_id: str
    customer_name: str
    customer_tax_id: str | None = None
    description: str
    total_amount: Decimal = Field(..., gt=0)
    currency: str
    issue_date: date
    payment_method: str | None = None
    paid_amount: Decimal = Field(..., ge=0)
    remaining_balance: Decimal = Field(..., ge=0)
    payment_status: PaymentStatus
    related_receipt_ids: list[str] = Field(default_factory=list)
    storage_path: str | None = None
    storage_url: str | None = None
    created_at: datetime
    updated_at: datetime

    model_config = {"from_attributes": True}

    @model_validator(mode="after")
    def check_balances(self) -> "Invoice":
        if self.paid_amount + self.remaining_balance != self.total_amount:
            raise ValueError(
                f"paid_amount ({self.paid_amount}) + remaining_balance "
                f"({self.remaining_balance}) must equal total_amount ({self.total_amount})"
            )
        expected = payment_status_for(self.paid_amount, self.remaining_balance)
        if self.payment_status != expected:
            raise ValueError(
                f"payment_status {self.payment_status.value} does not match balances "
                f"(expected {expected.value})"
            )
        return self

    @property
    def is_open(self) -> bool:
        """Whether the invoice can still receive payments."""
        return self.remaining_balance > 0

    def with_payment(
        self,
        amount: Decimal,
        receipt_id: str,
        payment_method: str,
        updated_at: datetime,
    ) -> "Invoice":
        """
        New invoice state after applying a payment.

        Goes through full validation, so an amount larger than the remaining
        balance fails here even if a caller skipped the engine's checks.
        """
        paid = self.paid_amount + amount
        remaining = self.total_amount - paid
        data = self.model_dump()
        data.update(
            paid_amount=paid,
            remaining_balance=remaining,
            payment_status=payment_status_for(paid, remaining),
            payment_method=payment_method,
            related_receipt_ids=[*self.related_receipt_ids, receipt_id],
            updated_at=updated_at,
        )
        return Invoice.model_validate(data)
