"""Invoice-receipt: an invoice issued already paid in full."""

from datetime import date, datetime
from decimal import Decimal
from typing import Literal

from pydantic import BaseModel, Field, field_validator, model_validator

from core.models.invoice import PaymentStatus, normalize_currency


class InvoiceReceiptCreate(BaseModel):
    """Data required to issue a paid-in-full document."""

    customer_id: str = Field(..., min_length=1, max_length=64)
    customer_name: str = Field(..., min_length=1, max_length=200)
    customer_tax_id: str | None = Field(None, max_length=32)
    description: str = Field(..., min_length=1, max_length=2000)
    amount: Decimal = Field(..., gt=0, decimal_places=2)
    currency: str | None = None  # Defaults to the ledger currency
    payment_method: str = Field(..., min_length=1, max_length=50)
    issue_date: date

    @field_validator("currency")
    @classmethod
    def check_currency(cls, value: str | None) -> str | None:
        return normalize_currency(value) if value is not None else None


class InvoiceReceipt(BaseModel):
    """Full invoice-receipt entity as stored."""

    id: str
    document_type: Literal["invoice_receipt"] = "invoice_receipt"
    document_number: str
    customer_id: str
    customer_name: str
    customer_tax_id: str | None = None
    description: str
    total_amount: Decimal = Field(..., gt=0)
    currency: str
    issue_date: date
    payment_method: str = Field(..., min_length=1)
    paid_amount: Decimal
    remaining_balance: Decimal = Decimal("0")
    payment_status: PaymentStatus = PaymentStatus.PAID
    storage_path: str | None = None
    storage_url: str | None = None
    created_at: datetime
    updated_at: datetime

    model_config = {"from_attributes": True}

    @model_validator(mode="after")
    def check_paid_in_full(self) -> "InvoiceReceipt":
        if self.paid_amount != self.total_amount or self.remaining_balance != 0:
            raise ValueError("Invoice-receipts are always paid in full")
        if self.payment_status != PaymentStatus.PAID:
            raise ValueError("Invoice-receipts always have payment_status 'paid'")
        return self
