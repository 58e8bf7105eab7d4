"""Receipt domain models.

A receipt is one payment event covering one invoice (possibly partially) or
several invoices (each in full). Immutable once written, except for the
rendered-document location attached after commit.
"""

from datetime import date, datetime
from decimal import Decimal
from typing import Literal

from pydantic import BaseModel, Field, model_validator

MAX_INVOICES_PER_RECEIPT = 10


class Receipt(BaseModel):
    """Full receipt entity as stored."""

    id: str
    document_type: Literal["receipt"] = "receipt"
    document_number: str
    customer_id: str
    customer_name: str
    customer_tax_id: str | None = None
    amount_paid: Decimal = Field(..., gt=0)
    currency: str
    payment_method: str = Field(..., min_length=1)
    issue_date: date
    is_multi_invoice: bool = False
    related_invoice_numbers: list[str] = Field(..., min_length=1, max_length=MAX_INVOICES_PER_RECEIPT)
    related_invoice_ids: list[str] = Field(..., min_length=1, max_length=MAX_INVOICES_PER_RECEIPT)
    description: str
    is_partial_payment: bool = False
    remaining_balance: Decimal = Field(Decimal("0"), ge=0)  # Invoice balance left (single-invoice receipts)
    storage_path: str | None = None
    storage_url: str | None = None
    created_at: datetime
    updated_at: datetime

    model_config = {"from_attributes": True}

    @model_validator(mode="after")
    def check_related_invoices(self) -> "Receipt":
        if len(self.related_invoice_numbers) != len(self.related_invoice_ids):
            raise ValueError("related_invoice_numbers and related_invoice_ids must be parallel lists")
        if self.is_multi_invoice != (len(self.related_invoice_numbers) > 1):
            raise ValueError("is_multi_invoice must be set exactly when more than one invoice is covered")
        if self.is_multi_invoice and self.is_partial_payment:
            raise ValueError("Multi-invoice receipts always pay every invoice in full")
        return self

    @property
    def document_pending(self) -> bool:
        """True until the rendered document has been uploaded and attached."""
        return not self.storage_url
