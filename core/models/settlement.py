"""Settlement requests and results.

Request models validate shape only. Amount and selection rules (positive
amount, 1..10 invoices, same customer) are business rules checked by the
settlement engine so they surface as typed ledger errors.
"""

from datetime import date
from decimal import Decimal

from pydantic import BaseModel, Field

from core.document_numbers import DocumentType
from core.models.invoice import PaymentStatus


class SettleSingleRequest(BaseModel):
    """Pay all or part of one invoice."""

    invoice_number: str = Field(..., min_length=1)
    customer_id: str | None = None  # Cross-check ownership when provided
    payment_amount: Decimal = Field(..., decimal_places=2)  # Sign checked by the engine
    payment_method: str = Field(..., min_length=1, max_length=50)
    payment_date: date
    timeout_seconds: float | None = Field(None, gt=0)


class SettleMultipleRequest(BaseModel):
    """Pay several invoices of one customer in full with a single receipt."""

    invoice_numbers: list[str]
    customer_id: str | None = None
    payment_method: str = Field(..., min_length=1, max_length=50)
    payment_date: date
    timeout_seconds: float | None = Field(None, gt=0)


class InvoiceUpdate(BaseModel):
    """Invoice balances after a settlement committed."""

    invoice_id: str
    invoice_number: str
    amount_applied: Decimal
    new_paid_amount: Decimal
    new_remaining_balance: Decimal
    new_payment_status: PaymentStatus


class SettlementResult(BaseModel):
    """Outcome of a single-invoice settlement."""

    receipt_number: str
    receipt_id: str
    amount_paid: Decimal
    updated_invoice: InvoiceUpdate


class MultiSettlementResult(BaseModel):
    """Outcome of a multi-invoice settlement."""

    receipt_number: str
    receipt_id: str
    total_amount: Decimal
    per_invoice_updates: list[InvoiceUpdate]


class IssuedDocument(BaseModel):
    """A newly issued invoice or invoice-receipt."""

    document_number: str
    document_id: str
    document_type: DocumentType
