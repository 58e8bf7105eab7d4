"""Core domain models."""

from typing import Annotated, Union

from pydantic import Field, TypeAdapter

from core.document_numbers import DocumentType
from core.models.invoice import Invoice, InvoiceCreate, PaymentStatus, payment_status_for
from core.models.receipt import Receipt, MAX_INVOICES_PER_RECEIPT
from core.models.invoice_receipt import InvoiceReceipt, InvoiceReceiptCreate
from core.models.counter import DocumentCounter
from core.models.settlement import (
    SettleSingleRequest, SettleMultipleRequest,
    InvoiceUpdate, SettlementResult, MultiSettlementResult,
    IssuedDocument,
)

# Closed set of stored documents, discriminated by document_type
LedgerDocument = Annotated[
    Union[Invoice, Receipt, InvoiceReceipt],
    Field(discriminator="document_type"),
]

_ledger_document_adapter = TypeAdapter(LedgerDocument)


def parse_ledger_document(data: dict) -> Invoice | Receipt | InvoiceReceipt:
    """Build the right document model from a stored row."""
    return _ledger_document_adapter.validate_python(data)


__all__ = [
    # Numbering
    "DocumentType",
    # Invoice
    "Invoice", "InvoiceCreate", "PaymentStatus", "payment_status_for",
    # Receipt
    "Receipt", "MAX_INVOICES_PER_RECEIPT",
    # InvoiceReceipt
    "InvoiceReceipt", "InvoiceReceiptCreate",
    # Counter
    "DocumentCounter",
    # Settlement
    "SettleSingleRequest", "SettleMultipleRequest",
    "InvoiceUpdate", "SettlementResult", "MultiSettlementResult",
    "IssuedDocument",
    # Any document
    "LedgerDocument", "parse_ledger_document",
]
