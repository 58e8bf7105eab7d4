"""
Domain events for the settlement ledger.

Immutable event objects describing ledger mutations that have already
committed. Services publish them after the transaction closes; handlers do
post-commit work (rendering, upload, notifications) without the publisher
knowing who's listening.

Event Categories:
- ReceiptEvent: Receipt lifecycle (issued)
- InvoiceEvent: Invoice lifecycle (issued, settled)
- InvoiceReceiptEvent: Paid-in-full document lifecycle (issued)

Events carry the committed domain object so handlers don't need to re-fetch
state.
"""

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any
from uuid import uuid4

from utils.timezone import now_utc


@dataclass(frozen=True, kw_only=True)
class LedgerEvent:
    """Base class for all ledger domain events."""
    event_id: str = field(default_factory=lambda: str(uuid4()))
    occurred_at: datetime = field(default_factory=now_utc)


# =============================================================================
# RECEIPT EVENTS
# =============================================================================


@dataclass(frozen=True)
class ReceiptEvent(LedgerEvent):
    """Events related to receipt lifecycle."""
    pass


@dataclass(frozen=True)
class ReceiptIssued(ReceiptEvent):
    """A receipt was committed together with the invoice updates it caused."""
    receipt: Any = None  # Receipt
    invoices: tuple = ()  # Invoices as committed by the same transaction

    @classmethod
    def create(cls, receipt: Any, invoices: list) -> "ReceiptIssued":
        return cls(receipt=receipt, invoices=tuple(invoices))


# =============================================================================
# INVOICE EVENTS
# =============================================================================


@dataclass(frozen=True)
class InvoiceEvent(LedgerEvent):
    """Events related to invoice lifecycle."""
    pass


@dataclass(frozen=True)
class InvoiceIssued(InvoiceEvent):
    """A new unpaid invoice was issued."""
    invoice: Any = None

    @classmethod
    def create(cls, invoice: Any) -> "InvoiceIssued":
        return cls(invoice=invoice)


@dataclass(frozen=True)
class InvoiceSettled(InvoiceEvent):
    """Invoice balance reached zero."""
    invoice: Any = None
    receipt_id: str = ""

    @classmethod
    def create(cls, invoice: Any, receipt_id: str) -> "InvoiceSettled":
        return cls(invoice=invoice, receipt_id=receipt_id)


# =============================================================================
# INVOICE-RECEIPT EVENTS
# =============================================================================


@dataclass(frozen=True)
class InvoiceReceiptEvent(LedgerEvent):
    """Events related to paid-in-full documents."""
    pass


@dataclass(frozen=True)
class InvoiceReceiptIssued(InvoiceReceiptEvent):
    """A paid-in-full document was issued."""
    invoice_receipt: Any = None

    @classmethod
    def create(cls, invoice_receipt: Any) -> "InvoiceReceiptIssued":
        return cls(invoice_receipt=invoice_receipt)
