"""
Document issuance: new unpaid invoices and paid-in-full invoice-receipts.

Both allocate their number in the same transaction that writes the document,
the same way the settlement engine allocates receipt numbers.
"""

import logging

from core.config import LedgerConfig
from core.document_numbers import DocumentType, document_key, format_document_number
from core.event_bus import EventBus
from core.events import InvoiceIssued, InvoiceReceiptIssued
from core.models import (
    Invoice, InvoiceCreate, InvoiceReceipt, InvoiceReceiptCreate, IssuedDocument,
    PaymentStatus,
)
from core.retry import run_with_retry
from core.services.counter_service import CounterService
from core.stores.base import LedgerStore
from utils.timezone import now_utc

logger = logging.getLogger(__name__)


class IssuanceService:
    """Service for issuing new ledger documents."""

    def __init__(
        self,
        store: LedgerStore,
        counters: CounterService,
        event_bus: EventBus | None = None,
        config: LedgerConfig | None = None,
    ):
        self.store = store
        self.counters = counters
        self.event_bus = event_bus
        self.config = config or LedgerConfig()

    def _storage_path(self, customer_id: str, year: int, document_number: str) -> str:
        return self.config.storage_path_template.format(
            customer_id=customer_id, year=year, document_number=document_number
        )

    def issue_invoice(self, data: InvoiceCreate) -> IssuedDocument:
        """
        Issue a new unpaid invoice.

        Args:
            data: Customer, description, total and issue date

        Returns:
            Number and repository key of the new invoice
        """

        def _op() -> Invoice:
            year = self.counters.current_year()
            now = now_utc()
            with self.store.transaction() as tx:
                sequence = self.counters.allocate(tx, data.customer_id, year, DocumentType.INVOICE)
                number = format_document_number(DocumentType.INVOICE, year, sequence)
                invoice = Invoice(
                    id=document_key(data.customer_id, number),
                    document_number=number,
                    customer_id=data.customer_id,
                    customer_name=data.customer_name,
                    customer_tax_id=data.customer_tax_id,
                    description=data.description,
                    total_amount=data.total_amount,
                    currency=data.currency or self.config.default_currency,
                    issue_date=data.issue_date,
                    paid_amount=0,
                    remaining_balance=data.total_amount,
                    payment_status=PaymentStatus.UNPAID,
                    storage_path=self._storage_path(data.customer_id, year, number),
                    created_at=now,
                    updated_at=now,
                )
                tx.insert_invoice(invoice)
            return invoice

        invoice = run_with_retry(_op, self.config, description="invoice issuance")
        logger.info(
            "Issued invoice %s for customer %s: %s %s",
            invoice.document_number, invoice.customer_id, invoice.total_amount, invoice.currency
        )

        if self.event_bus is not None:
            self.event_bus.publish(InvoiceIssued.create(invoice=invoice))

        return IssuedDocument(
            document_number=invoice.document_number,
            document_id=invoice.id,
            document_type=DocumentType.INVOICE,
        )

    def issue_paid_in_full_document(self, data: InvoiceReceiptCreate) -> IssuedDocument:
        """
        Issue an invoice-receipt: an invoice paid in full at issuance.

        No other document is touched, so the only shared state involved is
        the counter, allocated in the same transaction as the insert.
        """

        def _op() -> InvoiceReceipt:
            year = self.counters.current_year()
            now = now_utc()
            with self.store.transaction() as tx:
                sequence = self.counters.allocate(tx, data.customer_id, year, DocumentType.INVOICE_RECEIPT)
                number = format_document_number(DocumentType.INVOICE_RECEIPT, year, sequence)
                document = InvoiceReceipt(
                    id=document_key(data.customer_id, number),
                    document_number=number,
                    customer_id=data.customer_id,
                    customer_name=data.customer_name,
                    customer_tax_id=data.customer_tax_id,
                    description=data.description,
                    total_amount=data.amount,
                    currency=data.currency or self.config.default_currency,
                    issue_date=data.issue_date,
                    payment_method=data.payment_method,
                    paid_amount=data.amount,
                    storage_path=self._storage_path(data.customer_id, year, number),
                    created_at=now,
                    updated_at=now,
                )
                tx.insert_invoice_receipt(document)
            return document

        document = run_with_retry(_op, self.config, description="invoice-receipt issuance")
        logger.info(
            "Issued invoice-receipt %s for customer %s: %s %s via %s",
            document.document_number, document.customer_id, document.total_amount,
            document.currency, document.payment_method
        )

        if self.event_bus is not None:
            self.event_bus.publish(InvoiceReceiptIssued.create(invoice_receipt=document))

        return IssuedDocument(
            document_number=document.document_number,
            document_id=document.id,
            document_type=DocumentType.INVOICE_RECEIPT,
        )
