"""
Post-commit document publishing.

Renders a committed ledger document, uploads it to object storage and
attaches the resulting URL. This runs strictly after the ledger transaction
has committed: the ledger record is authoritative, and a failure here only
leaves the document in the "document pending" state (no storage_url) to be
picked up again by publish_pending().
"""

import logging
from typing import Protocol

from core.models import Invoice, InvoiceReceipt, Receipt
from core.stores.base import LedgerStore
from utils.currency import format_money
from utils.timezone import format_display_date

logger = logging.getLogger(__name__)


class DocumentRenderer(Protocol):
    """Turns document fields into a printable file (PDF)."""

    def render(self, document_kind: str, fields: dict) -> bytes:
        ...


class ObjectStorage(Protocol):
    """Stores bytes and returns a durable URL."""

    def upload(self, data: bytes, path: str) -> str:
        ...


def document_fields(document: Invoice | Receipt | InvoiceReceipt) -> dict:
    """
    Display fields handed to the renderer.

    Amounts carry the currency symbol and dates use DD/MM/YYYY, the way they
    are printed on documents.
    """
    fields = {
        "document_number": document.document_number,
        "customer_name": document.customer_name,
        "customer_tax_id": document.customer_tax_id,
        "issue_date": format_display_date(document.issue_date),
        "currency": document.currency,
    }

    if isinstance(document, Receipt):
        fields.update(
            description=document.description,
            amount=format_money(document.amount_paid, document.currency),
            payment_method=document.payment_method,
            related_invoice_numbers=list(document.related_invoice_numbers),
            is_multi_invoice=document.is_multi_invoice,
            is_partial_payment=document.is_partial_payment,
            remaining_balance=format_money(document.remaining_balance, document.currency),
        )
    else:
        fields.update(
            description=document.description,
            amount=format_money(document.total_amount, document.currency),
            payment_method=document.payment_method,
        )

    return fields


class DocumentPublisher:
    """
    Renders, uploads and attaches ledger documents.

    Usage:
        publisher = build_document_publisher(store, renderer)  # core.ledger
        publisher.publish(receipt)
        publisher.publish_pending()  # Retry anything left pending
    """

    def __init__(self, store: LedgerStore, renderer: DocumentRenderer, storage: ObjectStorage):
        self.store = store
        self.renderer = renderer
        self.storage = storage

    def publish(self, document: Invoice | Receipt | InvoiceReceipt) -> str:
        """
        Render and upload one document, then record its URL.

        Returns:
            The storage URL

        Raises:
            ValueError: Document has no storage path
            Whatever the renderer or storage raises; nothing is attached then
        """
        if not document.storage_path:
            raise ValueError(f"Document {document.id} has no storage path")

        data = self.renderer.render(document.document_type, document_fields(document))
        url = self.storage.upload(data, document.storage_path)

        if not self.store.attach_document_url(document.id, url):
            logger.warning("Document %s disappeared before its URL could be attached", document.id)
        else:
            logger.info("Published %s %s", document.document_type, document.document_number)

        return url

    def publish_by_id(self, document_id: str) -> str:
        """Publish a stored document by repository key."""
        document = self.store.get_document(document_id)
        if document is None:
            raise ValueError(f"Document {document_id} not found")
        return self.publish(document)

    def publish_pending(self, limit: int = 50) -> int:
        """
        Retry documents still pending: receipts, invoices and invoice-receipts.

        One failure does not stop the batch; it stays pending for the next run.

        Returns:
            Number of documents published in this run
        """
        pending = self.store.list_pending_documents(limit)
        published = 0

        for document in pending:
            try:
                self.publish(document)
                published += 1
            except Exception:
                logger.exception(
                    "Publishing %s %s failed; left pending",
                    document.document_type, document.document_number
                )

        if pending:
            logger.info("Published %d of %d pending documents", published, len(pending))
        return published
