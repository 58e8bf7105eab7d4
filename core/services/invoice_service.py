"""
Invoice reads for the settlement ledger.

Lookups here are plain reads outside any transaction. They are good enough
to reject requests early with a precise error; they are never the basis for
a balance mutation (the settlement engine re-reads inside its transaction).
"""

import logging
import time

from core.config import LedgerConfig
from core.exceptions import (
    AmbiguousReferenceError, NotFoundError, OwnershipMismatchError,
    SettlementTimeoutError, WrongDocumentTypeError,
)
from core.models import Invoice, InvoiceReceipt, Receipt
from core.stores.base import LedgerStore

logger = logging.getLogger(__name__)


class Deadline:
    """
    Caller deadline for the lookup phase.

    Measured on the monotonic clock. A None timeout never expires.
    """

    def __init__(self, timeout_seconds: float | None):
        self.timeout_seconds = timeout_seconds
        self._expires_at = (
            time.monotonic() + timeout_seconds if timeout_seconds is not None else None
        )

    def check(self) -> None:
        """Raise SettlementTimeoutError once the deadline has passed."""
        if self._expires_at is not None and time.monotonic() >= self._expires_at:
            raise SettlementTimeoutError(self.timeout_seconds)


class InvoiceService:
    """Service for invoice lookups."""

    def __init__(self, store: LedgerStore, config: LedgerConfig | None = None):
        self.store = store
        self.config = config or LedgerConfig()

    def resolve_invoice(
        self,
        document_number: str,
        customer_id: str | None = None,
        deadline: Deadline | None = None,
    ) -> Invoice:
        """
        Find the invoice a payment refers to.

        Args:
            document_number: Invoice number as typed by the user, e.g. "I-2026-7"
            customer_id: When given, the invoice must belong to this customer
            deadline: Lookup deadline, checked before and after the read

        Returns:
            Invoice (best-effort read, may be stale by the time it is used)

        Raises:
            NotFoundError: No document carries this number
            OwnershipMismatchError: The number exists, but not for customer_id
            AmbiguousReferenceError: Several customers use this number and
                no customer_id was given
            WrongDocumentTypeError: The document is not an invoice
            SettlementTimeoutError: Deadline passed
        """
        document_number = document_number.strip()
        if deadline is not None:
            deadline.check()

        documents = self.store.find_documents(document_number)

        if deadline is not None:
            deadline.check()

        if not documents:
            raise NotFoundError(document_number)

        if customer_id is not None:
            owned = [d for d in documents if d.customer_id == customer_id]
            if not owned:
                raise OwnershipMismatchError(document_number, customer_id)
            document = owned[0]
        else:
            owners = {d.customer_id for d in documents}
            if len(owners) > 1:
                raise AmbiguousReferenceError(document_number, owners)
            document = documents[0]

        if not isinstance(document, Invoice):
            raise WrongDocumentTypeError(document_number, document.document_type)

        return document

    def get_invoice_by_number(
        self,
        document_number: str,
        customer_id: str | None = None,
    ) -> Invoice | None:
        """
        Get invoice by document number.

        Returns:
            Invoice if one exists for the customer (or for the only customer
            using this number), None otherwise.

        Raises:
            AmbiguousReferenceError: Several customers use this number and
                no customer_id was given
        """
        try:
            return self.resolve_invoice(document_number, customer_id)
        except (NotFoundError, OwnershipMismatchError, WrongDocumentTypeError):
            return None

    def list_open_invoices(self, customer_id: str, limit: int | None = None) -> list[Invoice]:
        """
        List invoices a receipt can still pay.

        Args:
            customer_id: Customer whose invoices to list
            limit: Maximum results (defaults to config.open_invoices_limit)

        Returns:
            Unpaid and partially paid invoices, newest issue date first
        """
        return self.store.list_open_invoices(customer_id, limit or self.config.open_invoices_limit)

    def get_document(self, document_id: str) -> Invoice | Receipt | InvoiceReceipt | None:
        """Any ledger document by its repository key."""
        return self.store.get_document(document_id)
