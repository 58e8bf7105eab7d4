"""
Storage contract for the settlement ledger.

The engine never talks to a database directly; it receives a LedgerStore.
Implementations must provide:

- point reads and predicate scans outside any transaction (lookup phase)
- transaction(): a unit with read-your-writes, where every read of an
  invoice or counter sees the latest committed state and holds it until
  commit (row lock or equivalent isolation), and where concurrent units
  touching the same records either serialize or fail with
  StorageConflictError. Nothing written inside a unit is visible to anyone
  else unless the unit commits.
"""

from abc import ABC, abstractmethod
from contextlib import AbstractContextManager

from core.models import DocumentCounter, Invoice, InvoiceReceipt, Receipt


class LedgerTransaction(ABC):
    """Reads and writes that commit together or not at all."""

    @abstractmethod
    def get_invoice(self, invoice_id: str) -> Invoice | None:
        """Latest committed invoice state, held until the unit ends."""

    @abstractmethod
    def get_counter(self, counter_id: str) -> DocumentCounter | None:
        """Latest committed counter record, held until the unit ends."""

    @abstractmethod
    def insert_counter(self, counter: DocumentCounter) -> None:
        """Create a counter record. Conflicts if one was created concurrently."""

    @abstractmethod
    def update_counter(self, counter: DocumentCounter) -> None:
        """Overwrite the sequences of a counter read in this unit."""

    @abstractmethod
    def insert_invoice(self, invoice: Invoice) -> None:
        """Create an invoice."""

    @abstractmethod
    def update_invoice_payment(self, invoice: Invoice) -> None:
        """Persist the payment fields of an invoice read in this unit."""

    @abstractmethod
    def insert_receipt(self, receipt: Receipt) -> None:
        """Create a receipt."""

    @abstractmethod
    def insert_invoice_receipt(self, invoice_receipt: InvoiceReceipt) -> None:
        """Create an invoice-receipt."""


class LedgerStore(ABC):
    """Ledger persistence backend."""

    @abstractmethod
    def transaction(self) -> AbstractContextManager[LedgerTransaction]:
        """
        Open an atomic unit.

        Commits when the block exits normally, rolls back on any exception.
        Backend conflicts surface as StorageConflictError.
        """

    @abstractmethod
    def get_document(self, document_id: str) -> Invoice | Receipt | InvoiceReceipt | None:
        """Any document by repository key."""

    @abstractmethod
    def find_documents(self, document_number: str) -> list[Invoice | Receipt | InvoiceReceipt]:
        """All documents carrying this number, across customers."""

    @abstractmethod
    def list_open_invoices(self, customer_id: str, limit: int) -> list[Invoice]:
        """Invoices with a remaining balance, newest issue date first."""

    @abstractmethod
    def get_counter(self, counter_id: str) -> DocumentCounter | None:
        """Counter record without locking. Diagnostics only."""

    @abstractmethod
    def attach_document_url(self, document_id: str, storage_url: str) -> bool:
        """Record where the rendered document lives. False if no such document."""

    @abstractmethod
    def list_pending_documents(self, limit: int) -> list[Invoice | Receipt | InvoiceReceipt]:
        """Documents with a storage path but no attached URL yet, oldest first."""
