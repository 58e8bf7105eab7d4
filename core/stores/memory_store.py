"""
In-memory ledger store.

Implements the same transactional contract as the PostgreSQL store, for tests
and local development. Transactions are serializable by construction: a unit
holds the store lock from its first statement to commit, and its writes are
buffered and applied only when the block exits normally. Reads return fresh
model instances, so callers can never mutate stored state in place.
"""

import threading
from contextlib import contextmanager
from typing import Any, Dict, Iterator

from core.exceptions import StorageConflictError
from core.models import (
    DocumentCounter, Invoice, InvoiceReceipt, Receipt, PaymentStatus,
    parse_ledger_document,
)
from core.stores.base import LedgerStore, LedgerTransaction
from utils.timezone import now_utc


class InMemoryTransaction(LedgerTransaction):
    """Unit of work over an InMemoryLedgerStore. Writes are buffered until commit."""

    def __init__(self, store: "InMemoryLedgerStore"):
        self._store = store
        self._documents: Dict[str, Dict[str, Any]] = {}
        self._counters: Dict[str, Dict[str, Any]] = {}

    def _document_row(self, document_id: str) -> Dict[str, Any] | None:
        if document_id in self._documents:
            return self._documents[document_id]
        return self._store._documents.get(document_id)

    def _counter_row(self, counter_id: str) -> Dict[str, Any] | None:
        if counter_id in self._counters:
            return self._counters[counter_id]
        return self._store._counters.get(counter_id)

    def get_invoice(self, invoice_id: str) -> Invoice | None:
        row = self._document_row(invoice_id)
        if row is None or row["document_type"] != "invoice":
            return None
        return Invoice.model_validate(row)

    def get_counter(self, counter_id: str) -> DocumentCounter | None:
        row = self._counter_row(counter_id)
        return DocumentCounter.model_validate(row) if row is not None else None

    def insert_counter(self, counter: DocumentCounter) -> None:
        if self._counter_row(counter.id) is not None:
            raise StorageConflictError(f"Counter {counter.id} already exists")
        self._counters[counter.id] = counter.model_dump()

    def update_counter(self, counter: DocumentCounter) -> None:
        if self._counter_row(counter.id) is None:
            raise KeyError(f"Counter {counter.id} does not exist")
        self._counters[counter.id] = counter.model_dump()

    def _insert_document(self, document: Invoice | Receipt | InvoiceReceipt) -> None:
        if self._document_row(document.id) is not None:
            raise StorageConflictError(f"Document {document.id} already exists")
        self._documents[document.id] = document.model_dump()

    def insert_invoice(self, invoice: Invoice) -> None:
        self._insert_document(invoice)

    def update_invoice_payment(self, invoice: Invoice) -> None:
        current = self._document_row(invoice.id)
        if current is None or current["document_type"] != "invoice":
            raise KeyError(f"Invoice {invoice.id} does not exist")
        row = dict(current)
        row.update(
            paid_amount=invoice.paid_amount,
            remaining_balance=invoice.remaining_balance,
            payment_status=invoice.payment_status,
            payment_method=invoice.payment_method,
            related_receipt_ids=list(invoice.related_receipt_ids),
            updated_at=invoice.updated_at,
        )
        self._documents[invoice.id] = row

    def insert_receipt(self, receipt: Receipt) -> None:
        self._insert_document(receipt)

    def insert_invoice_receipt(self, invoice_receipt: InvoiceReceipt) -> None:
        self._insert_document(invoice_receipt)

    def _commit(self) -> None:
        self._store._documents.update(self._documents)
        self._store._counters.update(self._counters)


class InMemoryLedgerStore(LedgerStore):
    """
    Dict-backed ledger store.

    Usage:
        store = InMemoryLedgerStore()
        with store.transaction() as tx:
            tx.insert_invoice(invoice)
    """

    def __init__(self):
        self._documents: Dict[str, Dict[str, Any]] = {}
        self._counters: Dict[str, Dict[str, Any]] = {}
        self._lock = threading.RLock()

    @contextmanager
    def transaction(self) -> Iterator[InMemoryTransaction]:
        with self._lock:
            tx = InMemoryTransaction(self)
            yield tx
            tx._commit()

    def get_document(self, document_id: str) -> Invoice | Receipt | InvoiceReceipt | None:
        with self._lock:
            row = self._documents.get(document_id)
            return parse_ledger_document(row) if row is not None else None

    def find_documents(self, document_number: str) -> list[Invoice | Receipt | InvoiceReceipt]:
        with self._lock:
            return [
                parse_ledger_document(row)
                for row in self._documents.values()
                if row["document_number"] == document_number
            ]

    def list_open_invoices(self, customer_id: str, limit: int) -> list[Invoice]:
        with self._lock:
            rows = [
                row for row in self._documents.values()
                if row["document_type"] == "invoice"
                and row["customer_id"] == customer_id
                and row["payment_status"] in (PaymentStatus.UNPAID, PaymentStatus.PARTIAL)
                and row["remaining_balance"] > 0
            ]
        rows.sort(key=lambda r: (r["issue_date"], r["created_at"]), reverse=True)
        return [Invoice.model_validate(row) for row in rows[:limit]]

    def get_counter(self, counter_id: str) -> DocumentCounter | None:
        with self._lock:
            row = self._counters.get(counter_id)
            return DocumentCounter.model_validate(row) if row is not None else None

    def attach_document_url(self, document_id: str, storage_url: str) -> bool:
        with self._lock:
            row = self._documents.get(document_id)
            if row is None:
                return False
            row = dict(row)
            row.update(storage_url=storage_url, updated_at=now_utc())
            self._documents[document_id] = row
            return True

    def list_pending_documents(self, limit: int) -> list[Invoice | Receipt | InvoiceReceipt]:
        with self._lock:
            rows = [
                row for row in self._documents.values()
                if row.get("storage_path") and not row.get("storage_url")
            ]
        rows.sort(key=lambda r: r["created_at"])
        return [parse_ledger_document(row) for row in rows[:limit]]
