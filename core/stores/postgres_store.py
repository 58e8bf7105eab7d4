"""
PostgreSQL ledger store.

Each document kind lives in its own table (invoices, receipts,
invoice_receipts); counters live in document_counters. See schema/ledger.sql.

Isolation: transactional reads of invoices and counters use
SELECT ... FOR UPDATE, so two units touching the same row serialize and the
second one reads the first one's committed result. Serialization failures,
deadlocks, lock timeouts and unique violations (two units creating the same
counter or document) surface as StorageConflictError and are retried by the
engine.
"""

import logging
from contextlib import contextmanager
from typing import Any, Iterator

import psycopg2.errors
import psycopg2.extensions

from clients.postgres_client import PostgresClient, PostgresTransaction
from core.exceptions import StorageConflictError
from core.models import DocumentCounter, Invoice, InvoiceReceipt, Receipt
from core.stores.base import LedgerStore, LedgerTransaction
from utils.timezone import now_utc

logger = logging.getLogger(__name__)

# Table per document kind, in lookup order
_TABLES = (
    ("invoices", Invoice),
    ("receipts", Receipt),
    ("invoice_receipts", InvoiceReceipt),
)

_CONFLICT_ERRORS = (
    psycopg2.extensions.TransactionRollbackError,  # serialization failure, deadlock
    psycopg2.errors.UniqueViolation,
    psycopg2.errors.LockNotAvailable,
)


def _row_values(model, table_columns: tuple[str, ...]) -> tuple:
    data = model.model_dump()
    return tuple(_to_db(data[column]) for column in table_columns)


def _to_db(value: Any) -> Any:
    # Enums are stored by value
    return getattr(value, "value", value)


def _insert_sql(table: str, columns: tuple[str, ...]) -> str:
    placeholders = ", ".join(["%s"] * len(columns))
    return f"INSERT INTO {table} ({', '.join(columns)}) VALUES ({placeholders})"


def _columns(model_cls) -> tuple[str, ...]:
    return tuple(name for name in model_cls.model_fields if name != "document_type")


_INVOICE_COLUMNS = _columns(Invoice)
_RECEIPT_COLUMNS = _columns(Receipt)
_INVOICE_RECEIPT_COLUMNS = _columns(InvoiceReceipt)
_COUNTER_COLUMNS = _columns(DocumentCounter)


class PostgresLedgerTransaction(LedgerTransaction):
    """LedgerTransaction over one PostgreSQL transaction."""

    def __init__(self, tx: PostgresTransaction):
        self._tx = tx

    def get_invoice(self, invoice_id: str) -> Invoice | None:
        row = self._tx.execute_single(
            "SELECT * FROM invoices WHERE id = %s FOR UPDATE",
            (invoice_id,)
        )
        return Invoice.model_validate(row) if row is not None else None

    def get_counter(self, counter_id: str) -> DocumentCounter | None:
        row = self._tx.execute_single(
            "SELECT * FROM document_counters WHERE id = %s FOR UPDATE",
            (counter_id,)
        )
        return DocumentCounter.model_validate(row) if row is not None else None

    def insert_counter(self, counter: DocumentCounter) -> None:
        self._tx.execute(
            _insert_sql("document_counters", _COUNTER_COLUMNS),
            _row_values(counter, _COUNTER_COLUMNS)
        )

    def update_counter(self, counter: DocumentCounter) -> None:
        self._tx.execute(
            """
            UPDATE document_counters
            SET invoice = %s, receipt = %s, invoice_receipt = %s, updated_at = %s
            WHERE id = %s
            """,
            (counter.invoice, counter.receipt, counter.invoice_receipt, counter.updated_at, counter.id)
        )
        if self._tx.rowcount != 1:
            raise KeyError(f"Counter {counter.id} does not exist")

    def insert_invoice(self, invoice: Invoice) -> None:
        self._tx.execute(
            _insert_sql("invoices", _INVOICE_COLUMNS),
            _row_values(invoice, _INVOICE_COLUMNS)
        )

    def update_invoice_payment(self, invoice: Invoice) -> None:
        self._tx.execute(
            """
            UPDATE invoices
            SET paid_amount = %s, remaining_balance = %s, payment_status = %s,
                payment_method = %s, related_receipt_ids = %s, updated_at = %s
            WHERE id = %s
            """,
            (
                invoice.paid_amount, invoice.remaining_balance, invoice.payment_status.value,
                invoice.payment_method, list(invoice.related_receipt_ids), invoice.updated_at,
                invoice.id,
            )
        )
        if self._tx.rowcount != 1:
            raise KeyError(f"Invoice {invoice.id} does not exist")

    def insert_receipt(self, receipt: Receipt) -> None:
        self._tx.execute(
            _insert_sql("receipts", _RECEIPT_COLUMNS),
            _row_values(receipt, _RECEIPT_COLUMNS)
        )

    def insert_invoice_receipt(self, invoice_receipt: InvoiceReceipt) -> None:
        self._tx.execute(
            _insert_sql("invoice_receipts", _INVOICE_RECEIPT_COLUMNS),
            _row_values(invoice_receipt, _INVOICE_RECEIPT_COLUMNS)
        )


class PostgresLedgerStore(LedgerStore):
    """
    Ledger store backed by PostgreSQL.

    Usage:
        store = build_postgres_store()  # core.ledger, URL from Vault
    """

    def __init__(self, postgres: PostgresClient):
        self.postgres = postgres

    @contextmanager
    def transaction(self) -> Iterator[PostgresLedgerTransaction]:
        try:
            with self.postgres.transaction() as tx:
                yield PostgresLedgerTransaction(tx)
        except _CONFLICT_ERRORS as e:
            logger.warning("Ledger transaction conflict: %s", e.__class__.__name__)
            raise StorageConflictError(str(e).strip()) from e

    def get_document(self, document_id: str) -> Invoice | Receipt | InvoiceReceipt | None:
        for table, model_cls in _TABLES:
            row = self.postgres.execute_single(
                f"SELECT * FROM {table} WHERE id = %s",
                (document_id,)
            )
            if row is not None:
                return model_cls.model_validate(row)
        return None

    def find_documents(self, document_number: str) -> list[Invoice | Receipt | InvoiceReceipt]:
        documents = []
        for table, model_cls in _TABLES:
            rows = self.postgres.execute(
                f"SELECT * FROM {table} WHERE document_number = %s ORDER BY created_at",
                (document_number,)
            )
            documents.extend(model_cls.model_validate(row) for row in rows)
        return documents

    def list_open_invoices(self, customer_id: str, limit: int) -> list[Invoice]:
        rows = self.postgres.execute(
            """
            SELECT * FROM invoices
            WHERE customer_id = %s
              AND payment_status IN ('unpaid', 'partial')
              AND remaining_balance > 0
            ORDER BY issue_date DESC, created_at DESC
            LIMIT %s
            """,
            (customer_id, limit)
        )
        return [Invoice.model_validate(row) for row in rows]

    def get_counter(self, counter_id: str) -> DocumentCounter | None:
        row = self.postgres.execute_single(
            "SELECT * FROM document_counters WHERE id = %s",
            (counter_id,)
        )
        return DocumentCounter.model_validate(row) if row is not None else None

    def attach_document_url(self, document_id: str, storage_url: str) -> bool:
        now = now_utc()
        for table, _ in _TABLES:
            rows = self.postgres.execute_returning(
                f"UPDATE {table} SET storage_url = %s, updated_at = %s WHERE id = %s RETURNING id",
                (storage_url, now, document_id)
            )
            if rows:
                return True
        return False

    def list_pending_documents(self, limit: int) -> list[Invoice | Receipt | InvoiceReceipt]:
        pending = []
        for table, model_cls in _TABLES:
            rows = self.postgres.execute(
                f"""
                SELECT * FROM {table}
                WHERE storage_path IS NOT NULL
                  AND (storage_url IS NULL OR storage_url = '')
                ORDER BY created_at ASC
                LIMIT %s
                """,
                (limit,)
            )
            pending.extend(model_cls.model_validate(row) for row in rows)
        pending.sort(key=lambda d: d.created_at)
        return pending[:limit]
