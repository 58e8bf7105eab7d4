"""
Document counter service.

Hands out per-customer, per-year, per-type sequence numbers. Counter records
are keyed customer_{customer_id}_{year}, so numbering starts over each
January 1st without any reset job.

allocate() runs inside the caller's transaction, next to the writes that use
the number: if that transaction aborts, the number was never persisted and a
retry consumes a new one. Small gaps are acceptable; duplicates are not.
"""

import logging

from core.config import LedgerConfig
from core.document_numbers import DocumentType, counter_key, format_document_number
from core.exceptions import CounterAlreadyExistsError
from core.models import DocumentCounter
from core.retry import run_with_retry
from core.stores.base import LedgerStore, LedgerTransaction
from utils.timezone import current_year, now_utc

logger = logging.getLogger(__name__)


class CounterService:
    """Service for document number allocation."""

    def __init__(self, store: LedgerStore, config: LedgerConfig | None = None):
        self.store = store
        self.config = config or LedgerConfig()

    def current_year(self) -> int:
        """Counter year for documents issued now, in the business timezone."""
        return current_year(self.config.business_timezone)

    def allocate(
        self,
        tx: LedgerTransaction,
        customer_id: str,
        year: int,
        document_type: DocumentType,
    ) -> int:
        """
        Allocate the next sequence value inside an open transaction.

        Reads the current value (0 if the record does not exist yet), writes
        current + 1 and returns it. A missing record is created here; if a
        concurrent unit creates it first, the store raises
        StorageConflictError and the whole operation is retried.
        """
        document_type = DocumentType(document_type)
        now = now_utc()
        counter = tx.get_counter(counter_key(customer_id, year))

        if counter is None:
            logger.info("Creating counter for customer %s, year %s", customer_id, year)
            advanced = DocumentCounter.empty(customer_id, year).advanced(document_type, now)
            tx.insert_counter(advanced)
        else:
            advanced = counter.advanced(document_type, now)
            tx.update_counter(advanced)

        sequence = advanced.value(document_type)
        logger.debug(
            "Allocated %s #%d for customer %s, year %s",
            document_type.value, sequence, customer_id, year
        )
        return sequence

    def allocate_document_number(
        self,
        customer_id: str,
        document_type: DocumentType,
        year: int | None = None,
    ) -> str:
        """
        Allocate and format a document number in its own transaction.

        Use this only when the number is needed before the document is
        written elsewhere. Ledger operations allocate inside their own
        transaction instead.

        Args:
            customer_id: Customer the number belongs to
            document_type: invoice, receipt or invoice_receipt
            year: Counter year (defaults to the current business year)

        Returns:
            Formatted number, e.g. "I-2026-7"
        """
        document_type = DocumentType(document_type)
        target_year = year or self.current_year()

        def _op() -> str:
            with self.store.transaction() as tx:
                sequence = self.allocate(tx, customer_id, target_year, document_type)
            return format_document_number(document_type, target_year, sequence)

        number = run_with_retry(_op, self.config, description="counter allocation")
        logger.info("Allocated document number %s for customer %s", number, customer_id)
        return number

    def peek(self, customer_id: str, year: int, document_type: DocumentType) -> int:
        """
        Current value of a sequence, for diagnostics.

        Race-prone: never use it to decide a document number.
        """
        counter = self.store.get_counter(counter_key(customer_id, year))
        if counter is None:
            return 0
        return counter.value(DocumentType(document_type))

    def initialize(
        self,
        customer_id: str,
        starting_number: int,
        year: int | None = None,
        document_type: DocumentType = DocumentType.INVOICE,
    ) -> DocumentCounter:
        """
        Seed a counter for a customer migrating from another system.

        The next allocation of ``document_type`` returns ``starting_number``.
        Other sequences for the year start from zero.

        Raises:
            ValueError: starting_number below 1
            CounterAlreadyExistsError: The record for that customer and year
                already exists; re-seeding could hand out duplicate numbers
        """
        if starting_number < 1:
            raise ValueError("starting_number must be at least 1")

        document_type = DocumentType(document_type)
        target_year = year or self.current_year()
        counter_id = counter_key(customer_id, target_year)

        with self.store.transaction() as tx:
            existing = tx.get_counter(counter_id)
            if existing is not None:
                raise CounterAlreadyExistsError(counter_id, existing.value(document_type))

            counter = DocumentCounter.empty(customer_id, target_year).model_copy(
                update={document_type.value: starting_number - 1, "updated_at": now_utc()}
            )
            tx.insert_counter(counter)

        logger.info(
            "Counter %s initialized: next %s number is %d",
            counter_id, document_type.value, starting_number
        )
        return counter
