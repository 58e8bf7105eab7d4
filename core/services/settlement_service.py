"""
Receipt settlement engine.

Turns a payment into durable ledger mutations: one receipt plus the invoice
balance updates it causes, committed as one unit.

Every settlement runs in two phases:

1. Lookup and pre-validation outside any transaction. Cheap, and rejects
   most bad requests with a precise error before a transaction is opened.
2. Inside one transaction: allocate the receipt number, re-read every
   invoice by key, re-validate against that fresh read, then write the
   receipt and the invoice updates. The fresh read is the only one
   consistent with the writes that follow; a failure there is a lost race
   (RaceLostError) and nothing is written.

StorageConflictError and RaceLostError retry the whole operation, bounded
by config.max_attempts. Events are published only after commit; rendering
and upload can never fail a settlement.
"""

import logging
from datetime import date
from decimal import Decimal

from core.config import LedgerConfig
from core.document_numbers import DocumentType, document_key, format_document_number
from core.event_bus import EventBus
from core.events import InvoiceSettled, ReceiptIssued
from core.exceptions import (
    AlreadySettledError, AmountExceedsBalanceError, BalanceError, CrossCurrencyError,
    CrossCustomerError, DuplicateSelectionError, InvalidAmountError, NotFoundError,
    RaceLostError, TooFewInvoicesError, TooManyInvoicesError,
)
from core.models import (
    Invoice, InvoiceUpdate, MultiSettlementResult, PaymentStatus, Receipt,
    SettleMultipleRequest, SettleSingleRequest, SettlementResult,
)
from core.retry import run_with_retry
from core.services.counter_service import CounterService
from core.services.invoice_service import Deadline, InvoiceService
from core.stores.base import LedgerStore
from utils.timezone import now_utc

logger = logging.getLogger(__name__)


def check_payment(invoice: Invoice, amount: Decimal) -> None:
    """
    Validate a payment against an invoice balance.

    Raises:
        AlreadySettledError: Nothing left to pay
        InvalidAmountError: amount <= 0
        AmountExceedsBalanceError: amount > remaining balance
    """
    if invoice.remaining_balance <= 0:
        raise AlreadySettledError([invoice.document_number])
    if amount <= 0:
        raise InvalidAmountError(amount)
    if amount > invoice.remaining_balance:
        raise AmountExceedsBalanceError(invoice.document_number, amount, invoice.remaining_balance)


def _invoice_update(invoice: Invoice, amount: Decimal) -> InvoiceUpdate:
    return InvoiceUpdate(
        invoice_id=invoice.id,
        invoice_number=invoice.document_number,
        amount_applied=amount,
        new_paid_amount=invoice.paid_amount,
        new_remaining_balance=invoice.remaining_balance,
        new_payment_status=invoice.payment_status,
    )


class SettlementService:
    """
    Settlement engine.

    Stateless between calls and safe to share across threads: correctness
    comes from the store's transaction isolation, not from locks here.
    """

    def __init__(
        self,
        store: LedgerStore,
        counters: CounterService,
        invoices: InvoiceService,
        event_bus: EventBus | None = None,
        config: LedgerConfig | None = None,
    ):
        self.store = store
        self.counters = counters
        self.invoices = invoices
        self.event_bus = event_bus
        self.config = config or LedgerConfig()

    def _deadline(self, timeout_seconds: float | None) -> Deadline:
        if timeout_seconds is None:
            timeout_seconds = self.config.lookup_timeout_seconds
        return Deadline(timeout_seconds)

    def _storage_path(self, customer_id: str, year: int, document_number: str) -> str:
        return self.config.storage_path_template.format(
            customer_id=customer_id, year=year, document_number=document_number
        )

    def _publish(self, receipt: Receipt, invoices: list[Invoice]) -> None:
        if self.event_bus is None:
            return
        self.event_bus.publish(ReceiptIssued.create(receipt=receipt, invoices=invoices))
        for invoice in invoices:
            if invoice.payment_status == PaymentStatus.PAID:
                self.event_bus.publish(InvoiceSettled.create(invoice=invoice, receipt_id=receipt.id))

    # =========================================================================
    # SINGLE INVOICE
    # =========================================================================

    def settle_single_invoice(self, request: SettleSingleRequest) -> SettlementResult:
        """
        Pay all or part of one invoice.

        Args:
            request: Invoice number, optional customer cross-check, amount,
                payment method and date

        Returns:
            Receipt identity and the invoice balances after the payment

        Raises:
            NotFoundError, OwnershipMismatchError, WrongDocumentTypeError,
            AmbiguousReferenceError: Lookup failed
            AlreadySettledError, InvalidAmountError, AmountExceedsBalanceError:
                Payment does not fit the balance
            RaceLostError: A concurrent settlement changed the invoice and
                retries did not recover
            StorageConflictError: Retries exhausted
            SettlementTimeoutError: Lookup deadline passed
        """
        return self._settle_single(
            request.invoice_number,
            request.customer_id,
            request.payment_amount,
            request.payment_method,
            request.payment_date,
            self._deadline(request.timeout_seconds),
        )

    def _settle_single(
        self,
        invoice_number: str,
        customer_id: str | None,
        amount: Decimal | None,
        payment_method: str,
        payment_date: date,
        deadline: Deadline,
    ) -> SettlementResult:
        result, receipt, invoice = run_with_retry(
            lambda: self._settle_single_once(
                invoice_number, customer_id, amount, payment_method, payment_date, deadline
            ),
            self.config,
            description=f"settlement of {invoice_number}",
        )

        logger.info(
            "Receipt %s settled %s %s on invoice %s (remaining %s, %s)",
            receipt.document_number, receipt.amount_paid, receipt.currency,
            invoice.document_number, invoice.remaining_balance, invoice.payment_status.value
        )
        self._publish(receipt, [invoice])
        return result

    def _settle_single_once(
        self,
        invoice_number: str,
        customer_id: str | None,
        amount: Decimal | None,
        payment_method: str,
        payment_date: date,
        deadline: Deadline,
    ) -> tuple[SettlementResult, Receipt, Invoice]:
        # amount None pays whatever balance the transaction reads
        invoice = self.invoices.resolve_invoice(invoice_number, customer_id, deadline)
        check_payment(invoice, invoice.remaining_balance if amount is None else amount)

        customer_id = invoice.customer_id
        year = self.counters.current_year()
        now = now_utc()

        with self.store.transaction() as tx:
            sequence = self.counters.allocate(tx, customer_id, year, DocumentType.RECEIPT)

            fresh = tx.get_invoice(invoice.id)
            if fresh is None:
                raise NotFoundError(invoice.document_number)
            applied = fresh.remaining_balance if amount is None else amount
            try:
                check_payment(fresh, applied)
            except BalanceError as e:
                logger.warning("Lost race on invoice %s: %s", fresh.document_number, e.code)
                raise RaceLostError(fresh.document_number, reason=e) from e

            receipt_number = format_document_number(DocumentType.RECEIPT, year, sequence)
            receipt_id = document_key(customer_id, receipt_number)
            updated = fresh.with_payment(applied, receipt_id, payment_method, now)

            logger.debug(
                "Invoice %s: paid %s -> %s, remaining %s -> %s",
                fresh.document_number, fresh.paid_amount, updated.paid_amount,
                fresh.remaining_balance, updated.remaining_balance
            )

            receipt = Receipt(
                id=receipt_id,
                document_number=receipt_number,
                customer_id=customer_id,
                customer_name=fresh.customer_name,
                customer_tax_id=fresh.customer_tax_id,
                amount_paid=applied,
                currency=fresh.currency,
                payment_method=payment_method,
                issue_date=payment_date,
                is_multi_invoice=False,
                related_invoice_numbers=[fresh.document_number],
                related_invoice_ids=[fresh.id],
                description=f"Receipt for invoice {fresh.document_number}",
                is_partial_payment=updated.remaining_balance > 0,
                remaining_balance=updated.remaining_balance,
                storage_path=self._storage_path(customer_id, year, receipt_number),
                created_at=now,
                updated_at=now,
            )
            tx.insert_receipt(receipt)
            tx.update_invoice_payment(updated)

        result = SettlementResult(
            receipt_number=receipt.document_number,
            receipt_id=receipt.id,
            amount_paid=applied,
            updated_invoice=_invoice_update(updated, applied),
        )
        return result, receipt, updated

    # =========================================================================
    # MULTIPLE INVOICES
    # =========================================================================

    def _check_selection(self, invoice_numbers: list[str]) -> list[str]:
        numbers = [n.strip() for n in invoice_numbers]
        if not numbers:
            raise TooFewInvoicesError(0)
        if len(numbers) > self.config.max_invoices_per_receipt:
            raise TooManyInvoicesError(len(numbers), self.config.max_invoices_per_receipt)

        seen = set()
        duplicates = []
        for number in numbers:
            if number in seen and number not in duplicates:
                duplicates.append(number)
            seen.add(number)
        if duplicates:
            raise DuplicateSelectionError(duplicates)

        return numbers

    def settle_multiple_invoices(self, request: SettleMultipleRequest) -> MultiSettlementResult:
        """
        Pay several invoices of one customer in full with one receipt.

        A single-invoice selection is paid in full through the single-invoice
        path and reported in the multi-invoice result shape.

        Raises:
            TooFewInvoicesError, TooManyInvoicesError, DuplicateSelectionError:
                Selection size or content is not acceptable
            NotFoundError: Names the first missing invoice
            CrossCustomerError, CrossCurrencyError, AlreadySettledError:
                Name the offending invoices
            RaceLostError: An invoice was paid concurrently; nothing written
            StorageConflictError: Retries exhausted
            SettlementTimeoutError: Lookup deadline passed
        """
        numbers = self._check_selection(request.invoice_numbers)

        if len(numbers) == 1:
            return self._settle_one_in_full(numbers[0], request)

        deadline = self._deadline(request.timeout_seconds)

        result, receipt, invoices = run_with_retry(
            lambda: self._settle_multiple_once(numbers, request, deadline),
            self.config,
            description=f"multi-invoice settlement of {', '.join(numbers)}",
        )

        logger.info(
            "Receipt %s settled %d invoices for %s %s: %s",
            receipt.document_number, len(invoices), receipt.amount_paid, receipt.currency,
            ", ".join(numbers)
        )
        self._publish(receipt, invoices)
        return result

    def _settle_one_in_full(self, invoice_number: str, request: SettleMultipleRequest) -> MultiSettlementResult:
        single = self._settle_single(
            invoice_number,
            request.customer_id,
            None,
            request.payment_method,
            request.payment_date,
            self._deadline(request.timeout_seconds),
        )
        return MultiSettlementResult(
            receipt_number=single.receipt_number,
            receipt_id=single.receipt_id,
            total_amount=single.amount_paid,
            per_invoice_updates=[single.updated_invoice],
        )

    def _lookup_selection(
        self,
        numbers: list[str],
        customer_id: str | None,
        deadline: Deadline,
    ) -> list[Invoice]:
        invoices = [self.invoices.resolve_invoice(n, customer_id, deadline) for n in numbers]

        # First invoice decides the customer and currency
        first = invoices[0]
        other_customer = [i.document_number for i in invoices if i.customer_id != first.customer_id]
        if other_customer:
            raise CrossCustomerError(other_customer)

        other_currency = [i.document_number for i in invoices if i.currency != first.currency]
        if other_currency:
            raise CrossCurrencyError(other_currency)

        settled = [i.document_number for i in invoices if i.remaining_balance <= 0]
        if settled:
            raise AlreadySettledError(settled)

        return invoices

    def _settle_multiple_once(
        self,
        numbers: list[str],
        request: SettleMultipleRequest,
        deadline: Deadline,
    ) -> tuple[MultiSettlementResult, Receipt, list[Invoice]]:
        invoices = self._lookup_selection(numbers, request.customer_id, deadline)

        first = invoices[0]
        customer_id = first.customer_id
        year = self.counters.current_year()
        now = now_utc()

        with self.store.transaction() as tx:
            sequence = self.counters.allocate(tx, customer_id, year, DocumentType.RECEIPT)

            # Lock in key order so concurrent batches cannot deadlock each other
            fresh_by_id = {}
            for invoice in sorted(invoices, key=lambda i: i.id):
                fresh = tx.get_invoice(invoice.id)
                if fresh is None:
                    raise NotFoundError(invoice.document_number)
                fresh_by_id[invoice.id] = fresh

            fresh_invoices = [fresh_by_id[i.id] for i in invoices]
            for fresh in fresh_invoices:
                if fresh.remaining_balance <= 0:
                    logger.warning("Lost race on invoice %s in multi-invoice settlement", fresh.document_number)
                    raise RaceLostError(
                        fresh.document_number,
                        reason=AlreadySettledError([fresh.document_number]),
                    )

            receipt_number = format_document_number(DocumentType.RECEIPT, year, sequence)
            receipt_id = document_key(customer_id, receipt_number)
            total = sum((f.remaining_balance for f in fresh_invoices), Decimal("0"))

            receipt = Receipt(
                id=receipt_id,
                document_number=receipt_number,
                customer_id=customer_id,
                customer_name=first.customer_name,
                customer_tax_id=first.customer_tax_id,
                amount_paid=total,
                currency=first.currency,
                payment_method=request.payment_method,
                issue_date=request.payment_date,
                is_multi_invoice=True,
                related_invoice_numbers=[f.document_number for f in fresh_invoices],
                related_invoice_ids=[f.id for f in fresh_invoices],
                description=f"Receipt for invoices: {', '.join(f.document_number for f in fresh_invoices)}",
                is_partial_payment=False,
                storage_path=self._storage_path(customer_id, year, receipt_number),
                created_at=now,
                updated_at=now,
            )
            tx.insert_receipt(receipt)

            updates = []
            updated_invoices = []
            for fresh in fresh_invoices:
                amount = fresh.remaining_balance
                updated = fresh.with_payment(amount, receipt_id, request.payment_method, now)
                tx.update_invoice_payment(updated)
                updates.append(_invoice_update(updated, amount))
                updated_invoices.append(updated)

        result = MultiSettlementResult(
            receipt_number=receipt_number,
            receipt_id=receipt_id,
            total_amount=total,
            per_invoice_updates=updates,
        )
        return result, receipt, updated_invoices
