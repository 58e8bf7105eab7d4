"""
Typed exceptions for ledger failures.

Every error carries a stable machine-readable ``code`` (used by the API layer
and by callers choosing user-facing wording) and a ``retryable`` flag. Only
StorageConflictError and RaceLostError are retryable: nothing was committed,
and re-running the whole operation from the lookup phase is safe.
"""

from collections.abc import Iterable


class LedgerError(Exception):
    """Base class for settlement ledger errors."""

    code = "LEDGER_ERROR"
    retryable = False


# =============================================================================
# LOOKUP ERRORS
# =============================================================================


class NotFoundError(LedgerError):
    """Referenced invoice or document does not exist."""

    code = "NOT_FOUND"

    def __init__(self, document_number: str):
        self.document_number = document_number
        super().__init__(f"Document {document_number} not found")


class OwnershipMismatchError(LedgerError):
    """Invoice exists but belongs to a different customer than claimed."""

    code = "OWNERSHIP_MISMATCH"

    def __init__(self, document_number: str, customer_id: str):
        self.document_number = document_number
        self.customer_id = customer_id
        super().__init__(
            f"Invoice {document_number} does not belong to customer {customer_id}"
        )


class WrongDocumentTypeError(LedgerError):
    """Referenced document is not an invoice where one was required."""

    code = "WRONG_DOCUMENT_TYPE"

    def __init__(self, document_number: str, document_type: str):
        self.document_number = document_number
        self.document_type = document_type
        super().__init__(
            f"Document {document_number} is not an invoice (type: {document_type})"
        )


class AmbiguousReferenceError(LedgerError):
    """Document number is used by several customers and no customer was given."""

    code = "AMBIGUOUS_REFERENCE"

    def __init__(self, document_number: str, customer_ids: Iterable[str]):
        self.document_number = document_number
        self.customer_ids = sorted(set(customer_ids))
        super().__init__(
            f"Document {document_number} exists for several customers; customer_id is required"
        )


# =============================================================================
# BALANCE ERRORS
# =============================================================================


class BalanceError(LedgerError):
    """Payment does not fit the invoice balance."""


class InvalidAmountError(BalanceError):
    """Payment amount must be greater than zero."""

    code = "INVALID_AMOUNT"

    def __init__(self, amount):
        self.amount = amount
        super().__init__(f"Payment amount must be greater than 0 (got {amount})")


class AmountExceedsBalanceError(BalanceError):
    """Payment amount exceeds the invoice's remaining balance."""

    code = "AMOUNT_EXCEEDS_BALANCE"

    def __init__(self, document_number: str, amount, remaining_balance):
        self.document_number = document_number
        self.amount = amount
        self.remaining_balance = remaining_balance
        super().__init__(
            f"Payment amount ({amount}) exceeds remaining balance "
            f"({remaining_balance}) of invoice {document_number}"
        )


class AlreadySettledError(BalanceError):
    """One or more invoices have no remaining balance."""

    code = "ALREADY_SETTLED"

    def __init__(self, document_numbers: Iterable[str]):
        self.document_numbers = list(document_numbers)
        super().__init__(
            f"Already fully paid: {', '.join(self.document_numbers)}"
        )


# =============================================================================
# SELECTION ERRORS (multi-invoice receipts)
# =============================================================================


class SelectionError(LedgerError):
    """Multi-invoice selection is not acceptable."""


class TooFewInvoicesError(SelectionError):
    """No invoices selected."""

    code = "TOO_FEW"

    def __init__(self, count: int, minimum: int = 1):
        self.count = count
        super().__init__(f"At least {minimum} invoice(s) required, got {count}")


class TooManyInvoicesError(SelectionError):
    """More invoices than a single receipt may cover."""

    code = "TOO_MANY"

    def __init__(self, count: int, maximum: int):
        self.count = count
        self.maximum = maximum
        super().__init__(f"At most {maximum} invoices per receipt, got {count}")


class DuplicateSelectionError(SelectionError):
    """The same invoice number appears more than once."""

    code = "DUPLICATE_SELECTION"

    def __init__(self, document_numbers: Iterable[str]):
        self.document_numbers = list(document_numbers)
        super().__init__(
            f"Invoices selected more than once: {', '.join(self.document_numbers)}"
        )


class CrossCustomerError(SelectionError):
    """Selected invoices belong to different customers."""

    code = "CROSS_CUSTOMER"

    def __init__(self, document_numbers: Iterable[str]):
        self.document_numbers = list(document_numbers)
        super().__init__(
            f"Invoices belong to a different customer: {', '.join(self.document_numbers)}"
        )


class CrossCurrencyError(SelectionError):
    """Selected invoices are in different currencies."""

    code = "CROSS_CURRENCY"

    def __init__(self, document_numbers: Iterable[str]):
        self.document_numbers = list(document_numbers)
        super().__init__(
            f"Invoices are in a different currency: {', '.join(self.document_numbers)}"
        )


# =============================================================================
# CONCURRENCY AND INFRASTRUCTURE
# =============================================================================


class RaceLostError(LedgerError):
    """
    In-transaction re-validation failed after the pre-check passed.

    A concurrent settlement landed first. Nothing was committed. ``reason``
    holds the balance error observed on the fresh read.
    """

    code = "RACE_LOST"
    retryable = True

    def __init__(self, document_number: str, reason: LedgerError | None = None):
        self.document_number = document_number
        self.reason = reason
        detail = f": {reason}" if reason is not None else ""
        super().__init__(
            f"Invoice {document_number} changed during settlement{detail}"
        )


class StorageConflictError(LedgerError):
    """Transient transaction-layer conflict. Always safe to retry."""

    code = "STORAGE_CONFLICT"
    retryable = True


class SettlementTimeoutError(LedgerError):
    """Caller deadline exceeded during the lookup phase."""

    code = "TIMEOUT"

    def __init__(self, timeout_seconds: float):
        self.timeout_seconds = timeout_seconds
        super().__init__(f"Lookup exceeded deadline of {timeout_seconds}s")


class CounterAlreadyExistsError(LedgerError):
    """Refusing to re-seed a counter that already hands out numbers."""

    code = "COUNTER_EXISTS"

    def __init__(self, counter_id: str, current_value: int):
        self.counter_id = counter_id
        self.current_value = current_value
        super().__init__(
            f"Counter {counter_id} already exists (current value: {current_value}). "
            "Cannot overwrite it without risking duplicate document numbers."
        )
