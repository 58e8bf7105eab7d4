"""
Document numbering: formatting, parsing and storage key conventions.

Formatting is a pure function of (type, year, sequence). Key formats are
shared with data written by other components and must not change:

    customer_{customer_id}_{document_number}   invoices, receipts, invoice-receipts
    customer_{customer_id}_{year}              counters
"""

import re
from enum import Enum


class DocumentType(str, Enum):
    """Kinds of ledger documents, each with its own number sequence."""

    INVOICE = "invoice"
    RECEIPT = "receipt"
    INVOICE_RECEIPT = "invoice_receipt"


DOCUMENT_PREFIXES = {
    DocumentType.INVOICE: "I",
    DocumentType.RECEIPT: "R",
    DocumentType.INVOICE_RECEIPT: "IR",
}

_PREFIX_TO_TYPE = {prefix: doc_type for doc_type, prefix in DOCUMENT_PREFIXES.items()}

_NUMBER_PATTERN = re.compile(r"^(IR|I|R)-(\d{4})-([1-9]\d*)$")


def format_document_number(document_type: DocumentType | str, year: int, sequence: int) -> str:
    """
    Format a document number.

    invoice -> I-2026-7, receipt -> R-2026-1, invoice_receipt -> IR-2026-12

    Raises:
        ValueError: Unknown document type
    """
    try:
        prefix = DOCUMENT_PREFIXES[DocumentType(document_type)]
    except ValueError:
        raise ValueError(f"Unknown document type: {document_type}")
    return f"{prefix}-{year}-{sequence}"


def parse_document_number(document_number: str) -> tuple[DocumentType, int, int]:
    """
    Split a document number into (type, year, sequence).

    Raises:
        ValueError: Not a well-formed document number
    """
    match = _NUMBER_PATTERN.match(document_number.strip())
    if match is None:
        raise ValueError(f"Malformed document number: {document_number!r}")
    prefix, year, sequence = match.groups()
    return _PREFIX_TO_TYPE[prefix], int(year), int(sequence)


def document_key(customer_id: str, document_number: str) -> str:
    """Repository key of an invoice, receipt or invoice-receipt."""
    return f"customer_{customer_id}_{document_number}"


def counter_key(customer_id: str, year: int) -> str:
    """Repository key of a customer's counter record for one year."""
    return f"customer_{customer_id}_{year}"
