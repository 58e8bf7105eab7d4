"""Tests for domain event models."""

from dataclasses import FrozenInstanceError
from datetime import timezone

import pytest

from core.events import (
    LedgerEvent,
    ReceiptEvent, ReceiptIssued,
    InvoiceEvent, InvoiceIssued, InvoiceSettled,
    InvoiceReceiptEvent, InvoiceReceiptIssued,
)


class TestEventBase:

    def test_event_ids_are_unique(self, make_invoice):
        invoice = make_invoice("I-2026-1", 100)
        first = InvoiceIssued.create(invoice=invoice)
        second = InvoiceIssued.create(invoice=invoice)
        assert first.event_id != second.event_id

    def test_occurred_at_is_utc(self, make_invoice):
        event = InvoiceIssued.create(invoice=make_invoice("I-2026-1", 100))
        assert event.occurred_at.tzinfo == timezone.utc

    def test_events_are_frozen(self, make_invoice):
        event = InvoiceIssued.create(invoice=make_invoice("I-2026-1", 100))
        with pytest.raises(FrozenInstanceError):
            event.invoice = None


class TestEventHierarchy:

    @pytest.mark.parametrize("event_cls,category", [
        (ReceiptIssued, ReceiptEvent),
        (InvoiceIssued, InvoiceEvent),
        (InvoiceSettled, InvoiceEvent),
        (InvoiceReceiptIssued, InvoiceReceiptEvent),
    ])
    def test_categories(self, event_cls, category):
        assert issubclass(event_cls, category)
        assert issubclass(event_cls, LedgerEvent)


class TestPayloads:

    def test_receipt_issued_carries_invoices_as_tuple(self, make_invoice):
        invoices = [make_invoice("I-2026-1", 100), make_invoice("I-2026-2", 200)]
        event = ReceiptIssued.create(receipt="receipt", invoices=invoices)
        assert event.invoices == tuple(invoices)

    def test_invoice_settled_carries_receipt_id(self, make_invoice):
        event = InvoiceSettled.create(invoice=make_invoice("I-2026-1", 100), receipt_id="r1")
        assert event.receipt_id == "r1"
