"""
Handler for document-issued events.

On ReceiptIssued, InvoiceReceiptIssued and InvoiceIssued, renders the
committed document, uploads it and attaches the URL. Failures propagate to
the event bus, which logs them; the document simply stays pending.
"""

import logging
from typing import Callable

from core.event_bus import EventBus
from core.events import InvoiceIssued, InvoiceReceiptIssued, LedgerEvent, ReceiptIssued

logger = logging.getLogger(__name__)


def _issued_document(event: LedgerEvent):
    if isinstance(event, ReceiptIssued):
        return event.receipt
    if isinstance(event, InvoiceReceiptIssued):
        return event.invoice_receipt
    if isinstance(event, InvoiceIssued):
        return event.invoice
    raise TypeError(f"Unexpected event {event.__class__.__name__}")


def handle_document_issued(publisher) -> Callable:
    """
    Factory that returns a document-issued handler.

    Args:
        publisher: DocumentPublisher instance

    Returns:
        Handler callable that publishes the event's document
    """

    def handler(event: LedgerEvent):
        document = _issued_document(event)
        logger.debug("Publishing %s %s", document.document_type, document.document_number)
        publisher.publish(document)

    return handler


def register_document_handlers(event_bus: EventBus, publisher) -> None:
    """Subscribe the publisher to every event that issues a document."""
    handler = handle_document_issued(publisher)
    for event_type in (ReceiptIssued, InvoiceReceiptIssued, InvoiceIssued):
        event_bus.subscribe(event_type.__name__, handler)
