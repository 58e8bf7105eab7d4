"""GET /api/data - unified read endpoint."""

from fastapi import APIRouter, Query, Request

from api.base import success_response
from core.document_numbers import DocumentType


VALID_TYPES = {"invoice", "open_invoices", "counter", "document"}


def create_data_router(services: dict) -> APIRouter:
    router = APIRouter()

    invoice_svc = services["invoice"]
    counter_svc = services["counter"]

    @router.get("/data")
    async def get_data(
        request: Request,
        type: str | None = Query(None),
        id: str | None = Query(None),
        number: str | None = Query(None),
        customer_id: str | None = Query(None),
        document_type: str | None = Query(None),
        year: int | None = Query(None, ge=2000, le=9999),
        limit: int | None = Query(None, ge=1, le=100),
    ):
        if type is None:
            raise ValueError("'type' query parameter is required")

        if type not in VALID_TYPES:
            raise ValueError(f"Unknown type '{type}'. Valid types: {', '.join(sorted(VALID_TYPES))}")

        if type == "invoice":
            return _handle_invoice(invoice_svc, number, customer_id)

        if type == "open_invoices":
            return _handle_open_invoices(invoice_svc, customer_id, limit)

        if type == "counter":
            return _handle_counter(counter_svc, customer_id, document_type, year)

        return _handle_document(invoice_svc, id)

    return router


# =============================================================================
# TYPE HANDLERS
# =============================================================================


def _handle_invoice(invoice_svc, number, customer_id):
    if not number:
        raise ValueError("'number' is required for type=invoice")

    invoice = invoice_svc.get_invoice_by_number(number, customer_id)
    if invoice is None:
        raise ValueError(f"Invoice {number} not found")
    return success_response(invoice.model_dump(mode="json")).model_dump(mode="json")


def _handle_open_invoices(invoice_svc, customer_id, limit):
    if not customer_id:
        raise ValueError("'customer_id' is required for type=open_invoices")

    invoices = invoice_svc.list_open_invoices(customer_id, limit)
    return success_response(
        [i.model_dump(mode="json") for i in invoices]
    ).model_dump(mode="json")


def _handle_counter(counter_svc, customer_id, document_type, year):
    if not customer_id:
        raise ValueError("'customer_id' is required for type=counter")

    doc_type = DocumentType(document_type or DocumentType.INVOICE)
    target_year = year or counter_svc.current_year()
    value = counter_svc.peek(customer_id, target_year, doc_type)
    return success_response({
        "customer_id": customer_id,
        "year": target_year,
        "document_type": doc_type.value,
        "value": value,
    }).model_dump(mode="json")


def _handle_document(invoice_svc, document_id):
    if not document_id:
        raise ValueError("'id' is required for type=document")

    document = invoice_svc.get_document(document_id)
    if document is None:
        raise ValueError(f"Document {document_id} not found")
    return success_response(document.model_dump(mode="json")).model_dump(mode="json")
