"""POST /api/actions - unified mutation endpoint."""

from fastapi import APIRouter, Request
from pydantic import BaseModel

from api.base import success_response
from core.document_numbers import DocumentType
from core.models import (
    InvoiceCreate,
    InvoiceReceiptCreate,
    SettleMultipleRequest,
    SettleSingleRequest,
)


class ActionRequest(BaseModel):
    domain: str
    action: str
    data: dict


def create_actions_router(services: dict) -> APIRouter:
    router = APIRouter()

    handlers = {
        "receipt": ReceiptHandler(services["settlement"]),
        "invoice": InvoiceHandler(services["issuance"]),
        "invoice_receipt": InvoiceReceiptHandler(services["issuance"]),
        "counter": CounterHandler(services["counter"]),
    }

    @router.post("/actions")
    async def perform_action(request: Request, body: ActionRequest):
        handler = handlers.get(body.domain)
        if handler is None:
            raise ValueError(
                f"Unknown domain '{body.domain}'. "
                f"Valid domains: {', '.join(sorted(handlers.keys()))}"
            )

        if body.action not in handler.ALLOWED_ACTIONS:
            raise ValueError(
                f"Action '{body.action}' not allowed on '{body.domain}'. "
                f"Allowed: {', '.join(sorted(handler.ALLOWED_ACTIONS))}"
            )

        method = getattr(handler, f"_handle_{body.action}")
        result = method(body.data)
        return success_response(result).model_dump(mode="json")

    return router


# =============================================================================
# HANDLER CLASSES
# =============================================================================


class ReceiptHandler:
    ALLOWED_ACTIONS = {"settle_single", "settle_multiple"}

    def __init__(self, service):
        self.service = service

    def _handle_settle_single(self, data: dict):
        result = self.service.settle_single_invoice(SettleSingleRequest(**data))
        return result.model_dump(mode="json")

    def _handle_settle_multiple(self, data: dict):
        result = self.service.settle_multiple_invoices(SettleMultipleRequest(**data))
        return result.model_dump(mode="json")


class InvoiceHandler:
    ALLOWED_ACTIONS = {"issue"}

    def __init__(self, service):
        self.service = service

    def _handle_issue(self, data: dict):
        issued = self.service.issue_invoice(InvoiceCreate(**data))
        return issued.model_dump(mode="json")


class InvoiceReceiptHandler:
    ALLOWED_ACTIONS = {"issue"}

    def __init__(self, service):
        self.service = service

    def _handle_issue(self, data: dict):
        issued = self.service.issue_paid_in_full_document(InvoiceReceiptCreate(**data))
        return issued.model_dump(mode="json")


def _require(data: dict, field: str):
    if data.get(field) in (None, ""):
        raise ValueError(f"'{field}' is required")
    return data[field]


class CounterHandler:
    ALLOWED_ACTIONS = {"allocate", "initialize"}

    def __init__(self, service):
        self.service = service

    def _handle_allocate(self, data: dict):
        number = self.service.allocate_document_number(
            str(_require(data, "customer_id")),
            DocumentType(_require(data, "document_type")),
            year=data.get("year"),
        )
        return {"document_number": number}

    def _handle_initialize(self, data: dict):
        counter = self.service.initialize(
            str(_require(data, "customer_id")),
            int(_require(data, "starting_number")),
            year=data.get("year"),
            document_type=DocumentType(data.get("document_type", DocumentType.INVOICE)),
        )
        return counter.model_dump(mode="json")
