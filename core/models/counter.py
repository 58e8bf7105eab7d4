"""Per-customer, per-year document counters."""

from datetime import datetime

from pydantic import BaseModel, Field

from core.document_numbers import DocumentType, counter_key


class DocumentCounter(BaseModel):
    """
    Counter record for one customer and one year.

    Holds an independent sequence per document type. The stored value is the
    last number handed out (0 = none yet).
    """

    id: str
    customer_id: str
    year: int
    invoice: int = Field(0, ge=0)
    receipt: int = Field(0, ge=0)
    invoice_receipt: int = Field(0, ge=0)
    updated_at: datetime | None = None

    model_config = {"from_attributes": True}

    @classmethod
    def empty(cls, customer_id: str, year: int) -> "DocumentCounter":
        return cls(id=counter_key(customer_id, year), customer_id=customer_id, year=year)

    def value(self, document_type: DocumentType) -> int:
        return getattr(self, DocumentType(document_type).value)

    def advanced(self, document_type: DocumentType, updated_at: datetime) -> "DocumentCounter":
        """Copy with the given sequence incremented by one."""
        field = DocumentType(document_type).value
        return self.model_copy(update={field: getattr(self, field) + 1, "updated_at": updated_at})
