"""Settlement ledger configuration."""

from pydantic import BaseModel, Field, field_validator

from core.models import MAX_INVOICES_PER_RECEIPT
from utils.timezone import to_local, now_utc


class LedgerConfig(BaseModel):
    """
    Ledger configuration.

    Retry settings apply to the two retryable failures only (storage
    conflicts and lost races). Everything else is terminal for the request.
    """

    # Retry policy
    max_attempts: int = Field(
        default=3,
        description="Attempts per settlement, counting the first",
        ge=1,
        le=10,
    )
    backoff_base_seconds: float = Field(
        default=0.05,
        description="First retry delay; doubles per attempt, with full jitter",
        ge=0,
        le=5,
    )
    backoff_max_seconds: float = Field(
        default=1.0,
        description="Upper bound for a single retry delay",
        ge=0,
        le=30,
    )

    # Settlement rules
    max_invoices_per_receipt: int = Field(
        default=MAX_INVOICES_PER_RECEIPT,
        description="Most invoices one receipt may cover",
        ge=2,
        le=MAX_INVOICES_PER_RECEIPT,
    )
    lookup_timeout_seconds: float | None = Field(
        default=None,
        description="Default lookup-phase deadline when the caller gives none",
        gt=0,
    )

    # Documents
    default_currency: str = Field(
        default="ILS",
        description="Currency for documents issued without one",
        min_length=3,
        max_length=3,
    )
    business_timezone: str = Field(
        default="Asia/Jerusalem",
        description="IANA timezone deciding the counter year and document dates",
    )
    open_invoices_limit: int = Field(
        default=20,
        description="Open invoices offered when choosing what a receipt pays",
        ge=1,
        le=100,
    )
    storage_path_template: str = Field(
        default="{customer_id}/{year}/{document_number}.pdf",
        description="Object storage path for rendered documents",
    )

    @field_validator("business_timezone")
    @classmethod
    def check_timezone(cls, value: str) -> str:
        to_local(now_utc(), value)  # Raises ValueError on unknown zones
        return value
