"""Shared test fixtures for the settlement ledger test suite."""

import os
from datetime import date
from decimal import Decimal
from pathlib import Path

import pytest
from dotenv import load_dotenv

# Load .env file BEFORE any other imports that might use env vars
# override=True ensures .env takes precedence over shell env vars
load_dotenv(Path(__file__).parent.parent / ".env", override=True)

# Reset vault client singleton to pick up env vars
import clients.vault_client as vault_module
vault_module._vault_client_instance = None
vault_module._secret_cache.clear()

from core.config import LedgerConfig
from core.document_numbers import document_key
from core.event_bus import EventBus
from core.ledger import build_services
from core.models import Invoice, payment_status_for
from core.stores.memory_store import InMemoryLedgerStore
from utils.timezone import now_utc


# =============================================================================
# TEST CUSTOMER CONSTANTS
# =============================================================================

# Primary test customer - use for single-customer tests
CUSTOMER_ID = "1001"
CUSTOMER_NAME = "Acme Plumbing Ltd"

# Secondary test customer - use for cross-customer tests
OTHER_CUSTOMER_ID = "2002"
OTHER_CUSTOMER_NAME = "Globex Electric"


@pytest.fixture
def customer_id() -> str:
    return CUSTOMER_ID


@pytest.fixture
def other_customer_id() -> str:
    return OTHER_CUSTOMER_ID


# =============================================================================
# LEDGER FIXTURES
# =============================================================================


@pytest.fixture
def config() -> LedgerConfig:
    """Default config with retry delays disabled."""
    return LedgerConfig(backoff_base_seconds=0, backoff_max_seconds=0)


@pytest.fixture
def store() -> InMemoryLedgerStore:
    return InMemoryLedgerStore()


@pytest.fixture
def event_bus() -> EventBus:
    return EventBus()


@pytest.fixture
def services(store, config, event_bus) -> dict:
    return build_services(store, config, event_bus)


@pytest.fixture
def counter_service(services):
    return services["counter"]


@pytest.fixture
def invoice_service(services):
    return services["invoice"]


@pytest.fixture
def settlement_service(services):
    return services["settlement"]


@pytest.fixture
def issuance_service(services):
    return services["issuance"]


# =============================================================================
# DATA FIXTURES
# =============================================================================


def build_invoice(
    number: str,
    total,
    paid="0",
    customer_id: str = CUSTOMER_ID,
    customer_name: str = CUSTOMER_NAME,
    currency: str = "ILS",
    issue_date: date = date(2026, 1, 15),
) -> Invoice:
    total = Decimal(str(total))
    paid = Decimal(str(paid))
    remaining = total - paid
    now = now_utc()
    return Invoice(
        id=document_key(customer_id, number),
        document_number=number,
        customer_id=customer_id,
        customer_name=customer_name,
        description=f"Services billed on {number}",
        total_amount=total,
        currency=currency,
        issue_date=issue_date,
        paid_amount=paid,
        remaining_balance=remaining,
        payment_status=payment_status_for(paid, remaining),
        created_at=now,
        updated_at=now,
    )


@pytest.fixture
def make_invoice():
    """Factory building an Invoice model without storing it."""
    return build_invoice


@pytest.fixture
def seed_invoice(store):
    """Factory storing an invoice directly, bypassing issuance."""

    def _seed(number: str, total, **kwargs) -> Invoice:
        invoice = build_invoice(number, total, **kwargs)
        with store.transaction() as tx:
            tx.insert_invoice(invoice)
        return invoice

    return _seed


# =============================================================================
# DATABASE FIXTURES
# =============================================================================

SCHEMA_PATH = Path(__file__).parent.parent / "schema" / "ledger.sql"


@pytest.fixture(scope="session")
def db():
    """
    Session-scoped PostgresClient against TEST_DATABASE_URL.

    Skips when no test database is configured. Applies schema/ledger.sql once.
    """
    database_url = os.getenv("TEST_DATABASE_URL")
    if not database_url:
        pytest.skip("TEST_DATABASE_URL not set")

    from clients.postgres_client import PostgresClient

    client = PostgresClient(database_url)
    client.execute(SCHEMA_PATH.read_text())
    yield client
    client.close()


@pytest.fixture
def clean_db(db):
    """Empty ledger tables before each database test."""
    db.execute("TRUNCATE document_counters, invoices, receipts, invoice_receipts")
    return db
