"""Service wiring for one ledger backend."""

from clients.postgres_client import PostgresClient
from clients.storage_client import StorageGatewayClient
from clients.vault_client import get_database_url, get_storage_config
from core.config import LedgerConfig
from core.event_bus import EventBus
from core.services.counter_service import CounterService
from core.services.document_publisher import DocumentPublisher, DocumentRenderer
from core.services.invoice_service import InvoiceService
from core.services.issuance_service import IssuanceService
from core.services.settlement_service import SettlementService
from core.stores.base import LedgerStore
from core.stores.postgres_store import PostgresLedgerStore


def build_services(
    store: LedgerStore,
    config: LedgerConfig | None = None,
    event_bus: EventBus | None = None,
) -> dict:
    """
    Build the ledger services sharing one store, config and event bus.

    Returns:
        Dict keyed by domain: counter, invoice, settlement, issuance
    """
    config = config or LedgerConfig()
    counters = CounterService(store, config)
    invoices = InvoiceService(store, config)

    return {
        "counter": counters,
        "invoice": invoices,
        "settlement": SettlementService(store, counters, invoices, event_bus, config),
        "issuance": IssuanceService(store, counters, event_bus, config),
    }


def build_postgres_store(max_connections: int = 20) -> PostgresLedgerStore:
    """PostgreSQL store on the database URL held in Vault (ledger/database)."""
    return PostgresLedgerStore(PostgresClient(get_database_url(), max_connections=max_connections))


def build_document_publisher(store: LedgerStore, renderer: DocumentRenderer) -> DocumentPublisher:
    """Publisher uploading through the storage gateway configured in Vault (ledger/storage)."""
    storage = StorageGatewayClient(**get_storage_config())
    return DocumentPublisher(store, renderer, storage)
