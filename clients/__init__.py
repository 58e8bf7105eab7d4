# Infrastructure clients
from clients.vault_client import (
    VaultClient,
    VaultError,
    get_database_url,
    get_storage_config,
)
from clients.postgres_client import PostgresClient, PostgresTransaction
from clients.storage_client import StorageGatewayClient, StorageGatewayError
