"""Tests for VaultClient - HashiCorp Vault secrets management."""

from unittest.mock import MagicMock, patch

import pytest
from hvac.exceptions import Forbidden, InvalidPath

import clients.vault_client as vault_module
from clients.vault_client import VaultClient, get_database_url, get_storage_config

SECRETS = {
    "ledger/database": {"url": "postgresql://ledger:pw@localhost:5432/ledger"},
    "ledger/storage": {
        "gateway_url": "https://storage.example.com/upload",
        "api_key": "storage-key",
        "hmac_secret": "storage-secret",
    },
}


@pytest.fixture
def vault_env(monkeypatch):
    monkeypatch.setenv("VAULT_ADDR", "https://vault.example.com")
    monkeypatch.setenv("VAULT_ROLE_ID", "role-id")
    monkeypatch.setenv("VAULT_SECRET_ID", "secret-id")
    monkeypatch.delenv("VAULT_NAMESPACE", raising=False)


@pytest.fixture
def hvac_client(vault_env):
    """Patched hvac.Client serving SECRETS."""
    mock = MagicMock()
    mock.auth.approle.login.return_value = {"auth": {"client_token": "s.token"}}
    mock.is_authenticated.return_value = True

    def read_secret_version(path, raise_on_deleted_version=True):
        if path not in SECRETS:
            raise InvalidPath()
        return {"data": {"data": SECRETS[path]}}

    mock.secrets.kv.v2.read_secret_version.side_effect = read_secret_version

    with patch("clients.vault_client.hvac.Client", return_value=mock):
        yield mock


@pytest.fixture
def fresh_singleton(monkeypatch):
    monkeypatch.setattr(vault_module, "_vault_client_instance", None)
    monkeypatch.setattr(vault_module, "_secret_cache", {})


class TestVaultClientInit:
    """Initialization and authentication."""

    def test_missing_vault_addr_raises(self, monkeypatch):
        """VAULT_ADDR required."""
        monkeypatch.delenv("VAULT_ADDR", raising=False)
        with pytest.raises(ValueError, match="VAULT_ADDR"):
            VaultClient()

    def test_missing_approle_credentials_raises(self, vault_env, monkeypatch):
        """VAULT_ROLE_ID and VAULT_SECRET_ID required."""
        monkeypatch.delenv("VAULT_SECRET_ID")
        with pytest.raises(ValueError, match="VAULT_ROLE_ID"):
            VaultClient()

    def test_valid_approle_authenticates(self, hvac_client):
        """Valid AppRole credentials authenticate and set the token."""
        client = VaultClient()

        hvac_client.auth.approle.login.assert_called_once_with(role_id="role-id", secret_id="secret-id")
        assert client.client.token == "s.token"

    def test_invalid_approle_raises_permission_error(self, hvac_client):
        """Invalid AppRole credentials fail authentication."""
        hvac_client.auth.approle.login.side_effect = Forbidden("invalid role")

        with pytest.raises(PermissionError, match="authentication"):
            VaultClient()

    def test_unauthenticated_client_raises(self, hvac_client):
        hvac_client.is_authenticated.return_value = False

        with pytest.raises(PermissionError):
            VaultClient()


class TestGetSecret:
    """Secret retrieval - paths automatically scoped to ledger/."""

    def test_returns_field_value(self, hvac_client):
        client = VaultClient()

        assert client.get_secret("database", "url").startswith("postgresql://")
        hvac_client.secrets.kv.v2.read_secret_version.assert_called_with(
            path="ledger/database", raise_on_deleted_version=True
        )

    def test_missing_path_raises(self, hvac_client):
        client = VaultClient()
        with pytest.raises(PermissionError):
            client.get_secret("nonexistent", "field")

    def test_missing_field_raises_keyerror(self, hvac_client):
        client = VaultClient()
        with pytest.raises(KeyError, match="not found"):
            client.get_secret("database", "nonexistent_field")


class TestConvenienceFunctions:
    """Module-level convenience functions."""

    def test_get_database_url(self, hvac_client, fresh_singleton):
        assert get_database_url() == "postgresql://ledger:pw@localhost:5432/ledger"

    def test_get_storage_config(self, hvac_client, fresh_singleton):
        assert get_storage_config() == SECRETS["ledger/storage"]

    def test_values_are_cached(self, hvac_client, fresh_singleton):
        get_database_url()
        get_database_url()

        assert hvac_client.secrets.kv.v2.read_secret_version.call_count == 1
