"""
Tests for StorageGatewayClient.

Tests verify the client's contract with calling code: a URL on success,
StorageGatewayError on any gateway failure.
"""

import hashlib
import hmac

import pytest
import responses

from clients.storage_client import StorageGatewayClient, StorageGatewayError

GATEWAY_URL = "https://storage.example.com/upload"
PDF = b"%PDF-1.7 receipt"


@pytest.fixture
def client():
    """Create client with test credentials."""
    return StorageGatewayClient(
        gateway_url=GATEWAY_URL,
        api_key="test-api-key",
        hmac_secret="test-hmac-secret",
    )


class TestStorageGatewayClientInit:
    """Fail-fast on invalid config."""

    def test_init_with_valid_credentials(self, client):
        assert client.timeout == 30

    @pytest.mark.parametrize("field", ["gateway_url", "api_key", "hmac_secret"])
    def test_init_rejects_empty_credential(self, field):
        kwargs = {
            "gateway_url": GATEWAY_URL,
            "api_key": "test-api-key",
            "hmac_secret": "test-hmac-secret",
        }
        kwargs[field] = ""

        with pytest.raises(ValueError, match=field):
            StorageGatewayClient(**kwargs)


class TestSign:

    def test_signature_covers_path_and_body(self, client):
        expected = hmac.new(
            b"test-hmac-secret",
            f"1001/2026/R-2026-1.pdf\n{hashlib.sha256(PDF).hexdigest()}".encode(),
            hashlib.sha256,
        ).hexdigest()

        assert client.sign("1001/2026/R-2026-1.pdf", PDF) == expected

    def test_signature_changes_with_path(self, client):
        assert client.sign("a.pdf", PDF) != client.sign("b.pdf", PDF)


class TestUpload:
    """upload() - uses responses library for HTTP mocking."""

    @responses.activate
    def test_successful_upload_returns_url(self, client):
        responses.add(
            responses.POST,
            GATEWAY_URL,
            json={"success": True, "url": "https://files.example.com/1001/2026/R-2026-1.pdf"},
            status=200,
        )

        url = client.upload(PDF, "1001/2026/R-2026-1.pdf")

        assert url == "https://files.example.com/1001/2026/R-2026-1.pdf"

    @responses.activate
    def test_sends_signed_headers_and_body(self, client):
        responses.add(responses.POST, GATEWAY_URL, json={"success": True, "url": "https://x"}, status=200)

        client.upload(PDF, "1001/2026/R-2026-1.pdf")

        request = responses.calls[0].request
        assert request.body == PDF
        assert request.headers["X-API-Key"] == "test-api-key"
        assert request.headers["X-Object-Path"] == "1001/2026/R-2026-1.pdf"
        assert request.headers["Content-Type"] == "application/pdf"
        assert request.headers["X-Signature"] == client.sign("1001/2026/R-2026-1.pdf", PDF)

    @responses.activate
    def test_gateway_500_raises_error(self, client):
        responses.add(
            responses.POST,
            GATEWAY_URL,
            json={"success": False, "message": "Internal error"},
            status=500,
        )

        with pytest.raises(StorageGatewayError, match="Internal error"):
            client.upload(PDF, "a.pdf")

    @responses.activate
    def test_gateway_success_false_raises_error(self, client):
        responses.add(
            responses.POST,
            GATEWAY_URL,
            json={"success": False, "message": "Bad signature"},
            status=200,
        )

        with pytest.raises(StorageGatewayError):
            client.upload(PDF, "a.pdf")

    @responses.activate
    def test_missing_url_raises_error(self, client):
        responses.add(responses.POST, GATEWAY_URL, json={"success": True}, status=200)

        with pytest.raises(StorageGatewayError, match="URL"):
            client.upload(PDF, "a.pdf")

    @responses.activate
    def test_connection_failure_raises_error(self, client):
        responses.add(
            responses.POST,
            GATEWAY_URL,
            body=ConnectionError("Network unreachable"),
        )

        with pytest.raises(StorageGatewayError):
            client.upload(PDF, "a.pdf")

    @responses.activate
    def test_invalid_json_response_raises_error(self, client):
        responses.add(responses.POST, GATEWAY_URL, body="not json", status=200)

        with pytest.raises(StorageGatewayError):
            client.upload(PDF, "a.pdf")

    def test_empty_data_raises_value_error(self, client):
        with pytest.raises(ValueError, match="data"):
            client.upload(b"", "a.pdf")

    def test_empty_path_raises_value_error(self, client):
        with pytest.raises(ValueError, match="path"):
            client.upload(PDF, "")
