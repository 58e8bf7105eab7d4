"""
Object storage gateway client for rendered ledger documents.

Uploads bytes through an HTTP gateway and returns the durable URL.
Uses HMAC-SHA256 signature for request authentication.
"""

import hashlib
import hmac
import json
import logging

import requests

logger = logging.getLogger(__name__)


class StorageGatewayError(Exception):
    """Raised when storage gateway request fails."""


class StorageGatewayClient:
    """Upload documents via HTTP gateway with HMAC signature verification."""

    def __init__(self, gateway_url: str, api_key: str, hmac_secret: str, timeout: float = 30):
        """
        Initialize with gateway credentials.

        Args:
            gateway_url: Full URL to the storage gateway upload endpoint
            api_key: API key for X-API-Key header
            hmac_secret: Secret for HMAC-SHA256 signature
            timeout: Request timeout in seconds

        Raises:
            ValueError: If any credential is empty
        """
        if not gateway_url:
            raise ValueError("gateway_url is required")
        if not api_key:
            raise ValueError("api_key is required")
        if not hmac_secret:
            raise ValueError("hmac_secret is required")

        self.gateway_url = gateway_url
        self.api_key = api_key
        self.hmac_secret = hmac_secret
        self.timeout = timeout

    def sign(self, path: str, data: bytes) -> str:
        """
        Signature over the object path and the SHA-256 of the body.

        The gateway recomputes it from the X-Object-Path header and the
        received bytes.
        """
        message = f"{path}\n{hashlib.sha256(data).hexdigest()}"
        return hmac.new(
            self.hmac_secret.encode("utf-8"),
            message.encode("utf-8"),
            hashlib.sha256,
        ).hexdigest()

    def upload(self, data: bytes, path: str, content_type: str = "application/pdf") -> str:
        """
        Upload an object.

        Args:
            data: Object bytes
            path: Object path, e.g. "1001/2026/R-2026-7.pdf"
            content_type: MIME type stored with the object

        Returns:
            Durable URL of the stored object

        Raises:
            ValueError: If data or path is empty
            StorageGatewayError: On any gateway failure
        """
        if not data:
            raise ValueError("data is required")
        if not path:
            raise ValueError("path is required")

        headers = {
            "Content-Type": content_type,
            "X-API-Key": self.api_key,
            "X-Object-Path": path,
            "X-Signature": self.sign(path, data),
        }

        try:
            response = requests.post(
                self.gateway_url,
                data=data,
                headers=headers,
                timeout=self.timeout,
            )
        except requests.exceptions.RequestException as e:
            logger.error("Storage gateway connection failed: %s", e)
            raise StorageGatewayError(f"Connection failed: {e}") from e

        try:
            response_data = response.json()
        except (json.JSONDecodeError, ValueError):
            logger.error("Storage gateway returned invalid JSON: %s", response.text[:200])
            raise StorageGatewayError("Invalid response from gateway")

        if response.status_code != 200 or not response_data.get("success"):
            error_msg = response_data.get("message", "Unknown error")
            logger.error("Storage gateway error for %s: %s", path, error_msg)
            raise StorageGatewayError(f"Gateway error: {error_msg}")

        url = response_data.get("url")
        if not url:
            raise StorageGatewayError("Gateway response did not include a URL")

        logger.info("Uploaded %s (%d bytes)", path, len(data))
        return url
