"""API test fixtures - TestClient over the in-memory ledger services."""

import pytest
from starlette.testclient import TestClient

from api.app import create_app


# =============================================================================
# APP & CLIENT FIXTURES
# =============================================================================


@pytest.fixture
def app(services):
    """FastAPI app with error handlers and data/actions routes."""
    return create_app(services)


@pytest.fixture
def client(app):
    """Test client returning error responses instead of raising."""
    return TestClient(app, raise_server_exceptions=False)
