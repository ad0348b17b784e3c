"""
Test fixtures and configuration for coralogix-mcp tests.

The Coralogix API is never contacted: client tests mock the HTTP layer and
tool tests run against FastMCP's in-memory transport.
"""

from datetime import UTC, datetime
from typing import Any
from unittest.mock import AsyncMock

import pytest
from fastmcp import Client

from coralogix_mcp.config.settings import CoralogixSettings
from coralogix_mcp.server import create_server
from coralogix_mcp.services.coralogix_client import CoralogixClient
from tests.factories import RawLogFactory


FIXED_NOW = datetime(2024, 1, 15, 12, 0, 0, tzinfo=UTC)


@pytest.fixture(autouse=True)
def isolate_environment(monkeypatch, tmp_path):
    """Keep the developer's environment and .env out of the tests."""
    for name in (
        "CORALOGIX_API_KEY",
        "CORALOGIX_DOMAIN",
        "CORALOGIX_REQUEST_TIMEOUT",
        "CORALOGIX_MAX_RETRIES",
        "CORALOGIX_RETRY_DELAY",
    ):
        monkeypatch.delenv(name, raising=False)
    monkeypatch.chdir(tmp_path)
    monkeypatch.setenv("CORALOGIX_MCP_LOG_FILE", str(tmp_path / "coralogix-mcp.log"))


@pytest.fixture
def fixed_now() -> datetime:
    return FIXED_NOW


@pytest.fixture
def settings() -> CoralogixSettings:
    """Settings for a fake EU1 account."""
    return CoralogixSettings(
        api_key="test-api-key",
        domain="EU1",
        request_timeout=5.0,
        max_retries=3,
        retry_initial_delay=1.0,
    )


@pytest.fixture
def client(settings) -> CoralogixClient:
    """Client whose session is a placeholder; tests patch _post_query."""
    return CoralogixClient(settings, session=AsyncMock())


@pytest.fixture
def raw_logs() -> list[dict[str, Any]]:
    return RawLogFactory.build_batch(5)


@pytest.fixture
def mcp_server(settings):
    return create_server(settings)


@pytest.fixture
async def fastmcp_client(mcp_server):
    """
    FastMCP client connected to the server in memory.
    """
    async with Client(mcp_server) as mcp_client:
        yield mcp_client


def pytest_configure(config):
    """Configure pytest with custom markers."""
    config.addinivalue_line("markers", "unit: Fast unit tests with minimal dependencies")
    config.addinivalue_line("markers", "error_handling: Error scenario tests")


def pytest_collection_modifyitems(config, items):
    """Automatically mark tests based on their location."""
    for item in items:
        if "unit" in str(item.fspath):
            item.add_marker(pytest.mark.unit)
