"""Pytest configuration and fixtures."""

import sys
from pathlib import Path
from typing import Any

import pytest

# Add src to path for imports
src_path = Path(__file__).parent.parent / "src"
sys.path.insert(0, str(src_path))

# Add tests to path for azure_mock imports
tests_path = Path(__file__).parent
sys.path.insert(0, str(tests_path))

from azure_mock import (  # noqa: E402
    MOCK_SUBSCRIPTION_ID,
    MockServiceBusManagementClient,
    MockWebSiteManagementClient,
)

from hybrid_connection.config import Config  # noqa: E402
from hybrid_connection.resource import HybridConnectionResource  # noqa: E402

RELAY_ID = (
    f"/subscriptions/{MOCK_SUBSCRIPTION_ID}/resourceGroups/rg1"
    "/providers/Microsoft.Relay/namespaces/ns1/hybridConnections/relay1"
)
HYBRID_CONNECTION_ID = (
    f"/subscriptions/{MOCK_SUBSCRIPTION_ID}/resourceGroups/rg1"
    "/providers/Microsoft.Web/sites/site1/hybridConnectionNamespaces/ns1/relays/relay1"
)


@pytest.fixture
def relay_id() -> str:
    return RELAY_ID


@pytest.fixture
def hybrid_connection_id() -> str:
    return HYBRID_CONNECTION_ID


@pytest.fixture
def spec_data() -> dict[str, Any]:
    """Declaration of the example connection, with snake_case keys."""
    return {
        "app_service_name": "site1",
        "resource_group_name": "rg1",
        "relay_id": RELAY_ID,
        "hostname": "h.example.net",
        "port": 443,
        "service_bus_namespace": "ns1",
        "send_key_name": "key1",
        "send_key_value": "secret",
    }


@pytest.fixture
def config() -> Config:
    return Config(subscription_id=MOCK_SUBSCRIPTION_ID)


@pytest.fixture
def web_client() -> MockWebSiteManagementClient:
    return MockWebSiteManagementClient()


@pytest.fixture
def servicebus_client() -> MockServiceBusManagementClient:
    client = MockServiceBusManagementClient()
    client.namespaces.add_key("rg1", "ns1", "key1", primary_key="primary-key-1")
    return client


@pytest.fixture
def resource(
    web_client: MockWebSiteManagementClient,
    servicebus_client: MockServiceBusManagementClient,
    config: Config,
) -> HybridConnectionResource:
    return HybridConnectionResource(web_client, servicebus_client, config)
