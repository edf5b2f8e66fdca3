"""Azure API Mock for Integration Testing.

In-memory stand-ins for the App Service hybrid connection operations and
the Service Bus namespace key listing, with error injection and call
recording.

Usage:
    from azure_mock import MockAzureContext

    with MockAzureContext() as ctx:
        ctx.namespaces.add_key("rg1", "ns1", "key1", "primary")
        clients = build_clients(config)
        ...
        assert ctx.web_apps.connection_count == 1
"""

from .context import MockAzureContext
from .credential import MockManagedIdentityCredential, create_mock_credential
from .servicebus import MockAccessKeys, MockNamespacesOperations, MockServiceBusManagementClient
from .web import (
    MOCK_SUBSCRIPTION_ID,
    MockHybridConnection,
    MockWebAppsOperations,
    MockWebSiteManagementClient,
    not_found_error,
)

__all__ = [
    "MOCK_SUBSCRIPTION_ID",
    "MockAccessKeys",
    "MockAzureContext",
    "MockHybridConnection",
    "MockManagedIdentityCredential",
    "MockNamespacesOperations",
    "MockServiceBusManagementClient",
    "MockWebAppsOperations",
    "MockWebSiteManagementClient",
    "create_mock_credential",
    "not_found_error",
]
