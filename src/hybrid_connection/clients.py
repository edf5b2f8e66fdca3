"""Construction of the two Azure management clients a hybrid connection needs."""

from __future__ import annotations

from dataclasses import dataclass

from azure.mgmt.servicebus import ServiceBusManagementClient
from azure.mgmt.web import WebSiteManagementClient

from .config import Config
from .security import get_managed_identity_credential


@dataclass(frozen=True)
class AzureClients:
    """App Service client for the connection itself, Service Bus client for its keys."""

    web: WebSiteManagementClient
    servicebus: ServiceBusManagementClient


def build_clients(config: Config) -> AzureClients:
    """Create both clients with a shared managed identity credential.

    Raises:
        SecretlessViolationError: If credential secrets are present in the environment.
    """
    credential = get_managed_identity_credential(config.client_id)
    return AzureClients(
        web=WebSiteManagementClient(
            credential=credential,
            subscription_id=config.subscription_id,
        ),
        servicebus=ServiceBusManagementClient(
            credential=credential,
            subscription_id=config.subscription_id,
        ),
    )
