"""Pydantic models for hybrid connection declarations with validation.

These models provide:
1. Type-safe YAML parsing
2. Validation at the boundary (fail fast, before any Azure call)
3. Conversion to the App Service API payload
"""

from __future__ import annotations

import re
from typing import Annotated

from azure.mgmt.web.models import HybridConnection
from pydantic import BaseModel, Field, SecretStr, field_validator

from .resource_id import RelayHybridConnectionId

DEFAULT_SERVICE_BUS_SUFFIX = ".servicebus.windows.net"

# Input validation patterns
APP_SERVICE_NAME_PATTERN = r"^[0-9a-zA-Z-]{1,60}$"
RESOURCE_GROUP_NAME_PATTERN = r"^[-\w\._\(\)]+$"
SERVICE_BUS_NAMESPACE_PATTERN = r"^[a-zA-Z][-a-zA-Z0-9]{0,100}[a-zA-Z0-9]$"
MAX_RESOURCE_GROUP_NAME_LENGTH = 90
MIN_PORT = 0
MAX_PORT = 65535


class HybridConnectionSpec(BaseModel):
    """Declared configuration of an App Service hybrid connection.

    ``app_service_name``, ``resource_group_name`` and ``relay_id`` can only be
    set when the connection is created. ``send_key_value`` is write-only: the
    App Service API never returns it.
    """

    model_config = {"extra": "ignore", "populate_by_name": True}

    app_service_name: str = Field(alias="appServiceName")
    resource_group_name: str = Field(alias="resourceGroupName")
    relay_id: str = Field(alias="relayId")
    hostname: str
    port: Annotated[int, Field(ge=MIN_PORT, le=MAX_PORT)]
    service_bus_namespace: str = Field(alias="serviceBusNamespace")
    service_bus_suffix: str = Field(DEFAULT_SERVICE_BUS_SUFFIX, alias="serviceBusSuffix")
    send_key_name: str = Field(alias="sendKeyName")
    send_key_value: SecretStr = Field(alias="sendKeyValue")

    @field_validator("app_service_name")
    @classmethod
    def validate_app_service_name(cls, v: str) -> str:
        if not re.fullmatch(APP_SERVICE_NAME_PATTERN, v):
            raise ValueError(
                f"{v!r} may only contain alphanumeric characters and dashes "
                "and up to 60 characters in length"
            )
        return v

    @field_validator("resource_group_name")
    @classmethod
    def validate_resource_group_name(cls, v: str) -> str:
        if len(v) > MAX_RESOURCE_GROUP_NAME_LENGTH:
            raise ValueError(
                f"resource group name may not exceed {MAX_RESOURCE_GROUP_NAME_LENGTH} characters"
            )
        if not re.fullmatch(RESOURCE_GROUP_NAME_PATTERN, v, re.ASCII):
            raise ValueError(
                "resource group name may only contain alphanumeric characters, "
                "dash, underscores, parentheses and periods"
            )
        if v.endswith("."):
            raise ValueError("resource group name cannot end with a period")
        return v

    @field_validator("relay_id")
    @classmethod
    def validate_relay_id(cls, v: str) -> str:
        # MalformedIdentifierError is a ValueError, so pydantic reports it as such
        RelayHybridConnectionId.parse(v)
        return v

    @field_validator("service_bus_namespace")
    @classmethod
    def validate_service_bus_namespace(cls, v: str) -> str:
        if not re.fullmatch(SERVICE_BUS_NAMESPACE_PATTERN, v):
            raise ValueError(
                "The namespace can contain only letters, numbers, and hyphens. "
                "The namespace must start with a letter, and it must end with a letter or number."
            )
        return v

    @field_validator("hostname", "service_bus_suffix", "send_key_name")
    @classmethod
    def validate_not_blank(cls, v: str) -> str:
        if not v.strip():
            raise ValueError("must not be empty or whitespace")
        return v

    @field_validator("send_key_value")
    @classmethod
    def validate_secret_not_blank(cls, v: SecretStr) -> SecretStr:
        if not v.get_secret_value().strip():
            raise ValueError("must not be empty or whitespace")
        return v

    def relay_reference(self) -> RelayHybridConnectionId:
        """Resolve ``relay_id`` into its namespace and relay name.

        Raises:
            MalformedIdentifierError: If the reference does not parse.
        """
        return RelayHybridConnectionId.parse(self.relay_id)

    def to_hybrid_connection(self, relay_name: str) -> HybridConnection:
        """Build the create-or-update payload for the App Service API."""
        return HybridConnection(
            service_bus_namespace=self.service_bus_namespace,
            relay_name=relay_name,
            relay_arm_uri=self.relay_id,
            hostname=self.hostname,
            port=self.port,
            send_key_name=self.send_key_name,
            send_key_value=self.send_key_value.get_secret_value(),
            service_bus_suffix=self.service_bus_suffix,
        )
