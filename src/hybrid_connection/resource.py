"""Create, read, update, delete and import of App Service hybrid connections.

Each operation is a short sequence of blocking Azure SDK calls. The calls run
in the default executor and are bounded with asyncio.wait_for so that every
operation honours its configured time budget.

Read is a two-step pipeline:
1. Get the hybrid connection from the App Service API (authoritative state)
2. List the keys of the Service Bus namespace to recover the send key value,
   which the App Service API never returns

A failure in step 2 is the partial-failure mode SecretUnavailableError: it is
logged and recorded on the result, and the read itself still succeeds.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Callable
from dataclasses import dataclass, field
from typing import Any, TypeVar

from azure.core.exceptions import AzureError, ResourceNotFoundError
from azure.mgmt.servicebus import ServiceBusManagementClient
from azure.mgmt.web import WebSiteManagementClient

from .config import Config, DeletePolicy
from .errors import (
    AlreadyExistsError,
    InvalidReferenceError,
    MalformedIdentifierError,
    OperationTimeoutError,
    PrecheckFailedError,
    RemoteOperationFailedError,
    ReplacementRequiredError,
    SecretUnavailableError,
)
from .models import HybridConnectionSpec
from .resource_id import HybridConnectionId, RelayHybridConnectionId

logger = logging.getLogger(__name__)

T = TypeVar("T")

SENSITIVE_VALUE_PLACEHOLDER = "(sensitive value)"


def _was_not_found(error: AzureError) -> bool:
    """Check whether an Azure SDK error is a 404."""
    if isinstance(error, ResourceNotFoundError):
        return True
    return getattr(error, "status_code", None) == 404


@dataclass
class HybridConnectionState:
    """Observed state of a hybrid connection."""

    id: str
    app_service_name: str
    resource_group_name: str
    namespace_name: str
    relay_name: str
    relay_id: str | None = None
    hostname: str | None = None
    port: int | None = None
    service_bus_namespace: str | None = None
    service_bus_suffix: str | None = None
    send_key_name: str | None = None
    # Recovered from the Service Bus namespace, None when that lookup failed
    send_key_value: str | None = field(default=None, repr=False)

    def to_dict(self, include_secret: bool = False) -> dict[str, Any]:
        """Convert to a dictionary, masking the send key value unless asked not to."""
        data = {
            "id": self.id,
            "app_service_name": self.app_service_name,
            "resource_group_name": self.resource_group_name,
            "relay_id": self.relay_id,
            "hostname": self.hostname,
            "port": self.port,
            "service_bus_namespace": self.service_bus_namespace,
            "service_bus_suffix": self.service_bus_suffix,
            "send_key_name": self.send_key_name,
            "send_key_value": self.send_key_value,
            "namespace_name": self.namespace_name,
            "relay_name": self.relay_name,
        }
        if not include_secret and self.send_key_value is not None:
            data["send_key_value"] = SENSITIVE_VALUE_PLACEHOLDER
        return data


@dataclass
class ReadResult:
    """Result of reading a hybrid connection.

    ``state`` is None when the connection no longer exists; the caller must
    then forget its identifier.
    """

    state: HybridConnectionState | None = None
    secret_error: SecretUnavailableError | None = None

    @property
    def exists(self) -> bool:
        return self.state is not None

    @property
    def resource_id(self) -> str | None:
        """Identifier to persist, or None if the connection is gone."""
        return self.state.id if self.state is not None else None


class HybridConnectionResource:
    """Reconciles one declared hybrid connection against Azure.

    The App Service client owns the connection itself; the Service Bus client
    is only used to recover the send key value on read. Both are injected so
    callers decide how they are authenticated.
    """

    def __init__(
        self,
        web_client: WebSiteManagementClient,
        servicebus_client: ServiceBusManagementClient,
        config: Config,
    ) -> None:
        self._web_client = web_client
        self._servicebus_client = servicebus_client
        self._config = config

    @property
    def config(self) -> Config:
        return self._config

    async def _call(
        self,
        operation: str,
        timeout_seconds: int,
        func: Callable[[], T],
        deadline: float | None = None,
    ) -> T:
        """Run a blocking SDK call in the executor within a time budget.

        Args:
            operation: Name used in logs and errors.
            timeout_seconds: Configured budget of the operation.
            func: Blocking SDK call.
            deadline: Event loop time by which the whole operation must finish,
                when the budget is shared by several calls.

        Raises:
            OperationTimeoutError: If the call does not finish in time.
        """
        loop = asyncio.get_event_loop()
        remaining = timeout_seconds if deadline is None else deadline - loop.time()
        if remaining <= 0:
            logger.error(
                "Azure operation budget exhausted before call",
                extra={"operation": operation, "timeout_seconds": timeout_seconds},
            )
            raise OperationTimeoutError(operation, timeout_seconds)

        try:
            return await asyncio.wait_for(
                loop.run_in_executor(None, func),
                timeout=remaining,
            )
        except TimeoutError as e:
            logger.error(
                "Azure call timed out",
                extra={"operation": operation, "timeout_seconds": timeout_seconds},
            )
            raise OperationTimeoutError(operation, timeout_seconds) from e

    # =========================================================================
    # Create / Update
    # =========================================================================

    async def create_or_update(
        self,
        spec: HybridConnectionSpec,
        resource_id: str | None = None,
    ) -> ReadResult:
        """Make the remote connection match the declared spec.

        Args:
            spec: Validated declaration.
            resource_id: Identifier of the managed connection, or None if the
                connection is newly declared.

        Returns:
            The state read back after the upsert.

        Raises:
            InvalidReferenceError: If ``relay_id`` does not parse.
            ReplacementRequiredError: If an immutable field changed.
            AlreadyExistsError: If a new connection already exists remotely.
            PrecheckFailedError: If the existence check fails.
            RemoteOperationFailedError: If the upsert fails.
            OperationTimeoutError: If a call exceeds its budget.
        """
        is_new = resource_id is None
        name = spec.app_service_name
        resource_group = spec.resource_group_name

        try:
            relay = spec.relay_reference()
        except MalformedIdentifierError as e:
            raise InvalidReferenceError(f"Error parsing relay ID {spec.relay_id!r}: {e}") from e
        namespace_name = relay.namespace_name
        relay_name = relay.name

        if is_new:
            timeout_seconds = self._config.create_timeout_seconds
        else:
            timeout_seconds = self._config.update_timeout_seconds
            self._check_immutable_fields(spec, resource_id, relay)

        # The precheck and the upsert share one budget; the read-back has its own
        deadline = asyncio.get_event_loop().time() + timeout_seconds
        if is_new and self._config.import_conflict_check:
            await self._ensure_not_exists(
                resource_group, name, namespace_name, relay_name, timeout_seconds, deadline
            )

        envelope = spec.to_hybrid_connection(relay_name)

        try:
            hybrid_connection = await self._call(
                "create_or_update",
                timeout_seconds,
                lambda: self._web_client.web_apps.create_or_update_hybrid_connection(
                    resource_group_name=resource_group,
                    name=name,
                    namespace_name=namespace_name,
                    relay_name=relay_name,
                    connection_envelope=envelope,
                ),
                deadline=deadline,
            )
        except AzureError as e:
            raise RemoteOperationFailedError(
                f"Error creating App Service Hybrid Connection {name!r} "
                f"(resource group {resource_group!r}): {e}"
            ) from e

        if not getattr(hybrid_connection, "id", None):
            raise RemoteOperationFailedError(
                f"App Service Hybrid Connection {name!r} (resource group {resource_group!r}) "
                "was saved but Azure returned no ID"
            )

        logger.info(
            "Hybrid connection %s",
            "created" if is_new else "updated",
            extra={
                "resource_id": hybrid_connection.id,
                "app_service_name": name,
                "resource_group": resource_group,
                "relay_name": relay_name,
            },
        )
        return await self.read(hybrid_connection.id)

    async def _ensure_not_exists(
        self,
        resource_group: str,
        name: str,
        namespace_name: str,
        relay_name: str,
        timeout_seconds: int,
        deadline: float,
    ) -> None:
        try:
            existing = await self._call(
                "existence check",
                timeout_seconds,
                lambda: self._web_client.web_apps.get_hybrid_connection(
                    resource_group_name=resource_group,
                    name=name,
                    namespace_name=namespace_name,
                    relay_name=relay_name,
                ),
                deadline=deadline,
            )
        except AzureError as e:
            if _was_not_found(e):
                return
            raise PrecheckFailedError(
                f"Error checking for presence of existing App Service Hybrid Connection "
                f"{name!r} (Resource Group {resource_group!r}, Namespace {namespace_name!r}, "
                f"Relay Name {relay_name!r}): {e}"
            ) from e

        existing_id = getattr(existing, "id", None)
        if existing_id:
            raise AlreadyExistsError(existing_id)

    def _check_immutable_fields(
        self,
        spec: HybridConnectionSpec,
        resource_id: str,
        relay: RelayHybridConnectionId,
    ) -> None:
        """Reject updates that would move the connection to another site or relay."""
        current = HybridConnectionId.parse(resource_id)

        changed = []
        if current.resource_group.lower() != spec.resource_group_name.lower():
            changed.append("resource_group_name")
        if current.site_name.lower() != spec.app_service_name.lower():
            changed.append("app_service_name")
        if (
            current.namespace_name.lower() != relay.namespace_name.lower()
            or current.relay_name.lower() != relay.name.lower()
        ):
            changed.append("relay_id")

        if changed:
            raise ReplacementRequiredError(resource_id, changed)

    # =========================================================================
    # Read
    # =========================================================================

    async def read(self, resource_id: str) -> ReadResult:
        """Refresh state from Azure.

        Returns:
            ReadResult whose state is None when the connection no longer exists.

        Raises:
            MalformedIdentifierError: If ``resource_id`` does not parse.
            RemoteOperationFailedError: If the get fails for a reason other than not-found.
            OperationTimeoutError: If the get exceeds the read budget.
        """
        hc_id = HybridConnectionId.parse(resource_id)

        try:
            response = await self._call(
                "read",
                self._config.read_timeout_seconds,
                lambda: self._web_client.web_apps.get_hybrid_connection(
                    resource_group_name=hc_id.resource_group,
                    name=hc_id.site_name,
                    namespace_name=hc_id.namespace_name,
                    relay_name=hc_id.relay_name,
                ),
            )
        except AzureError as e:
            if _was_not_found(e):
                logger.info(
                    "Hybrid connection no longer exists, removing from state",
                    extra={"resource_id": resource_id},
                )
                return ReadResult()
            raise RemoteOperationFailedError(
                f"Error making Read request on App Service Hybrid Connection "
                f"{hc_id.site_name!r} in Namespace {hc_id.namespace_name!r}, "
                f"Resource Group {hc_id.resource_group!r}: {e}"
            ) from e

        state = HybridConnectionState(
            id=resource_id,
            app_service_name=hc_id.site_name,
            resource_group_name=hc_id.resource_group,
            namespace_name=hc_id.namespace_name,
            relay_name=hc_id.relay_name,
            relay_id=response.relay_arm_uri,
            hostname=response.hostname,
            port=response.port,
            service_bus_namespace=response.service_bus_namespace,
            service_bus_suffix=response.service_bus_suffix,
            send_key_name=response.send_key_name,
        )

        result = ReadResult(state=state)
        try:
            state.send_key_value = await self._lookup_send_key(
                hc_id.resource_group,
                state.service_bus_namespace,
                state.send_key_name,
            )
        except SecretUnavailableError as e:
            logger.warning(
                "Unable to recover send key value, leaving it unset",
                extra={
                    "resource_id": resource_id,
                    "service_bus_namespace": state.service_bus_namespace,
                    "send_key_name": state.send_key_name,
                    "error": str(e),
                },
            )
            result.secret_error = e

        return result

    async def _lookup_send_key(
        self,
        resource_group: str,
        namespace_name: str | None,
        key_name: str | None,
    ) -> str:
        """Fetch the primary key of the named authorization rule.

        Raises:
            SecretUnavailableError: If the key cannot be recovered for any reason.
        """
        if not namespace_name or not key_name:
            raise SecretUnavailableError(
                "Hybrid connection response did not include the Service Bus namespace "
                "and send key name"
            )

        try:
            access_keys = await self._call(
                "list send keys",
                self._config.read_timeout_seconds,
                lambda: self._servicebus_client.namespaces.list_keys(
                    resource_group_name=resource_group,
                    namespace_name=namespace_name,
                    authorization_rule_name=key_name,
                ),
            )
        except (AzureError, OperationTimeoutError) as e:
            raise SecretUnavailableError(
                f"Unable to list keys {key_name!r} for Namespace {namespace_name!r} "
                f"(Resource Group {resource_group!r}): {e}"
            ) from e

        primary_key = getattr(access_keys, "primary_key", None)
        if not primary_key:
            raise SecretUnavailableError(
                f"Namespace {namespace_name!r} returned no primary key for {key_name!r}"
            )
        return primary_key

    # =========================================================================
    # Delete
    # =========================================================================

    async def delete(self, resource_id: str) -> None:
        """Remove the connection from its site.

        Raises:
            MalformedIdentifierError: If ``resource_id`` does not parse.
            RemoteOperationFailedError: If the delete fails (see DeletePolicy).
            OperationTimeoutError: If the delete exceeds its budget.
        """
        hc_id = HybridConnectionId.parse(resource_id)

        try:
            await self._call(
                "delete",
                self._config.delete_timeout_seconds,
                lambda: self._web_client.web_apps.delete_hybrid_connection(
                    resource_group_name=hc_id.resource_group,
                    name=hc_id.site_name,
                    namespace_name=hc_id.namespace_name,
                    relay_name=hc_id.relay_name,
                ),
            )
        except AzureError as e:
            self._handle_delete_error(hc_id, e)
            return

        logger.info("Hybrid connection deleted", extra={"resource_id": resource_id})

    def _handle_delete_error(self, hc_id: HybridConnectionId, error: AzureError) -> None:
        not_found = _was_not_found(error)
        message = (
            f"Error deleting App Service Hybrid Connection {hc_id.site_name!r} "
            f"(Resource Group {hc_id.resource_group!r}, Relay {hc_id.relay_name!r}): {error}"
        )

        if self._config.delete_policy is DeletePolicy.LEGACY:
            if not_found:
                raise RemoteOperationFailedError(message) from error
            logger.warning(
                "Ignoring error from delete call",
                extra={"resource_id": hc_id.format(), "error": str(error)},
            )
            return

        if not_found:
            logger.info(
                "Hybrid connection already deleted",
                extra={"resource_id": hc_id.format()},
            )
            return
        raise RemoteOperationFailedError(message) from error

    # =========================================================================
    # Import
    # =========================================================================

    async def import_existing(self, resource_id: str) -> ReadResult:
        """Adopt an existing connection by its identifier.

        The identifier is validated before any Azure call is made.

        Raises:
            MalformedIdentifierError: If ``resource_id`` does not parse.
            RemoteOperationFailedError: If the connection does not exist or cannot be read.
        """
        HybridConnectionId.parse(resource_id)

        result = await self.read(resource_id)
        if not result.exists:
            raise RemoteOperationFailedError(
                f"Cannot import non-existent App Service Hybrid Connection {resource_id!r}"
            )

        logger.info("Hybrid connection imported", extra={"resource_id": resource_id})
        return result
