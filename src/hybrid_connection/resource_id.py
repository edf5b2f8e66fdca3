"""Parse and format Azure resource IDs used by hybrid connections.

Azure resource IDs follow the pattern:
/subscriptions/{sub}/resourceGroups/{rg}/providers/{namespace}/{type}/{name}[/{child}/{name}...]

Segment keys are compared case-insensitively because ARM is not consistent
about their casing (``resourcegroups`` vs ``resourceGroups``). Formatting
always emits the canonical casing.
"""

from __future__ import annotations

from dataclasses import dataclass

from .errors import MalformedIdentifierError

RELAY_PROVIDER = "Microsoft.Relay"
WEB_PROVIDER = "Microsoft.Web"


@dataclass(frozen=True)
class ResourceId:
    """Generic decomposition of an ARM resource ID."""

    subscription_id: str
    resource_group: str
    provider: str
    # Child segments after the provider, in order, as (key, value) pairs
    path: tuple[tuple[str, str], ...]


def parse_resource_id(resource_id: str) -> ResourceId:
    """Split an ARM resource ID into subscription, resource group, provider and path.

    Raises:
        MalformedIdentifierError: If the ID is not a resource-group scoped ARM ID.
    """
    if not resource_id or not resource_id.startswith("/"):
        raise MalformedIdentifierError(f"Resource ID must start with '/': {resource_id!r}")

    # Exactly one leading slash; at most one trailing slash is tolerated
    components = resource_id[1:].removesuffix("/").split("/")
    if len(components) % 2 != 0:
        raise MalformedIdentifierError(
            f"Resource ID must consist of key/value pairs: {resource_id!r}"
        )

    pairs = list(zip(components[0::2], components[1::2], strict=True))
    if any(not key or not value for key, value in pairs):
        raise MalformedIdentifierError(f"Resource ID contains an empty segment: {resource_id!r}")

    if len(pairs) < 3:
        raise MalformedIdentifierError(f"Resource ID is too short: {resource_id!r}")

    (sub_key, subscription_id), (rg_key, resource_group), (prov_key, provider) = pairs[:3]
    if sub_key.lower() != "subscriptions":
        raise MalformedIdentifierError(f"Resource ID has no subscription: {resource_id!r}")
    if rg_key.lower() != "resourcegroups":
        raise MalformedIdentifierError(f"Resource ID has no resource group: {resource_id!r}")
    if prov_key.lower() != "providers":
        raise MalformedIdentifierError(f"Resource ID has no provider: {resource_id!r}")

    return ResourceId(
        subscription_id=subscription_id,
        resource_group=resource_group,
        provider=provider,
        path=tuple(pairs[3:]),
    )


def _require_shape(
    parsed: ResourceId,
    resource_id: str,
    provider: str,
    keys: tuple[str, ...],
) -> list[str]:
    if parsed.provider.lower() != provider.lower():
        raise MalformedIdentifierError(
            f"Expected a {provider} resource ID, got provider {parsed.provider!r}: {resource_id!r}"
        )
    if len(parsed.path) != len(keys):
        raise MalformedIdentifierError(
            f"Expected segments {'/'.join(keys)} in resource ID: {resource_id!r}"
        )

    values = []
    for (segment_key, value), expected in zip(parsed.path, keys, strict=True):
        if segment_key.lower() != expected.lower():
            raise MalformedIdentifierError(
                f"Expected segment {expected!r} but found {segment_key!r}: {resource_id!r}"
            )
        values.append(value)
    return values


@dataclass(frozen=True)
class RelayHybridConnectionId:
    """ID of an Azure Relay hybrid connection (the relay reference)."""

    subscription_id: str
    resource_group: str
    namespace_name: str
    name: str

    @classmethod
    def parse(cls, resource_id: str) -> RelayHybridConnectionId:
        parsed = parse_resource_id(resource_id)
        namespace_name, name = _require_shape(
            parsed, resource_id, RELAY_PROVIDER, ("namespaces", "hybridConnections")
        )
        return cls(
            subscription_id=parsed.subscription_id,
            resource_group=parsed.resource_group,
            namespace_name=namespace_name,
            name=name,
        )

    def format(self) -> str:
        return (
            f"/subscriptions/{self.subscription_id}"
            f"/resourceGroups/{self.resource_group}"
            f"/providers/{RELAY_PROVIDER}/namespaces/{self.namespace_name}"
            f"/hybridConnections/{self.name}"
        )

    def __str__(self) -> str:
        return self.format()


@dataclass(frozen=True)
class HybridConnectionId:
    """ID of the binding between an App Service site and a relay.

    This is the durable handle returned by the create call and consumed by
    read, delete and import.
    """

    subscription_id: str
    resource_group: str
    site_name: str
    namespace_name: str
    relay_name: str

    @classmethod
    def parse(cls, resource_id: str) -> HybridConnectionId:
        """Parse a hybrid connection ID.

        Raises:
            MalformedIdentifierError: If any segment is missing, empty or misnamed.
        """
        parsed = parse_resource_id(resource_id)
        site_name, namespace_name, relay_name = _require_shape(
            parsed,
            resource_id,
            WEB_PROVIDER,
            ("sites", "hybridConnectionNamespaces", "relays"),
        )
        return cls(
            subscription_id=parsed.subscription_id,
            resource_group=parsed.resource_group,
            site_name=site_name,
            namespace_name=namespace_name,
            relay_name=relay_name,
        )

    def format(self) -> str:
        return (
            f"/subscriptions/{self.subscription_id}"
            f"/resourceGroups/{self.resource_group}"
            f"/providers/{WEB_PROVIDER}/sites/{self.site_name}"
            f"/hybridConnectionNamespaces/{self.namespace_name}"
            f"/relays/{self.relay_name}"
        )

    def __str__(self) -> str:
        return self.format()
