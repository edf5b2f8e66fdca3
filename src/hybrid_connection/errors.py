"""Errors raised by hybrid connection operations.

Every fatal condition derives from HybridConnectionError so callers can
catch the whole family at the boundary. SecretUnavailableError is the one
condition that is recorded on a read result instead of being raised.
"""

from __future__ import annotations


class HybridConnectionError(Exception):
    """Base class for hybrid connection operation failures."""

    pass


class MalformedIdentifierError(HybridConnectionError, ValueError):
    """Raised when a resource ID does not have the expected shape.

    Also a ValueError so that pydantic validators report it as a normal
    validation failure.
    """

    pass


class InvalidReferenceError(HybridConnectionError):
    """Raised when the relay reference cannot be resolved to a namespace and relay."""

    pass


class AlreadyExistsError(HybridConnectionError):
    """Raised when a new connection collides with an unmanaged remote one."""

    def __init__(self, resource_id: str) -> None:
        self.resource_id = resource_id
        super().__init__(
            f"A hybrid connection with the ID {resource_id!r} already exists. "
            "Import it before managing it with this operator."
        )


class PrecheckFailedError(HybridConnectionError):
    """Raised when the existence check before create fails for a reason other than not-found."""

    pass


class RemoteOperationFailedError(HybridConnectionError):
    """Raised when an Azure management call fails."""

    pass


class OperationTimeoutError(HybridConnectionError):
    """Raised when an operation exceeds its time budget."""

    def __init__(self, operation: str, timeout_seconds: float) -> None:
        self.operation = operation
        self.timeout_seconds = timeout_seconds
        super().__init__(f"{operation} timed out after {timeout_seconds}s")


class ReplacementRequiredError(HybridConnectionError):
    """Raised when an update would change a field that can only be set at creation."""

    def __init__(self, resource_id: str, fields: list[str]) -> None:
        self.resource_id = resource_id
        self.fields = fields
        super().__init__(
            f"Hybrid connection {resource_id!r} must be replaced to change: {', '.join(fields)}"
        )


class SecretUnavailableError(HybridConnectionError):
    """The send key value could not be recovered from the Service Bus namespace."""

    pass
