"""Configuration management with validation.

Timeouts and feature switches are validated at load time so a misconfigured
operator fails before it talks to Azure.
"""

from __future__ import annotations

import os
import re
from dataclasses import dataclass
from enum import Enum


class DeletePolicy(str, Enum):
    """How a not-found answer to a delete call is treated."""

    # Absence is success, every other failure is fatal
    IDEMPOTENT = "idempotent"
    # Not-found is fatal, any other error is logged and swallowed
    LEGACY = "legacy"


class ConfigurationError(Exception):
    """Raised when configuration validation fails."""

    pass


# Operation budgets (seconds)
DEFAULT_CREATE_TIMEOUT_SECONDS = 30 * 60
DEFAULT_READ_TIMEOUT_SECONDS = 5 * 60
DEFAULT_UPDATE_TIMEOUT_SECONDS = 30 * 60
DEFAULT_DELETE_TIMEOUT_SECONDS = 30 * 60

MIN_TIMEOUT_SECONDS = 1
MAX_TIMEOUT_SECONDS = 24 * 60 * 60

MAX_SPEC_FILE_SIZE_BYTES = 1024 * 1024  # 1MB max spec file

VALID_SUBSCRIPTION_ID_PATTERN = r"^[0-9a-f]{8}-[0-9a-f]{4}-[0-9a-f]{4}-[0-9a-f]{4}-[0-9a-f]{12}$"


@dataclass(frozen=True)
class Config:
    """Operator configuration loaded from environment variables.

    All fields are validated at construction time. Invalid configurations
    raise ConfigurationError immediately rather than failing at runtime.
    """

    subscription_id: str

    # User-assigned identity; None selects the system-assigned identity
    client_id: str | None = None

    create_timeout_seconds: int = DEFAULT_CREATE_TIMEOUT_SECONDS
    read_timeout_seconds: int = DEFAULT_READ_TIMEOUT_SECONDS
    update_timeout_seconds: int = DEFAULT_UPDATE_TIMEOUT_SECONDS
    delete_timeout_seconds: int = DEFAULT_DELETE_TIMEOUT_SECONDS

    # Refuse to adopt connections that already exist but were never managed here
    import_conflict_check: bool = True

    delete_policy: DeletePolicy = DeletePolicy.IDEMPOTENT

    def __post_init__(self) -> None:
        """Validate configuration after initialization."""
        errors: list[str] = []

        if not self.subscription_id:
            errors.append("AZURE_SUBSCRIPTION_ID is required")
        elif not re.match(VALID_SUBSCRIPTION_ID_PATTERN, self.subscription_id.lower()):
            errors.append(f"AZURE_SUBSCRIPTION_ID must be a valid GUID: {self.subscription_id}")

        for env_name, value in (
            ("CREATE_TIMEOUT", self.create_timeout_seconds),
            ("READ_TIMEOUT", self.read_timeout_seconds),
            ("UPDATE_TIMEOUT", self.update_timeout_seconds),
            ("DELETE_TIMEOUT", self.delete_timeout_seconds),
        ):
            if not (MIN_TIMEOUT_SECONDS <= value <= MAX_TIMEOUT_SECONDS):
                errors.append(
                    f"{env_name} must be between {MIN_TIMEOUT_SECONDS} "
                    f"and {MAX_TIMEOUT_SECONDS} seconds: {value}"
                )

        if errors:
            error_msg = "Configuration validation failed:\n  - " + "\n  - ".join(errors)
            raise ConfigurationError(error_msg)

    @classmethod
    def from_env(cls) -> Config:
        """Load configuration from environment variables.

        Environment Variables:
            AZURE_SUBSCRIPTION_ID: Subscription owning the App Service sites
            AZURE_CLIENT_ID: Client ID of a user-assigned managed identity
            CREATE_TIMEOUT: Budget for creating a connection (default: 1800)
            READ_TIMEOUT: Budget for each read call (default: 300)
            UPDATE_TIMEOUT: Budget for updating a connection (default: 1800)
            DELETE_TIMEOUT: Budget for deleting a connection (default: 1800)
            IMPORT_CONFLICT_CHECK: If "false", skip the existing-object check
                on create (default: true)
            DELETE_POLICY: "idempotent" or "legacy" (default: idempotent)
        """

        def get_int(key: str, default: int) -> int:
            value = os.environ.get(key)
            if value is None:
                return default
            try:
                return int(value)
            except ValueError as e:
                raise ConfigurationError(f"{key} must be an integer: {value}") from e

        def get_bool(key: str, default: bool) -> bool:
            value = os.environ.get(key, "").lower()
            if not value:
                return default
            return value in ("true", "1", "yes")

        def get_delete_policy(value: str | None) -> DeletePolicy:
            if not value:
                return DeletePolicy.IDEMPOTENT
            try:
                return DeletePolicy(value.lower())
            except ValueError as e:
                valid = [p.value for p in DeletePolicy]
                raise ConfigurationError(f"DELETE_POLICY must be one of {valid}: {value}") from e

        return cls(
            subscription_id=os.environ.get("AZURE_SUBSCRIPTION_ID", ""),
            client_id=os.environ.get("AZURE_CLIENT_ID") or None,
            create_timeout_seconds=get_int("CREATE_TIMEOUT", DEFAULT_CREATE_TIMEOUT_SECONDS),
            read_timeout_seconds=get_int("READ_TIMEOUT", DEFAULT_READ_TIMEOUT_SECONDS),
            update_timeout_seconds=get_int("UPDATE_TIMEOUT", DEFAULT_UPDATE_TIMEOUT_SECONDS),
            delete_timeout_seconds=get_int("DELETE_TIMEOUT", DEFAULT_DELETE_TIMEOUT_SECONDS),
            import_conflict_check=get_bool("IMPORT_CONFLICT_CHECK", True),
            delete_policy=get_delete_policy(os.environ.get("DELETE_POLICY")),
        )
