"""Container entry point: apply one hybrid connection spec and exit.

Environment (in addition to Config.from_env):
    SPEC_FILE: Path to the hybrid connection YAML spec (default: /specs/hybrid-connection.yaml)
    RESOURCE_ID: Identifier of the connection when it is already managed.
        Leave unset for a new connection.
"""

from __future__ import annotations

import asyncio
import json
import logging
import os
import sys
from datetime import UTC, datetime
from pathlib import Path

from .clients import build_clients
from .config import Config, ConfigurationError
from .errors import HybridConnectionError
from .resource import HybridConnectionResource
from .security import SecretlessViolationError
from .spec_loader import SpecLoadError, load_spec

DEFAULT_SPEC_FILE = "/specs/hybrid-connection.yaml"

# LogRecord attributes that are not user supplied `extra` fields
_RESERVED_RECORD_ATTRS = frozenset(
    (
        "name",
        "msg",
        "args",
        "created",
        "filename",
        "funcName",
        "levelname",
        "levelno",
        "lineno",
        "module",
        "msecs",
        "pathname",
        "process",
        "processName",
        "relativeCreated",
        "stack_info",
        "exc_info",
        "exc_text",
        "thread",
        "threadName",
        "taskName",
        "message",
    )
)


class JsonFormatter(logging.Formatter):
    """Format logs as JSON for structured logging."""

    def format(self, record: logging.LogRecord) -> str:
        log_data = {
            "timestamp": datetime.now(UTC).isoformat().replace("+00:00", "Z"),
            "level": record.levelname,
            "message": record.getMessage(),
            "logger": record.name,
        }

        for key, value in record.__dict__.items():
            if key not in _RESERVED_RECORD_ATTRS:
                log_data[key] = value

        if record.exc_info:
            log_data["exception"] = self.formatException(record.exc_info)

        return json.dumps(log_data, default=str)


def setup_logging(level: int = logging.INFO) -> None:
    """Configure structured logging with JSON output."""
    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(JsonFormatter())

    root_logger = logging.getLogger()
    root_logger.addHandler(handler)
    root_logger.setLevel(level)

    # Reduce noise from Azure SDK
    logging.getLogger("azure").setLevel(logging.WARNING)
    logging.getLogger("urllib3").setLevel(logging.WARNING)


async def main() -> int:
    """Apply the spec named by SPEC_FILE.

    Returns:
        Exit code: 0 on success, 1 on failure, 2 on a security violation.
    """
    setup_logging()
    logger = logging.getLogger(__name__)

    try:
        config = Config.from_env()
    except ConfigurationError as e:
        logger.error("Configuration error", extra={"error": str(e)})
        return 1

    spec_path = Path(os.environ.get("SPEC_FILE", DEFAULT_SPEC_FILE))
    resource_id = os.environ.get("RESOURCE_ID") or None

    try:
        spec = load_spec(spec_path)
    except SpecLoadError as e:
        logger.error("Spec loading failed", extra={"error": str(e), "spec_file": str(spec_path)})
        return 1

    try:
        clients = build_clients(config)
    except SecretlessViolationError as e:
        logger.critical("Security violation", extra={"error": str(e)})
        return 2

    resource = HybridConnectionResource(clients.web, clients.servicebus, config)

    try:
        result = await resource.create_or_update(spec, resource_id)
    except HybridConnectionError as e:
        logger.error(
            "Failed to apply hybrid connection",
            extra={"error": str(e), "error_type": type(e).__name__},
        )
        return 1

    logger.info(
        "Hybrid connection applied",
        extra={
            "resource_id": result.resource_id,
            "send_key_recovered": result.secret_error is None,
        },
    )
    return 0


def run() -> None:
    """Entry point for the container."""
    sys.exit(asyncio.run(main()))


if __name__ == "__main__":
    run()
