"""Structured logging — console renderer in dev, JSON lines elsewhere.

Events go to stderr; stdout belongs to the operator CLI.  Every event
passes through :func:`redact_secrets` so signing keys and bearer tokens
never reach a handler, whatever a caller binds.
"""

from __future__ import annotations

import logging
import sys
from typing import Any

import structlog

from config.settings import settings

REDACTED = "***"

# Compared lower-cased against event keys and nested header names.
SECRET_KEYS = frozenset(
    {
        "private_key",
        "wallet_private_key",
        "hydro-authentication",
        "authorization",
        "signature_key",
    }
)

_configured = False


def _scrub(value: Any) -> Any:
    if isinstance(value, dict):
        return {
            k: REDACTED if str(k).lower() in SECRET_KEYS else _scrub(v)
            for k, v in value.items()
        }
    return value


def redact_secrets(
    logger: Any, method_name: str, event_dict: structlog.types.EventDict
) -> structlog.types.EventDict:
    """structlog processor masking secret-bearing keys, including inside dicts."""
    for key in list(event_dict):
        if key.lower() in SECRET_KEYS:
            event_dict[key] = REDACTED
        elif isinstance(event_dict[key], dict):
            event_dict[key] = _scrub(event_dict[key])
    return event_dict


def setup_logging(force: bool = False) -> None:
    """Configure structlog on top of stdlib logging.

    Runs once per process unless *force* is set.
    """
    global _configured
    if _configured and not force:
        return

    pre_chain: list[structlog.types.Processor] = [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_log_level,
        structlog.stdlib.add_logger_name,
        redact_secrets,
        structlog.processors.TimeStamper(fmt="iso"),
    ]

    if settings.APP_ENV == "dev":
        renderer: structlog.types.Processor = structlog.dev.ConsoleRenderer(colors=sys.stderr.isatty())
    else:
        renderer = structlog.processors.JSONRenderer()

    structlog.configure(
        processors=[*pre_chain, structlog.stdlib.ProcessorFormatter.wrap_for_formatter],
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )

    handler = logging.StreamHandler(sys.stderr)
    handler.setFormatter(
        structlog.stdlib.ProcessorFormatter(
            foreign_pre_chain=pre_chain,
            processors=[structlog.stdlib.ProcessorFormatter.remove_processors_meta, renderer],
        )
    )

    root = logging.getLogger()
    root.handlers.clear()
    root.addHandler(handler)
    root.setLevel(settings.LOG_LEVEL.upper())
    # request lines come from data.http_client
    logging.getLogger("httpx").setLevel(logging.WARNING)
    _configured = True
