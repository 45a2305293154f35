"""Structured logging configuration for the Ledgerly assistant."""

import logging
import sys
from collections.abc import MutableMapping
from typing import Any, Literal

import structlog

from ledgerly.config.settings import get_settings

# Event keys whose values never reach the log output
REDACTED_KEYS = frozenset({"access_token", "api_key", "apikey", "authorization", "password"})


def redact_secrets(
    logger: Any, method_name: str, event_dict: MutableMapping[str, Any]
) -> MutableMapping[str, Any]:
    """Mask secret values, including inside dict values such as tool arguments."""
    for key, value in event_dict.items():
        if key.lower() in REDACTED_KEYS:
            event_dict[key] = "***"
        elif isinstance(value, dict):
            event_dict[key] = {
                k: "***" if str(k).lower() in REDACTED_KEYS else v for k, v in value.items()
            }
    return event_dict


def configure_logging(
    level: Literal["DEBUG", "INFO", "WARNING", "ERROR"] | None = None,
    format: Literal["json", "console"] | None = None,
) -> None:
    """Route structlog through stdlib logging with a JSON or console renderer.

    Args:
        level: Log level. Defaults to ``LOG_LEVEL``.
        format: ``json`` for log shipping, ``console`` for local runs.
            Defaults to ``LOG_FORMAT``.
    """
    if level is None or format is None:
        settings = get_settings()
        level = level or settings.log_level
        format = format or settings.log_format

    logging.basicConfig(format="%(message)s", stream=sys.stdout, level=getattr(logging, level))

    renderer: structlog.types.Processor
    if format == "json":
        renderer = structlog.processors.JSONRenderer()
    else:
        renderer = structlog.dev.ConsoleRenderer(
            colors=sys.stdout.isatty(),
            exception_formatter=structlog.dev.plain_traceback,
        )

    structlog.configure(
        processors=[
            structlog.contextvars.merge_contextvars,
            structlog.stdlib.filter_by_level,
            structlog.stdlib.add_logger_name,
            structlog.stdlib.add_log_level,
            structlog.processors.TimeStamper(fmt="iso"),
            redact_secrets,
            structlog.processors.StackInfoRenderer(),
            structlog.processors.format_exc_info,
            renderer,
        ],
        wrapper_class=structlog.stdlib.BoundLogger,
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )
