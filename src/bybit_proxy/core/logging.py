"""Logging configuration and utilities.

This module provides structured logging using structlog with support for
JSON and text formats.
"""

import logging
import logging.handlers
import sys
from pathlib import Path
from typing import Any, Dict

import structlog

from .config import Settings

SENSITIVE_KEYS = frozenset({
    "api_key",
    "secret",
    "sign",
    "signature",
    "token",
    "proxy_token",
    "authorization",
    "x-bapi-api-key",
    "x-bapi-sign",
    "x-proxy-token",
})

REDACTED = "***"


def setup_logging(settings: Settings) -> None:
    """Setup structured logging configuration.

    Args:
        settings: Application settings.
    """
    level = getattr(logging, settings.log_level)
    logging.basicConfig(format="%(message)s", stream=sys.stdout, level=level)

    if settings.log_file:
        logging.getLogger().addHandler(_rotating_file_handler(settings, level))

    processors = [
        structlog.contextvars.merge_contextvars,
        structlog.processors.add_log_level,
        redact_sensitive,
        structlog.processors.StackInfoRenderer(),
    ]

    if settings.log_format == "json":
        processors.extend([
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.processors.format_exc_info,
            structlog.processors.JSONRenderer(),
        ])
    else:
        processors.extend([
            structlog.processors.TimeStamper(fmt="%Y-%m-%d %H:%M:%S"),
            structlog.dev.ConsoleRenderer(),
        ])

    structlog.configure(
        processors=processors,
        wrapper_class=structlog.make_filtering_bound_logger(level),
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )


def _rotating_file_handler(settings: Settings, level: int) -> logging.Handler:
    log_path = Path(settings.log_file)
    log_path.parent.mkdir(parents=True, exist_ok=True)

    handler = logging.handlers.RotatingFileHandler(
        filename=log_path,
        maxBytes=_parse_size(settings.log_max_size),
        backupCount=settings.log_backup_count,
        encoding="utf-8",
    )
    handler.setLevel(level)
    return handler


def redact_sensitive(logger: Any, method_name: str, event_dict: Dict[str, Any]) -> Dict[str, Any]:
    """Mask credential material before it reaches a renderer.

    Top-level keys and keys of nested header mappings are both checked.
    """
    for key, value in list(event_dict.items()):
        if key.lower() in SENSITIVE_KEYS and value:
            event_dict[key] = REDACTED
        elif isinstance(value, dict):
            event_dict[key] = {
                k: (REDACTED if str(k).lower() in SENSITIVE_KEYS and v else v)
                for k, v in value.items()
            }
    return event_dict


_SIZE_UNITS = {"KB": 1024, "MB": 1024 ** 2, "GB": 1024 ** 3}


def _parse_size(size_str: str) -> int:
    """Convert ``LOG_MAX_SIZE`` values such as '10MB' or '2048' to bytes."""
    size_str = size_str.upper().strip()
    multiplier = _SIZE_UNITS.get(size_str[-2:])
    if multiplier is None:
        return int(size_str)
    return int(size_str[:-2]) * multiplier
