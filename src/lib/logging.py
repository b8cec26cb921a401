"""
Logging setup for the Social Battery service.

structlog renders every record, including plain `logging.getLogger(__name__)`
calls from the core modules:
- dev mode: coloured console lines
- otherwise: one JSON object per line, exceptions rendered as text

Usage:
    from src.lib.logging import setup_logging

    setup_logging(settings)  # once, before create_app()
"""

from __future__ import annotations

import logging
import os
import sys
from typing import TYPE_CHECKING

import structlog

if TYPE_CHECKING:
    from src.config.battery import BatterySettings

QUIET_LOGGERS: tuple[str, ...] = ("httpx", "httpcore", "openai", "uvicorn.access")


def _resolve_level(level: str | None) -> int:
    name = (level or os.environ.get("LOG_LEVEL", "INFO")).upper()
    resolved = logging.getLevelName(name)
    return resolved if isinstance(resolved, int) else logging.INFO


def setup_logging(settings: BatterySettings | None = None, level: str | None = None) -> logging.Handler:
    """
    Route structlog and stdlib logging through one stderr handler.

    Args:
        settings: Source of dev_mode (SOCIAL_BATTERY_DEV_MODE is read if None)
        level: Root level name (LOG_LEVEL, default INFO, if None)

    Returns:
        The installed root handler
    """
    if settings is not None:
        dev_mode = settings.dev_mode
    else:
        dev_mode = os.environ.get("SOCIAL_BATTERY_DEV_MODE") == "1"

    shared_processors: list[structlog.types.Processor] = [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.add_log_level,
        structlog.processors.TimeStamper(fmt="iso", utc=True),
        structlog.processors.StackInfoRenderer(),
    ]

    renderer: structlog.types.Processor
    if dev_mode:
        renderer = structlog.dev.ConsoleRenderer()
    else:
        shared_processors.append(structlog.processors.format_exc_info)
        renderer = structlog.processors.JSONRenderer()

    structlog.configure(
        processors=[
            *shared_processors,
            structlog.stdlib.ProcessorFormatter.wrap_for_formatter,
        ],
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )

    handler = logging.StreamHandler(sys.stderr)
    handler.setFormatter(structlog.stdlib.ProcessorFormatter(
        foreign_pre_chain=shared_processors,
        processors=[
            structlog.stdlib.ProcessorFormatter.remove_processors_meta,
            renderer,
        ],
    ))

    root_logger = logging.getLogger()
    root_logger.handlers.clear()
    root_logger.addHandler(handler)
    root_logger.setLevel(_resolve_level(level))

    for name in QUIET_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)
    return handler
