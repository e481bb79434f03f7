"""
structlog setup for the GROWT service.

Every event is a snake_case name plus key/value context, e.g.
``scope_readings_annotated scope=owner:user-1 readings=42`` from the
pipeline or ``iot_weight_ingested weight_id=7 rfid=RFID-0001`` from the
scale endpoint. The request middleware binds ``request_id`` through
contextvars, so engine events logged during a request carry it too.
"""

import logging
import sys
from typing import Any

import structlog
from structlog.types import EventDict, Processor

from growt import __version__
from growt.config import get_settings


def add_severity(logger: Any, method_name: str, event_dict: EventDict) -> EventDict:
    event_dict["severity"] = method_name.upper()
    return event_dict


def add_service(logger: Any, method_name: str, event_dict: EventDict) -> EventDict:
    """Tag events with the service name and version for log aggregation."""
    event_dict.setdefault("service", "growt")
    event_dict.setdefault("version", __version__)
    return event_dict


def configure_logging() -> None:
    """
    Route stdlib logging and structlog to stdout.

    JSON lines unless dev_mode is on or log_format is "console"; the
    console renderer drops colors under tests so captured output stays
    readable.
    """
    settings = get_settings()

    logging.basicConfig(
        format="%(message)s",
        stream=sys.stdout,
        level=getattr(logging, settings.log_level.upper(), logging.INFO),
    )

    if settings.log_format == "json" and not settings.dev_mode:
        renderer: Processor = structlog.processors.JSONRenderer()
    else:
        renderer = structlog.dev.ConsoleRenderer(colors=not settings.testing)

    structlog.configure(
        processors=[
            structlog.contextvars.merge_contextvars,
            structlog.stdlib.filter_by_level,
            structlog.stdlib.add_logger_name,
            structlog.stdlib.add_log_level,
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.processors.format_exc_info,
            add_severity,
            add_service,
            renderer,
        ],
        wrapper_class=structlog.stdlib.BoundLogger,
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )


def get_logger(name: str = __name__) -> structlog.BoundLogger:
    """Logger for routers and storage; engine modules call structlog.get_logger() directly."""
    return structlog.get_logger(name)
