"""
Structured logging configuration using structlog.

Every log line, whether emitted through structlog or the stdlib ``logging``
module, is rendered as one JSON object carrying a timestamp, the level, the
logger name and the orchestrator's service name. Saga code binds tenant
context (``tenant``, ``namespace``, ``saga``) onto its loggers so a single
provisioning or deletion can be followed across collaborators.
"""

from __future__ import annotations

import logging
import sys
from typing import Any, Optional, TextIO

import structlog

# ======================================================================
# Constants
# ======================================================================

SERVICE_NAME: str = "tenant-orchestrator"

# Chatty third-party loggers that only add noise at INFO.
_QUIET_LOGGERS: tuple[str, ...] = ("kubernetes.client.rest", "urllib3.connectionpool")


# ======================================================================
# Custom processors
# ======================================================================


def add_service_name(logger: Any, method_name: str, event_dict: dict[str, Any]) -> dict[str, Any]:
    """Inject the service name into every log event."""
    event_dict.setdefault("service", SERVICE_NAME)
    return event_dict


# ======================================================================
# Setup
# ======================================================================


def setup_logging(log_level: str = "INFO", stream: Optional[TextIO] = None) -> None:
    """
    Configure structlog and the stdlib logging bridge for JSON output.

    Call once when the orchestrator starts (``ServiceContainer.start``).

    Parameters
    ----------
    log_level:
        Minimum severity level as a string (``DEBUG``, ``INFO``, ``WARNING``,
        ``ERROR``, ``CRITICAL``). Unknown values fall back to ``INFO``.
    stream:
        Destination for rendered lines; defaults to ``sys.stdout``.
    """

    numeric_level = getattr(logging, log_level.upper(), logging.INFO)

    shared_processors: list[structlog.types.Processor] = [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_log_level,
        structlog.stdlib.add_logger_name,
        add_service_name,  # type: ignore[list-item]
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.UnicodeDecoder(),
    ]

    structlog.configure(
        processors=[
            *shared_processors,
            structlog.stdlib.ProcessorFormatter.wrap_for_formatter,
        ],
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )

    formatter = structlog.stdlib.ProcessorFormatter(
        foreign_pre_chain=shared_processors,
        processors=[
            structlog.stdlib.ProcessorFormatter.remove_processors_meta,
            structlog.processors.format_exc_info,
            structlog.processors.JSONRenderer(),
        ],
    )

    handler = logging.StreamHandler(stream or sys.stdout)
    handler.setFormatter(formatter)

    root_logger = logging.getLogger()
    root_logger.handlers.clear()
    root_logger.addHandler(handler)
    root_logger.setLevel(numeric_level)

    for name in _QUIET_LOGGERS:
        logging.getLogger(name).setLevel(max(numeric_level, logging.WARNING))


# ======================================================================
# Logger factory
# ======================================================================


def get_logger(name: str, **context: Any) -> structlog.stdlib.BoundLogger:
    """
    Return a structlog logger for *name*, optionally pre-bound with context::

        log = get_logger(__name__, saga="provision", tenant="acme")
        log.info("namespace_created", namespace="store-acme")
    """
    logger: structlog.stdlib.BoundLogger = structlog.get_logger(name)
    if context:
        logger = logger.bind(**context)
    return logger
