"""structlog setup tagging each event with the request id and image identifier.

Logs go to stderr so that CLI output on stdout stays machine readable.
"""

import logging
import sys
import uuid
from collections.abc import MutableMapping
from contextvars import ContextVar
from typing import Any, cast

import structlog
from structlog.types import Processor

from iiifserve.config import settings

_request_id: ContextVar[str | None] = ContextVar("request_id", default=None)
_identifier: ContextVar[str | None] = ContextVar("identifier", default=None)


def new_request_id() -> str:
    """Generate a fresh request correlation id."""
    return uuid.uuid4().hex


def set_correlation_context(
    request_id: str | None = None,
    identifier: str | None = None,
) -> None:
    """Bind the request id and/or image identifier; None leaves a value as is."""
    if request_id is not None:
        _request_id.set(request_id)
    if identifier is not None:
        _identifier.set(identifier)


def clear_correlation_context() -> None:
    """Forget the current request."""
    _request_id.set(None)
    _identifier.set(None)


def _add_correlation_ids(
    logger: logging.Logger,
    method_name: str,
    event_dict: MutableMapping[str, Any],
) -> MutableMapping[str, Any]:
    _ = logger, method_name
    request_id = _request_id.get()
    identifier = _identifier.get()

    if request_id is not None:
        event_dict["request_id"] = request_id
    if identifier is not None:
        event_dict["identifier"] = identifier

    return event_dict


def configure_logging(
    level: str | None = None,
    log_format: str | None = None,
) -> None:
    """Configure structlog; arguments default to settings.LOG_LEVEL / LOG_FORMAT."""
    level = level or settings.LOG_LEVEL
    log_format = log_format or settings.LOG_FORMAT

    shared_processors: list[Processor] = [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_log_level,
        structlog.stdlib.add_logger_name,
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.UnicodeDecoder(),
        _add_correlation_ids,
    ]

    if log_format == "json":
        processors: list[Processor] = [
            *shared_processors,
            structlog.processors.format_exc_info,
            structlog.processors.JSONRenderer(),
        ]
    else:
        processors = [
            *shared_processors,
            structlog.dev.ConsoleRenderer(colors=True),
        ]

    structlog.configure(
        processors=processors,
        wrapper_class=structlog.stdlib.BoundLogger,
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )

    logging.basicConfig(
        format="%(message)s",
        stream=sys.stderr,
        level=getattr(logging, level.upper()),
    )


def get_logger(name: str | None = None) -> structlog.stdlib.BoundLogger:
    return cast(structlog.stdlib.BoundLogger, structlog.get_logger(name))
