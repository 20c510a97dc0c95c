"""Structured logging configuration with structlog.

Provider credentials travel as query params (``token=``, ``apikey=``), so any
URL that ends up in an exception message would leak them. ``redact_secrets``
masks those params in every string value before rendering.
"""

import logging
import re
import sys
from typing import TYPE_CHECKING, Any, TextIO

import structlog

if TYPE_CHECKING:
    from ivcrush.config import Settings

_SECRET_PARAM = re.compile(r"(?i)\b(token|apikey|api_key|crumb)=[^&\s'\"]+")


def redact_secrets(
    _logger: Any, _method: str, event_dict: structlog.types.EventDict
) -> structlog.types.EventDict:
    """Mask credential query params in string values."""
    for key, value in event_dict.items():
        if isinstance(value, str) and "=" in value:
            event_dict[key] = _SECRET_PARAM.sub(r"\1=***", value)
    return event_dict


def setup_logging(settings: "Settings", stream: TextIO | None = None) -> None:
    """Configure structlog: console output in development, JSON lines elsewhere.

    Logs go to stdout unless ``stream`` is given (the CLI keeps stdout for JSON).
    """
    stream = stream or sys.stdout
    level = logging.DEBUG if settings.debug else getattr(logging, settings.log_level)

    processors: list[structlog.types.Processor] = [
        structlog.contextvars.merge_contextvars,
        structlog.processors.add_log_level,
        structlog.processors.TimeStamper(fmt="iso", utc=True),
        redact_secrets,
    ]
    if settings.env == "development":
        processors.append(structlog.dev.ConsoleRenderer(colors=True))
    else:
        processors += [
            structlog.processors.dict_tracebacks,
            structlog.processors.JSONRenderer(),
        ]

    structlog.configure(
        processors=processors,
        wrapper_class=structlog.make_filtering_bound_logger(level),
        context_class=dict,
        logger_factory=structlog.PrintLoggerFactory(file=stream),
        cache_logger_on_first_use=True,
    )

    # uvicorn keeps its own stdlib loggers
    logging.basicConfig(format="%(message)s", level=level, stream=stream, force=True)
    # Request lines carry the credential params verbatim
    for noisy in ("httpx", "httpcore"):
        logging.getLogger(noisy).setLevel(logging.WARNING)


def get_logger(name: str | None = None) -> structlog.stdlib.BoundLogger:
    """Get a structlog logger instance."""
    logger: structlog.stdlib.BoundLogger = structlog.get_logger(name)
    return logger
