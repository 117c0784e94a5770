"""structlog configuration for the market sizing core.

Console rendering in development, JSON when ``APP_ENV=production`` (or
``json_output=True``).  Output goes to stderr so stdout stays free for
callers that pipe results.

Several adapters pass their API key as a query parameter, and both httpx
request logs and ``httpx.HTTPError`` messages carry the full URL.  Every
event therefore runs through :func:`redact_credentials` before rendering,
whether it comes from structlog or from a stdlib logger.
"""

import logging
import os
import re
import sys
from typing import Any

import structlog

REDACTED = "***"

# Query-string parameters that carry a provider credential.
_CREDENTIAL_PARAMS = ("api_key", "apikey", "key", "registrationkey")
# Event fields masked outright; "key" is left alone because cache keys use it.
_CREDENTIAL_FIELDS = frozenset({"api_key", "apikey", "registrationkey"})
_CREDENTIAL_IN_URL = re.compile(
    r"(?P<prefix>[?&](?:" + "|".join(_CREDENTIAL_PARAMS) + r")=)[^&\s'\"]+",
    re.IGNORECASE,
)

# Chatty at INFO: one line per HTTP request or SQL statement.
_NOISY_LOGGERS = ("httpx", "httpcore", "aiosqlite")


def _redact(value: Any) -> Any:
    if isinstance(value, str):
        return _CREDENTIAL_IN_URL.sub(lambda m: m.group("prefix") + REDACTED, value)
    return value


def redact_credentials(
    _logger: Any, _method_name: str, event_dict: structlog.types.EventDict
) -> structlog.types.EventDict:
    """Mask credential fields and credential query parameters in every value."""
    for field, value in list(event_dict.items()):
        if field.lower() in _CREDENTIAL_FIELDS or field.lower().endswith("_api_key"):
            event_dict[field] = REDACTED
        else:
            event_dict[field] = _redact(value)
    return event_dict


def configure_logging(log_level: str = "INFO", json_output: bool = False) -> structlog.BoundLogger:
    """Configure structlog and route stdlib logging through the same chain.

    Args:
        log_level: Logging level name (DEBUG, INFO, WARNING, ERROR).
        json_output: Force JSON output regardless of ``APP_ENV``.

    Returns:
        A configured structlog BoundLogger.
    """
    use_json = json_output or os.environ.get("APP_ENV", "development") == "production"
    level = log_level.upper()

    shared_processors: list[structlog.types.Processor] = [
        structlog.contextvars.merge_contextvars,
        structlog.processors.add_log_level,
        structlog.processors.StackInfoRenderer(),
        structlog.dev.set_exc_info,
        structlog.processors.TimeStamper(fmt="iso"),
        redact_credentials,
    ]
    renderer: structlog.types.Processor = (
        structlog.processors.JSONRenderer() if use_json else structlog.dev.ConsoleRenderer(colors=True)
    )

    structlog.configure(
        processors=[*shared_processors, renderer],
        wrapper_class=structlog.make_filtering_bound_logger(logging.getLevelName(level)),
        context_class=dict,
        logger_factory=structlog.PrintLoggerFactory(file=sys.stderr),
        cache_logger_on_first_use=True,
    )

    handler = logging.StreamHandler(sys.stderr)
    handler.setFormatter(
        structlog.stdlib.ProcessorFormatter(
            processors=[
                structlog.stdlib.ProcessorFormatter.remove_processors_meta,
                *shared_processors,
                renderer,
            ],
        )
    )
    root_logger = logging.getLogger()
    root_logger.handlers.clear()
    root_logger.addHandler(handler)
    root_logger.setLevel(level)

    # Per-request chatter is only wanted when debugging.
    for name in _NOISY_LOGGERS:
        logging.getLogger(name).setLevel(logging.DEBUG if level == "DEBUG" else logging.WARNING)

    return structlog.get_logger()


def get_logger(name: str) -> structlog.BoundLogger:
    """Return a structlog logger bound to *name*, configuring defaults on first use."""
    if not structlog.is_configured():
        configure_logging()
    return structlog.get_logger(logger_name=name)
