import logging
from collections.abc import MutableMapping
from typing import Any

import structlog

# Event fields that may carry credentials; their values never reach a log sink
REDACTED_FIELDS = frozenset({"secret_key", "session_token", "signature", "password", "token"})


def redact_secrets(_logger: Any, _method: str, event_dict: MutableMapping[str, Any]) -> MutableMapping[str, Any]:
    for key in REDACTED_FIELDS.intersection(event_dict):
        event_dict[key] = "***"
    return event_dict


def setup_logging(debug: bool) -> None:
    """Route structlog events through stdlib logging.

    Debug mode renders for the console; otherwise one JSON object per line.
    """
    logging.basicConfig(level=logging.DEBUG if debug else logging.INFO, format="%(message)s")

    # httpx logs every request line at INFO, query strings included
    for name in ("httpx", "httpcore"):
        logging.getLogger(name).setLevel(logging.WARNING)

    processors: list[structlog.types.Processor] = [
        structlog.stdlib.filter_by_level,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.add_log_level,
        structlog.processors.TimeStamper(fmt="iso", utc=True),
        redact_secrets,
        structlog.processors.format_exc_info,
        structlog.dev.ConsoleRenderer() if debug else structlog.processors.JSONRenderer(),
    ]

    structlog.configure(
        processors=processors,
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )
