"""
Structured logging for the pipeline API.

Development (app_env=dev) renders coloured console lines; every other
environment emits one JSON object per event carrying the bound request_id and
actor_id. Candidate identity values (email, phone) are masked before
rendering, so retention rules cover log sinks too.

Usage:
    from app.core.logging import configure_logging
    configure_logging(app_env="dev")

    import structlog
    logger = structlog.get_logger(__name__)
    logger.info("stage changed", entry_id=str(entry_id), to_stage="offer")

Stdlib loggers go through the same processors, so ``logging.getLogger``
output is structured as well.
"""

import logging
import sys

import structlog

IDENTITY_KEYS = frozenset({"email", "phone"})
REDACTED = "***"


def redact_identity(logger, method_name: str, event_dict: dict) -> dict:
    """
    Mask candidate identity values bound on a log event.

    Example:
        >>> redact_identity(None, "info", {"event": "dup", "email": "jo@x.com"})
        {'event': 'dup', 'email': '***'}
    """
    for key in IDENTITY_KEYS & event_dict.keys():
        if event_dict[key]:
            event_dict[key] = REDACTED
    return event_dict


def configure_logging(app_env: str = "dev") -> None:
    """
    Configure structlog with a stdlib bridge so uvicorn and SQLAlchemy
    loggers share the same output format.

    Args:
        app_env: "dev" gives ConsoleRenderer, anything else JSONRenderer;
            "test" also raises the root level to WARNING.
    """
    shared_processors: list = [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.add_log_level,
        structlog.stdlib.PositionalArgumentsFormatter(),
        structlog.processors.TimeStamper(fmt="iso", utc=True),
        structlog.processors.StackInfoRenderer(),
        redact_identity,
    ]

    if app_env == "dev":
        renderer = structlog.dev.ConsoleRenderer()
    else:
        renderer = structlog.processors.JSONRenderer()

    structlog.configure(
        processors=shared_processors + [structlog.stdlib.ProcessorFormatter.wrap_for_formatter],
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )

    formatter = structlog.stdlib.ProcessorFormatter(
        processor=renderer,
        foreign_pre_chain=shared_processors,
    )

    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(formatter)

    root_logger = logging.getLogger()
    root_logger.handlers = [handler]
    root_logger.setLevel(logging.WARNING if app_env == "test" else logging.INFO)

    if app_env != "dev":
        logging.getLogger("uvicorn.access").setLevel(logging.WARNING)
        logging.getLogger("sqlalchemy.engine").setLevel(logging.WARNING)
