"""structlog setup for the achievement engine.

Engine modules log through stdlib loggers under ``cosecha``; the event bus
and Redis bridges use structlog directly. Both end up on the root handler.
"""

import logging

import structlog

from cosecha.config import Settings

# Chatty below WARNING; raised to INFO only in debug mode
NOISY_LOGGERS = ("sqlalchemy.engine", "aiosqlite")


def _select_renderer(log_format: str) -> structlog.types.Processor:
    if log_format == "console":
        return structlog.dev.ConsoleRenderer()
    return structlog.processors.JSONRenderer()


def setup_logging(settings: Settings) -> None:
    """Configure structlog and the stdlib levels from ``settings``."""
    structlog.configure(
        processors=[
            structlog.contextvars.merge_contextvars,
            structlog.stdlib.add_log_level,
            structlog.stdlib.add_logger_name,
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.processors.format_exc_info,
            _select_renderer(settings.log_format),
        ],
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )

    engine_level = getattr(logging, settings.log_level.upper(), logging.INFO)
    logging.basicConfig(level=engine_level)
    logging.getLogger("cosecha").setLevel(engine_level)

    noisy_level = logging.INFO if settings.debug else logging.WARNING
    for name in NOISY_LOGGERS:
        logging.getLogger(name).setLevel(noisy_level)
