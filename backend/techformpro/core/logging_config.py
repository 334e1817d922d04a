"""Structured logging configuration using structlog.

Modules keep calling ``structlog.get_logger()``; this only decides the
level filter and the output format. JSON in production, readable console
output everywhere else.
"""

import logging

import structlog


def configure_logging(level: str = "INFO", *, environment: str = "development") -> None:
    """Configure structlog processors and level filtering.

    Args:
        level: Minimum level name (e.g. "INFO", "DEBUG").
        environment: "production" selects the JSON renderer.
    """
    processors = [
        structlog.contextvars.merge_contextvars,
        structlog.processors.add_log_level,
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
    ]
    if environment == "production":
        processors += [
            structlog.processors.format_exc_info,
            structlog.processors.JSONRenderer(),
        ]
    else:
        # ConsoleRenderer formats exceptions itself
        processors.append(structlog.dev.ConsoleRenderer())

    structlog.configure(
        processors=processors,
        wrapper_class=structlog.make_filtering_bound_logger(
            logging.getLevelName(level.upper())
        ),
    )
