"""
Logging setup using structlog
"""
import logging
import sys
from typing import Any

import structlog
from structlog.types import EventDict


def add_severity_level(_logger: Any, method_name: str, event_dict: EventDict) -> EventDict:
    """Add a severity field for log collectors that expect one"""
    event_dict["severity"] = "WARNING" if method_name == "warn" else method_name.upper()
    return event_dict


def setup_logging(log_level: str = "INFO", is_debug: bool = False) -> None:
    """
    Configure structured logging

    Args:
        log_level: Logging level (DEBUG, INFO, WARNING, ERROR)
        is_debug: Debug mode, console renderer instead of JSON
    """
    level = getattr(logging, log_level.upper())

    logging.basicConfig(
        format="%(message)s",
        stream=sys.stdout,
        level=level,
    )

    processors = [
        structlog.contextvars.merge_contextvars,
        structlog.processors.add_log_level,
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
    ]

    if is_debug:
        processors.append(structlog.dev.ConsoleRenderer())
    else:
        processors.extend([
            add_severity_level,
            structlog.processors.format_exc_info,
            structlog.processors.JSONRenderer()
        ])

    structlog.configure(
        processors=processors,
        wrapper_class=structlog.make_filtering_bound_logger(level),
        context_class=dict,
        logger_factory=structlog.PrintLoggerFactory(file=sys.stdout),
        cache_logger_on_first_use=True,
    )


def get_logger(name: str) -> Any:
    """
    Get a logger for a module

    Args:
        name: Module name

    Returns:
        Configured structlog logger
    """
    return structlog.get_logger(name)
