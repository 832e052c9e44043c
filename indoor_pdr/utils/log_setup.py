"""
Structured logging configuration for scripts and examples.

Library modules only call ``structlog.get_logger(__name__)``; nothing is
configured on import. Command-line entry points call configure_logging() once.
"""

import logging
import sys
from typing import List

import structlog
from structlog.types import Processor


def configure_logging(level: str = "INFO", json_output: bool = False) -> structlog.BoundLogger:
    """
    Configure structlog on top of the standard logging module.

    Args:
        level: Standard logging level name ('DEBUG', 'INFO', ...).
        json_output: Render JSON lines instead of the console renderer.

    Returns:
        Logger bound to the 'indoor_pdr' name.
    """
    logging.basicConfig(
        format="%(message)s",
        stream=sys.stdout,
        level=getattr(logging, level.upper()),
    )

    processors: List[Processor] = [
        structlog.stdlib.filter_by_level,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.add_log_level,
        structlog.stdlib.PositionalArgumentsFormatter(),
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
    ]
    if json_output:
        processors.append(structlog.processors.JSONRenderer())
    else:
        processors.append(structlog.dev.ConsoleRenderer())

    structlog.configure(
        processors=processors,
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )

    return structlog.get_logger("indoor_pdr")
