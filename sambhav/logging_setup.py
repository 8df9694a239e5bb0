"""
Structured Logging

Every service logs through structlog with a snake_case event name and
keyword context, e.g. ``logger.info("record_created", record_id=...)``.

configure_logging() is called once by the entrypoints (the API app and
the Streamlit dashboard). Library modules only call get_logger().
"""

import logging
import sys
from typing import Optional

import structlog

_CONFIGURED = False


def configure_logging(level: Optional[str] = None) -> None:
    """Configure stdlib logging and structlog exactly once."""
    global _CONFIGURED
    if _CONFIGURED:
        return

    if level is None:
        from sambhav.config import get_settings
        level = get_settings().app.log_level

    logging.basicConfig(
        format="%(message)s",
        stream=sys.stdout,
        level=getattr(logging, level.strip().upper(), logging.INFO),
    )

    structlog.configure(
        processors=[
            structlog.stdlib.filter_by_level,
            structlog.stdlib.add_logger_name,
            structlog.stdlib.add_log_level,
            structlog.stdlib.PositionalArgumentsFormatter(),
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.processors.StackInfoRenderer(),
            structlog.processors.format_exc_info,
            structlog.processors.UnicodeDecoder(),
            structlog.processors.JSONRenderer()
        ],
        wrapper_class=structlog.stdlib.BoundLogger,
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )
    _CONFIGURED = True


def get_logger(name: str) -> structlog.stdlib.BoundLogger:
    """Return a structlog logger bound to ``name``."""
    return structlog.get_logger(name)
