# /enconf/core/logger.py
import logging
import sys
import structlog
from structlog.contextvars import bind_contextvars

from enconf.core.config import LOG_LEVELS, get_settings


def configure_logging(level: str | None = None):
    level = (level or get_settings().LOG_LEVEL).upper()
    if level not in LOG_LEVELS:
        raise ValueError(f"Unknown log level: {level}")
    structlog.configure(
        processors=[
            structlog.contextvars.merge_contextvars,
            structlog.processors.add_log_level,
            structlog.processors.StackInfoRenderer(),
            structlog.dev.set_exc_info,
            structlog.processors.TimeStamper(fmt="iso", utc=True),
            structlog.processors.JSONRenderer(),
        ],
        wrapper_class=structlog.make_filtering_bound_logger(logging.getLevelName(level)),
        context_class=dict,
        logger_factory=structlog.PrintLoggerFactory(file=sys.stderr),
        cache_logger_on_first_use=False,
    )


def get_logger(name: str):
    return structlog.get_logger(name)


def bind_source(source: str):
    """Tags every subsequent event with the configuration source being loaded."""
    bind_contextvars(config_source=source)
