"""
Logging setup for pipetunnel.

All modules log through loguru. Call configure_logging() once at startup,
then obtain a component-bound logger with get_logger(__name__).
"""

import sys

from loguru import logger

from pipetunnel.models.enums import LogLevel

LOG_FORMAT = (
    "<green>{time:YYYY-MM-DD HH:mm:ss.SSS}</green> | "
    "<level>{level: <8}</level> | "
    "<cyan>{extra[component]}</cyan> - <level>{message}</level>"
)

_LEVEL_MAP = {
    LogLevel.FULL: "TRACE",
    LogLevel.DEBUG: "DEBUG",
    LogLevel.INFO: "INFO",
    LogLevel.WARNING: "WARNING",
}

# Records logged before configure_logging() still need a component
logger.configure(extra={"component": "pipetunnel"})


def configure_logging(level: LogLevel = LogLevel.INFO) -> None:
    """
    Replace loguru's default sink with a single stderr sink.

    Args:
        level: Verbosity. FULL also turns on loguru's backtrace/diagnose.
    """
    full = level == LogLevel.FULL
    logger.remove()
    logger.add(
        sys.stderr,
        level=_LEVEL_MAP.get(level, "INFO"),
        format=LOG_FORMAT,
        backtrace=full,
        diagnose=full,
        enqueue=False,
    )


def get_logger(name: str):
    """Return the loguru logger bound to a component name."""
    return logger.bind(component=name.removeprefix("pipetunnel."))

