"""
Logging setup using loguru.

Standard library logging (Flask, werkzeug, urllib3) is routed through
loguru so everything ends up in one stream with one format.
"""

import logging
import sys

from loguru import logger

DEFAULT_FORMAT = (
    "<green>{time:YYYY-MM-DD HH:mm:ss}</green> | "
    "<level>{level: <8}</level> | "
    "<cyan>{name}</cyan>:<cyan>{function}</cyan> - "
    "<level>{message}</level>"
)

# Third-party loggers that are too chatty at INFO
MODULE_LOG_LEVELS = {
    "werkzeug": "WARNING",
    "urllib3": "WARNING",
}


class InterceptHandler(logging.Handler):
    """Forward standard library log records to loguru."""

    def emit(self, record):
        try:
            level = logger.level(record.levelname).name
        except ValueError:
            level = record.levelno

        frame, depth = logging.currentframe(), 2
        while frame and frame.f_code.co_filename == logging.__file__:
            frame = frame.f_back
            depth += 1

        logger.opt(depth=depth, exception=record.exc_info).log(level, record.getMessage())


def setup_logging(level: str = "INFO") -> None:
    """Configure loguru on stderr and intercept standard logging."""
    logger.remove()
    logger.add(sys.stderr, level=level.upper(), format=DEFAULT_FORMAT)
    logging.basicConfig(handlers=[InterceptHandler()], level=0, force=True)

    for module, module_level in MODULE_LOG_LEVELS.items():
        logging.getLogger(module).setLevel(getattr(logging, module_level))
