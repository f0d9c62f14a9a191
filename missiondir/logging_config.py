import logging
import sys

from loguru import logger

from missiondir.config import get_settings


class _InterceptHandler(logging.Handler):
    """Route stdlib `logging` records (ours, uvicorn's) into loguru."""

    def emit(self, record: logging.LogRecord) -> None:
        try:
            level = logger.level(record.levelname).name
        except ValueError:
            level = record.levelno
        logger.opt(depth=6, exception=record.exc_info).log(level, record.getMessage())


def configure_logging() -> None:
    """
    Configure loguru to emit structured JSON logs to stdout.

    Fields include:
      - time, level, message
      - module, function, line
      - any `extra={...}` fields from logger calls
    """
    logger.remove()

    log_level = get_settings().log_level

    logger.add(
        sys.stdout,
        level=log_level,
        serialize=True,  # JSON output
        backtrace=False,
        diagnose=False,
    )

    logging.basicConfig(handlers=[_InterceptHandler()], level=0, force=True)
