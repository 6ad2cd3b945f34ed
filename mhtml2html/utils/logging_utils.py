# mhtml2html/utils/logging_utils.py

from pathlib import Path
from typing import Optional
from loguru import logger

from mhtml2html.utils.config import CONFIG

_LOGGER_CONFIGURED = False


def configure_logging(log_dir: Optional[str] = CONFIG.LOG_DIR, level: str = CONFIG.LOG_LEVEL) -> None:
    """
    Configure loguru logger to log to stdout and, when log_dir is set, a file.
    Idempotent: safe to call multiple times.
    """
    global _LOGGER_CONFIGURED
    if _LOGGER_CONFIGURED:
        return

    # Remove default handlers (so we don't double-log)
    logger.remove()

    # Console
    logger.add(
        sink=lambda msg: print(msg, end=""),
        level=level,
        backtrace=False,
        diagnose=False,
    )

    # File
    if log_dir:
        log_path = Path(log_dir)
        log_path.mkdir(parents=True, exist_ok=True)
        logger.add(
            log_path / "mhtml2html.log",
            rotation="10 MB",
            retention="14 days",
            level=level,
            backtrace=False,
            diagnose=False,
            enqueue=True,
            encoding="utf-8",
        )

    _LOGGER_CONFIGURED = True


def get_logger():
    """
    Return the shared loguru logger. Library modules log through it without
    configuring sinks; the service calls configure_logging() once at startup.
    """
    return logger
