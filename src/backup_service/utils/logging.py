"""Logging setup: structlog events rendered through the standard logging handlers."""

import functools
import inspect
import logging
import logging.handlers
import sys
import time
from pathlib import Path
from typing import List, Optional

import structlog
import colorlog
from structlog.typing import Processor


# Marks handlers installed here so a second setup_logging() can replace them
HANDLER_TAG = "_backup_service_handler"

LOG_COLORS = {
    "DEBUG": "cyan",
    "INFO": "green",
    "WARNING": "yellow",
    "ERROR": "red",
    "CRITICAL": "red,bg_white",
}


def setup_logging(
    log_level: Optional[str] = None,
    log_format: Optional[str] = None,
    log_file: Optional[str] = None
) -> None:
    """Configure structlog and the root logger.

    Events go to a colored console handler and, unless ``log_file`` is empty
    or the settings disable it, to a file in the data directory rotated at
    midnight. Arguments left as None fall back to the application settings.
    """
    from ..config.settings import get_settings

    settings = get_settings()

    level = getattr(logging, (log_level or settings.logging.level).upper())
    format_type = log_format or settings.logging.format
    if log_file is None and settings.logging.file_name:
        log_file = str(Path(settings.data_dir) / settings.logging.file_name)

    structlog.configure(
        processors=_processors(json_output=format_type == "json"),
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )

    root_logger = logging.getLogger()
    root_logger.setLevel(level)
    for handler in list(root_logger.handlers):
        if getattr(handler, HANDLER_TAG, False):
            root_logger.removeHandler(handler)
            handler.close()

    if log_file:
        _install(root_logger, _file_handler(Path(log_file)), level)
    _install(root_logger, _console_handler(), level)


def _processors(json_output: bool) -> List[Processor]:
    processors: List[Processor] = [
        structlog.stdlib.filter_by_level,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.add_log_level,
        structlog.stdlib.PositionalArgumentsFormatter(),
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
        structlog.processors.UnicodeDecoder(),
    ]
    if json_output:
        processors.append(structlog.processors.JSONRenderer())
    else:
        # colorlog colors the whole line, the renderer only lays it out
        processors.append(structlog.dev.ConsoleRenderer(colors=False))
    return processors


def _file_handler(path: Path) -> logging.Handler:
    path.parent.mkdir(parents=True, exist_ok=True)
    handler = logging.handlers.TimedRotatingFileHandler(
        path, when="midnight", backupCount=14, encoding="utf-8"
    )
    handler.setFormatter(logging.Formatter("%(message)s"))
    return handler


def _console_handler() -> logging.Handler:
    handler = colorlog.StreamHandler(sys.stdout)
    handler.setFormatter(colorlog.ColoredFormatter(
        "%(log_color)s%(message)s", reset=True, log_colors=LOG_COLORS
    ))
    return handler


def _install(root_logger: logging.Logger, handler: logging.Handler, level: int) -> None:
    handler.setLevel(level)
    setattr(handler, HANDLER_TAG, True)
    root_logger.addHandler(handler)


def get_logger(name: str) -> structlog.stdlib.BoundLogger:
    """Get a structured logger instance."""
    return structlog.get_logger(name)


def log_execution_time(func):
    """Log how long each call of ``func`` took, at debug level.

    Works for plain functions and coroutine functions alike; exceptions are
    logged and re-raised unchanged.
    """
    logger = get_logger(func.__qualname__)

    def report(started: float, error: Optional[Exception] = None):
        elapsed = f"{time.monotonic() - started:.4f}s"
        if error is None:
            logger.debug("Call finished", function=func.__qualname__, execution_time=elapsed)
        else:
            logger.debug(
                "Call failed",
                function=func.__qualname__,
                execution_time=elapsed,
                error=str(error)
            )

    if inspect.iscoroutinefunction(func):
        @functools.wraps(func)
        async def async_wrapper(*args, **kwargs):
            started = time.monotonic()
            try:
                result = await func(*args, **kwargs)
            except Exception as e:
                report(started, e)
                raise
            report(started)
            return result

        return async_wrapper

    @functools.wraps(func)
    def wrapper(*args, **kwargs):
        started = time.monotonic()
        try:
            result = func(*args, **kwargs)
        except Exception as e:
            report(started, e)
            raise
        report(started)
        return result

    return wrapper
