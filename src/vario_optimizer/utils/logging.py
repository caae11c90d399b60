"""
Minimal logging infrastructure for the vario_optimizer package.

All modules obtain their logger through ``get_logger(__name__)`` so that
every message lands under the single ``vario_optimizer`` root logger.
Importing the package only attaches a ``NullHandler``; the console handler
is added by ``configure_logging``, which applications call when they want
the package to print on its own.
"""

import functools
import logging
import threading
import time
from typing import Optional


ROOT_LOGGER_NAME = "vario_optimizer"
LOG_FORMAT = '%(asctime)s | %(levelname)s | %(name)s | %(message)s'

logging.getLogger(ROOT_LOGGER_NAME).addHandler(logging.NullHandler())


class _LoggerManager:
    """Configures the package root logger once per process."""

    def __init__(self):
        self._configured = False
        self._handler = None
        self._lock = threading.Lock()

    def configure(self, level: str = "INFO", force: bool = False):
        """Configure the root package logger with a console handler."""
        with self._lock:
            if self._configured and not force:
                return

            root_logger = logging.getLogger(ROOT_LOGGER_NAME)
            root_logger.setLevel(getattr(logging, level.upper(), logging.INFO))

            if self._handler is None:
                self._handler = logging.StreamHandler()
                self._handler.setFormatter(logging.Formatter(LOG_FORMAT))
                root_logger.addHandler(self._handler)

            self._configured = True

    @property
    def handler(self) -> Optional[logging.Handler]:
        return self._handler

    def get_logger(self, name: str) -> logging.Logger:
        """Get or create a logger below the package root."""
        if name == "__main__":
            full_name = f"{ROOT_LOGGER_NAME}.main"
        elif name.startswith(ROOT_LOGGER_NAME):
            full_name = name
        else:
            full_name = f"{ROOT_LOGGER_NAME}.{name}"
        return logging.getLogger(full_name)


_logger_manager = _LoggerManager()


def configure_logging(level: str = "INFO", force: bool = False):
    """
    Configure package logging.

    Args:
        level: Name of the logging level (e.g. "DEBUG", "INFO")
        force: Re-apply the level even if logging was already configured
    """
    _logger_manager.configure(level=level, force=force)


def get_logger(name: Optional[str] = None) -> logging.Logger:
    """
    Get a logger instance under the package root.

    Args:
        name: Logger name, usually ``__name__`` of the calling module.

    Returns:
        Configured logger instance.
    """
    return _logger_manager.get_logger(name or ROOT_LOGGER_NAME)


def log_performance(
    logger: Optional[logging.Logger] = None,
    level: int = logging.INFO,
    threshold: float = 0.0,
):
    """
    Decorator to log the wall time of a function.

    Args:
        logger: Logger to use. If None, uses the module logger of the function.
        level: Logging level to use.
        threshold: Minimum duration (seconds) to log.
    """

    def decorator(func):
        nonlocal logger
        if logger is None:
            logger = get_logger(func.__module__)

        @functools.wraps(func)
        def wrapper(*args, **kwargs):
            start_time = time.perf_counter()
            func_name = func.__qualname__

            try:
                result = func(*args, **kwargs)
            except Exception as e:
                duration = time.perf_counter() - start_time
                logger.log(
                    logging.ERROR,
                    f"{func_name} failed after {duration:.3f}s: {e}",
                )
                raise

            duration = time.perf_counter() - start_time
            if duration >= threshold:
                logger.log(level, f"{func_name} completed in {duration:.3f}s")
            return result

        return wrapper

    return decorator
