"""Logging setup for applications embedding the kernel.

The library itself only creates module loggers and never installs handlers
(apart from the package NullHandler). Renderers that want to see the
kernel's warnings call setup_logging() once at start-up.
"""

import logging
import os

LOG_LEVEL = os.getenv("RAYKERNEL_LOG_LEVEL", "WARNING")
LOG_FORMAT = os.getenv(
    "RAYKERNEL_LOG_FORMAT", "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
)


def setup_logging(level: str | None = None) -> logging.Logger:
    """Attach a console handler to the package logger.

    Args:
        level: Log level name (DEBUG, INFO, WARNING, ...). Defaults to
            RAYKERNEL_LOG_LEVEL.

    Returns:
        The configured "raykernel" logger.
    """
    if level is None:
        level = LOG_LEVEL
    resolved = getattr(logging, level.upper(), logging.WARNING)

    logger = logging.getLogger("raykernel")
    logger.setLevel(resolved)

    # Calling twice must not duplicate output
    for handler in logger.handlers:
        if getattr(handler, "_raykernel_console", False):
            handler.setLevel(resolved)
            return logger

    console_handler = logging.StreamHandler()
    console_handler.setLevel(resolved)
    console_handler.setFormatter(logging.Formatter(LOG_FORMAT))
    console_handler._raykernel_console = True  # type: ignore[attr-defined]
    logger.addHandler(console_handler)
    return logger
