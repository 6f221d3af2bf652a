"""
Basic logging configuration for the application.

The ``setup_logging`` function configures the root logger with a
console and an optional file handler.  Log records carrying an
``event`` attribute (passed through ``extra``) have it rendered after
the level so that operational events such as failed notifications can
be grepped from the logs.
"""

import logging
from pathlib import Path
from typing import Optional


class EventFormatter(logging.Formatter):
    """Formatter that prefixes the message with the record's ``event`` tag."""

    def format(self, record: logging.LogRecord) -> str:
        event = getattr(record, "event", None)
        record.event_tag = f"[{event}] " if event else ""
        return super().format(record)


def setup_logging(level: str = "INFO", logfile: Optional[str] = None) -> None:
    """Configure root logger.

    If no handlers are attached to the root logger, attach a
    console handler and optionally a file handler.  The root
    logger's level is set based on the provided ``level``.

    Parameters
    ----------
    level : str
        Logging level name (e.g. ``"DEBUG"``, ``"INFO"``).  Case
        insensitive.
    logfile : Optional[str]
        Path to a file to log messages to.  If omitted, no file
        handler is added.
    """
    logger = logging.getLogger()
    if logger.handlers:
        # Already configured, e.g. by pytest or a repeated create_app call.
        return

    numeric_level = getattr(logging, level.upper(), logging.INFO)
    logger.setLevel(numeric_level)

    formatter = EventFormatter(
        fmt="%(asctime)s [%(levelname)s] %(name)s: %(event_tag)s%(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )

    console_handler = logging.StreamHandler()
    console_handler.setFormatter(formatter)
    logger.addHandler(console_handler)

    if logfile:
        log_path = Path(logfile).resolve()
        file_handler = logging.FileHandler(log_path, encoding="utf-8")
        file_handler.setFormatter(formatter)
        logger.addHandler(file_handler)
