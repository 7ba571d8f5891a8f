"""
Logging setup.
A single stderr handler on the root logger; modules log through
logging.getLogger(__name__).
"""
from __future__ import annotations

import logging
import sys


class _AccessLogFilter(logging.Filter):
    """Keep per-request server access logs out unless they are warnings."""

    def filter(self, record: logging.LogRecord) -> bool:
        if record.name == "uvicorn.access":
            return record.levelno >= logging.WARNING
        return True


def configure_logging(level: str | int = logging.INFO) -> None:
    """
    Configure the root logger. Safe to call more than once: handlers
    installed by a previous call are replaced.
    """
    root = logging.getLogger()
    root.setLevel(level)

    for h in list(root.handlers):
        if getattr(h, "_kanban_sync", False):
            root.removeHandler(h)

    fmt = logging.Formatter(
        fmt="%(asctime)s.%(msecs)03d %(levelname)s %(name)s: %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )

    handler = logging.StreamHandler(sys.stderr)
    handler.setFormatter(fmt)
    handler.addFilter(_AccessLogFilter())
    handler._kanban_sync = True  # type: ignore[attr-defined]
    root.addHandler(handler)

    logging.captureWarnings(True)
