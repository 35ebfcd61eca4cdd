"""Logging setup for applications embedding resteasy.

Library modules only create module-level loggers
(``logging.getLogger(__name__)``) and never configure handlers themselves.
Hosts that want to see cache hits, misses, and swallowed background
failures call :func:`configure_logging` once at startup.  Diagnostics go
to stderr through a Rich handler; colour is disabled when ``NO_COLOR`` is
set or ``TERM=dumb``.
"""

from __future__ import annotations

import logging
import os
import sys

from rich.console import Console
from rich.logging import RichHandler

LOGGER_NAME = "resteasy"


def _should_disable_color() -> bool:
    """Return True when NO_COLOR env var is set (any value) or TERM=dumb."""
    if os.environ.get("NO_COLOR") is not None:
        return True
    if os.environ.get("TERM") == "dumb":
        return True
    return False


def configure_logging(verbose: bool = False, no_color: bool = False) -> logging.Logger:
    """Attach a stderr :class:`~rich.logging.RichHandler` to the package logger.

    Calling this more than once replaces the previously installed handler
    instead of stacking a second one.

    Args:
        verbose: Log at DEBUG instead of WARNING.
        no_color: Disable colour regardless of the environment.

    Returns:
        The configured ``resteasy`` logger.
    """
    logger = logging.getLogger(LOGGER_NAME)
    for handler in list(logger.handlers):
        if getattr(handler, "_resteasy_handler", False):
            logger.removeHandler(handler)

    console = Console(
        file=sys.stderr,
        no_color=no_color or _should_disable_color(),
        stderr=True,
    )
    handler = RichHandler(console=console, show_path=False, rich_tracebacks=False)
    handler._resteasy_handler = True  # type: ignore[attr-defined]
    handler.setFormatter(logging.Formatter("%(message)s"))

    logger.addHandler(handler)
    logger.setLevel(logging.DEBUG if verbose else logging.WARNING)
    return logger
