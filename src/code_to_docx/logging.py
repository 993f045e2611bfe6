from __future__ import annotations

import logging

from rich.console import Console
from rich.logging import RichHandler

LOGGER_NAME = "code_to_docx"

# Diagnostics go to stderr so stdout only carries the result summary.
stderr_console = Console(stderr=True)


def get_logger(name: str | None = None) -> logging.Logger:
    if not name:
        return logging.getLogger(LOGGER_NAME)
    return logging.getLogger(f"{LOGGER_NAME}.{name}")


def configure_logging(verbose: bool = False, console: Console | None = None) -> logging.Logger:
    """Attach a single rich handler to the package logger.

    Safe to call more than once; the previous handler is replaced.
    """

    logger = get_logger()
    for handler in list(logger.handlers):
        if getattr(handler, "_code_to_docx", False):
            logger.removeHandler(handler)
    handler = RichHandler(
        console=console or stderr_console,
        show_time=False,
        show_path=False,
        markup=False,
    )
    handler._code_to_docx = True  # type: ignore[attr-defined]
    handler.setFormatter(logging.Formatter("%(message)s"))
    logger.addHandler(handler)
    logger.setLevel(logging.DEBUG if verbose else logging.INFO)
    return logger


__all__ = ["LOGGER_NAME", "configure_logging", "get_logger", "stderr_console"]
