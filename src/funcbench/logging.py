"""Logging setup for funcbench.

The console handler's level follows the CLI verbosity flags. When running
as a GitHub Actions step, warnings and errors are written as workflow
commands (``::warning::`` / ``::error::``) so they show up as annotations
on the job; everything else stays plain text. An optional file handler
always logs at DEBUG. Modules obtain child loggers through
:func:`get_logger`.
"""

from __future__ import annotations

import logging
import os
from collections.abc import Mapping
from pathlib import Path

_LOGGER_NAME = "funcbench"
_FILE_FORMAT = "%(asctime)s %(levelname)-8s %(name)s: %(message)s"
_CONSOLE_FORMAT = "%(levelname)-8s %(message)s"

_ANNOTATIONS = {logging.WARNING: "warning", logging.ERROR: "error", logging.CRITICAL: "error"}


class ActionsFormatter(logging.Formatter):
    """Render warnings and errors as GitHub Actions workflow commands."""

    def __init__(self) -> None:
        super().__init__(_CONSOLE_FORMAT)

    def format(self, record: logging.LogRecord) -> str:
        command = _ANNOTATIONS.get(record.levelno)
        if command is None:
            return super().format(record)
        message = record.getMessage()
        if record.exc_info:
            message = f"{message}\n{self.formatException(record.exc_info)}"
        # Workflow commands are single-line; %0A is their escaped newline.
        message = message.replace("%", "%25").replace("\r", "%0D").replace("\n", "%0A")
        return f"::{command}::{message}"


def running_in_actions(environ: Mapping[str, str] | None = None) -> bool:
    """True inside a GitHub Actions job."""
    env = os.environ if environ is None else environ
    return env.get("GITHUB_ACTIONS") == "true"


def setup_logging(
    *,
    verbose: bool = False,
    quiet: bool = False,
    log_file: Path | None = None,
    github_actions: bool | None = None,
) -> logging.Logger:
    """Configure and return the root funcbench logger.

    Args:
        verbose: If True, set console log level to DEBUG.
        quiet: If True, set console log level to WARNING. Ignored if *verbose* is True.
        log_file: If provided, add a file handler at DEBUG level to this path.
        github_actions: Emit annotations for warnings and errors. Detected
            from ``GITHUB_ACTIONS`` when None.
    """
    logger = logging.getLogger(_LOGGER_NAME)
    logger.setLevel(logging.DEBUG)

    # The CLI may be invoked repeatedly in one process (tests).
    logger.handlers.clear()

    if github_actions is None:
        github_actions = running_in_actions()

    console = logging.StreamHandler()
    if verbose:
        console.setLevel(logging.DEBUG)
    elif quiet:
        console.setLevel(logging.WARNING)
    else:
        console.setLevel(logging.INFO)
    if github_actions:
        console.setFormatter(ActionsFormatter())
    else:
        console.setFormatter(logging.Formatter(_CONSOLE_FORMAT))
    logger.addHandler(console)

    if log_file is not None:
        fh = logging.FileHandler(log_file, encoding="utf-8")
        fh.setLevel(logging.DEBUG)
        fh.setFormatter(logging.Formatter(_FILE_FORMAT))
        logger.addHandler(fh)

    return logger


def get_logger(name: str) -> logging.Logger:
    return logging.getLogger(f"{_LOGGER_NAME}.{name}")
