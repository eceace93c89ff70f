from __future__ import annotations

import logging
from contextvars import ContextVar
from typing import Optional

_LEVELS = {
    "error": logging.ERROR,
    "warning": logging.WARNING,
    "info": logging.INFO,
    "debug": logging.DEBUG,
}

# Nested calls inherit the active command name
_current_command: ContextVar[str] = ContextVar("rapnoise_current_command", default="rapnoise")


class _CommandFilter(logging.Filter):
    """Stamp every record with the active command label."""

    def filter(self, record: logging.LogRecord) -> bool:  # noqa: D401
        command = getattr(record, "command", None) or _current_command.get()
        record.command = command
        return True


def setup_logging(level: str = "WARNING") -> None:
    """
    Configure root logging once.

    Logs go to stderr with a short "[command] LEVEL: message" prefix.
    """
    if isinstance(level, str):
        numeric_level = _LEVELS.get(level.lower(), logging.WARNING)
    else:
        numeric_level = int(level)
    root = logging.getLogger()
    if not root.handlers:
        handler = logging.StreamHandler()
        handler.setFormatter(logging.Formatter("[%(command)s] %(levelname)s: %(message)s"))
        handler.addFilter(_CommandFilter())
        root.addHandler(handler)
    root.setLevel(numeric_level)
    logging.captureWarnings(True)


def set_command_context(command: str) -> None:
    """Tag subsequent log records with the active command name."""
    _current_command.set(command)


def resolve_log_level(verbose: bool, debug: bool) -> str:
    if debug:
        return "DEBUG"
    if verbose:
        return "INFO"
    return "WARNING"


def get_logger(name: Optional[str] = None) -> logging.Logger:
    return logging.getLogger(name if name is not None else "rapnoise")
