"""Exception taxonomy for the terminal UI engine."""

from __future__ import annotations

from pathlib import Path


class TuiError(Exception):
    """Base class for every error raised by ``secshell.tui``."""


class SessionError(TuiError):
    """The terminal could not be prepared (not a TTY, raw mode or size query failed)."""


class InputError(TuiError):
    """Reading from the terminal failed mid-session (EOF or I/O error)."""


class FileError(TuiError):
    """A file could not be opened, read or written."""

    def __init__(self, message: str, path: str | Path | None = None) -> None:
        super().__init__(message)
        self.path = path


class ValidationError(TuiError):
    """User input was rejected, e.g. an empty search query."""
