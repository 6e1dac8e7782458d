"""User-facing diagnostic sinks."""

from __future__ import annotations

import sys
import typing as typ


class Notifier(typ.Protocol):
    """Receives short diagnostics intended for the person running ``sheaf``."""

    def warning(self, message: str) -> None:
        """Report a recoverable problem."""
        ...

    def error(self, message: str) -> None:
        """Report a failure that caused part of the workspace to be skipped."""
        ...


class NullNotifier:
    """Discard every diagnostic; the log still records them."""

    def warning(self, message: str) -> None:
        """Ignore ``message``."""

    def error(self, message: str) -> None:
        """Ignore ``message``."""


class StderrNotifier:
    """Print diagnostics to standard error, as the CLI does."""

    def __init__(self, stream: typ.TextIO | None = None) -> None:
        """Write to ``stream`` or :data:`sys.stderr` when omitted."""
        self._stream = stream

    @property
    def stream(self) -> typ.TextIO:
        """Return the active output stream."""
        return sys.stderr if self._stream is None else self._stream

    def warning(self, message: str) -> None:
        """Print ``message`` prefixed with ``Warning:``."""
        print(f"Warning: {message}", file=self.stream)

    def error(self, message: str) -> None:
        """Print ``message`` prefixed with ``Error:``."""
        print(f"Error: {message}", file=self.stream)
