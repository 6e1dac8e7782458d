"""Command implementations invoked by :mod:`sheaf.cli`."""

from __future__ import annotations

from . import dependencies, init, packages, reveal

__all__ = ["dependencies", "init", "packages", "reveal"]
