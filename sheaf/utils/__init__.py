"""Utility helpers for the :mod:`sheaf` package."""

from __future__ import annotations

from .path import normalise_workspace_root, posix_relative_path

__all__ = ["normalise_workspace_root", "posix_relative_path"]
