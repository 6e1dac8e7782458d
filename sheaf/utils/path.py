"""Filesystem helpers used across :mod:`sheaf`."""

from __future__ import annotations

import os
from pathlib import Path, PurePosixPath

from plumbum import local


def normalise_workspace_root(value: Path | str | None) -> Path:
    """Return an absolute workspace path with ``~`` expanded."""
    if value is None:
        return Path.cwd().resolve()
    candidate = local.path(str(value))
    expanded = Path(str(candidate)).expanduser()
    return expanded.resolve(strict=False)


def posix_relative_path(target: Path | str, root: Path | str) -> str:
    """Return ``target`` relative to ``root`` using ``/`` separators.

    ``"."`` denotes ``root`` itself. Some platforms hand back an absolute
    path from :func:`os.path.relpath` (different drives on Windows, for
    example); in that case the common prefix is stripped by hand.
    """
    target_text = os.fspath(target)
    root_text = os.fspath(root)
    try:
        relative = os.path.relpath(target_text, root_text)
    except ValueError:
        relative = target_text
    if os.path.isabs(relative):
        relative = _strip_root_prefix(target_text, root_text)
    return _as_posix(relative)


def _strip_root_prefix(target: str, root: str) -> str:
    """Remove ``root`` from the front of ``target`` component by component."""
    target_parts = Path(target).parts
    root_parts = Path(root).parts
    if target_parts[: len(root_parts)] == root_parts:
        remainder = target_parts[len(root_parts) :]
        return str(PurePosixPath(*remainder)) if remainder else "."
    return target


def _as_posix(value: str) -> str:
    normalised = value.replace(os.sep, "/")
    if os.altsep:
        normalised = normalised.replace(os.altsep, "/")
    return normalised or "."
