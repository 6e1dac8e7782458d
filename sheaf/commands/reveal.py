"""Show the source location behind a symlinked path."""

from __future__ import annotations

import os
from pathlib import Path

from sheaf.links import SymlinkResolver

NOT_LINKED_MESSAGE = "This path is not a symlink and does not pass through one."


def run(
    workspace_root: Path,
    target: Path | str,
    *,
    resolver: SymlinkResolver | None = None,
) -> str:
    """Return the original location of ``target`` or an explanatory message.

    Relative targets are taken relative to ``workspace_root``.

    Raises:
        UnsupportedEnvironmentError: The host cannot inspect links.

    """
    active = SymlinkResolver() if resolver is None else resolver
    absolute = _absolute(target, workspace_root)
    if not active.contains_link(absolute, workspace_root):
        return NOT_LINKED_MESSAGE
    original = active.resolve_from_root(absolute, workspace_root)
    if original is None:
        return f"Failed to resolve symlinks in {absolute}."
    if original == Path(absolute):
        return NOT_LINKED_MESSAGE
    return str(original)


def _absolute(target: Path | str, workspace_root: Path) -> str:
    """Return ``target`` as an absolute path without following links."""
    text = os.fspath(target)
    if not os.path.isabs(text):
        text = os.path.join(workspace_root, text)
    return os.path.normpath(text)
