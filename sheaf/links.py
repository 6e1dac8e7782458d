"""Follow symbolic links from an installed location back to its source.

pnpm links workspace packages into ``node_modules``; these helpers walk such
paths one segment at a time so a linked directory part-way down redirects
everything beneath it.
"""

from __future__ import annotations

import enum
import logging
import os
import stat
import typing as typ
from pathlib import Path

from sheaf.errors import (
    BrokenSymlinkError,
    SymlinkCycleError,
    UnsupportedEnvironmentError,
)
from sheaf.workspace.fs import LocalFileSystem

if typ.TYPE_CHECKING:
    from sheaf.workspace.fs import HostFileSystem

LOGGER = logging.getLogger(__name__)


class ResolutionState(enum.Enum):
    """Progress of a single link-chain resolution."""

    FOLLOWING = "following"
    DONE = "done"
    CYCLE = "cycle"
    BROKEN = "broken"
    OUT_OF_SCOPE = "out-of-scope"


class SymlinkResolver:
    """Resolve link chains through a :class:`HostFileSystem`."""

    def __init__(self, filesystem: HostFileSystem | None = None) -> None:
        """Inspect paths through ``filesystem`` (the local disk by default)."""
        self.filesystem = LocalFileSystem() if filesystem is None else filesystem

    def follow(self, path: Path | str) -> Path:
        """Return the first non-link path reached from ``path``.

        Relative link targets are interpreted against the directory holding
        the link.

        Raises:
            SymlinkCycleError: The chain revisits a path.
            BrokenSymlinkError: A path in the chain cannot be inspected.
            UnsupportedEnvironmentError: The host has no link primitives.

        """
        self._require_support("symlink resolution")
        current = Path(os.path.abspath(path))
        visited: set[Path] = set()
        failure: OSError | None = None
        state = ResolutionState.FOLLOWING
        while state is ResolutionState.FOLLOWING:
            if current in visited:
                state = ResolutionState.CYCLE
                break
            visited.add(current)
            try:
                is_link = stat.S_ISLNK(self.filesystem.lstat(current).st_mode)
                target = self.filesystem.readlink(current) if is_link else None
            except OSError as exc:
                failure = exc
                state = ResolutionState.BROKEN
                break
            if target is None:
                state = ResolutionState.DONE
                break
            resolved = Path(os.path.normpath(current.parent / target))
            LOGGER.debug("Following symlink: %s -> %s", current, resolved)
            current = resolved
        if state is ResolutionState.CYCLE:
            raise SymlinkCycleError(current)
        if failure is not None:
            reason = failure.strerror or str(failure)
            raise BrokenSymlinkError(current, reason) from failure
        LOGGER.debug("Resolved to real path: %s", current)
        return current

    def resolve_chain(self, path: Path | str) -> Path | None:
        """Return the real path behind ``path`` or ``None`` on a cycle or break."""
        try:
            return self.follow(path)
        except SymlinkCycleError as exc:
            LOGGER.error("Symlink cycle detected at %s", exc.path)
        except BrokenSymlinkError as exc:
            LOGGER.error("Error resolving symlink: %s", exc)
        return None

    def resolve_from_root(self, path: Path | str, root: Path | str) -> Path | None:
        """Resolve links in every segment of ``path`` below ``root``.

        Paths outside ``root`` are returned unchanged (as absolute paths).
        ``None`` is returned when any segment fails to resolve.
        """
        self._require_support("path resolution")
        target, base, state = self._scope(path, root)
        if state is ResolutionState.OUT_OF_SCOPE:
            LOGGER.info("%s is not within workspace root %s", target, base)
            return target
        current = base
        for part in target.relative_to(base).parts:
            candidate = current / part
            resolved = self.resolve_chain(candidate)
            if resolved is None:
                LOGGER.error("Failed to resolve segment: %s", candidate)
                return None
            current = resolved
        LOGGER.debug("Final resolved path: %s", current)
        return current

    def contains_link(self, path: Path | str, root: Path | str) -> bool:
        """Return ``True`` when a segment of ``path`` below ``root`` is a link."""
        self._require_support("symlink detection")
        target, base, state = self._scope(path, root)
        if state is ResolutionState.OUT_OF_SCOPE:
            return False
        current = base
        for part in target.relative_to(base).parts:
            current = current / part
            try:
                mode = self.filesystem.lstat(current).st_mode
            except OSError as exc:
                LOGGER.error("Error checking path segment %s: %s", current, exc)
                return False
            if stat.S_ISLNK(mode):
                return True
        return False

    def reveal_original(self, path: Path | str, root: Path | str) -> Path | None:
        """Return where ``path`` really lives, or ``None`` if it is not linked."""
        if not self.contains_link(path, root):
            return None
        resolved = self.resolve_from_root(path, root)
        if resolved is None or resolved == Path(os.path.abspath(path)):
            return None
        return resolved

    def _scope(
        self, path: Path | str, root: Path | str
    ) -> tuple[Path, Path, ResolutionState]:
        target = Path(os.path.abspath(path))
        base = Path(os.path.abspath(root))
        if target == base or target.is_relative_to(base):
            return target, base, ResolutionState.FOLLOWING
        return target, base, ResolutionState.OUT_OF_SCOPE

    def _require_support(self, operation: str) -> None:
        if not self.filesystem.supports_links:
            LOGGER.error("%s is not supported in this environment", operation)
            raise UnsupportedEnvironmentError(operation)


def resolve_chain(path: Path | str) -> Path | None:
    """Resolve ``path`` on the local filesystem."""
    return SymlinkResolver().resolve_chain(path)


def resolve_from_root(path: Path | str, root: Path | str) -> Path | None:
    """Resolve every segment of ``path`` below ``root`` on the local filesystem."""
    return SymlinkResolver().resolve_from_root(path, root)


def contains_link(path: Path | str, root: Path | str) -> bool:
    """Report whether ``path`` passes through a link below ``root``."""
    return SymlinkResolver().contains_link(path, root)
