"""Host filesystem access used by workspace discovery and link resolution."""

from __future__ import annotations

import logging
import os
import sys
import typing as typ
from pathlib import Path

from sheaf.utils import posix_relative_path

from .patterns import expand_alternation, is_excluded

LOGGER = logging.getLogger(__name__)

_LINKLESS_PLATFORMS: typ.Final[frozenset[str]] = frozenset({"emscripten", "wasi"})


class HostFileSystem(typ.Protocol):
    """Filesystem primitives consumed by :mod:`sheaf`."""

    @property
    def is_local(self) -> bool:
        """Return ``True`` for a conventional local filesystem."""
        ...

    @property
    def supports_links(self) -> bool:
        """Return ``True`` when ``lstat`` and ``readlink`` are available."""
        ...

    def read_bytes(self, path: Path) -> bytes:
        """Return the raw contents of ``path``."""
        ...

    def exists(self, path: Path) -> bool:
        """Return ``True`` when ``path`` exists."""
        ...

    def is_dir(self, path: Path) -> bool:
        """Return ``True`` when ``path`` is a directory."""
        ...

    def list_dir(self, path: Path) -> list[Path]:
        """Return the entries directly inside ``path``."""
        ...

    def lstat(self, path: Path) -> os.stat_result:
        """Return status information for ``path`` without following links."""
        ...

    def readlink(self, path: Path) -> str:
        """Return the raw target stored in the link at ``path``."""
        ...

    def search(self, root: Path, include_glob: str, exclude_glob: str) -> list[Path]:
        """Return files beneath ``root`` matching ``include_glob``."""
        ...


class LocalFileSystem:
    """:class:`HostFileSystem` backed by :mod:`pathlib` and :mod:`os`."""

    is_local = True

    @property
    def supports_links(self) -> bool:
        """Return ``False`` on WebAssembly hosts without link primitives."""
        return sys.platform not in _LINKLESS_PLATFORMS and hasattr(os, "readlink")

    def read_bytes(self, path: Path) -> bytes:
        """Return the raw contents of ``path``."""
        return path.read_bytes()

    def exists(self, path: Path) -> bool:
        """Return ``True`` when ``path`` exists."""
        return path.exists()

    def is_dir(self, path: Path) -> bool:
        """Return ``True`` when ``path`` is a directory."""
        return path.is_dir()

    def list_dir(self, path: Path) -> list[Path]:
        """Return the entries directly inside ``path`` in name order."""
        return sorted(path.iterdir())

    def lstat(self, path: Path) -> os.stat_result:
        """Return status information for ``path`` without following links."""
        return path.lstat()

    def readlink(self, path: Path) -> str:
        """Return the raw target stored in the link at ``path``."""
        return os.readlink(path)

    def search(self, root: Path, include_glob: str, exclude_glob: str) -> list[Path]:
        """Expand ``include_glob`` beneath ``root`` and drop excluded matches."""
        excludes = expand_alternation(exclude_glob)
        matches: list[Path] = []
        for pattern in expand_alternation(include_glob):
            for candidate in sorted(root.glob(pattern)):
                relative = posix_relative_path(candidate, root)
                if excludes and is_excluded(relative, excludes):
                    LOGGER.debug("Excluded search result %s", relative)
                    continue
                if candidate.is_file():
                    matches.append(candidate)
        return matches
