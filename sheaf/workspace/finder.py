"""Strategies for turning package-root patterns into manifest locations."""

from __future__ import annotations

import fnmatch
import logging
import typing as typ
from pathlib import Path

from sheaf.utils import posix_relative_path

from .patterns import PackagePatterns, combine_globs, has_wildcard

if typ.TYPE_CHECKING:
    from .fs import HostFileSystem

LOGGER = logging.getLogger(__name__)


class FileFinder(typ.Protocol):
    """Locate manifest files below a workspace root."""

    def find(self, root: Path, patterns: PackagePatterns, filename: str) -> list[Path]:
        """Return manifests named ``filename`` matched by ``patterns``."""
        ...


class NativeSearchFinder:
    """Delegate to the filesystem's own glob search in a single call."""

    def __init__(self, filesystem: HostFileSystem) -> None:
        """Search through ``filesystem``."""
        self.filesystem = filesystem

    def find(self, root: Path, patterns: PackagePatterns, filename: str) -> list[Path]:
        """Query the filesystem once with combined include and exclude globs."""
        include_globs = patterns.include_globs(filename)
        if not include_globs:
            return []
        include_glob = combine_globs(include_globs)
        exclude_glob = combine_globs(patterns.excludes) if patterns.excludes else ""
        LOGGER.debug(
            "Searching %s for %s excluding %s", root, include_glob, exclude_glob
        )
        try:
            return self.filesystem.search(root, include_glob, exclude_glob)
        except (OSError, ValueError, NotImplementedError) as exc:
            LOGGER.warning("File search failed under %s: %s", root, exc)
            return []


class DirectoryWalkFinder:
    """Expand patterns by listing directories one level at a time.

    Used where the native search is unreliable. Each ``*`` segment expands to
    the child directories that are not excluded, ``**`` expands to every
    non-excluded descendant, and literal segments are checked directly.
    Excluded directories are never listed.
    """

    def __init__(self, filesystem: HostFileSystem) -> None:
        """Walk through ``filesystem``."""
        self.filesystem = filesystem

    def find(self, root: Path, patterns: PackagePatterns, filename: str) -> list[Path]:
        """Return manifests for every include pattern in declaration order."""
        results: list[Path] = []
        for pattern in patterns.includes:
            for directory in self._expand(root, pattern, patterns):
                manifest = directory / filename
                if self._exists(manifest):
                    results.append(manifest)
        return results

    def _expand(
        self, root: Path, pattern: str, patterns: PackagePatterns
    ) -> list[Path]:
        frontier = [root]
        for segment in (part for part in pattern.split("/") if part not in {"", "."}):
            next_frontier: list[Path] = []
            for directory in frontier:
                next_frontier.extend(
                    self._expand_segment(root, directory, segment, patterns)
                )
            frontier = next_frontier
            if not frontier:
                break
        return frontier

    def _expand_segment(
        self,
        root: Path,
        directory: Path,
        segment: str,
        patterns: PackagePatterns,
    ) -> list[Path]:
        if segment == "**":
            return self._descendants(root, directory, patterns)
        if not has_wildcard(segment):
            candidate = directory / segment
            excluded = self._excluded(root, candidate, patterns)
            if self._is_dir(candidate) and not excluded:
                return [candidate]
            return []
        return [
            child
            for child in self._child_directories(root, directory, patterns)
            if fnmatch.fnmatchcase(child.name, segment)
        ]

    def _descendants(
        self, root: Path, directory: Path, patterns: PackagePatterns
    ) -> list[Path]:
        found: list[Path] = []
        pending = [directory]
        while pending:
            current = pending.pop()
            found.append(current)
            children = self._child_directories(root, current, patterns)
            pending.extend(reversed(children))
        return found

    def _child_directories(
        self, root: Path, directory: Path, patterns: PackagePatterns
    ) -> list[Path]:
        try:
            entries = self.filesystem.list_dir(directory)
        except OSError as exc:
            LOGGER.debug("Cannot list %s: %s", directory, exc)
            return []
        return [
            entry
            for entry in entries
            if self._is_dir(entry) and not self._excluded(root, entry, patterns)
        ]

    def _excluded(self, root: Path, path: Path, patterns: PackagePatterns) -> bool:
        return patterns.is_excluded(posix_relative_path(path, root))

    def _is_dir(self, path: Path) -> bool:
        try:
            return self.filesystem.is_dir(path)
        except OSError:
            return False

    def _exists(self, path: Path) -> bool:
        try:
            return self.filesystem.exists(path)
        except OSError:
            return False


class FallbackFinder:
    """Try the native search first and walk directories when it comes back empty.

    The walk only runs for non-local filesystems; an empty native result on a
    local filesystem is trusted.
    """

    def __init__(self, filesystem: HostFileSystem) -> None:
        """Compose both strategies over ``filesystem``."""
        self.filesystem = filesystem
        self.primary = NativeSearchFinder(filesystem)
        self.fallback = DirectoryWalkFinder(filesystem)

    def find(self, root: Path, patterns: PackagePatterns, filename: str) -> list[Path]:
        """Return native results, or walk results on a non-local filesystem."""
        results = self.primary.find(root, patterns, filename)
        if results or self.filesystem.is_local:
            return results
        LOGGER.info(
            "Native search found nothing under non-local root %s; walking directories",
            root,
        )
        return self.fallback.find(root, patterns, filename)


def select_finder(filesystem: HostFileSystem) -> FileFinder:
    """Return the finder suited to ``filesystem``."""
    if filesystem.is_local:
        return NativeSearchFinder(filesystem)
    return FallbackFinder(filesystem)


def dedupe_locations(paths: typ.Iterable[Path]) -> list[Path]:
    """Drop repeated locations, keeping the first occurrence of each."""
    seen: set[str] = set()
    unique: list[Path] = []
    for path in paths:
        key = _canonical_key(path)
        if key in seen:
            continue
        seen.add(key)
        unique.append(path)
    return unique


def _canonical_key(path: Path) -> str:
    try:
        return str(path.resolve(strict=False))
    except (OSError, RuntimeError):
        return str(path.absolute())
