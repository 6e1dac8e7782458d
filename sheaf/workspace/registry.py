"""Cached registry of workspace packages."""

from __future__ import annotations

import collections
import logging
import typing as typ
from collections import abc as cabc
from pathlib import Path

from sheaf.notify import NullNotifier

from .fs import LocalFileSystem
from .locator import locate_workspaces
from .models import WORKSPACE_MANIFEST_FILENAME
from .scanner import scan_workspace

if typ.TYPE_CHECKING:
    from sheaf.notify import Notifier

    from .fs import HostFileSystem
    from .models import PackageRecord

LOGGER = logging.getLogger(__name__)


def scan_packages(
    roots: cabc.Sequence[Path],
    filesystem: HostFileSystem | None = None,
    notifier: Notifier | None = None,
) -> tuple[PackageRecord, ...]:
    """Scan every workspace under ``roots`` and return the combined packages."""
    fs = LocalFileSystem() if filesystem is None else filesystem
    sink = NullNotifier() if notifier is None else notifier
    LOGGER.info("Starting workspace packages scan")
    descriptors = locate_workspaces(roots, fs, sink)
    if not descriptors:
        message = (
            f"No {WORKSPACE_MANIFEST_FILENAME} files found in any workspace folder"
        )
        LOGGER.warning(message)
        sink.warning(message)
        return ()

    packages: list[PackageRecord] = []
    for descriptor in descriptors:
        LOGGER.info("Processing workspace %s", descriptor.manifest_path)
        packages.extend(scan_workspace(descriptor, fs, sink))

    LOGGER.info("Total packages discovered: %d", len(packages))
    for package in packages:
        LOGGER.debug(
            "Package: %s (%s)%s",
            package.name,
            package.relative_path,
            " (root)" if package.is_root else "",
        )
    duplicates = find_duplicate_names(packages)
    if duplicates:
        message = (
            "Found duplicate package names across workspaces: "
            f"{', '.join(duplicates)}"
        )
        LOGGER.warning(message)
        sink.warning(message)
    return tuple(packages)


def find_duplicate_names(packages: cabc.Iterable[PackageRecord]) -> tuple[str, ...]:
    """Return names shared by more than one package, in first-seen order."""
    counts = collections.Counter(package.name for package in packages)
    return tuple(name for name, count in counts.items() if count > 1)


class PackageRegistry:
    """Lazily built, explicitly invalidated cache of workspace packages.

    Readers always see a complete tuple: :meth:`rebuild` assigns the new
    snapshot in one step. Concurrent rebuilds are not coordinated and the
    last one to finish wins.
    """

    def __init__(
        self,
        roots: cabc.Sequence[Path],
        filesystem: HostFileSystem | None = None,
        notifier: Notifier | None = None,
    ) -> None:
        """Scan ``roots`` through ``filesystem`` on first access."""
        self.roots = tuple(roots)
        self.filesystem = LocalFileSystem() if filesystem is None else filesystem
        self.notifier = NullNotifier() if notifier is None else notifier
        self._packages: tuple[PackageRecord, ...] | None = None

    @property
    def is_loaded(self) -> bool:
        """Return ``True`` when a snapshot is cached."""
        return self._packages is not None

    def get(self) -> tuple[PackageRecord, ...]:
        """Return the cached packages, scanning first if necessary."""
        packages = self._packages
        if packages is None:
            LOGGER.debug("No cached packages found, initiating scan")
            return self.rebuild()
        LOGGER.debug("Returning %d cached packages", len(packages))
        return packages

    def rebuild(self) -> tuple[PackageRecord, ...]:
        """Rescan the workspace and replace the cached snapshot."""
        packages = scan_packages(self.roots, self.filesystem, self.notifier)
        self._packages = packages
        return packages

    def invalidate(self) -> None:
        """Drop the cached snapshot so the next :meth:`get` rescans."""
        self._packages = None
        LOGGER.debug("Package cache cleared")

    def find(self, name: str) -> PackageRecord | None:
        """Return the first package called ``name`` or ``None``."""
        return find_package(self.get(), name)

    def names(self) -> tuple[str, ...]:
        """Return package names in discovery order."""
        return tuple(package.name for package in self.get())


def find_package(
    packages: cabc.Iterable[PackageRecord], name: str
) -> PackageRecord | None:
    """Return the first package in ``packages`` called ``name``."""
    return next((package for package in packages if package.name == name), None)
