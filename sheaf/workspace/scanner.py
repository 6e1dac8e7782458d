"""Expand package patterns and load ``package.json`` manifests."""

from __future__ import annotations

import logging
import typing as typ
from collections import abc as cabc
from pathlib import Path

import msgspec

from sheaf.errors import (
    ManifestValidationError,
    PackageManifestParseError,
    PackageManifestValidationError,
)
from sheaf.notify import NullNotifier
from sheaf.utils import posix_relative_path

from .finder import dedupe_locations, select_finder
from .fs import LocalFileSystem
from .models import PACKAGE_MANIFEST_FILENAME, PackageManifest, PackageRecord
from .patterns import split_patterns

if typ.TYPE_CHECKING:
    from sheaf.notify import Notifier

    from .fs import HostFileSystem
    from .models import WorkspaceDescriptor

LOGGER = logging.getLogger(__name__)


def discover_packages(
    workspace_root: Path,
    patterns: cabc.Sequence[str],
    filesystem: HostFileSystem | None = None,
) -> list[Path]:
    """Return the ``package.json`` locations matched by ``patterns``."""
    fs = LocalFileSystem() if filesystem is None else filesystem
    split = split_patterns(patterns)
    LOGGER.info("Discovering packages with patterns: %s", ", ".join(patterns))
    if not split.includes:
        return []
    finder = select_finder(fs)
    found = finder.find(workspace_root, split, PACKAGE_MANIFEST_FILENAME)
    unique = dedupe_locations(found)
    LOGGER.info("Discovered %d unique %s files", len(unique), PACKAGE_MANIFEST_FILENAME)
    return unique


def read_package_manifest(
    manifest_path: Path,
    filesystem: HostFileSystem | None = None,
) -> PackageManifest:
    """Decode and validate ``manifest_path``.

    Raises:
        PackageManifestParseError: The file is not valid JSON.
        PackageManifestValidationError: The JSON does not match the schema.

    """
    fs = LocalFileSystem() if filesystem is None else filesystem
    content = fs.read_bytes(manifest_path)
    try:
        return msgspec.json.decode(content, type=PackageManifest)
    except msgspec.ValidationError as exc:
        raise PackageManifestValidationError(manifest_path, str(exc)) from exc
    except msgspec.DecodeError as exc:
        raise PackageManifestParseError(manifest_path, str(exc)) from exc


def load_package(
    manifest_path: Path,
    project_root: Path,
    filesystem: HostFileSystem | None = None,
    notifier: Notifier | None = None,
    *,
    is_root: bool = False,
) -> PackageRecord | None:
    """Return a :class:`PackageRecord` for ``manifest_path`` or ``None``.

    Invalid manifests are logged, reported once to ``notifier`` and yield
    ``None`` so a single broken package never aborts the scan.
    """
    sink = NullNotifier() if notifier is None else notifier
    LOGGER.debug("Loading package info from %s", manifest_path)
    try:
        manifest = read_package_manifest(manifest_path, filesystem)
    except ManifestValidationError as exc:
        LOGGER.error(
            "Invalid %s format at %s: %s",
            PACKAGE_MANIFEST_FILENAME,
            manifest_path,
            exc.detail,
        )
        sink.error(
            f"Invalid {PACKAGE_MANIFEST_FILENAME} format at {manifest_path}: "
            f"{exc.detail}"
        )
        return None
    except PackageManifestParseError as exc:
        LOGGER.error("Invalid JSON syntax in %s: %s", manifest_path, exc.detail)
        sink.error(f"Invalid JSON syntax in {manifest_path}: {exc.detail}")
        return None
    except OSError as exc:
        LOGGER.error("Failed to load package info from %s: %s", manifest_path, exc)
        sink.error(f"Failed to load {manifest_path}. Check the log for details.")
        return None
    package_dir = manifest_path.parent
    relative_path = posix_relative_path(package_dir, project_root)
    LOGGER.debug("Package %s at %s", manifest.name, relative_path)
    return PackageRecord(
        name=manifest.name,
        location=package_dir,
        relative_path=relative_path,
        is_root=is_root,
    )


def scan_workspace(
    descriptor: WorkspaceDescriptor,
    filesystem: HostFileSystem | None = None,
    notifier: Notifier | None = None,
    *,
    project_root: Path | None = None,
) -> list[PackageRecord]:
    """Return the root package followed by the packages ``descriptor`` declares.

    ``project_root`` is the folder relative paths are computed against; it
    defaults to the workspace root.
    """
    fs = LocalFileSystem() if filesystem is None else filesystem
    workspace_root = descriptor.root_path
    base = workspace_root if project_root is None else project_root
    packages: list[PackageRecord] = []

    root_manifest = workspace_root / PACKAGE_MANIFEST_FILENAME
    if _exists(fs, root_manifest):
        root_package = load_package(
            root_manifest, base, fs, notifier, is_root=True
        )
        if root_package is not None:
            LOGGER.info("Found workspace root package: %s", root_package.name)
            packages.append(root_package)
    else:
        LOGGER.info("No %s found in workspace root", PACKAGE_MANIFEST_FILENAME)

    if not descriptor.patterns:
        LOGGER.info("No packages patterns found in %s", descriptor.manifest_path)
        return packages

    root_key = _location_key(workspace_root)
    for manifest_path in discover_packages(workspace_root, descriptor.patterns, fs):
        if _location_key(manifest_path.parent) == root_key:
            continue
        record = load_package(manifest_path, base, fs, notifier)
        if record is not None:
            packages.append(record)
    LOGGER.info(
        "Workspace %s contributed %d packages", workspace_root.name, len(packages)
    )
    return packages


def _exists(fs: HostFileSystem, path: Path) -> bool:
    try:
        return fs.exists(path)
    except OSError:
        return False


def _location_key(path: Path) -> str:
    return str(path.resolve(strict=False))
