"""Find ``pnpm-workspace.yaml`` manifests and read their package patterns."""

from __future__ import annotations

import logging
import typing as typ
from collections import abc as cabc
from pathlib import Path

import msgspec
import yaml

from sheaf.errors import (
    ManifestParseError,
    ManifestValidationError,
    WorkspaceConfigValidationError,
    WorkspaceParseError,
)
from sheaf.notify import NullNotifier

from .fs import LocalFileSystem
from .models import WORKSPACE_MANIFEST_FILENAME, WorkspaceConfig, WorkspaceDescriptor
from .patterns import DEFAULT_EXCLUDES, combine_globs

if typ.TYPE_CHECKING:
    from sheaf.notify import Notifier

    from .fs import HostFileSystem

LOGGER = logging.getLogger(__name__)


def find_workspace_manifests(
    roots: cabc.Iterable[Path],
    filesystem: HostFileSystem | None = None,
) -> list[Path]:
    """Return the workspace manifest found directly inside each of ``roots``.

    The search is not recursive and applies the default exclusions, so a
    manifest inside ``node_modules`` never marks a workspace root.
    """
    fs = LocalFileSystem() if filesystem is None else filesystem
    manifests: list[Path] = []
    for root in roots:
        manifest = _find_manifest(root, fs)
        if manifest is None:
            LOGGER.info("No %s found in %s", WORKSPACE_MANIFEST_FILENAME, root)
            continue
        LOGGER.info("Found %s", manifest)
        manifests.append(manifest)
    return manifests


def _find_manifest(root: Path, fs: HostFileSystem) -> Path | None:
    exclude_glob = combine_globs(DEFAULT_EXCLUDES)
    try:
        found = fs.search(root, WORKSPACE_MANIFEST_FILENAME, exclude_glob)
    except OSError as exc:
        LOGGER.warning("Workspace manifest search failed in %s: %s", root, exc)
        found = []
    if found:
        return found[0]
    if fs.is_local:
        return None
    candidate = root / WORKSPACE_MANIFEST_FILENAME
    try:
        return candidate if fs.exists(candidate) else None
    except OSError:
        return None


def load_workspace_patterns(
    manifest_path: Path,
    filesystem: HostFileSystem | None = None,
) -> tuple[str, ...]:
    """Parse ``manifest_path`` and return its ``packages`` patterns.

    Raises:
        WorkspaceParseError: The document is not valid YAML.
        WorkspaceConfigValidationError: The document has the wrong shape.

    """
    fs = LocalFileSystem() if filesystem is None else filesystem
    text = fs.read_bytes(manifest_path).decode("utf-8")
    try:
        raw = yaml.safe_load(text)
    except yaml.YAMLError as exc:
        raise WorkspaceParseError(manifest_path, str(exc)) from exc
    if raw is None:
        raw = {}
    try:
        config = msgspec.convert(raw, type=WorkspaceConfig)
    except msgspec.ValidationError as exc:
        raise WorkspaceConfigValidationError(manifest_path, str(exc)) from exc
    LOGGER.debug(
        "Workspace patterns from %s: %s", manifest_path, ", ".join(config.packages)
    )
    return config.packages


def load_workspace(
    manifest_path: Path,
    filesystem: HostFileSystem | None = None,
) -> WorkspaceDescriptor:
    """Return a :class:`WorkspaceDescriptor` for ``manifest_path``."""
    patterns = load_workspace_patterns(manifest_path, filesystem)
    return WorkspaceDescriptor(
        manifest_path=manifest_path,
        root_path=manifest_path.parent,
        patterns=patterns,
    )


def locate_workspaces(
    roots: cabc.Iterable[Path],
    filesystem: HostFileSystem | None = None,
    notifier: Notifier | None = None,
) -> list[WorkspaceDescriptor]:
    """Return descriptors for every readable workspace manifest under ``roots``.

    A manifest that fails to parse or validate is reported once and skipped;
    the remaining workspaces are still returned.
    """
    sink = NullNotifier() if notifier is None else notifier
    descriptors: list[WorkspaceDescriptor] = []
    for manifest in find_workspace_manifests(roots, filesystem):
        try:
            descriptors.append(load_workspace(manifest, filesystem))
        except ManifestParseError as exc:
            LOGGER.error("YAML parsing error: %s", exc)
            sink.error(f"Failed to parse {WORKSPACE_MANIFEST_FILENAME}: {exc.detail}")
        except ManifestValidationError as exc:
            LOGGER.error("Workspace config validation error: %s", exc)
            sink.error(f"Invalid {WORKSPACE_MANIFEST_FILENAME} format: {exc.detail}")
        except (OSError, UnicodeDecodeError) as exc:
            LOGGER.error("Failed to load workspace config %s: %s", manifest, exc)
            sink.error(f"Failed to load {manifest}. Check the log for details.")
    return descriptors
