"""Workspace data structures for :mod:`sheaf`."""

from __future__ import annotations

import typing as typ
from pathlib import Path

import msgspec

WORKSPACE_MANIFEST_FILENAME: typ.Final[str] = "pnpm-workspace.yaml"
PACKAGE_MANIFEST_FILENAME: typ.Final[str] = "package.json"
WORKSPACE_PROTOCOL: typ.Final[str] = "workspace:"

NonEmptyStr = typ.Annotated[str, msgspec.Meta(min_length=1)]
DependencyMap = dict[NonEmptyStr, NonEmptyStr]


class WorkspaceConfig(msgspec.Struct, frozen=True, kw_only=True):
    """Validated contents of ``pnpm-workspace.yaml``."""

    packages: tuple[str, ...] = ()


class PackageManifest(msgspec.Struct, frozen=True, kw_only=True, rename="camel"):
    """The subset of ``package.json`` that :mod:`sheaf` reads."""

    name: NonEmptyStr
    dependencies: DependencyMap | None = None
    dev_dependencies: DependencyMap | None = None
    optional_dependencies: DependencyMap | None = None

    def section(self, field_name: str) -> DependencyMap:
        """Return the dependency map stored under ``field_name``."""
        value = getattr(self, field_name)
        return {} if value is None else value


class WorkspaceDescriptor(msgspec.Struct, frozen=True, kw_only=True):
    """A workspace manifest together with its package-root patterns."""

    manifest_path: Path
    root_path: Path
    patterns: tuple[str, ...] = ()


class PackageRecord(msgspec.Struct, frozen=True, kw_only=True):
    """A package discovered in the workspace."""

    name: str
    location: Path
    relative_path: str
    is_root: bool = False

    @property
    def manifest_path(self) -> Path:
        """Return the location of this package's ``package.json``."""
        return self.location / PACKAGE_MANIFEST_FILENAME


class DependencyEdge(msgspec.Struct, frozen=True, kw_only=True):
    """A resolved ``workspace:`` dependency on another registry package."""

    name: str
    relative_path: str
