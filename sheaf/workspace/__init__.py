"""Workspace discovery utilities for :mod:`sheaf`."""

from __future__ import annotations

from .dependencies import (
    DependencyClasses,
    dependency_names,
    dependency_paths,
    resolve_dependencies,
)
from .fs import HostFileSystem, LocalFileSystem
from .locator import (
    find_workspace_manifests,
    load_workspace_patterns,
    locate_workspaces,
)
from .models import (
    DependencyEdge,
    PackageManifest,
    PackageRecord,
    WorkspaceDescriptor,
)
from .patterns import DEFAULT_EXCLUDES, PackagePatterns, split_patterns
from .registry import PackageRegistry, find_package, scan_packages
from .scanner import discover_packages, load_package, scan_workspace

__all__ = [
    "DEFAULT_EXCLUDES",
    "DependencyClasses",
    "DependencyEdge",
    "HostFileSystem",
    "LocalFileSystem",
    "PackageManifest",
    "PackagePatterns",
    "PackageRecord",
    "PackageRegistry",
    "WorkspaceDescriptor",
    "dependency_names",
    "dependency_paths",
    "discover_packages",
    "find_package",
    "find_workspace_manifests",
    "load_package",
    "load_workspace_patterns",
    "locate_workspaces",
    "resolve_dependencies",
    "scan_packages",
    "scan_workspace",
    "split_patterns",
]
