"""Shared helpers for command implementations."""

from __future__ import annotations

import typing as typ

from sheaf.errors import PackageNotFoundError
from sheaf.notify import StderrNotifier
from sheaf.workspace import PackageRegistry

if typ.TYPE_CHECKING:
    from pathlib import Path

    from sheaf.workspace import PackageRecord


def build_registry(workspace_root: Path) -> PackageRegistry:
    """Return a registry scanning ``workspace_root`` and reporting to stderr."""
    return PackageRegistry([workspace_root], notifier=StderrNotifier())


def require_package(registry: PackageRegistry, name: str) -> PackageRecord:
    """Return the package called ``name`` or raise :class:`PackageNotFoundError`."""
    package = registry.find(name)
    if package is None:
        raise PackageNotFoundError(name)
    return package


def describe_packages(packages: typ.Sized) -> str:
    """Return a human-friendly package count summary."""
    count = len(packages)
    label = "package" if count == 1 else "packages"
    return f"{count} {label}"
