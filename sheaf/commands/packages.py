"""List the packages in a workspace."""

from __future__ import annotations

import typing as typ

from ._shared import build_registry, describe_packages

if typ.TYPE_CHECKING:
    from pathlib import Path

    from sheaf.config import SheafConfig
    from sheaf.workspace import PackageRecord, PackageRegistry


def run(
    workspace_root: Path,
    configuration: SheafConfig | None = None,
    *,
    registry: PackageRegistry | None = None,
) -> str:
    """Return one ``name<TAB>path`` line per package followed by a summary."""
    active = build_registry(workspace_root) if registry is None else registry
    packages = active.get()
    lines = [_format_package(package) for package in packages]
    lines.append(f"{describe_packages(packages)} in {workspace_root}")
    return "\n".join(lines)


def _format_package(package: PackageRecord) -> str:
    marker = " (root)" if package.is_root else ""
    return f"{package.name}\t{package.relative_path}{marker}"
