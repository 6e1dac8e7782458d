"""Report the workspace dependencies of a package."""

from __future__ import annotations

import dataclasses as dc
import typing as typ

from sheaf import config as config_module
from sheaf.notify import StderrNotifier
from sheaf.workspace import resolve_dependencies

from ._shared import build_registry, require_package

if typ.TYPE_CHECKING:
    from pathlib import Path

    from sheaf.config import SheafConfig
    from sheaf.workspace import DependencyEdge, PackageRegistry


@dc.dataclass(frozen=True, slots=True)
class DependencyOptions:
    """Inputs shared by the dependency-reporting commands."""

    configuration: SheafConfig | None = None
    registry: PackageRegistry | None = None


def collect(
    workspace_root: Path,
    package_name: str,
    options: DependencyOptions | None = None,
) -> tuple[DependencyEdge, ...]:
    """Return the resolved edges for ``package_name``.

    Raises:
        PackageNotFoundError: ``package_name`` is not part of the workspace.

    """
    options = DependencyOptions() if options is None else options
    configuration = options.configuration
    if configuration is None:
        configuration = config_module.current_configuration()
    registry = _registry(workspace_root, options)
    require_package(registry, package_name)
    return resolve_dependencies(
        package_name,
        registry.get(),
        configuration.resolution.dependency_classes(),
        filesystem=registry.filesystem,
        notifier=StderrNotifier(),
    )


def run(
    workspace_root: Path,
    package_name: str,
    options: DependencyOptions | None = None,
    *,
    paths: bool = False,
) -> str:
    """Return dependency names, or relative paths when ``paths`` is set."""
    edges = collect(workspace_root, package_name, options)
    if paths:
        return "\n".join(edge.relative_path for edge in edges)
    return "\n".join(edge.name for edge in edges)


def search_scope(
    workspace_root: Path,
    package_name: str,
    options: DependencyOptions | None = None,
) -> str:
    """Return a files-to-include list covering a package and its dependencies."""
    options = DependencyOptions() if options is None else options
    registry = _registry(workspace_root, options)
    package = require_package(registry, package_name)
    edges = collect(
        workspace_root,
        package_name,
        DependencyOptions(configuration=options.configuration, registry=registry),
    )
    scope = [package.relative_path, *(edge.relative_path for edge in edges)]
    return ", ".join(dict.fromkeys(scope))


def locate(
    workspace_root: Path,
    package_name: str,
    options: DependencyOptions | None = None,
) -> str:
    """Return the absolute directory of ``package_name``."""
    options = DependencyOptions() if options is None else options
    registry = _registry(workspace_root, options)
    return str(require_package(registry, package_name).location)


def _registry(workspace_root: Path, options: DependencyOptions) -> PackageRegistry:
    if options.registry is None:
        return build_registry(workspace_root)
    return options.registry
