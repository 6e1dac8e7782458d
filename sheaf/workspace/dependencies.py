"""Resolve ``workspace:`` dependencies between registry packages."""

from __future__ import annotations

import dataclasses as dc
import logging
import typing as typ
from collections import abc as cabc

from sheaf.errors import ManifestParseError, ManifestValidationError
from sheaf.notify import NullNotifier

from .models import WORKSPACE_PROTOCOL, DependencyEdge
from .registry import find_package
from .scanner import read_package_manifest

if typ.TYPE_CHECKING:
    from sheaf.notify import Notifier

    from .fs import HostFileSystem
    from .models import PackageRecord

LOGGER = logging.getLogger(__name__)

_SECTION_LABELS: typ.Final[dict[str, str]] = {
    "dependencies": "production",
    "dev_dependencies": "dev",
    "optional_dependencies": "optional",
}


@dc.dataclass(frozen=True, slots=True)
class DependencyClasses:
    """Which ``package.json`` dependency maps take part in resolution."""

    dependencies: bool = True
    dev_dependencies: bool = True
    optional_dependencies: bool = True

    def enabled_sections(self) -> tuple[str, ...]:
        """Return enabled manifest sections in precedence order."""
        return tuple(
            section for section in _SECTION_LABELS if getattr(self, section)
        )


def is_workspace_specifier(specifier: str) -> bool:
    """Return ``True`` when ``specifier`` uses the ``workspace:`` protocol."""
    return specifier.startswith(WORKSPACE_PROTOCOL)


def resolve_dependencies(
    package_name: str,
    packages: cabc.Sequence[PackageRecord],
    classes: DependencyClasses | None = None,
    *,
    filesystem: HostFileSystem | None = None,
    notifier: Notifier | None = None,
) -> tuple[DependencyEdge, ...]:
    """Return the workspace dependencies of ``package_name`` sorted by name.

    The manifest is read from disk on every call. Sections are merged
    production, dev, then optional; a name contributed by an earlier section
    keeps that section's specifier. Declarations naming packages outside
    ``packages`` are logged and dropped. Manifest errors are reported and
    produce an empty result.
    """
    enabled = DependencyClasses() if classes is None else classes
    sink = NullNotifier() if notifier is None else notifier
    LOGGER.info("Getting workspace dependencies for %s", package_name)

    target = find_package(packages, package_name)
    if target is None:
        LOGGER.info("Target package %s not found in workspace", package_name)
        return ()

    try:
        manifest = read_package_manifest(target.manifest_path, filesystem)
    except ManifestValidationError as exc:
        message = f"Invalid package.json format for {package_name}: {exc.detail}"
        LOGGER.error("Package validation error: %s", message)
        sink.error(message)
        return ()
    except (ManifestParseError, OSError) as exc:
        LOGGER.error("Failed to get dependencies for %s: %s", package_name, exc)
        return ()

    declared: dict[str, str] = {}
    for section in enabled.enabled_sections():
        entries = manifest.section(section)
        for name, specifier in entries.items():
            declared.setdefault(name, specifier)
        LOGGER.debug(
            "Added %d %s dependencies", len(entries), _SECTION_LABELS[section]
        )

    edges: list[DependencyEdge] = []
    for name, specifier in declared.items():
        if not is_workspace_specifier(specifier):
            continue
        dependency = find_package(packages, name)
        if dependency is None:
            LOGGER.warning(
                "Workspace dependency %s of %s not found in packages",
                name,
                package_name,
            )
            continue
        LOGGER.debug("Workspace dependency %s -> %s", name, dependency.relative_path)
        edges.append(
            DependencyEdge(name=name, relative_path=dependency.relative_path)
        )
    return tuple(sorted(edges, key=lambda edge: edge.name))


def dependency_names(
    package_name: str,
    packages: cabc.Sequence[PackageRecord],
    classes: DependencyClasses | None = None,
    **kwargs: typ.Any,
) -> tuple[str, ...]:
    """Return only the names of :func:`resolve_dependencies` edges."""
    edges = resolve_dependencies(package_name, packages, classes, **kwargs)
    return tuple(edge.name for edge in edges)


def dependency_paths(
    package_name: str,
    packages: cabc.Sequence[PackageRecord],
    classes: DependencyClasses | None = None,
    **kwargs: typ.Any,
) -> tuple[str, ...]:
    """Return only the relative paths of :func:`resolve_dependencies` edges."""
    edges = resolve_dependencies(package_name, packages, classes, **kwargs)
    return tuple(edge.relative_path for edge in edges)
