"""Exception hierarchy shared across :mod:`sheaf`."""

from __future__ import annotations

from pathlib import Path


class SheafError(RuntimeError):
    """Base class for errors raised by :mod:`sheaf`."""


class ManifestParseError(SheafError):
    """Raised when a manifest document is not well-formed."""

    def __init__(self, manifest_path: Path, detail: str) -> None:
        """Record the manifest location alongside the parser message."""
        self.manifest_path = manifest_path
        self.detail = detail
        super().__init__(f"failed to parse {manifest_path}: {detail}")


class ManifestValidationError(SheafError):
    """Raised when a well-formed manifest violates its schema."""

    def __init__(self, manifest_path: Path, detail: str) -> None:
        """Record the manifest location alongside the validation message."""
        self.manifest_path = manifest_path
        self.detail = detail
        super().__init__(f"invalid manifest {manifest_path}: {detail}")


class WorkspaceParseError(ManifestParseError):
    """Raised when ``pnpm-workspace.yaml`` contains malformed YAML."""


class WorkspaceConfigValidationError(ManifestValidationError):
    """Raised when ``pnpm-workspace.yaml`` has the wrong shape."""


class PackageManifestParseError(ManifestParseError):
    """Raised when ``package.json`` contains malformed JSON."""


class PackageManifestValidationError(ManifestValidationError):
    """Raised when ``package.json`` fails schema validation."""


class PackageNotFoundError(SheafError):
    """Raised when a package name is absent from the registry."""

    def __init__(self, name: str) -> None:
        """Describe the missing package."""
        self.name = name
        super().__init__(f"package {name!r} is not part of the workspace")


class SymlinkCycleError(SheafError):
    """Raised internally when a symbolic-link chain revisits a path."""

    def __init__(self, path: Path) -> None:
        """Record where the cycle was detected."""
        self.path = path
        super().__init__(f"symlink cycle detected at {path}")


class BrokenSymlinkError(SheafError):
    """Raised internally when a path in a link chain cannot be inspected."""

    def __init__(self, path: Path, reason: str) -> None:
        """Record the failing path and the underlying OS error."""
        self.path = path
        super().__init__(f"cannot resolve {path}: {reason}")


class UnsupportedEnvironmentError(SheafError):
    """Raised when the host lacks the filesystem primitives an operation needs."""

    def __init__(self, operation: str) -> None:
        """Name the unsupported operation."""
        self.operation = operation
        super().__init__(f"{operation} is not supported in this environment")
