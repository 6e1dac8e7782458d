"""Configuration loading for the :mod:`sheaf` toolkit."""

from __future__ import annotations

import contextlib
import contextvars
import dataclasses as dc
import typing as typ
from collections import abc as cabc
from pathlib import Path

import tomlkit
from cyclopts.config import Toml

from sheaf.errors import SheafError
from sheaf.utils import normalise_workspace_root
from sheaf.workspace import DependencyClasses

CONFIG_FILENAME = "sheaf.toml"

_RESOLUTION_KEYS: typ.Final[dict[str, str]] = {
    "include_dependencies": "dependencies",
    "include_dev_dependencies": "dev_dependencies",
    "include_optional_dependencies": "optional_dependencies",
}


class ConfigurationError(SheafError):
    """Raised when the :mod:`sheaf` configuration is invalid."""


class ConfigurationNotLoadedError(ConfigurationError):
    """Raised when code accesses the configuration before it is loaded."""


@dc.dataclass(frozen=True, slots=True)
class ResolutionConfig:
    """Which dependency classes ``workspace:`` resolution follows."""

    include_dependencies: bool = True
    include_dev_dependencies: bool = True
    include_optional_dependencies: bool = True

    @classmethod
    def from_mapping(
        cls, mapping: cabc.Mapping[str, typ.Any] | None
    ) -> ResolutionConfig:
        """Create a :class:`ResolutionConfig` from a TOML table mapping."""
        if mapping is None:
            return cls()
        unknown = set(mapping) - set(_RESOLUTION_KEYS)
        if unknown:
            joined = ", ".join(sorted(unknown))
            message = f"Unknown resolution option(s): {joined}."
            raise ConfigurationError(message)
        values = {
            key: _boolean(mapping[key], f"resolution.{key}")
            for key in _RESOLUTION_KEYS
            if key in mapping
        }
        return cls(**values)

    def dependency_classes(self) -> DependencyClasses:
        """Return the toggles as :class:`DependencyClasses`."""
        return DependencyClasses(
            **{
                field: getattr(self, key)
                for key, field in _RESOLUTION_KEYS.items()
            }
        )


@dc.dataclass(frozen=True, slots=True)
class SheafConfig:
    """Strongly-typed representation of ``sheaf.toml``."""

    resolution: ResolutionConfig = dc.field(default_factory=ResolutionConfig)

    @classmethod
    def from_mapping(cls, mapping: cabc.Mapping[str, typ.Any]) -> SheafConfig:
        """Create a :class:`SheafConfig` from a parsed configuration mapping."""
        unknown = set(mapping) - {"resolution"}
        if unknown:
            joined = ", ".join(sorted(unknown))
            message = f"Unknown configuration section(s): {joined}."
            raise ConfigurationError(message)
        return cls(
            resolution=ResolutionConfig.from_mapping(
                _optional_mapping(mapping.get("resolution"), "resolution")
            ),
        )


_active_config: contextvars.ContextVar[SheafConfig] = contextvars.ContextVar(
    "sheaf_active_config"
)


def build_loader(workspace_root: Path) -> Toml:
    """Return a Cyclopts loader for ``sheaf.toml`` in ``workspace_root``."""
    resolved = normalise_workspace_root(workspace_root)
    return Toml(
        path=resolved / CONFIG_FILENAME,
        must_exist=False,
        search_parents=False,
        allow_unknown=True,
        use_commands_as_keys=True,
    )


def load_from_loader(loader: Toml) -> SheafConfig:
    """Load and validate configuration using ``loader``.

    A missing file yields the defaults.
    """
    if not Path(loader.path).exists():
        return SheafConfig()
    try:
        raw = loader.config
    except FileNotFoundError:
        return SheafConfig()
    except ValueError as exc:
        raise ConfigurationError(str(exc)) from exc
    if not isinstance(raw, cabc.Mapping):
        message = "Configuration root must be a TOML table."
        raise ConfigurationError(message)
    return SheafConfig.from_mapping(raw)


def load_configuration(workspace_root: Path) -> SheafConfig:
    """Load configuration for ``workspace_root`` using Cyclopts."""
    loader = build_loader(workspace_root)
    return load_from_loader(loader)


def render_default_configuration() -> str:
    """Return a commented ``sheaf.toml`` holding the default settings."""
    document = tomlkit.document()
    document.add(tomlkit.comment("Settings for the sheaf workspace toolkit."))
    document.add(tomlkit.nl())
    resolution = tomlkit.table()
    resolution.add(
        tomlkit.comment("Dependency maps followed when resolving workspace: links.")
    )
    defaults = ResolutionConfig()
    for key in _RESOLUTION_KEYS:
        resolution.add(key, getattr(defaults, key))
    document.add("resolution", resolution)
    return tomlkit.dumps(document)


@contextlib.contextmanager
def use_configuration(configuration: SheafConfig) -> typ.Iterator[None]:
    """Set ``configuration`` as the active configuration for the current context."""
    token = _active_config.set(configuration)
    try:
        yield
    finally:
        _active_config.reset(token)


def current_configuration() -> SheafConfig:
    """Return the active configuration or raise if none has been set."""
    try:
        return _active_config.get()
    except LookupError as exc:  # pragma: no cover - defensive guard
        message = "Configuration has not been loaded yet."
        raise ConfigurationNotLoadedError(message) from exc


def _boolean(value: object, field_name: str) -> bool:
    """Return ``value`` when it is a boolean, otherwise raise."""
    if isinstance(value, bool):
        return value
    message = f"{field_name} must be true or false; received {type(value).__name__}."
    raise ConfigurationError(message)


def _optional_mapping(
    value: object, field_name: str
) -> cabc.Mapping[str, typ.Any] | None:
    """Ensure ``value`` is a mapping if provided."""
    if value is None:
        return None
    if isinstance(value, cabc.Mapping):
        return value
    message = f"{field_name} must be a TOML table; received {type(value).__name__}."
    raise ConfigurationError(message)
