"""Write a default ``sheaf.toml``."""

from __future__ import annotations

import typing as typ

from sheaf import config as config_module

if typ.TYPE_CHECKING:
    from pathlib import Path


def run(workspace_root: Path, *, force: bool = False) -> str:
    """Create ``sheaf.toml`` in ``workspace_root`` unless one already exists."""
    config_path = workspace_root / config_module.CONFIG_FILENAME
    if config_path.exists() and not force:
        message = f"{config_path} already exists; pass --force to overwrite it."
        raise config_module.ConfigurationError(message)
    config_path.write_text(
        config_module.render_default_configuration(), encoding="utf-8"
    )
    return f"Wrote {config_path}"
