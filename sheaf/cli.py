"""Command-line interface for the :mod:`sheaf` toolkit."""

from __future__ import annotations

import logging
import os
import sys
import typing as typ
from contextlib import contextmanager
from pathlib import Path

from cyclopts import App, Parameter

from . import commands, config
from .errors import SheafError
from .utils import normalise_workspace_root

WORKSPACE_ROOT_ENV_VAR = "SHEAF_WORKSPACE_ROOT"
WORKSPACE_ROOT_REQUIRED_MESSAGE = "--workspace-root requires a value"
VERBOSE_FLAGS: typ.Final[frozenset[str]] = frozenset({"--verbose", "-v"})
LOG_FORMAT = "%(levelname)s %(name)s: %(message)s"
_WORKSPACE_PARAMETER = Parameter(
    name="workspace-root",
    env_var=WORKSPACE_ROOT_ENV_VAR,
    help="Path to the pnpm workspace root.",
)
WorkspaceRootOption = typ.Annotated[Path, _WORKSPACE_PARAMETER]

app = App(
    help="Navigate pnpm workspaces with the sheaf toolkit.",
    result_action="return_value",
)


def _validate_workspace_value(value: str) -> str:
    """Ensure ``value`` is usable as a workspace path."""
    if not value or value.startswith("-"):
        raise SystemExit(WORKSPACE_ROOT_REQUIRED_MESSAGE)
    return value


def _parse_workspace_flag(tokens: typ.Sequence[str], index: int) -> tuple[str, int]:
    """Parse ``--workspace-root <path>`` form starting at ``index``."""
    try:
        candidate = tokens[index + 1]
    except IndexError as err:
        raise SystemExit(WORKSPACE_ROOT_REQUIRED_MESSAGE) from err
    workspace = _validate_workspace_value(candidate)
    return workspace, index + 2


def _parse_workspace_equals(argument: str, index: int) -> tuple[str, int]:
    """Parse ``--workspace-root=<path>`` form for ``argument``."""
    candidate = argument.partition("=")[2]
    workspace = _validate_workspace_value(candidate)
    return workspace, index + 1


def _extract_workspace_override(
    tokens: typ.Sequence[str],
) -> tuple[str | None, list[str]]:
    """Split ``--workspace-root`` from CLI tokens.

    The flag can appear in either ``--workspace-root <path>`` or
    ``--workspace-root=<path>`` form. The last occurrence wins, matching
    common CLI conventions. The returned token list can be passed directly
    to :func:`cyclopts.App.__call__`.
    """
    workspace: str | None = None
    remainder: list[str] = []
    index = 0
    while index < len(tokens):
        current_argument = tokens[index]
        if current_argument == "--workspace-root":
            workspace, index = _parse_workspace_flag(tokens, index)
            continue
        if current_argument.startswith("--workspace-root="):
            workspace, index = _parse_workspace_equals(current_argument, index)
            continue
        remainder.append(current_argument)
        index += 1
    return workspace, remainder


def _extract_verbosity(tokens: typ.Sequence[str]) -> tuple[bool, list[str]]:
    """Remove ``--verbose``/``-v`` from ``tokens`` and report whether it was set."""
    remainder = [token for token in tokens if token not in VERBOSE_FLAGS]
    return len(remainder) != len(tokens), remainder


def _configure_logging(*, verbose: bool) -> None:
    """Send log records to stderr; ``verbose`` lowers the threshold to DEBUG."""
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format=LOG_FORMAT,
        stream=sys.stderr,
        force=True,
    )


@contextmanager
def _workspace_env(value: Path) -> typ.Iterator[None]:
    """Temporarily set :data:`WORKSPACE_ROOT_ENV_VAR` to ``value``."""
    previous = os.environ.get(WORKSPACE_ROOT_ENV_VAR)
    os.environ[WORKSPACE_ROOT_ENV_VAR] = str(value)
    try:
        yield
    finally:
        if previous is None:
            os.environ.pop(WORKSPACE_ROOT_ENV_VAR, None)
        else:
            os.environ[WORKSPACE_ROOT_ENV_VAR] = previous


def _dispatch_and_print(tokens: typ.Sequence[str]) -> int:
    """Execute the Cyclopts app and print command results."""
    try:
        result = app(tokens)
    except SystemExit as err:
        code = err.code
        if code is None:
            return 0
        if isinstance(code, int):
            return code
        print(code, file=sys.stderr)
        return 1
    except SheafError as exc:
        print(f"Error: {exc}", file=sys.stderr)
        return 1
    if isinstance(result, int):
        return result
    if result:
        print(result)
    return 0


def main(argv: typ.Sequence[str] | None = None) -> int:
    """Entry point for ``python -m sheaf.cli``."""
    try:
        if argv is None:
            argv = sys.argv[1:]
        verbose, tokens = _extract_verbosity(list(argv))
        _configure_logging(verbose=verbose)
        workspace_override, remaining = _extract_workspace_override(tokens)
        workspace_root = normalise_workspace_root(workspace_override)
        if not remaining:
            _dispatch_and_print(remaining)  # Print usage message
            return 2  # Standard exit code for missing subcommand
        previous_config = app.config
        config_loader = config.build_loader(workspace_root)
        try:
            configuration = config.load_from_loader(config_loader)
        except config.ConfigurationError as exc:
            print(f"Configuration error: {exc}", file=sys.stderr)
            return 1
        app.config = (config_loader,)
        try:
            with (
                _workspace_env(workspace_root),
                config.use_configuration(configuration),
            ):
                return _dispatch_and_print(remaining)
        finally:
            app.config = previous_config
    except KeyboardInterrupt:
        print("\nOperation cancelled by user.", file=sys.stderr)
        return 130
    except Exception as exc:  # noqa: BLE001 - fallback guard for CLI entry point
        print(f"Unexpected error: {exc}", file=sys.stderr)
        return 1


def _run_with_configuration(
    workspace_root: Path,
    runner: typ.Callable[[Path, config.SheafConfig], str],
) -> str:
    """Execute ``runner`` with a configuration, loading it on demand."""
    try:
        configuration = config.current_configuration()
    except config.ConfigurationNotLoadedError:
        configuration = config.load_configuration(workspace_root)
        with config.use_configuration(configuration):
            return runner(workspace_root, configuration)
    return runner(workspace_root, configuration)


def _with_options(
    runner: typ.Callable[..., str], *args: object, **kwargs: object
) -> typ.Callable[[Path, config.SheafConfig], str]:
    """Adapt a dependency command to the ``(root, configuration)`` signature."""

    def _invoke(root: Path, configuration: config.SheafConfig) -> str:
        options = commands.dependencies.DependencyOptions(configuration=configuration)
        return runner(root, *args, options, **kwargs)

    return _invoke


@app.command
def packages(
    workspace_root: WorkspaceRootOption | None = None,
) -> str:
    """List every package in the workspace with its relative path."""
    resolved = normalise_workspace_root(workspace_root)
    return _run_with_configuration(resolved, commands.packages.run)


@app.command
def dependencies(
    name: str,
    *,
    paths: bool = False,
    workspace_root: WorkspaceRootOption | None = None,
) -> str:
    """Print the workspace dependencies of package ``name``.

    Parameters
    ----------
    name
        Package name as declared in its ``package.json``.
    paths
        Print workspace-relative paths instead of names.
    workspace_root
        Path to the pnpm workspace root.

    """
    resolved = normalise_workspace_root(workspace_root)
    runner = _with_options(commands.dependencies.run, name, paths=paths)
    return _run_with_configuration(resolved, runner)


@app.command
def search_scope(
    name: str,
    *,
    workspace_root: WorkspaceRootOption | None = None,
) -> str:
    """Print a files-to-include list for ``name`` and its dependencies."""
    resolved = normalise_workspace_root(workspace_root)
    runner = _with_options(commands.dependencies.search_scope, name)
    return _run_with_configuration(resolved, runner)


@app.command
def locate(
    name: str,
    *,
    workspace_root: WorkspaceRootOption | None = None,
) -> str:
    """Print the absolute directory of package ``name``."""
    resolved = normalise_workspace_root(workspace_root)
    runner = _with_options(commands.dependencies.locate, name)
    return _run_with_configuration(resolved, runner)


@app.command
def reveal(
    path: str,
    *,
    workspace_root: WorkspaceRootOption | None = None,
) -> str:
    """Print the original location behind a symlinked ``path``."""
    resolved = normalise_workspace_root(workspace_root)
    return commands.reveal.run(resolved, path)


@app.command
def init(
    *,
    force: bool = False,
    workspace_root: WorkspaceRootOption | None = None,
) -> str:
    """Write a default ``sheaf.toml`` to the workspace root."""
    resolved = normalise_workspace_root(workspace_root)
    return commands.init.run(resolved, force=force)


if __name__ == "__main__":  # pragma: no cover - convenience entry point
    raise SystemExit(main())
