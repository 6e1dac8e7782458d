"""Unit tests for the sheaf CLI."""

from __future__ import annotations

import dataclasses as dc
import os
import typing as typ

import pytest

from sheaf import cli
from sheaf import config as config_module
from tests.helpers.workspace_helpers import write_package, write_workspace_manifest

if typ.TYPE_CHECKING:
    from pathlib import Path


@dc.dataclass(frozen=True)
class ExceptionHandlingCase:
    """Test case for exception handling validation."""

    exception: BaseException
    expected_exit_code: int
    expected_message: str


@pytest.fixture
def populated_workspace(workspace_root: Path) -> Path:
    """Return a workspace with a root package and three members."""
    write_workspace_manifest(workspace_root, ["packages/*", "apps/*"])
    write_package(workspace_root, ".", "monorepo")
    write_package(workspace_root, "packages/ui", "@acme/ui")
    write_package(
        workspace_root,
        "packages/utils",
        "@acme/utils",
        devDependencies={"@acme/ui": "workspace:*"},
    )
    write_package(
        workspace_root,
        "apps/web",
        "@acme/web",
        dependencies={"@acme/utils": "workspace:^", "react": "^18.0.0"},
        devDependencies={"@acme/ui": "workspace:*"},
    )
    return workspace_root


@pytest.mark.parametrize(
    ("tokens", "expected_workspace", "expected_remaining"),
    [
        ([], None, []),
        (["packages"], None, ["packages"]),
        (["--workspace-root", "workspace", "packages"], "workspace", ["packages"]),
        (["--workspace-root=workspace", "locate", "a"], "workspace", ["locate", "a"]),
        (["packages", "--workspace-root", "workspace"], "workspace", ["packages"]),
        (
            [
                "--workspace-root=first",
                "--workspace-root",
                "second",
                "packages",
            ],
            "second",
            ["packages"],
        ),
    ],
)
def test_extract_workspace_override(
    tokens: typ.Sequence[str],
    expected_workspace: str | None,
    expected_remaining: list[str],
) -> None:
    """Extract workspace overrides from CLI tokens."""
    workspace, remaining = cli._extract_workspace_override(tokens)
    assert workspace == expected_workspace
    assert remaining == expected_remaining


def test_extract_workspace_override_requires_value() -> None:
    """Require a value whenever ``--workspace-root`` appears."""
    with pytest.raises(SystemExit):
        cli._extract_workspace_override(["--workspace-root"])


def test_extract_workspace_override_requires_value_equals() -> None:
    """Reject ``--workspace-root=`` when no value is supplied."""
    with pytest.raises(SystemExit):
        cli._extract_workspace_override(["--workspace-root="])


def test_extract_verbosity() -> None:
    """``--verbose`` and ``-v`` are consumed before dispatch."""
    assert cli._extract_verbosity(["-v", "packages"]) == (True, ["packages"])
    assert cli._extract_verbosity(["packages", "--verbose"]) == (True, ["packages"])
    assert cli._extract_verbosity(["packages"]) == (False, ["packages"])


def test_main_lists_packages(
    populated_workspace: Path, capsys: pytest.CaptureFixture[str]
) -> None:
    """``packages`` prints one line per package and a summary."""
    exit_code = cli.main(["--workspace-root", str(populated_workspace), "packages"])

    assert exit_code == 0
    lines = capsys.readouterr().out.splitlines()
    assert lines == [
        "monorepo\t. (root)",
        "@acme/ui\tpackages/ui",
        "@acme/utils\tpackages/utils",
        "@acme/web\tapps/web",
        f"4 packages in {populated_workspace}",
    ]


@pytest.mark.parametrize(
    ("extra_args", "expected"),
    [
        ([], "@acme/ui\n@acme/utils\n"),
        (["--paths"], "packages/ui\npackages/utils\n"),
    ],
)
def test_main_prints_dependencies(
    populated_workspace: Path,
    capsys: pytest.CaptureFixture[str],
    extra_args: list[str],
    expected: str,
) -> None:
    """``dependencies`` prints names or paths sorted by name."""
    exit_code = cli.main(
        [
            "dependencies",
            "@acme/web",
            *extra_args,
            "--workspace-root",
            str(populated_workspace),
        ]
    )

    assert exit_code == 0
    assert capsys.readouterr().out == expected


def test_main_respects_configuration(
    populated_workspace: Path, capsys: pytest.CaptureFixture[str]
) -> None:
    """Disabled dependency classes are skipped."""
    (populated_workspace / config_module.CONFIG_FILENAME).write_text(
        "[resolution]\ninclude_dev_dependencies = false\n", encoding="utf-8"
    )

    exit_code = cli.main(
        ["--workspace-root", str(populated_workspace), "dependencies", "@acme/web"]
    )

    assert exit_code == 0
    assert capsys.readouterr().out == "@acme/utils\n"


def test_main_reports_unknown_package(
    populated_workspace: Path, capsys: pytest.CaptureFixture[str]
) -> None:
    """Asking about a package outside the workspace fails clearly."""
    exit_code = cli.main(
        ["--workspace-root", str(populated_workspace), "dependencies", "nope"]
    )

    assert exit_code == 1
    assert "package 'nope' is not part of the workspace" in capsys.readouterr().err


def test_main_search_scope_and_locate(
    populated_workspace: Path, capsys: pytest.CaptureFixture[str]
) -> None:
    """``search-scope`` and ``locate`` report package locations."""
    root = str(populated_workspace)

    assert cli.main(["--workspace-root", root, "search-scope", "@acme/web"]) == 0
    assert capsys.readouterr().out == "apps/web, packages/ui, packages/utils\n"

    assert cli.main(["--workspace-root", root, "locate", "@acme/ui"]) == 0
    assert capsys.readouterr().out == f"{populated_workspace / 'packages' / 'ui'}\n"


def test_main_prints_long_paths_verbatim(
    tmp_path: Path, capsys: pytest.CaptureFixture[str]
) -> None:
    """Command results are printed as-is, never wrapped to the terminal width."""
    root = tmp_path.resolve()
    for depth in range(6):
        root = root / f"deeply-nested-directory-name-level-{depth}"
    root.mkdir(parents=True)
    write_workspace_manifest(root, ["packages/*"])
    write_package(root, "packages/ui", "@acme/ui")

    exit_code = cli.main(["--workspace-root", str(root), "locate", "@acme/ui"])

    assert exit_code == 0
    assert capsys.readouterr().out == f"{root / 'packages' / 'ui'}\n"


def test_main_reveal(
    populated_workspace: Path, capsys: pytest.CaptureFixture[str]
) -> None:
    """``reveal`` follows a linked dependency back to its source."""
    modules = populated_workspace / "apps" / "web" / "node_modules" / "@acme"
    modules.mkdir(parents=True)
    (modules / "ui").symlink_to(populated_workspace / "packages" / "ui")
    root = str(populated_workspace)

    exit_code = cli.main(
        [
            "--workspace-root",
            root,
            "reveal",
            "apps/web/node_modules/@acme/ui/package.json",
        ]
    )

    assert exit_code == 0
    expected = populated_workspace / "packages" / "ui" / "package.json"
    assert capsys.readouterr().out == f"{expected}\n"

    assert cli.main(["--workspace-root", root, "reveal", "packages/ui"]) == 0
    assert "not a symlink" in capsys.readouterr().out


def test_main_init_writes_configuration(
    workspace_root: Path, capsys: pytest.CaptureFixture[str]
) -> None:
    """``init`` writes ``sheaf.toml`` once and refuses to overwrite it."""
    root = str(workspace_root)

    assert cli.main(["--workspace-root", root, "init"]) == 0
    config_path = workspace_root / config_module.CONFIG_FILENAME
    assert config_path.exists()
    capsys.readouterr()

    assert cli.main(["--workspace-root", root, "init"]) == 1
    assert "already exists" in capsys.readouterr().err

    assert cli.main(["--workspace-root", root, "init", "--force"]) == 0


def test_main_handles_missing_subcommand(
    capsys: pytest.CaptureFixture[str],
) -> None:
    """Return an error when no subcommand is provided."""
    exit_code = cli.main([])
    assert exit_code == 2
    captured = capsys.readouterr()
    assert "Usage" in captured.out


def test_main_handles_invalid_subcommand(
    capsys: pytest.CaptureFixture[str],
    monkeypatch: pytest.MonkeyPatch,
    tmp_path: Path,
) -> None:
    """Report an error when the subcommand is unknown."""
    monkeypatch.chdir(tmp_path)
    exit_code = cli.main(["invalid"])
    assert exit_code != 0


def test_main_reports_invalid_configuration(
    capsys: pytest.CaptureFixture[str], workspace_root: Path
) -> None:
    """Return a clear error when configuration is invalid."""
    (workspace_root / config_module.CONFIG_FILENAME).write_text(
        "[resolution]\ninclude_dependencies = 1\n", encoding="utf-8"
    )

    exit_code = cli.main(["packages", "--workspace-root", str(workspace_root)])

    assert exit_code == 1
    assert "Configuration error:" in capsys.readouterr().err


@pytest.mark.parametrize(
    "case",
    [
        ExceptionHandlingCase(
            exception=KeyboardInterrupt(),
            expected_exit_code=130,
            expected_message="Operation cancelled",
        ),
        ExceptionHandlingCase(
            exception=RuntimeError("boom"),
            expected_exit_code=1,
            expected_message="Unexpected error",
        ),
    ],
)
def test_main_handles_exceptions(
    monkeypatch: pytest.MonkeyPatch,
    capsys: pytest.CaptureFixture[str],
    tmp_path: Path,
    case: ExceptionHandlingCase,
) -> None:
    """Handle exceptions during command execution."""

    def boom(_: typ.Sequence[str]) -> int:
        raise case.exception

    monkeypatch.setattr(cli, "_dispatch_and_print", boom)
    exit_code = cli.main(["packages", "--workspace-root", str(tmp_path)])
    assert exit_code == case.expected_exit_code
    captured = capsys.readouterr()
    assert case.expected_message in captured.err


def test_workspace_env_sets_and_restores(
    tmp_path: Path, monkeypatch: pytest.MonkeyPatch
) -> None:
    """Ensure the workspace variable only exists while the context is active."""
    monkeypatch.delenv(cli.WORKSPACE_ROOT_ENV_VAR, raising=False)
    with cli._workspace_env(tmp_path):
        assert os.environ[cli.WORKSPACE_ROOT_ENV_VAR] == str(tmp_path)
    assert cli.WORKSPACE_ROOT_ENV_VAR not in os.environ
