"""Tests for workspace manifest discovery and parsing."""

from __future__ import annotations

import typing as typ

import pytest

from sheaf.errors import WorkspaceConfigValidationError, WorkspaceParseError
from sheaf.workspace import (
    find_workspace_manifests,
    load_workspace_patterns,
    locate_workspaces,
)
from tests.helpers.workspace_helpers import (
    NonLocalFileSystem,
    RecordingNotifier,
    write_workspace_manifest,
)

if typ.TYPE_CHECKING:
    from pathlib import Path


def test_find_workspace_manifests_checks_each_root(tmp_path: Path) -> None:
    """Each root contributes at most its own top-level manifest."""
    first = tmp_path / "first"
    second = tmp_path / "second"
    first.mkdir()
    second.mkdir()
    manifest = write_workspace_manifest(first, ["packages/*"])
    nested = second / "nested"
    nested.mkdir()
    write_workspace_manifest(nested, ["packages/*"])

    assert find_workspace_manifests([first, second]) == [manifest]


def test_find_workspace_manifests_ignores_installed_copies(tmp_path: Path) -> None:
    """A manifest shipped inside ``node_modules`` does not mark a workspace."""
    installed = tmp_path / "node_modules" / "pkg"
    installed.mkdir(parents=True)
    write_workspace_manifest(installed, ["packages/*"])

    assert find_workspace_manifests([tmp_path]) == []


def test_find_workspace_manifests_checks_directly_on_remote_hosts(
    tmp_path: Path,
) -> None:
    """When the native search misses on a remote host the file is stat'ed."""
    manifest = write_workspace_manifest(tmp_path, ["packages/*"])
    filesystem = NonLocalFileSystem()

    assert find_workspace_manifests([tmp_path], filesystem) == [manifest]
    assert filesystem.search_calls


def test_load_workspace_patterns_reads_packages(tmp_path: Path) -> None:
    """The ``packages`` sequence is returned in declaration order."""
    manifest = write_workspace_manifest(tmp_path, ["packages/*", "!packages/old"])

    assert load_workspace_patterns(manifest) == ("packages/*", "!packages/old")


@pytest.mark.parametrize(
    "content",
    [
        pytest.param("", id="empty_document"),
        pytest.param("catalog:\n  react: ^18.0.0\n", id="no_packages_key"),
    ],
)
def test_load_workspace_patterns_defaults_to_empty(
    tmp_path: Path, content: str
) -> None:
    """Missing ``packages`` means no package patterns."""
    manifest = tmp_path / "pnpm-workspace.yaml"
    manifest.write_text(content, encoding="utf-8")

    assert load_workspace_patterns(manifest) == ()


def test_load_workspace_patterns_rejects_malformed_yaml(tmp_path: Path) -> None:
    """Broken YAML raises :class:`WorkspaceParseError`."""
    manifest = tmp_path / "pnpm-workspace.yaml"
    manifest.write_text("packages: [unclosed\n", encoding="utf-8")

    with pytest.raises(WorkspaceParseError) as excinfo:
        load_workspace_patterns(manifest)

    assert excinfo.value.manifest_path == manifest


@pytest.mark.parametrize(
    "content",
    [
        pytest.param("packages: packages/*\n", id="string_instead_of_list"),
        pytest.param("packages:\n  - 3\n", id="non_string_entry"),
        pytest.param("- packages/*\n", id="top_level_list"),
    ],
)
def test_load_workspace_patterns_rejects_wrong_types(
    tmp_path: Path, content: str
) -> None:
    """Well-formed YAML with the wrong shape fails validation."""
    manifest = tmp_path / "pnpm-workspace.yaml"
    manifest.write_text(content, encoding="utf-8")

    with pytest.raises(WorkspaceConfigValidationError):
        load_workspace_patterns(manifest)


def test_locate_workspaces_skips_invalid_manifests(tmp_path: Path) -> None:
    """One broken workspace is reported and the others still load."""
    good = tmp_path / "good"
    bad = tmp_path / "bad"
    ugly = tmp_path / "ugly"
    for root in (good, bad, ugly):
        root.mkdir()
    write_workspace_manifest(good, ["packages/*"])
    (bad / "pnpm-workspace.yaml").write_text("packages: [oops\n", encoding="utf-8")
    (ugly / "pnpm-workspace.yaml").write_text("packages: 7\n", encoding="utf-8")
    notifier = RecordingNotifier()

    descriptors = locate_workspaces([good, bad, ugly], notifier=notifier)

    assert [descriptor.root_path for descriptor in descriptors] == [good]
    assert descriptors[0].patterns == ("packages/*",)
    assert len(notifier.errors) == 2
    assert notifier.errors[0].startswith("Failed to parse pnpm-workspace.yaml")
    assert notifier.errors[1].startswith("Invalid pnpm-workspace.yaml format")


def test_locate_workspaces_without_manifest_is_not_an_error(tmp_path: Path) -> None:
    """A folder with no manifest contributes nothing and reports nothing."""
    notifier = RecordingNotifier()

    assert locate_workspaces([tmp_path], notifier=notifier) == []
    assert notifier.errors == []
