"""Package-root pattern handling for ``pnpm-workspace.yaml``.

Only the subset of glob syntax that monorepo layouts use is understood:
``*`` and ``?`` within a directory segment, ``**`` for any depth, a leading
``!`` for negation, and a single level of ``{a,b}`` alternation when
patterns are combined for a filesystem search.
"""

from __future__ import annotations

import dataclasses as dc
import functools
import re
import typing as typ
from collections import abc as cabc

NEGATION_MARKER: typ.Final[str] = "!"

DEFAULT_EXCLUDES: typ.Final[tuple[str, ...]] = (
    "**/node_modules/**",
    "**/.git/**",
    "**/dist/**",
    "**/build/**",
    "**/.next/**",
    "**/coverage/**",
)

_WILDCARD_CHARS: typ.Final[frozenset[str]] = frozenset("*?[")


@dc.dataclass(frozen=True, slots=True)
class PackagePatterns:
    """Include and exclude patterns split from a workspace manifest."""

    includes: tuple[str, ...] = ()
    excludes: tuple[str, ...] = DEFAULT_EXCLUDES

    def include_globs(self, filename: str) -> tuple[str, ...]:
        """Return include patterns suffixed with ``filename``."""
        return tuple(join_glob(pattern, filename) for pattern in self.includes)

    def is_excluded(self, relative_path: str) -> bool:
        """Return ``True`` when ``relative_path`` or an ancestor is excluded."""
        return is_excluded(relative_path, self.excludes)


def split_patterns(
    patterns: cabc.Iterable[str],
    *,
    default_excludes: cabc.Sequence[str] = DEFAULT_EXCLUDES,
) -> PackagePatterns:
    """Classify ``patterns`` into includes and excludes.

    Negated patterns lose their ``!`` marker and are appended after
    ``default_excludes``. Empty patterns are ignored.
    """
    includes: list[str] = []
    excludes: list[str] = list(default_excludes)
    for raw in patterns:
        if raw.startswith(NEGATION_MARKER):
            pattern = normalise_pattern(raw[len(NEGATION_MARKER) :])
            target = excludes
        else:
            pattern = normalise_pattern(raw)
            target = includes
        if pattern and pattern not in target:
            target.append(pattern)
    return PackagePatterns(includes=tuple(includes), excludes=tuple(excludes))


def normalise_pattern(pattern: str) -> str:
    """Strip whitespace, leading ``/`` and ``./`` prefixes and trailing slashes.

    Patterns are always relative to the workspace root, so ``/tools/*`` and
    ``./tools/*`` both become ``tools/*``.
    """
    value = pattern.strip().replace("\\", "/")
    while value.startswith(("/", "./")):
        value = value[1:] if value.startswith("/") else value[2:]
    return value.rstrip("/")


def join_glob(pattern: str, filename: str) -> str:
    """Return ``pattern/filename``, treating ``.`` as the search root."""
    if pattern in {"", "."}:
        return filename
    return f"{pattern}/{filename}"


def combine_globs(patterns: cabc.Sequence[str]) -> str:
    """Join ``patterns`` into one brace alternation."""
    if len(patterns) == 1:
        return patterns[0]
    return "{" + ",".join(patterns) + "}"


def expand_alternation(glob: str) -> tuple[str, ...]:
    """Split a single top-level ``{a,b}`` alternation into its members."""
    if not (glob.startswith("{") and glob.endswith("}")):
        return (glob,) if glob else ()
    members: list[str] = []
    depth = 0
    current: list[str] = []
    for char in glob[1:-1]:
        if char == "," and depth == 0:
            members.append("".join(current))
            current = []
            continue
        if char == "{":
            depth += 1
        elif char == "}":
            depth -= 1
        current.append(char)
    members.append("".join(current))
    return tuple(member for member in members if member)


def has_wildcard(segment: str) -> bool:
    """Return ``True`` when ``segment`` contains glob metacharacters."""
    return any(char in _WILDCARD_CHARS for char in segment)


@functools.lru_cache(maxsize=256)
def glob_to_regex(pattern: str) -> re.Pattern[str]:
    """Translate ``pattern`` into a regex matching whole ``/``-separated paths."""
    parts: list[str] = []
    index = 0
    length = len(pattern)
    while index < length:
        if pattern.startswith("**/", index):
            parts.append("(?:.*/)?")
            index += 3
        elif pattern.startswith("/**", index) and index + 3 == length:
            parts.append("(?:/.*)?")
            index += 3
        elif pattern.startswith("**", index):
            parts.append(".*")
            index += 2
        elif pattern[index] == "*":
            parts.append("[^/]*")
            index += 1
        elif pattern[index] == "?":
            parts.append("[^/]")
            index += 1
        else:
            parts.append(re.escape(pattern[index]))
            index += 1
    return re.compile("".join(parts))


def is_excluded(relative_path: str, excludes: cabc.Iterable[str]) -> bool:
    """Return ``True`` when ``relative_path`` or one of its ancestors matches.

    ``relative_path`` uses ``/`` separators. Checking ancestors lets a plain
    directory exclude such as ``packages/legacy`` cover everything below it.
    """
    candidates = _ancestor_paths(relative_path)
    for pattern in excludes:
        expression = glob_to_regex(normalise_pattern(pattern))
        if any(expression.fullmatch(candidate) for candidate in candidates):
            return True
    return False


def _ancestor_paths(relative_path: str) -> tuple[str, ...]:
    segments = [segment for segment in relative_path.split("/") if segment]
    return tuple("/".join(segments[: end + 1]) for end in range(len(segments)))
