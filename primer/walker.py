"""Project walking with default, .gitignore and configured ignore rules."""

from __future__ import annotations

import os
import re
from dataclasses import dataclass
from fnmatch import fnmatchcase
from functools import lru_cache
from pathlib import Path
from typing import Iterable, List, Optional, Pattern, Sequence

from .logging import get_logger

logger = get_logger("walker")

DEFAULT_IGNORE = (
    "node_modules",
    ".git",
    "dist",
    "build",
    ".next",
    "__pycache__",
    ".venv",
    "venv",
    "target",
    ".cache",
    "coverage",
    ".turbo",
    ".DS_Store",
    "*.pyc",
    "*.pyo",
    ".env",
    ".env.*",
)

DEFAULT_MAX_DEPTH = 20


@dataclass
class IgnoreRule:
    """A single gitignore-style pattern."""

    pattern: str
    directory_only: bool
    anchored: bool
    negate: bool
    has_slash: bool

    def matches(self, rel_path: str, is_dir: bool) -> bool:
        if not self.pattern:
            return False

        if self.anchored or self.has_slash:
            if fnmatchcase(rel_path, self.pattern) and (is_dir or not self.directory_only):
                return True
            # Files below an ignored directory are ignored with it.
            return any(
                fnmatchcase(prefix, self.pattern) for prefix in _parent_prefixes(rel_path)
            )

        parts = rel_path.split("/")
        for index, part in enumerate(parts):
            is_last = index == len(parts) - 1
            if self.directory_only and is_last and not is_dir:
                continue
            if fnmatchcase(part, self.pattern):
                return True
        return False


def _parent_prefixes(rel_path: str) -> Iterable[str]:
    parts = rel_path.split("/")
    for end in range(1, len(parts)):
        yield "/".join(parts[:end])


def build_ignore_rule(pattern: str, negate: bool = False) -> Optional[IgnoreRule]:
    pattern = pattern.strip()
    if not pattern:
        return None

    directory_only = pattern.endswith("/")
    if directory_only:
        pattern = pattern.rstrip("/")

    anchored = pattern.startswith("/")
    if anchored:
        pattern = pattern[1:]
    if pattern.startswith("**/"):
        pattern = pattern[3:]

    return IgnoreRule(
        pattern=pattern,
        directory_only=directory_only,
        anchored=anchored,
        negate=negate,
        has_slash="/" in pattern,
    )


def parse_gitignore(path: Path) -> List[IgnoreRule]:
    try:
        text = path.read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError):
        return []

    rules: List[IgnoreRule] = []
    for raw_line in text.splitlines():
        line = raw_line.strip()
        if not line or line.startswith("#"):
            continue
        negate = line.startswith("!")
        if negate:
            line = line[1:]
        rule = build_ignore_rule(line, negate=negate)
        if rule is not None:
            rules.append(rule)
    return rules


def load_ignore_rules(root: Path, extra: Sequence[str] = ()) -> List[IgnoreRule]:
    """Default ignores, then the project's .gitignore, then configured patterns."""
    rules = [rule for rule in (build_ignore_rule(p) for p in DEFAULT_IGNORE) if rule]
    rules.extend(parse_gitignore(root / ".gitignore"))
    for pattern in extra:
        negate = pattern.startswith("!")
        rule = build_ignore_rule(pattern[1:] if negate else pattern, negate=negate)
        if rule is not None:
            rules.append(rule)
    return rules


def should_ignore(rel_path: str, is_dir: bool, rules: Sequence[IgnoreRule]) -> bool:
    ignored = False
    for rule in rules:
        if rule.matches(rel_path, is_dir):
            ignored = not rule.negate
    return ignored


@lru_cache(maxsize=256)
def glob_to_regex(pattern: str) -> Pattern[str]:
    """Compile a path glob: ``**`` spans directories, ``*`` and ``?`` stay within one."""
    out: List[str] = []
    index = 0
    while index < len(pattern):
        char = pattern[index]
        if pattern.startswith("**/", index):
            out.append("(?:.*/)?")
            index += 3
            continue
        if pattern.startswith("**", index):
            out.append(".*")
            index += 2
            continue
        if char == "*":
            out.append("[^/]*")
        elif char == "?":
            out.append("[^/]")
        else:
            out.append(re.escape(char))
        index += 1
    return re.compile("^" + "".join(out) + "$")


def matches_glob(path: str, patterns: Iterable[str]) -> bool:
    return any(glob_to_regex(pattern).match(path) for pattern in patterns if pattern)


def walk_project(
    root: Path,
    *,
    ignore: Sequence[str] = (),
    max_depth: int = DEFAULT_MAX_DEPTH,
    rules: Optional[Sequence[IgnoreRule]] = None,
) -> List[str]:
    """Relative POSIX paths of every non-ignored file under ``root``, sorted.

    Directories deeper than ``max_depth`` are not entered. Directories that
    cannot be listed contribute nothing.
    """
    root = Path(root)
    if rules is None:
        rules = load_ignore_rules(root, ignore)

    def _on_error(error: OSError) -> None:
        logger.debug("Skipping unreadable directory %s: %s", error.filename, error)

    results: List[str] = []
    for dirpath, dirnames, filenames in os.walk(root, onerror=_on_error):
        current = Path(dirpath)
        rel_dir = current.relative_to(root).as_posix() if current != root else ""
        depth = len(rel_dir.split("/")) if rel_dir else 0

        if depth >= max_depth:
            dirnames[:] = []
        else:
            kept = []
            for name in sorted(dirnames):
                rel_path = f"{rel_dir}/{name}" if rel_dir else name
                if not should_ignore(rel_path, True, rules):
                    kept.append(name)
            dirnames[:] = kept

        for filename in sorted(filenames):
            rel_path = f"{rel_dir}/{filename}" if rel_dir else filename
            if not should_ignore(rel_path, False, rules):
                results.append(rel_path)
    results.sort()
    return results


__all__ = [
    "DEFAULT_IGNORE",
    "IgnoreRule",
    "build_ignore_rule",
    "glob_to_regex",
    "load_ignore_rules",
    "matches_glob",
    "parse_gitignore",
    "should_ignore",
    "walk_project",
]
