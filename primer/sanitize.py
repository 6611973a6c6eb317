"""Helpers that keep user-provided text from breaking the generated Markdown."""

from __future__ import annotations

import re
from pathlib import Path

MAX_HEADING_LENGTH = 200

_NEWLINES = re.compile(r"[\r\n]+")
_LEADING_HASHES = re.compile(r"^#+\s*")
_RULES = re.compile(r"-{3,}")
_FENCES = re.compile(r"`{3,}")


def sanitize_heading(text: str) -> str:
    """Flatten ``text`` to a single line safe to embed in prose or a heading."""
    text = _NEWLINES.sub(" ", text)
    text = _LEADING_HASHES.sub("", text)
    text = text.replace("```", "")
    text = _RULES.sub("-", text)
    return text[:MAX_HEADING_LENGTH].strip()


def sanitize_code_block(text: str) -> str:
    """Break up fence runs so ``text`` cannot close the surrounding code block."""
    return _FENCES.sub("``", text)


def is_path_within(path: Path, base: Path) -> bool:
    resolved = Path(path).resolve()
    resolved_base = Path(base).resolve()
    return resolved == resolved_base or str(resolved).startswith(str(resolved_base) + "/")


__all__ = ["is_path_within", "sanitize_code_block", "sanitize_heading"]
