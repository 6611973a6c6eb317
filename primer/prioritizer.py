"""Rank source files by how useful their signatures are to a reader."""

from __future__ import annotations

from pathlib import PurePosixPath
from typing import List, Optional, Sequence

from .models import FileSignatures, SignatureEntry

BARREL_PRIORITY = 1.0
TYPES_PRIORITY = 4.0
CONFIG_PRIORITY = 7.0
ENTRY_PRIORITY = 10.0

_ENTRY_STEMS = ("index", "main")
_ENTRY_NAMES = ("mod.ts", "lib.rs", "__main__.py", "app.py", "Program.cs")
_ENTRY_DIRS = ("cmd", "bin")
_TYPE_NAMES = ("types.ts", "typings.ts", "types.py")
_CONFIG_STEMS = ("config", "schema", "constants", "env", "settings")
_DENSE_KINDS = ("function", "class")
_TYPE_KINDS = ("type", "interface")


def declaration_density(signatures: Sequence[SignatureEntry]) -> float:
    """Share of function/class declarations among all declarations."""
    if not signatures:
        return 0.0
    dense = sum(1 for sig in signatures if sig.kind in _DENSE_KINDS)
    return dense / len(signatures)


def is_barrel(signatures: Sequence[SignatureEntry]) -> bool:
    """True when re-exports are a strict majority of the file's signatures."""
    if not signatures:
        return False
    reexports = sum(1 for sig in signatures if sig.is_reexport)
    return reexports / len(signatures) > 0.5


def _is_entry_point(path: PurePosixPath) -> bool:
    if path.name in _ENTRY_NAMES:
        return True
    if path.stem in _ENTRY_STEMS:
        return True
    return any(part in _ENTRY_DIRS for part in path.parts[:-1])


def _is_type_file(path: PurePosixPath, signatures: Optional[Sequence[SignatureEntry]]) -> bool:
    if path.name in _TYPE_NAMES or path.name.endswith(".d.ts"):
        return True
    return bool(signatures) and all(sig.kind in _TYPE_KINDS for sig in signatures or ())


def file_priority(path: str, signatures: Optional[Sequence[SignatureEntry]] = None) -> float:
    """Priority of a file; higher sorts first.

    Barrels rank lowest regardless of their name, then entry points, pure type
    files and config/schema files get fixed tiers. Everything else scores
    ``3 + max(0, 5 - depth) * 0.5 + density``.
    """
    posix = PurePosixPath(path)
    if signatures and is_barrel(signatures):
        return BARREL_PRIORITY
    if _is_entry_point(posix):
        return ENTRY_PRIORITY
    if _is_type_file(posix, signatures):
        return TYPES_PRIORITY
    if posix.name.split(".", 1)[0] in _CONFIG_STEMS:
        return CONFIG_PRIORITY
    depth = len(posix.parts)
    return 3 + max(0, 5 - depth) * 0.5 + declaration_density(signatures or ())


def sort_by_priority(files: Sequence[FileSignatures]) -> List[FileSignatures]:
    """Highest priority first; ties by density, then original order."""
    indexed = list(enumerate(files))
    indexed.sort(
        key=lambda item: (
            -file_priority(item[1].path, item[1].signatures),
            -declaration_density(item[1].signatures),
            item[0],
        )
    )
    return [file for _, file in indexed]


__all__ = [
    "declaration_density",
    "file_priority",
    "is_barrel",
    "sort_by_priority",
]
