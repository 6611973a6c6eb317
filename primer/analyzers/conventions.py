"""Conventions analyzer: file naming, test layout, export style and barrels."""

from __future__ import annotations

import re
from pathlib import PurePosixPath
from typing import List, Optional, Sequence, Tuple

from ..models import FileSignatures
from ..prioritizer import is_barrel
from .base import AnalysisContext, KnowledgeAnalyzer

NAMING_EXTENSIONS = (".ts", ".tsx", ".js", ".jsx", ".py", ".go", ".rs")
MIN_NAMING_FILES = 3
NAMING_THRESHOLD = 0.3
EXPORT_THRESHOLD = 0.8

_EXPORT_LANGUAGES = ("typescript", "tsx", "javascript")

_PASCAL = re.compile(r"^[A-Z].*[a-z]")
_CAMEL = re.compile(r"^[a-z].*[A-Z]")


def naming_style(files: Sequence[str]) -> Optional[str]:
    """Majority file-naming style, when it covers more than 30% of source files."""
    stems = [
        PurePosixPath(path).stem
        for path in files
        if PurePosixPath(path).suffix in NAMING_EXTENSIONS
    ]
    if len(stems) < MIN_NAMING_FILES:
        return None

    votes = {"kebab-case": 0, "camelCase": 0, "PascalCase": 0, "snake_case": 0}
    for stem in stems:
        if "-" in stem:
            votes["kebab-case"] += 1
        elif "_" in stem:
            votes["snake_case"] += 1
        elif _PASCAL.match(stem):
            votes["PascalCase"] += 1
        elif _CAMEL.match(stem):
            votes["camelCase"] += 1

    style, count = max(votes.items(), key=lambda item: item[1])
    if count / len(stems) > NAMING_THRESHOLD:
        return style
    return None


def test_patterns(files: Sequence[str]) -> Optional[str]:
    counts: List[Tuple[str, int]] = [
        ("*.test.*", 0),
        ("*.spec.*", 0),
        ("test_*.py", 0),
        ("*_test.go", 0),
        ("test dirs", 0),
    ]
    tally = dict(counts)
    for path in files:
        name = PurePosixPath(path).name
        if ".test." in name:
            tally["*.test.*"] += 1
        elif ".spec." in name:
            tally["*.spec.*"] += 1
        elif name.startswith("test_") and name.endswith(".py"):
            tally["test_*.py"] += 1
        elif name.endswith("_test.go"):
            tally["*_test.go"] += 1
        if "__tests__/" in path or path.startswith(("tests/", "test/")) or "/tests/" in path:
            tally["test dirs"] += 1

    parts = [f"{label} ({tally[label]} files)" for label, _ in counts if tally[label]]
    return ", ".join(parts) if parts else None


def export_style(signatures: Sequence[FileSignatures]) -> Optional[str]:
    named = 0
    default = 0
    for file in signatures:
        if file.language not in _EXPORT_LANGUAGES:
            continue
        for sig in file.signatures:
            if not sig.exported:
                continue
            if "export default" in sig.signature:
                default += 1
            else:
                named += 1

    total = named + default
    if total == 0:
        return None
    if named / total > EXPORT_THRESHOLD:
        return "predominantly named exports"
    if default / total > EXPORT_THRESHOLD:
        return "predominantly default exports"
    return f"mixed ({named} named, {default} default)"


class ConventionsAnalyzer(KnowledgeAnalyzer):
    title = "Conventions (auto)"

    def lines(self, context: AnalysisContext) -> List[str]:
        lines: List[str] = []

        style = naming_style(context.files)
        if style:
            lines.append(f"**File naming:** {style}")

        tests = test_patterns(context.files)
        if tests:
            lines.append(f"**Tests:** {tests}")

        exports = export_style(context.signatures)
        if exports:
            lines.append(f"**Exports:** {exports}")

        barrels = sum(1 for file in context.signatures if is_barrel(file.signatures))
        if barrels:
            lines.append(f"**Barrel files:** {barrels} index re-export files")

        return lines
