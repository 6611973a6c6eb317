"""Tests for the built-in knowledge analyzers and budget fitting."""

from __future__ import annotations

from primer.analyzers import (
    ArchitectureAnalyzer,
    ConventionsAnalyzer,
    DependencyAnalyzer,
    KnowledgeAnalyzer,
    generate_auto_knowledge,
)
from primer.analyzers.base import AnalysisContext
from primer.analyzers.conventions import export_style, naming_style
from primer.analyzers.conventions import test_patterns as find_test_patterns
from primer.budget import estimate_tokens
from primer.models import FileSignatures, ImportEntry, MonorepoInfo, ProjectInfo, SignatureEntry, Workspace


def _project(**kwargs) -> ProjectInfo:
    return ProjectInfo(name="demo", runtime="node", root="/tmp/demo", **kwargs)


def _export(name: str, signature: str) -> SignatureEntry:
    return SignatureEntry(kind="function", name=name, signature=signature, exported=True, line=1)


def test_architecture_reports_layers_entry_points_and_monorepo() -> None:
    files = [
        "src/routes/users.ts",
        "src/services/users.ts",
        "src/models/user.ts",
        "src/index.ts",
        "scripts/seed.ts",
    ]
    monorepo = MonorepoInfo(tool="Turborepo", workspaces=[Workspace(name="web", path="apps/web")])
    context = AnalysisContext(project=_project(monorepo=monorepo), files=files)

    entry = ArchitectureAnalyzer().analyze(context)

    assert entry is not None
    assert entry.title == "Architecture (auto)"
    assert "- `src/routes/` - API routes" in entry.content
    assert "- `src/services/` - business logic" in entry.content
    assert "- `src/models/` - data models" in entry.content
    assert "**Entry points:** `src/index.ts`" in entry.content
    assert "**Monorepo (Turborepo):** 1 workspaces" in entry.content
    assert entry.tokens == estimate_tokens(entry.content)


def test_architecture_without_signals_is_none() -> None:
    context = AnalysisContext(project=_project(), files=["notes/todo.md"])
    assert ArchitectureAnalyzer().analyze(context) is None


def test_naming_style_majority() -> None:
    assert naming_style(["src/user-service.ts", "src/order-item.ts", "src/app.ts"]) == "kebab-case"
    assert naming_style(["a/user_service.py", "a/models.py", "a/db_utils.py"]) == "snake_case"
    assert naming_style(["a.ts", "b.ts"]) is None


def test_test_layout_counts() -> None:
    files = ["src/a.test.ts", "src/b.test.ts", "tests/test_api.py", "pkg/x_test.go"]
    assert find_test_patterns(files) == (
        "*.test.* (2 files), test_*.py (1 files), *_test.go (1 files), test dirs (1 files)"
    )


def test_export_style_threshold() -> None:
    named = FileSignatures(
        path="src/a.ts",
        language="typescript",
        signatures=[_export(f"f{i}", f"export function f{i}()") for i in range(9)],
    )
    default = FileSignatures(
        path="src/b.ts",
        language="typescript",
        signatures=[_export("default", "export default function b()")],
    )
    assert export_style([named, default]) == "predominantly named exports"
    assert export_style([default]) == "predominantly default exports"


def test_conventions_entry() -> None:
    barrel = FileSignatures(
        path="src/index.ts",
        language="typescript",
        signatures=[
            SignatureEntry("const", "re-export ./a", 'export * from "./a"', True, 1),
            SignatureEntry("const", "re-export ./b", 'export * from "./b"', True, 2),
        ],
    )
    files = ["src/user-card.ts", "src/nav-bar.ts", "src/index.ts", "src/user-card.test.ts"]
    entry = ConventionsAnalyzer().analyze(AnalysisContext(project=_project(), signatures=[barrel], files=files))

    assert entry is not None
    assert "**File naming:** kebab-case" in entry.content
    assert "**Tests:** *.test.* (1 files)" in entry.content
    assert "**Barrel files:** 1 index re-export files" in entry.content


def test_dependencies_entry() -> None:
    def imports(*sources: str):
        return [ImportEntry(source, source.startswith(".")) for source in sources]

    files = [
        FileSignatures("src/routes/a.ts", "typescript", imports=imports("../lib/db", "express")),
        FileSignatures("src/routes/b.ts", "typescript", imports=imports("../lib/db", "zod")),
        FileSignatures("src/lib/db.ts", "typescript", imports=imports("pg")),
    ]
    entry = DependencyAnalyzer().analyze(AnalysisContext(project=_project(), signatures=files))

    assert entry is not None
    assert "- `src/routes/` → {src/lib}" in entry.content
    assert "- `src/lib/db.ts` (2 imports)" in entry.content
    assert "**External deps:** express, pg, zod" in entry.content


def test_dependencies_without_imports_is_none() -> None:
    files = [FileSignatures("src/a.ts", "typescript")]
    assert DependencyAnalyzer().analyze(AnalysisContext(project=_project(), signatures=files)) is None


class _Fixed(KnowledgeAnalyzer):
    def __init__(self, title: str, size: int) -> None:
        self.title = title
        self.size = size

    def lines(self, context: AnalysisContext):
        return ["x" * self.size] if self.size else []


def test_auto_knowledge_keeps_only_entries_that_fit() -> None:
    analyzers = [_Fixed("Big", 400), _Fixed("Small", 40), _Fixed("Empty", 0)]
    heading = estimate_tokens("### Small\n\n")

    entries = generate_auto_knowledge(_project(), [], [], budget=10 + heading, analyzers=analyzers)

    assert [entry.title for entry in entries] == ["Small"]


def test_auto_knowledge_with_zero_budget_is_empty() -> None:
    assert generate_auto_knowledge(_project(), [], [], budget=0, analyzers=[_Fixed("A", 4)]) == []
