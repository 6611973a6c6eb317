"""Architecture analyzer: directory roles, entry points and monorepo size."""

from __future__ import annotations

from pathlib import PurePosixPath
from typing import Dict, List, Sequence

from .base import AnalysisContext, KnowledgeAnalyzer, add_block

DIR_ROLES: Dict[str, str] = {
    "routes": "API routes",
    "api": "API layer",
    "controllers": "controllers",
    "services": "business logic",
    "models": "data models",
    "middleware": "middleware",
    "components": "UI components",
    "hooks": "React hooks",
    "pages": "page components",
    "views": "views",
    "lib": "shared library",
    "utils": "utilities",
    "helpers": "helpers",
    "config": "configuration",
    "core": "core logic",
    "common": "shared code",
    "shared": "shared code",
    "store": "state management",
    "actions": "actions/reducers",
    "reducers": "reducers",
    "providers": "context providers",
    "handlers": "request handlers",
    "resolvers": "GraphQL resolvers",
    "schemas": "schemas",
    "types": "type definitions",
    "interfaces": "interfaces",
    "entities": "domain entities",
    "repositories": "data access",
    "migrations": "DB migrations",
    "seeds": "DB seeds",
    "fixtures": "test fixtures",
    "cmd": "CLI commands",
    "pkg": "packages",
    "internal": "internal packages",
}

SOURCE_ROOTS = ("src", "app", "lib")

ENTRY_NAMES = frozenset(
    {
        "index.ts",
        "index.tsx",
        "index.js",
        "main.ts",
        "main.tsx",
        "main.js",
        "main.go",
        "main.rs",
        "lib.rs",
        "main.py",
        "app.py",
        "__main__.py",
        "Main.java",
        "Application.java",
        "Program.cs",
    }
)

MAX_ENTRY_DEPTH = 3
MAX_ENTRY_POINTS = 5


def directory_roles(files: Sequence[str]) -> Dict[str, str]:
    """Recognised directories (top level, then second level under source roots) and their roles."""
    roles: Dict[str, str] = {}
    for path in files:
        parts = path.split("/")
        if len(parts) >= 2 and parts[0] in DIR_ROLES:
            roles.setdefault(parts[0], DIR_ROLES[parts[0]])
    for path in files:
        parts = path.split("/")
        if len(parts) >= 3 and parts[0] in SOURCE_ROOTS and parts[1] in DIR_ROLES:
            roles.setdefault(f"{parts[0]}/{parts[1]}", DIR_ROLES[parts[1]])
    return roles


def find_entry_points(files: Sequence[str]) -> List[str]:
    found = [
        path
        for path in files
        if PurePosixPath(path).name in ENTRY_NAMES and len(path.split("/")) <= MAX_ENTRY_DEPTH
    ]
    return found[:MAX_ENTRY_POINTS]


class ArchitectureAnalyzer(KnowledgeAnalyzer):
    title = "Architecture (auto)"

    def lines(self, context: AnalysisContext) -> List[str]:
        lines: List[str] = []

        roles = directory_roles(context.files)
        if roles:
            add_block(lines, ["**Layers:**", *(f"- `{path}/` - {role}" for path, role in roles.items())])

        entry_points = find_entry_points(context.files)
        if entry_points:
            listed = ", ".join(f"`{path}`" for path in entry_points)
            add_block(lines, [f"**Entry points:** {listed}"])

        monorepo = context.project.monorepo
        if monorepo is not None:
            add_block(lines, [f"**Monorepo ({monorepo.tool}):** {len(monorepo.workspaces)} workspaces"])

        return lines
