"""Helpers for reading ecosystem manifests without ever raising."""

from __future__ import annotations

import json
import re
import tomllib
from pathlib import Path
from typing import Any, Dict, Iterable, List, Set, Tuple

_REQUIREMENT_SPLIT = re.compile(r"[<>=!~;\[\s]")


def read_text(path: Path) -> str | None:
    """Return file contents, or None when the path is missing or unreadable."""
    try:
        return path.read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError):
        return None


def load_json(path: Path) -> Dict[str, Any]:
    text = read_text(path)
    if text is None:
        return {}
    try:
        data = json.loads(text)
    except json.JSONDecodeError:
        return {}
    return data if isinstance(data, dict) else {}


def load_toml(path: Path) -> Dict[str, Any]:
    text = read_text(path)
    if text is None:
        return {}
    try:
        return tomllib.loads(text)
    except tomllib.TOMLDecodeError:
        return {}


def load_package_json(root: Path) -> Dict[str, Any]:
    """Return the parsed package.json contents or an empty dict."""
    return load_json(root / "package.json")


def node_dependencies(package: Dict[str, Any]) -> Set[str]:
    """All dependency names declared in a parsed package.json."""
    names: Set[str] = set()
    for key in ("dependencies", "devDependencies", "peerDependencies", "optionalDependencies"):
        deps = package.get(key)
        if isinstance(deps, dict):
            names.update(str(name) for name in deps)
    return names


def load_python_dependencies(root: Path) -> List[str]:
    """Collect Python dependencies from requirements.txt and pyproject.toml."""
    deps: Set[str] = set()

    requirements = read_text(root / "requirements.txt")
    if requirements:
        for line in requirements.splitlines():
            stripped = line.strip()
            if not stripped or stripped.startswith(("#", "-")):
                continue
            name = _REQUIREMENT_SPLIT.split(stripped, 1)[0].strip()
            if name:
                deps.add(name.lower())

    data = load_toml(root / "pyproject.toml")
    dependencies: List[Any] = []
    project = data.get("project")
    if isinstance(project, dict):
        dependencies.extend(project.get("dependencies", []) or [])
        optional = project.get("optional-dependencies", {}) or {}
        if isinstance(optional, dict):
            for values in optional.values():
                dependencies.extend(values or [])

    tool = data.get("tool")
    poetry = tool.get("poetry", {}) if isinstance(tool, dict) else {}
    if isinstance(poetry, dict):
        poetry_deps = poetry.get("dependencies", {}) or {}
        if isinstance(poetry_deps, dict):
            dependencies.extend(poetry_deps.keys())

    for dep in dependencies:
        if not isinstance(dep, str):
            continue
        name = _REQUIREMENT_SPLIT.split(dep.strip(), 1)[0].strip()
        if name and name.lower() != "python":
            deps.add(name.lower())

    return sorted(deps)


def load_cargo_dependencies(root: Path) -> List[str]:
    data = load_toml(root / "Cargo.toml")
    names: Set[str] = set()
    for key in ("dependencies", "dev-dependencies"):
        section = data.get(key)
        if isinstance(section, dict):
            names.update(str(name) for name in section)
    workspace = data.get("workspace")
    if isinstance(workspace, dict) and isinstance(workspace.get("dependencies"), dict):
        names.update(str(name) for name in workspace["dependencies"])
    return sorted(names)


def scan_manifest_name(path: Path) -> str | None:
    """Best-effort ``name = "..."`` scan for manifests that may not parse."""
    text = read_text(path)
    if not text:
        return None
    match = re.search(r'^\s*name\s*=\s*"([^"]+)"', text, re.MULTILINE)
    return match.group(1) if match else None


# Framework and tooling heuristics

_NODE_FRAMEWORKS = (
    ("next", "Next.js"),
    ("react-native", "React Native"),
    ("expo", "Expo"),
    ("react", "React"),
    ("nuxt", "Nuxt"),
    ("vue", "Vue"),
    ("@angular/core", "Angular"),
    ("svelte", "Svelte"),
    ("solid-js", "Solid"),
    ("astro", "Astro"),
    ("@remix-run/react", "Remix"),
    ("express", "Express"),
    ("fastify", "Fastify"),
    ("hono", "Hono"),
    ("elysia", "Elysia"),
    ("@nestjs/core", "NestJS"),
    ("electron", "Electron"),
    ("@anthropic-ai/sdk", "Claude SDK"),
    ("openai", "OpenAI SDK"),
    ("langchain", "LangChain"),
    ("@langchain/core", "LangChain"),
)

_PYTHON_FRAMEWORKS = (
    ("fastapi", "FastAPI"),
    ("django", "Django"),
    ("flask", "Flask"),
)

_RUST_FRAMEWORKS = (
    ("actix-web", "Actix"),
    ("rocket", "Rocket"),
    ("axum", "Axum"),
    ("tokio", "Tokio"),
)

_NODE_TOOLING = (
    ("typescript", "TypeScript"),
    ("@biomejs/biome", "Biome"),
    ("eslint", "ESLint"),
    ("prettier", "Prettier"),
    ("vitest", "Vitest"),
    ("jest", "Jest"),
    ("@playwright/test", "Playwright"),
    ("cypress", "Cypress"),
    ("vite", "Vite"),
    ("webpack", "Webpack"),
    ("esbuild", "esbuild"),
    ("rollup", "Rollup"),
    ("prisma", "Prisma"),
    ("@prisma/client", "Prisma"),
    ("drizzle-orm", "Drizzle"),
    ("typeorm", "TypeORM"),
    ("mongoose", "Mongoose"),
    ("tailwindcss", "Tailwind"),
    ("nx", "Nx"),
)

_PYTHON_TOOLING = (
    ("pytest", "pytest"),
    ("ruff", "Ruff"),
    ("mypy", "mypy"),
)

# Config files that imply a tool even when it is not a declared dependency.
_TOOLING_FILES = (
    ("tsconfig.json", "TypeScript"),
    ("biome.json", "Biome"),
    ("biome.jsonc", "Biome"),
    (".eslintrc", "ESLint"),
    (".eslintrc.js", "ESLint"),
    (".eslintrc.json", "ESLint"),
    ("eslint.config.js", "ESLint"),
    ("eslint.config.mjs", "ESLint"),
    (".prettierrc", "Prettier"),
    ("prettier.config.js", "Prettier"),
    ("vitest.config.ts", "Vitest"),
    ("jest.config.js", "Jest"),
    ("jest.config.ts", "Jest"),
    ("playwright.config.ts", "Playwright"),
    ("cypress.config.ts", "Cypress"),
    ("vite.config.ts", "Vite"),
    ("vite.config.js", "Vite"),
    ("webpack.config.js", "Webpack"),
    ("rollup.config.js", "Rollup"),
    ("prisma/schema.prisma", "Prisma"),
    ("drizzle.config.ts", "Drizzle"),
    ("tailwind.config.js", "Tailwind"),
    ("tailwind.config.ts", "Tailwind"),
    ("Dockerfile", "Docker"),
    ("docker-compose.yml", "Docker"),
    ("docker-compose.yaml", "Docker"),
    ("compose.yaml", "Docker"),
    ("nx.json", "Nx"),
    ("pytest.ini", "pytest"),
    ("ruff.toml", "Ruff"),
    (".ruff.toml", "Ruff"),
    ("mypy.ini", "mypy"),
)


def _match_labels(mapping: Iterable[Tuple[str, str]], names: Iterable[str]) -> List[str]:
    lower = {name.lower() for name in names}
    labels: List[str] = []
    for key, label in mapping:
        if key in lower and label not in labels:
            labels.append(label)
    return labels


def detect_node_frameworks(dependencies: Iterable[str]) -> List[str]:
    return _match_labels(_NODE_FRAMEWORKS, dependencies)


def detect_python_frameworks(dependencies: Iterable[str]) -> List[str]:
    return _match_labels(_PYTHON_FRAMEWORKS, dependencies)


def detect_rust_frameworks(dependencies: Iterable[str]) -> List[str]:
    return _match_labels(_RUST_FRAMEWORKS, dependencies)


def detect_tooling(root: Path, node_deps: Iterable[str], python_deps: Iterable[str]) -> List[str]:
    """Tooling labels from declared dependencies plus well-known config files."""
    tooling = _match_labels(_NODE_TOOLING, node_deps)
    for label in _match_labels(_PYTHON_TOOLING, python_deps):
        if label not in tooling:
            tooling.append(label)
    for filename, label in _TOOLING_FILES:
        if label not in tooling and (root / filename).exists():
            tooling.append(label)

    pyproject_tools = load_toml(root / "pyproject.toml").get("tool")
    if isinstance(pyproject_tools, dict):
        for key, label in _PYTHON_TOOLING:
            if key in pyproject_tools and label not in tooling:
                tooling.append(label)
    return tooling


__all__ = [
    "detect_node_frameworks",
    "detect_python_frameworks",
    "detect_rust_frameworks",
    "detect_tooling",
    "load_cargo_dependencies",
    "load_json",
    "load_package_json",
    "load_python_dependencies",
    "load_toml",
    "node_dependencies",
    "read_text",
    "scan_manifest_name",
]
