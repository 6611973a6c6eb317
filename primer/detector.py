"""Project detection: runtime, name, description, frameworks and monorepo layout."""

from __future__ import annotations

import re
from pathlib import Path
from typing import Any, Dict, List, Optional, Sequence, Tuple

import yaml

from .logging import get_logger
from .manifests import (
    detect_node_frameworks,
    detect_python_frameworks,
    detect_rust_frameworks,
    detect_tooling,
    load_cargo_dependencies,
    load_json,
    load_package_json,
    load_python_dependencies,
    load_toml,
    node_dependencies,
    read_text,
    scan_manifest_name,
)
from .models import MonorepoInfo, ProjectInfo, ProjectOverrides, Workspace
from .overrides import load_overrides

logger = get_logger("detector")

# Checked in order; more specific ecosystems come before the ones they extend.
RUNTIME_MARKERS: Tuple[Tuple[str, Tuple[str, ...]], ...] = (
    ("bun", ("bun.lockb", "bun.lock", "bunfig.toml")),
    ("deno", ("deno.json", "deno.jsonc")),
    ("node", ("package.json", "package-lock.json", "yarn.lock", "pnpm-lock.yaml")),
    ("rust", ("Cargo.toml",)),
    ("python", ("pyproject.toml", "setup.py", "requirements.txt", "Pipfile")),
    ("go", ("go.mod",)),
    ("java", ("pom.xml", "build.gradle", "build.gradle.kts")),
    ("ruby", ("Gemfile",)),
    ("dotnet", ("*.csproj", "*.sln")),
    ("php", ("composer.json",)),
)

_WORKSPACE_PARENT_TYPES = {
    "apps": "app",
    "packages": "package",
    "libs": "package",
    "services": "service",
    "tools": "tool",
}

_UI_DEPENDENCIES = ("react", "vue", "svelte")

_README_NAMES = ("README.md", "readme.md", "Readme.md", "README")
_BOLD_LINE = re.compile(r"^\*\*(.+?)\*\*\.?$")
_SECTION_HEADING = re.compile(r"^##\s+(overview|about)\b", re.IGNORECASE)


def detect_project(root: Path, overrides: Optional[ProjectOverrides] = None) -> ProjectInfo:
    """Inspect ``root`` and describe the project. Never raises on bad manifests."""
    root = Path(root)
    if overrides is None:
        overrides = load_overrides(root)

    runtime, config_file = detect_runtime(root)
    if overrides and overrides.type:
        runtime = overrides.type

    package = load_package_json(root)
    node_deps = node_dependencies(package)
    python_deps = load_python_dependencies(root)
    cargo_deps = load_cargo_dependencies(root)

    frameworks: List[str] = []
    _extend_unique(frameworks, detect_node_frameworks(node_deps))
    _extend_unique(frameworks, detect_python_frameworks(python_deps))
    _extend_unique(frameworks, detect_rust_frameworks(cargo_deps))
    if (root / "tauri.conf.json").exists() or (root / "src-tauri").is_dir():
        _extend_unique(frameworks, ["Tauri"])

    monorepo = detect_monorepo(root, package)
    if monorepo:
        for workspace in monorepo.workspaces:
            ws_package = load_package_json(root / workspace.path)
            _extend_unique(frameworks, detect_node_frameworks(node_dependencies(ws_package)))

    project = ProjectInfo(
        name=_detect_name(root, package, overrides),
        runtime=runtime,
        root=str(root),
        description=_detect_description(root, package),
        frameworks=frameworks,
        tooling=detect_tooling(root, node_deps, python_deps),
        monorepo=monorepo,
        config_file=config_file,
        overrides=overrides,
    )
    logger.debug(
        "Detected %s project %r (frameworks: %s)",
        project.runtime,
        project.name,
        ", ".join(project.frameworks) or "none",
    )
    return project


def detect_runtime(root: Path) -> Tuple[str, Optional[str]]:
    """Return the runtime key and the marker file that decided it."""
    for runtime, markers in RUNTIME_MARKERS:
        for marker in markers:
            if "*" in marker:
                matches = sorted(path.name for path in root.glob(marker) if path.is_file())
                if matches:
                    return runtime, matches[0]
            elif (root / marker).exists():
                return runtime, marker
    return "unknown", None


def _detect_name(root: Path, package: Dict[str, Any], overrides: Optional[ProjectOverrides]) -> str:
    if overrides and overrides.name:
        return overrides.name
    name = package.get("name")
    if isinstance(name, str) and name.strip():
        return name.strip()
    for manifest in ("Cargo.toml", "pyproject.toml"):
        scanned = scan_manifest_name(root / manifest)
        if scanned:
            return scanned
    return root.resolve().name or "project"


def _detect_description(root: Path, package: Dict[str, Any]) -> Optional[str]:
    description = package.get("description")
    if isinstance(description, str) and description.strip():
        return description.strip()

    project = load_toml(root / "pyproject.toml").get("project")
    if isinstance(project, dict):
        description = project.get("description")
        if isinstance(description, str) and description.strip():
            return description.strip()

    for name in _README_NAMES:
        text = read_text(root / name)
        if text:
            return readme_description(text)
    return None


def readme_description(text: str) -> Optional[str]:
    """Pick a one-paragraph description out of a README.

    Preference: a bold tagline line, then the first paragraph under an
    ``## Overview`` or ``## About`` heading, then the first prose paragraph.
    Badges, images, tables, HTML and headings never count as prose.
    """
    for raw in text.splitlines():
        line = raw.strip()
        if line.startswith("## "):
            break
        match = _BOLD_LINE.match(line)
        if match:
            return match.group(1).strip()

    lines = _prose_lines(text)
    overview = _first_paragraph(lines, in_section=True)
    if overview:
        return overview
    return _first_paragraph(lines, in_section=False)


def _prose_lines(text: str) -> List[Tuple[str, bool]]:
    """Lines outside code fences, tagged with whether they sit under Overview/About.

    Blank and non-prose lines are kept as empty strings to mark paragraph breaks.
    """
    result: List[Tuple[str, bool]] = []
    in_fence = False
    in_section = False
    for raw in text.splitlines():
        line = raw.strip()
        if line.startswith("```"):
            in_fence = not in_fence
            result.append(("", in_section))
            continue
        if in_fence:
            continue
        if line.startswith("#"):
            in_section = bool(_SECTION_HEADING.match(line))
            result.append(("", in_section))
            continue
        if _is_decoration(line):
            result.append(("", in_section))
            continue
        result.append((line, in_section))
    return result


def _is_decoration(line: str) -> bool:
    return (
        not line
        or line.startswith(("![", "[![", "|", "<", "---", "==="))
        or line.startswith(">") and "](" in line
    )


def _first_paragraph(lines: Sequence[Tuple[str, bool]], *, in_section: bool) -> Optional[str]:
    paragraph: List[str] = []
    for line, section in lines:
        if in_section and not section:
            if paragraph:
                break
            continue
        if not line:
            if paragraph:
                break
            continue
        paragraph.append(line)
    if not paragraph:
        return None
    return " ".join(paragraph)


# Monorepo detection


def detect_monorepo(root: Path, package: Optional[Dict[str, Any]] = None) -> Optional[MonorepoInfo]:
    """Describe the monorepo layout, or None for single-package projects."""
    if package is None:
        package = load_package_json(root)

    pnpm_file = root / "pnpm-workspace.yaml"
    pnpm_patterns: Optional[List[str]] = None
    if pnpm_file.exists():
        pnpm_patterns = _load_pnpm_patterns(pnpm_file)
        if pnpm_patterns is None:
            return None

    package_patterns = _package_workspace_patterns(package)
    lerna_patterns = _str_list(load_json(root / "lerna.json").get("packages"))

    tool: Optional[str] = None
    if (root / "turbo.json").exists():
        tool = "Turborepo"
    elif (root / "nx.json").exists():
        tool = "Nx"
    elif (root / "lerna.json").exists():
        tool = "Lerna"
    elif pnpm_patterns is not None:
        tool = "pnpm workspaces"
    elif package_patterns:
        if (root / "bun.lockb").exists() or (root / "bun.lock").exists():
            tool = "Bun workspaces"
        elif (root / "yarn.lock").exists():
            tool = "Yarn workspaces"
        else:
            tool = "npm workspaces"
    if tool is None:
        return None

    patterns = pnpm_patterns or package_patterns or lerna_patterns
    return MonorepoInfo(tool=tool, workspaces=resolve_workspaces(root, patterns))


def _load_pnpm_patterns(path: Path) -> Optional[List[str]]:
    text = read_text(path)
    if text is None:
        return None
    try:
        data = yaml.safe_load(text)
    except yaml.YAMLError as exc:
        logger.debug("Ignoring malformed %s: %s", path.name, exc)
        return None
    if data is None:
        return []
    if not isinstance(data, dict):
        return None
    return _str_list(data.get("packages"))


def _package_workspace_patterns(package: Dict[str, Any]) -> List[str]:
    workspaces = package.get("workspaces")
    if isinstance(workspaces, dict):
        workspaces = workspaces.get("packages")
    return _str_list(workspaces)


def _str_list(value: Any) -> List[str]:
    if not isinstance(value, list):
        return []
    return [item for item in value if isinstance(item, str) and item.strip()]


def resolve_workspaces(root: Path, patterns: Sequence[str]) -> List[Workspace]:
    """Expand workspace globs and direct paths into described workspaces."""
    seen: set[str] = set()
    workspaces: List[Workspace] = []
    for pattern in patterns:
        pattern = pattern.strip().rstrip("/")
        if not pattern or pattern.startswith("!"):
            continue
        if pattern.startswith("./"):
            pattern = pattern[2:]
        if any(char in pattern for char in "*?["):
            candidates = sorted(root.glob(pattern))
        else:
            candidates = [root / pattern]
        for candidate in candidates:
            if not candidate.is_dir():
                continue
            rel = candidate.relative_to(root).as_posix()
            if rel in seen or any(part.startswith(".") for part in rel.split("/")):
                continue
            if "node_modules" in rel.split("/"):
                continue
            seen.add(rel)
            workspaces.append(_describe_workspace(candidate, rel))
    return workspaces


def _describe_workspace(path: Path, rel: str) -> Workspace:
    package = load_package_json(path)
    name = package.get("name") if isinstance(package.get("name"), str) else None
    description = package.get("description")
    return Workspace(
        name=name or path.name,
        path=rel,
        type=_workspace_type(rel, name or path.name, package),
        description=description if isinstance(description, str) and description else None,
    )


def _workspace_type(rel: str, name: str, package: Dict[str, Any]) -> Optional[str]:
    parts = rel.split("/")
    if len(parts) > 1 and parts[-2] in _WORKSPACE_PARENT_TYPES:
        return _WORKSPACE_PARENT_TYPES[parts[-2]]
    if package.get("bin"):
        return "cli"
    lowered = name.lower()
    if "server" in lowered or "api" in lowered:
        return "server"
    deps = node_dependencies(package)
    if any(dep in deps for dep in _UI_DEPENDENCIES):
        return "app"
    return None


def _extend_unique(target: List[str], values: Sequence[str]) -> None:
    for value in values:
        if value not in target:
            target.append(value)


__all__ = [
    "RUNTIME_MARKERS",
    "detect_monorepo",
    "detect_project",
    "detect_runtime",
    "readme_description",
    "resolve_workspaces",
]
