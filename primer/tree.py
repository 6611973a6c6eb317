"""Budget-aware directory tree rendering for the Structure section."""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from fnmatch import fnmatchcase
from pathlib import Path
from typing import Dict, Iterable, List, Mapping, Optional, Sequence, Set

from .budget import estimate_tokens
from .logging import get_logger
from .walker import IgnoreRule, load_ignore_rules, should_ignore

logger = get_logger("tree")

DEFAULT_ANNOTATIONS: Dict[str, str] = {
    "package.json": "project manifest",
    "tsconfig.json": "TypeScript config",
    "Cargo.toml": "Rust manifest",
    "pyproject.toml": "Python config",
    "go.mod": "Go module",
    "Gemfile": "Ruby dependencies",
    "README.md": "documentation",
    ".env.example": "environment template",
}

MAX_TREE_DEPTH = 4
DIR_COLLAPSE_THRESHOLD = 15
DEFAULT_TREE_BUDGET = 1500

BRANCH = "├── "
LAST_BRANCH = "└── "
PIPE = "│   "
SPACE = "    "


@dataclass
class TreeNode:
    name: str
    path: str
    is_dir: bool
    children: List["TreeNode"] = field(default_factory=list)
    significant: bool = False


def _annotation_for(node: TreeNode, annotations: Mapping[str, str]) -> Optional[str]:
    exact = annotations.get(node.name)
    if exact is not None:
        return exact
    for pattern, note in annotations.items():
        if pattern == node.path or ("*" in pattern and fnmatchcase(node.path, pattern)):
            return note
    return None


def significant_prefixes(paths: Iterable[str]) -> Set[str]:
    """Every significant path plus each of its parent directories."""
    prefixes: Set[str] = set()
    for path in paths:
        parts = path.split("/")
        for end in range(1, len(parts) + 1):
            prefixes.add("/".join(parts[:end]))
    return prefixes


def _build(
    root: Path,
    directory: Path,
    rel_dir: str,
    depth: int,
    rules: Sequence[IgnoreRule],
    significant: Set[str],
) -> List[TreeNode]:
    try:
        entries = list(os.scandir(directory))
    except OSError as exc:
        logger.debug("Cannot list %s: %s", directory, exc)
        return []

    nodes: List[TreeNode] = []
    for entry in entries:
        rel_path = f"{rel_dir}/{entry.name}" if rel_dir else entry.name
        try:
            is_dir = entry.is_dir(follow_symlinks=False)
        except OSError:
            continue
        if should_ignore(rel_path, is_dir, rules):
            continue

        node = TreeNode(
            name=entry.name,
            path=rel_path,
            is_dir=is_dir,
            significant=rel_path in significant,
        )
        if is_dir:
            if depth + 1 < MAX_TREE_DEPTH:
                node.children = _build(root, Path(entry.path), rel_path, depth + 1, rules, significant)
                if not node.children:
                    continue
            elif not _has_entries(Path(entry.path)):
                continue
        nodes.append(node)

    nodes.sort(key=lambda item: (not item.is_dir, item.name.lower(), item.name))
    return nodes


def _has_entries(directory: Path) -> bool:
    try:
        with os.scandir(directory) as entries:
            return any(True for _ in entries)
    except OSError:
        return False


def _render(
    nodes: Sequence[TreeNode],
    prefix: str,
    depth: int,
    max_depth: int,
    annotations: Mapping[str, str],
    lines: List[str],
) -> None:
    visible: Iterable[TreeNode] = nodes
    hidden = 0
    if len(nodes) > DIR_COLLAPSE_THRESHOLD:
        # Keep significant entries of a crowded directory, summarise the rest.
        kept = [node for node in nodes if node.significant]
        hidden = len(nodes) - len(kept)
        visible = kept

    visible = list(visible)
    for index, node in enumerate(visible):
        is_last = index == len(visible) - 1 and hidden == 0
        connector = LAST_BRANCH if is_last else BRANCH
        label = node.name + "/" if node.is_dir else node.name

        expand = node.is_dir and depth + 1 < max_depth and bool(node.children)
        if node.is_dir and len(node.children) > DIR_COLLAPSE_THRESHOLD and not node.significant:
            label += f" ({len(node.children)} items)"
            expand = False

        note = _annotation_for(node, annotations)
        if note:
            label += f" # {note}"
        lines.append(prefix + connector + label)

        if expand:
            child_prefix = prefix + (SPACE if is_last else PIPE)
            _render(node.children, child_prefix, depth + 1, max_depth, annotations, lines)

    if hidden:
        lines.append(f"{prefix}{LAST_BRANCH}... {hidden} more")


def render_tree(
    root_name: str,
    nodes: Sequence[TreeNode],
    max_depth: int,
    annotations: Mapping[str, str],
) -> str:
    lines = [f"{root_name}/"]
    _render(nodes, "", 0, max_depth, annotations, lines)
    return "\n".join(lines) + "\n"


@dataclass
class ProjectTree:
    """A scanned project, ready to render at any depth."""

    root_name: str
    nodes: List[TreeNode]


def build_tree(
    root: Path,
    significant_paths: Optional[Iterable[str]] = None,
    ignore: Optional[Sequence[str]] = None,
) -> ProjectTree:
    root = Path(root)
    rules = load_ignore_rules(root, ignore or ())
    nodes = _build(root, root, "", 0, rules, significant_prefixes(significant_paths or ()))
    return ProjectTree(root_name=root.resolve().name or str(root), nodes=nodes)


def fit_tree(
    tree: ProjectTree,
    budget_tokens: int = DEFAULT_TREE_BUDGET,
    annotations: Optional[Mapping[str, str]] = None,
) -> str:
    """Render at the deepest level (4 down to 1) that fits the budget.

    When even depth 1 is over budget the depth-1 rendering is returned as is.
    """
    merged: Dict[str, str] = dict(DEFAULT_ANNOTATIONS)
    if annotations:
        merged.update(annotations)

    rendered = ""
    for depth in range(MAX_TREE_DEPTH, 0, -1):
        rendered = render_tree(tree.root_name, tree.nodes, depth, merged)
        if estimate_tokens(rendered) <= budget_tokens:
            return rendered
        logger.debug("Tree at depth %d exceeds %d tokens", depth, budget_tokens)
    return rendered


def generate_tree(
    root: Path,
    budget_tokens: int = DEFAULT_TREE_BUDGET,
    significant_paths: Optional[Iterable[str]] = None,
    annotations: Optional[Mapping[str, str]] = None,
    ignore: Optional[Sequence[str]] = None,
) -> str:
    """Scan ``root`` and render the tree that fits ``budget_tokens``.

    Directories with more than 15 children collapse to a one-line summary
    unless they lead to a significant path.
    """
    return fit_tree(build_tree(root, significant_paths, ignore), budget_tokens, annotations)


__all__ = [
    "DEFAULT_ANNOTATIONS",
    "ProjectTree",
    "TreeNode",
    "build_tree",
    "fit_tree",
    "generate_tree",
    "render_tree",
    "significant_prefixes",
]
