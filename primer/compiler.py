"""Context compilation pipeline: detect, walk, extract, budget and render."""

from __future__ import annotations

from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field
from pathlib import Path, PurePosixPath
from typing import Callable, Dict, List, Optional, Sequence, Set, Tuple

from .analyzers import KnowledgeAnalyzer, fit_knowledge, run_analyzers
from .budget import (
    SECTION_KEYS,
    allocate_budget,
    estimate_tokens,
    redistribute_surplus,
    truncate_to_fit,
)
from .config import CONFIG_FILENAME, ConfigError, ContextConfig, load_config
from .detector import detect_project
from .extractors import extract_file_signatures
from .grammars import GrammarCache, default_grammar_cache
from .logging import get_logger
from .models import BudgetAllocation, ContextResult, ContextSection, FileSignatures, KnowledgeEntry, ProjectInfo
from .prioritizer import sort_by_priority
from .rendering import render_context
from .sanitize import is_path_within, sanitize_code_block, sanitize_heading
from .tree import ProjectTree, build_tree, fit_tree
from .walker import matches_glob, walk_project

BATCH_SIZE = 20
MIN_FILE_CAP = 200
CAP_FILE_COUNT = 15
MIN_KEY_FILE_REMAINDER = 100
# Budget used to measure how much room a section would like.
UNBOUNDED = 10**9

SECTION_TITLES: Dict[str, str] = {
    "overview": "Overview",
    "structure": "Structure",
    "keyFiles": "Key Files",
    "codeMap": "Code Map",
    "knowledge": "Knowledge",
}

SECTION_PRIORITIES: Dict[str, int] = {
    "overview": 10,
    "structure": 9,
    "keyFiles": 8,
    "codeMap": 7,
    "knowledge": 5,
}

# Sections rendered even when their builder produced nothing.
_ALWAYS_PRESENT = ("overview", "structure")


@dataclass
class SectionDraft:
    """A section body built against a budget, plus how much it wanted."""

    content: str
    tokens: int
    demand: int
    truncated: List[str] = field(default_factory=list)


@dataclass
class CompileInputs:
    """Everything gathered before sections are built."""

    root: Path
    config: ContextConfig
    project: ProjectInfo
    files: List[str]
    signatures: List[FileSignatures]
    significant: Set[str]
    ignore: List[str] = field(default_factory=list)
    annotations: Dict[str, str] = field(default_factory=dict)
    auto_knowledge: List[KnowledgeEntry] = field(default_factory=list)
    tree: Optional[ProjectTree] = None


class ContextCompiler:
    """Compiles a project directory into a context document."""

    def __init__(
        self,
        grammars: GrammarCache | None = None,
        analyzers: Optional[Sequence[KnowledgeAnalyzer]] = None,
        templates_dir: Path | None = None,
    ) -> None:
        self.grammars = grammars or default_grammar_cache()
        self._analyzer_overrides = list(analyzers) if analyzers is not None else None
        self.templates_dir = templates_dir
        self.logger = get_logger("compiler")

    def compile(
        self,
        root: str | Path,
        *,
        budget: int | None = None,
        output: str | Path | None = None,
        dry_run: bool = False,
    ) -> ContextResult:
        """Run the whole pipeline. Only writing the output file can raise."""
        root_path = Path(root).expanduser().resolve()
        self.logger.info("Compiling context for %s", root_path)

        config = self._load_config(root_path)
        output_path = self._resolve_output(root_path, config, output)
        inputs = self.gather(root_path, config, output_path)

        total = budget if budget is not None else config.budget
        allocation = allocate_budget(total)

        demand = {key: draft.demand for key, draft in self._build_all(inputs, allocation).items()}
        final_allocation = redistribute_surplus(allocation, demand)
        self.logger.debug("Allocation %s -> %s", allocation, final_allocation)

        drafts = self._build_all(inputs, final_allocation)
        sections: List[ContextSection] = []
        truncated: List[str] = []
        for key in SECTION_KEYS:
            draft = drafts[key]
            truncated.extend(draft.truncated)
            if not draft.content and key not in _ALWAYS_PRESENT:
                continue
            content = truncate_to_fit(draft.content, final_allocation[key])
            sections.append(
                ContextSection(
                    id=key,
                    title=SECTION_TITLES[key],
                    content=content,
                    tokens=min(estimate_tokens(content), final_allocation[key]),
                    priority=SECTION_PRIORITIES[key],
                )
            )

        markdown = render_context(
            inputs.project.name,
            sections,
            tagline=config.tagline,
            templates_dir=self.templates_dir,
        )
        result = ContextResult(
            markdown=markdown,
            total_tokens=estimate_tokens(markdown),
            sections=sections,
            truncated=truncated,
            allocation=final_allocation,
        )

        if not dry_run:
            output_path.parent.mkdir(parents=True, exist_ok=True)
            output_path.write_text(markdown, encoding="utf-8")
            result.output_path = output_path
            self.logger.info("Wrote %s (%d tokens)", output_path, result.total_tokens)
        return result

    def gather(self, root: Path, config: ContextConfig, output_path: Path | None = None) -> CompileInputs:
        project = detect_project(root)
        overrides = project.overrides

        ignore = list(config.ignore)
        excludes: List[str] = []
        includes: List[str] = []
        annotations: Dict[str, str] = {}
        if overrides is not None:
            ignore.extend(overrides.excludes)
            excludes = list(overrides.excludes)
            includes = list(overrides.includes)
            annotations = dict(overrides.annotations)

        if output_path is not None and is_path_within(output_path, root):
            ignore.append("/" + output_path.resolve().relative_to(root).as_posix())
        files = walk_project(root, ignore=ignore, max_depth=config.max_depth)
        self.logger.debug("Walker found %d files", len(files))

        supported = set(self.grammars.get_supported_extensions())
        exclude_globs = list(config.exclude_signatures) + excludes
        source_files = [
            path
            for path in files
            if PurePosixPath(path).suffix in supported
            and not matches_glob(path, exclude_globs)
            and (not includes or matches_glob(path, includes))
        ]
        signatures = self.extract_all(root, source_files)
        self.logger.debug("Extracted %d of %d source files", len(signatures), len(source_files))

        significant = {file.path for file in signatures if file.signatures}
        significant.update(path for path in files if matches_glob(path, config.key_files))

        inputs = CompileInputs(
            root=root,
            config=config,
            project=project,
            files=files,
            signatures=signatures,
            significant=significant,
            ignore=ignore,
            annotations=annotations,
            tree=build_tree(root, significant, ignore),
        )
        if config.auto_knowledge:
            analyzers = self._analyzer_overrides
            inputs.auto_knowledge = run_analyzers(project, signatures, files, analyzers)
        return inputs

    def extract_all(self, root: Path, source_files: Sequence[str]) -> List[FileSignatures]:
        """Extract in fixed batches of ``BATCH_SIZE``; each batch completes before the next."""
        results: List[FileSignatures] = []
        with ThreadPoolExecutor(max_workers=BATCH_SIZE) as executor:
            for start in range(0, len(source_files), BATCH_SIZE):
                batch = source_files[start : start + BATCH_SIZE]
                extracted = executor.map(
                    lambda rel: extract_file_signatures(root / rel, root, self.grammars), batch
                )
                results.extend(item for item in extracted if item is not None)
        return results

    def _build_all(self, inputs: CompileInputs, allocation: BudgetAllocation) -> Dict[str, SectionDraft]:
        builders: Dict[str, Callable[[CompileInputs, int], SectionDraft]] = {
            "overview": self._overview,
            "structure": self._structure,
            "keyFiles": self._key_files,
            "codeMap": self._code_map,
            "knowledge": self._knowledge,
        }
        return {key: builders[key](inputs, allocation[key]) for key in SECTION_KEYS}

    def _overview(self, inputs: CompileInputs, budget: int) -> SectionDraft:
        content = build_overview(inputs.project)
        tokens = estimate_tokens(content)
        return SectionDraft(content=content, tokens=tokens, demand=tokens)

    def _structure(self, inputs: CompileInputs, budget: int) -> SectionDraft:
        tree = inputs.tree
        if tree is None:
            tree = inputs.tree = build_tree(inputs.root, inputs.significant, inputs.ignore)
        full = fit_tree(tree, UNBOUNDED, inputs.annotations).rstrip("\n")
        demand = estimate_tokens(full)
        if demand <= budget:
            return SectionDraft(content=full, tokens=demand, demand=demand)

        fitted = fit_tree(tree, budget, inputs.annotations).rstrip("\n")
        return SectionDraft(content=fitted, tokens=estimate_tokens(fitted), demand=demand)

    def _key_files(self, inputs: CompileInputs, budget: int) -> SectionDraft:
        return build_key_files(inputs.root, inputs.files, inputs.config.key_files, budget)

    def _code_map(self, inputs: CompileInputs, budget: int) -> SectionDraft:
        return build_code_map(
            inputs.signatures,
            budget,
            signature_depth=inputs.config.signature_depth,
            code_map_format=inputs.config.code_map_format,
        )

    def _knowledge(self, inputs: CompileInputs, budget: int) -> SectionDraft:
        return build_knowledge(
            inputs.root,
            inputs.project,
            inputs.config,
            inputs.auto_knowledge,
            budget,
        )

    def _load_config(self, root: Path) -> ContextConfig:
        try:
            return load_config(root)
        except ConfigError as exc:
            self.logger.warning("Ignoring %s: %s", CONFIG_FILENAME, exc)
            return ContextConfig(root=root)

    @staticmethod
    def _resolve_output(root: Path, config: ContextConfig, output: str | Path | None) -> Path:
        if output is None:
            return config.output_path.resolve()
        path = Path(output).expanduser()
        return path.resolve() if path.is_absolute() else (Path.cwd() / path).resolve()


def build_overview(project: ProjectInfo) -> str:
    lines: List[str] = []
    if project.description:
        lines.append(sanitize_heading(project.description))
        lines.append("")

    lines.append(f"- **Runtime**: {project.runtime}")
    if project.frameworks:
        lines.append(f"- **Frameworks**: {', '.join(project.frameworks)}")
    if project.tooling:
        lines.append(f"- **Tooling**: {', '.join(project.tooling)}")

    monorepo = project.monorepo
    if monorepo is not None:
        lines.append(f"- **Monorepo**: {monorepo.tool}")
        lines.append("- **Workspaces**:")
        for workspace in monorepo.workspaces:
            line = f"  - `{workspace.path}`"
            if workspace.name != PurePosixPath(workspace.path).name:
                line += f" ({workspace.name})"
            if workspace.type:
                line += f" [{workspace.type}]"
            if workspace.description:
                line += f" - {sanitize_heading(workspace.description)}"
            lines.append(line)
    return "\n".join(lines)


def build_key_files(root: Path, files: Sequence[str], patterns: Sequence[str], budget: int) -> SectionDraft:
    """Fenced bodies of the files matching ``patterns``, cut at ``budget``.

    The file that crosses the budget is truncated when more than 100 tokens
    remain; everything after it is dropped and reported as truncated.
    """
    if not patterns:
        return SectionDraft(content="", tokens=0, demand=0)

    logger = get_logger("compiler")
    parts: List[str] = []
    truncated: List[str] = []
    used = 0
    demand = 0
    full = False
    for rel in (path for path in files if matches_glob(path, patterns)):
        try:
            text = (root / rel).read_text(encoding="utf-8")
        except (OSError, UnicodeDecodeError) as exc:
            logger.debug("Skipping unreadable key file %s: %s", rel, exc)
            continue

        tokens = estimate_tokens(text)
        demand += tokens
        if full:
            truncated.append(rel)
            continue

        fence = PurePosixPath(rel).suffix.lstrip(".")
        if used + tokens > budget:
            remaining = budget - used
            if remaining > MIN_KEY_FILE_REMAINDER:
                head = sanitize_code_block(text[: remaining * 4])
                parts.append(f"### {rel}\n\n```{fence}\n{head}\n...(truncated)\n```")
                used += remaining
            truncated.append(rel)
            full = True
            continue

        parts.append(f"### {rel}\n\n```{fence}\n{sanitize_code_block(text)}\n```")
        used += tokens

    return SectionDraft(content="\n\n".join(parts), tokens=used, demand=demand, truncated=truncated)


def _visible_signatures(file: FileSignatures, signature_depth: str) -> List[str]:
    entries = file.signatures
    if signature_depth == "exports":
        entries = [entry for entry in entries if entry.exported]
    return [entry.signature for entry in entries]


_ATTRIBUTE_PREFIXES = ("@", "[")


def _declaration_line(lines: Sequence[str]) -> int:
    """Index of the line that opens the declaration, past decorators and attributes."""
    for index, line in enumerate(lines):
        if not line.lstrip().startswith(_ATTRIBUTE_PREFIXES):
            return index
    return 0


def _first_line(signature: str) -> str:
    lines = signature.splitlines()
    if not lines:
        return signature
    return lines[_declaration_line(lines)].rstrip()


def _collapse_body(signature: str) -> str:
    lines = signature.splitlines()
    start = _declaration_line(lines)
    if len(lines) - start <= 1:
        return lines[start].rstrip() if lines else signature
    head = lines[start].rstrip()
    if head.endswith("{"):
        return head + " ... }"
    return head + " ..."


def _code_map_entry(file: FileSignatures, signatures: Sequence[str]) -> str:
    block = sanitize_code_block("\n".join(signatures))
    return f"### {file.path}\n```{file.language}\n{block}\n```"


def _fit_entry(file: FileSignatures, signatures: List[str], cap: int) -> Optional[str]:
    entry = _code_map_entry(file, signatures)
    if estimate_tokens(entry) <= cap:
        return entry

    collapsed = [_collapse_body(signature) for signature in signatures]
    entry = _code_map_entry(file, collapsed)
    while estimate_tokens(entry) > cap and len(collapsed) > 1:
        collapsed.pop()
        entry = _code_map_entry(file, collapsed)
    if estimate_tokens(entry) > cap:
        return None
    return entry


def build_code_map(
    signatures: Sequence[FileSignatures],
    budget: int,
    *,
    signature_depth: str = "exports",
    code_map_format: str = "skeleton",
) -> SectionDraft:
    """Signature blocks per file in priority order.

    Each file gets at most ``max(200, budget // min(file_count, 15))`` tokens:
    oversized files collapse multi-line bodies first, then lose trailing
    signatures. Files that still do not fit the remaining budget are listed in
    ``truncated``.
    """
    candidates: List[Tuple[FileSignatures, List[str]]] = []
    for file in sort_by_priority(signatures):
        visible = _visible_signatures(file, signature_depth)
        if not visible:
            continue
        if code_map_format == "signatures":
            visible = [_first_line(signature) for signature in visible]
        candidates.append((file, visible))

    if not candidates:
        return SectionDraft(content="", tokens=0, demand=0)

    cap = max(MIN_FILE_CAP, budget // min(len(candidates), CAP_FILE_COUNT))
    parts: List[str] = []
    truncated: List[str] = []
    used = 0
    demand = 0
    for file, visible in candidates:
        entry = _fit_entry(file, visible, cap)
        if entry is None:
            truncated.append(file.path)
            continue
        tokens = estimate_tokens(entry)
        demand += tokens
        if used + tokens > budget:
            truncated.append(file.path)
            continue
        parts.append(entry)
        used += tokens

    return SectionDraft(content="\n\n".join(parts), tokens=used, demand=demand, truncated=truncated)


def read_knowledge_notes(root: Path, knowledge_dir: str) -> List[Tuple[str, str]]:
    """(title, body) for every ``*.md`` in the knowledge directory, sorted by file name."""
    directory = root / knowledge_dir
    if not is_path_within(directory, root) or not directory.is_dir():
        return []

    logger = get_logger("compiler")
    notes: List[Tuple[str, str]] = []
    try:
        paths = sorted(path for path in directory.iterdir() if path.is_file() and path.suffix == ".md")
    except OSError as exc:
        logger.debug("Cannot list knowledge dir %s: %s", directory, exc)
        return []
    for path in paths:
        try:
            notes.append((path.stem, path.read_text(encoding="utf-8").strip()))
        except (OSError, UnicodeDecodeError) as exc:
            logger.debug("Skipping unreadable note %s: %s", path.name, exc)
    return notes


def build_knowledge(
    root: Path,
    project: ProjectInfo,
    config: ContextConfig,
    auto_entries: Sequence[KnowledgeEntry],
    budget: int,
) -> SectionDraft:
    """Override notes, then knowledge-dir notes, then auto knowledge in what remains."""
    parts: List[str] = []
    used = 0
    demand = 0

    notes: List[Tuple[str, str]] = []
    if project.overrides is not None and project.overrides.body:
        notes.append(("Project Notes", project.overrides.body.strip()))
    notes.extend(read_knowledge_notes(root, config.knowledge_dir))

    full = False
    for title, body in notes:
        part = f"### {sanitize_heading(title)}\n\n{body}"
        tokens = estimate_tokens(part)
        demand += tokens
        if full or used + tokens > budget:
            full = True
            continue
        parts.append(part)
        used += tokens

    if auto_entries:
        demand += sum(estimate_tokens(f"### {entry.title}\n\n{entry.content}") for entry in auto_entries)
        for entry in fit_knowledge(auto_entries, budget - used):
            part = f"### {entry.title}\n\n{entry.content}"
            parts.append(part)
            used += estimate_tokens(part)

    return SectionDraft(content="\n\n".join(parts), tokens=used, demand=demand)


def compile_context(
    root: str | Path,
    budget: int | None = None,
    output: str | Path | None = None,
    dry_run: bool = False,
    grammars: GrammarCache | None = None,
) -> ContextResult:
    """Compile ``root`` into a context document; see :class:`ContextCompiler`."""
    return ContextCompiler(grammars=grammars).compile(root, budget=budget, output=output, dry_run=dry_run)


__all__ = [
    "ContextCompiler",
    "SectionDraft",
    "build_code_map",
    "build_key_files",
    "build_knowledge",
    "build_overview",
    "compile_context",
]
