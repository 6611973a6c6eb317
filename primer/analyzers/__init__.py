"""Knowledge analyzers and discovery utilities."""

from __future__ import annotations

from importlib import metadata
from typing import Callable, Iterable, List, Sequence, Set

from ..budget import estimate_tokens
from ..logging import get_logger
from ..models import FileSignatures, KnowledgeEntry, ProjectInfo
from .architecture import ArchitectureAnalyzer
from .base import AnalysisContext, KnowledgeAnalyzer
from .conventions import ConventionsAnalyzer
from .dependencies import DependencyAnalyzer

_ENTRY_POINT_GROUP = "primer.analyzers"

logger = get_logger("analyzers")

# Order matters: entries are fitted into the budget in this order.
_BUILTIN_FACTORIES: dict[str, Callable[[], KnowledgeAnalyzer]] = {
    "architecture": ArchitectureAnalyzer,
    "conventions": ConventionsAnalyzer,
    "dependencies": DependencyAnalyzer,
}


def discover_analyzers(enabled: Sequence[str] | None = None) -> List[KnowledgeAnalyzer]:
    """Return instantiated analyzers, built-ins first, then registered plugins."""

    enabled_set: Set[str] | None = None
    if enabled is not None:
        enabled_set = {name.lower() for name in enabled}

    analyzers: List[KnowledgeAnalyzer] = []
    seen: Set[str] = set()

    def _add(name: str, factory: Callable[[], KnowledgeAnalyzer]) -> None:
        key = name.lower()
        if key in seen or (enabled_set is not None and key not in enabled_set):
            return
        instance = factory()
        if not isinstance(instance, KnowledgeAnalyzer):
            raise TypeError(f"Analyzer factory for '{name}' did not return a KnowledgeAnalyzer")
        analyzers.append(instance)
        seen.add(key)

    for name, factory in _BUILTIN_FACTORIES.items():
        _add(name, factory)

    for entry in _iter_entry_points():
        try:
            loaded = entry.load()
        except Exception as exc:
            logger.warning("Skipping analyzer plugin '%s': %s", entry.name, exc)
            continue
        _add(entry.name, lambda obj=loaded: _coerce_analyzer(obj))

    if enabled_set is not None:
        missing = enabled_set - seen
        if missing:
            raise ValueError(f"Unknown analyzers requested: {', '.join(sorted(missing))}")

    return analyzers


def _coerce_analyzer(obj: object) -> KnowledgeAnalyzer:
    if isinstance(obj, KnowledgeAnalyzer):
        return obj
    if isinstance(obj, type) and issubclass(obj, KnowledgeAnalyzer):
        return obj()
    if callable(obj):
        instance = obj()
        if isinstance(instance, KnowledgeAnalyzer):
            return instance
    raise TypeError("Analyzer entry point must be a KnowledgeAnalyzer subclass or factory")


def _iter_entry_points() -> Iterable[metadata.EntryPoint]:
    return metadata.entry_points().select(group=_ENTRY_POINT_GROUP)


def generate_auto_knowledge(
    project: ProjectInfo,
    signatures: Sequence[FileSignatures],
    files: Sequence[str],
    budget: int,
    analyzers: Sequence[KnowledgeAnalyzer] | None = None,
) -> List[KnowledgeEntry]:
    """Run the analyzers in order and keep the entries that fully fit ``budget``."""
    if budget <= 0:
        return []
    return fit_knowledge(run_analyzers(project, signatures, files, analyzers), budget)


def run_analyzers(
    project: ProjectInfo,
    signatures: Sequence[FileSignatures],
    files: Sequence[str],
    analyzers: Sequence[KnowledgeAnalyzer] | None = None,
) -> List[KnowledgeEntry]:
    if analyzers is None:
        analyzers = discover_analyzers()
    context = AnalysisContext(project=project, signatures=signatures, files=files)
    entries: List[KnowledgeEntry] = []
    for analyzer in analyzers:
        entry = analyzer.analyze(context)
        if entry is not None:
            entries.append(entry)
    return entries


def knowledge_cost(entry: KnowledgeEntry) -> int:
    return entry.tokens + estimate_tokens(f"### {entry.title}\n\n")


def fit_knowledge(entries: Sequence[KnowledgeEntry], budget: int) -> List[KnowledgeEntry]:
    """Greedy in-order fit.

    Each entry is charged its own tokens plus its ``### <title>`` heading.
    An entry that does not fit is skipped; later, smaller ones may still fit.
    """
    accepted: List[KnowledgeEntry] = []
    remaining = budget
    for entry in entries:
        needed = knowledge_cost(entry)
        if needed <= remaining:
            accepted.append(entry)
            remaining -= needed
        else:
            logger.debug("Dropping %s: needs %d tokens, %d left", entry.title, needed, remaining)
    return accepted


__all__ = [
    "AnalysisContext",
    "ArchitectureAnalyzer",
    "ConventionsAnalyzer",
    "DependencyAnalyzer",
    "KnowledgeAnalyzer",
    "discover_analyzers",
    "fit_knowledge",
    "generate_auto_knowledge",
    "knowledge_cost",
    "run_analyzers",
]
