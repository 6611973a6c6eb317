"""Base classes for knowledge analyzers."""

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import List, Optional, Sequence

from ..budget import estimate_tokens
from ..models import FileSignatures, KnowledgeEntry, ProjectInfo


@dataclass
class AnalysisContext:
    """Everything an analyzer may inspect: the project, extracted files and all walked paths."""

    project: ProjectInfo
    signatures: Sequence[FileSignatures] = field(default_factory=list)
    files: Sequence[str] = field(default_factory=list)


class KnowledgeAnalyzer(ABC):
    """Contract for analyzers that derive one knowledge entry from structural signals."""

    #: Heading used for the entry in the Knowledge section.
    title: str = ""

    @abstractmethod
    def lines(self, context: AnalysisContext) -> List[str]:
        """Markdown lines for the entry; empty when no signal fired."""

    def analyze(self, context: AnalysisContext) -> Optional[KnowledgeEntry]:
        lines = self.lines(context)
        if not lines:
            return None
        content = "\n".join(lines).strip()
        return KnowledgeEntry(title=self.title, content=content, tokens=estimate_tokens(content))


def add_block(lines: List[str], block: Sequence[str]) -> None:
    """Append ``block`` to ``lines``, separated from earlier blocks by a blank line."""
    if not block:
        return
    if lines:
        lines.append("")
    lines.extend(block)
