"""Core data models shared across primer components."""

from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, List, Optional

BudgetAllocation = Dict[str, int]


@dataclass
class ProjectOverrides:
    """Settings read from the project override document (PRIMER.md)."""

    type: Optional[str] = None
    name: Optional[str] = None
    includes: List[str] = field(default_factory=list)
    excludes: List[str] = field(default_factory=list)
    annotations: Dict[str, str] = field(default_factory=dict)
    body: str = ""
    path: Optional[str] = None


@dataclass
class Workspace:
    """A single package inside a monorepo."""

    name: str
    path: str
    type: Optional[str] = None
    description: Optional[str] = None


@dataclass
class MonorepoInfo:
    tool: str
    workspaces: List[Workspace] = field(default_factory=list)


@dataclass
class ProjectInfo:
    """Result of inspecting a project root."""

    name: str
    runtime: str
    root: str
    description: Optional[str] = None
    frameworks: List[str] = field(default_factory=list)
    tooling: List[str] = field(default_factory=list)
    monorepo: Optional[MonorepoInfo] = None
    config_file: Optional[str] = None
    overrides: Optional[ProjectOverrides] = None


@dataclass
class SignatureEntry:
    """Body-stripped rendering of one top-level declaration."""

    kind: str
    name: str
    signature: str
    exported: bool
    line: int
    is_async: bool = False

    @property
    def is_reexport(self) -> bool:
        return self.name.startswith("re-export")


@dataclass(frozen=True)
class ImportEntry:
    source: str
    is_relative: bool


@dataclass
class FileSignatures:
    """Signatures and imports extracted from one source file."""

    path: str
    language: str
    signatures: List[SignatureEntry] = field(default_factory=list)
    imports: List[ImportEntry] = field(default_factory=list)


@dataclass
class KnowledgeEntry:
    title: str
    content: str
    tokens: int


@dataclass
class ContextSection:
    """One rendered section of the context document."""

    id: str
    title: str
    content: str
    tokens: int
    priority: int


@dataclass
class ContextResult:
    """Outcome of a compile run."""

    markdown: str
    total_tokens: int
    sections: List[ContextSection]
    truncated: List[str] = field(default_factory=list)
    allocation: BudgetAllocation = field(default_factory=dict)
    output_path: Optional[Path] = None

    def section(self, section_id: str) -> Optional[ContextSection]:
        for section in self.sections:
            if section.id == section_id:
                return section
        return None
