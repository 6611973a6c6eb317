"""Signature extraction: extension -> language -> extractor variant."""

from __future__ import annotations

from pathlib import Path
from typing import Dict, List, Optional, Sequence

from ..grammars import GrammarCache, default_grammar_cache
from ..logging import get_logger
from ..models import FileSignatures, SignatureEntry
from .base import Extractor, TreeSitterExtractor
from .fallback import RegexExtractor
from .go import GoExtractor
from .imports import extract_imports
from .javascript import JavaScriptExtractor
from .jvm import CSharpExtractor, JavaExtractor
from .php import PhpExtractor
from .python import PythonExtractor
from .ruby import RubyExtractor
from .rust import RustExtractor

logger = get_logger("extractors")

EXTENSION_LANGUAGES: Dict[str, str] = {
    ".ts": "typescript",
    ".mts": "typescript",
    ".cts": "typescript",
    ".tsx": "tsx",
    ".js": "javascript",
    ".jsx": "javascript",
    ".mjs": "javascript",
    ".cjs": "javascript",
    ".py": "python",
    ".go": "go",
    ".rs": "rust",
    ".java": "java",
    ".cs": "csharp",
    ".rb": "ruby",
    ".php": "php",
}


def _by_language(variants: Sequence[Extractor]) -> Dict[str, Extractor]:
    table: Dict[str, Extractor] = {}
    for variant in variants:
        for language in variant.languages:
            table[language] = variant
    return table


PRIMARY_EXTRACTORS: Dict[str, Extractor] = _by_language(
    [
        JavaScriptExtractor(),
        PythonExtractor(),
        GoExtractor(),
        RustExtractor(),
        JavaExtractor(),
        CSharpExtractor(),
        RubyExtractor(),
        PhpExtractor(),
    ]
)

FALLBACK_EXTRACTORS: Dict[str, Extractor] = _by_language([RegexExtractor()])


def language_for_path(path: str | Path) -> Optional[str]:
    return EXTENSION_LANGUAGES.get(Path(path).suffix.lower())


def extract_signatures(
    content: str, language: str, grammars: Optional[GrammarCache] = None
) -> List[SignatureEntry]:
    """Top-level declarations of ``content``; empty when the language is unsupported.

    The tree-sitter variant runs first; the regex variant takes over only when
    no grammar could be loaded for the language.
    """
    grammars = grammars or default_grammar_cache()
    primary = PRIMARY_EXTRACTORS.get(language)
    if primary is not None:
        entries = primary.extract(content, language, grammars)
        if entries is not None:
            return entries
    fallback = FALLBACK_EXTRACTORS.get(language)
    if fallback is not None:
        logger.debug("No %s grammar available; using regex extraction", language)
        return fallback.extract(content, language, grammars) or []
    return []


def extract_file_signatures(
    path: str | Path, root_dir: str | Path, grammars: Optional[GrammarCache] = None
) -> Optional[FileSignatures]:
    """Extract one file. None for unsupported, unreadable or empty files."""
    path = Path(path)
    language = language_for_path(path)
    if language is None:
        return None
    try:
        content = path.read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError) as exc:
        logger.debug("Skipping unreadable file %s: %s", path, exc)
        return None

    try:
        signatures = extract_signatures(content, language, grammars)
        imports = extract_imports(content, language)
    except Exception as exc:
        logger.debug("Extraction failed for %s: %s", path, exc)
        return None

    if not signatures and not imports:
        return None
    try:
        relative = path.resolve().relative_to(Path(root_dir).resolve()).as_posix()
    except ValueError:
        relative = path.as_posix()
    return FileSignatures(path=relative, language=language, signatures=signatures, imports=imports)


__all__ = [
    "EXTENSION_LANGUAGES",
    "Extractor",
    "FALLBACK_EXTRACTORS",
    "PRIMARY_EXTRACTORS",
    "RegexExtractor",
    "TreeSitterExtractor",
    "extract_file_signatures",
    "extract_imports",
    "extract_signatures",
    "language_for_path",
]
