"""Lazy tree-sitter grammar loading with pluggable backends."""

from __future__ import annotations

import importlib
import importlib.util
from typing import Dict, Iterable, List, Optional, Sequence, Tuple

from tree_sitter import Language, Parser, Tree

from .logging import get_logger

logger = get_logger("grammars")

# Grammar key -> (module, factory) for the individually published grammar wheels.
GRAMMAR_BINDINGS: Dict[str, Tuple[str, str]] = {
    "javascript": ("tree_sitter_javascript", "language"),
    "typescript": ("tree_sitter_typescript", "language_typescript"),
    "tsx": ("tree_sitter_typescript", "language_tsx"),
    "python": ("tree_sitter_python", "language"),
    "go": ("tree_sitter_go", "language"),
    "rust": ("tree_sitter_rust", "language"),
    "java": ("tree_sitter_java", "language"),
    "c_sharp": ("tree_sitter_c_sharp", "language"),
    "ruby": ("tree_sitter_ruby", "language"),
    "php": ("tree_sitter_php", "language_php"),
}

GRAMMAR_KEYS: Tuple[str, ...] = tuple(GRAMMAR_BINDINGS)

LANG_EXTS: Dict[str, Tuple[str, ...]] = {
    "javascript": (".js", ".jsx", ".mjs", ".cjs"),
    "typescript": (".ts", ".mts", ".cts"),
    "tsx": (".tsx",),
    "python": (".py",),
    "go": (".go",),
    "rust": (".rs",),
    "java": (".java",),
    "c_sharp": (".cs",),
    "ruby": (".rb",),
    "php": (".php",),
}

# Extensions handled by the regex extractor even without a grammar.
FALLBACK_EXTENSIONS = (".ts", ".mts", ".cts", ".tsx", ".js", ".jsx", ".mjs", ".cjs")


class GrammarBackend:
    """Source of compiled grammars. Subclasses decide where grammars live."""

    name = "backend"

    def has(self, key: str) -> bool:
        raise NotImplementedError

    def load(self, key: str) -> Language:
        raise NotImplementedError

    def available_keys(self) -> List[str]:
        return [key for key in GRAMMAR_KEYS if self.has(key)]


class BindingsBackend(GrammarBackend):
    """Per-language ``tree_sitter_<lang>`` wheels looked up by a fixed table."""

    name = "bindings"

    def __init__(self, table: Optional[Dict[str, Tuple[str, str]]] = None) -> None:
        self._table = dict(GRAMMAR_BINDINGS if table is None else table)

    def has(self, key: str) -> bool:
        entry = self._table.get(key)
        if entry is None:
            return False
        try:
            return importlib.util.find_spec(entry[0]) is not None
        except (ImportError, ValueError):
            return False

    def load(self, key: str) -> Language:
        module_name, factory = self._table[key]
        module = importlib.import_module(module_name)
        return Language(getattr(module, factory)())


class LanguagePackBackend(GrammarBackend):
    """The bundled ``tree_sitter_language_pack`` distribution."""

    name = "language-pack"
    module_name = "tree_sitter_language_pack"

    _PACK_NAMES = {"c_sharp": "csharp"}

    def has(self, key: str) -> bool:
        if key not in GRAMMAR_BINDINGS:
            return False
        try:
            return importlib.util.find_spec(self.module_name) is not None
        except (ImportError, ValueError):
            return False

    def load(self, key: str) -> Language:
        module = importlib.import_module(self.module_name)
        return module.get_language(self._PACK_NAMES.get(key, key))


def default_backends() -> List[GrammarBackend]:
    return [BindingsBackend(), LanguagePackBackend()]


class GrammarCache:
    """Owns the backend choice and every grammar loaded through it.

    The backend is picked once, on first use: the first candidate that reports
    any grammar available serves the whole session. Loaded grammars are cached
    by key; failed loads are not cached so the next call retries.
    """

    def __init__(self, backends: Optional[Sequence[GrammarBackend]] = None) -> None:
        self._candidates: List[GrammarBackend] = (
            list(backends) if backends is not None else default_backends()
        )
        self._backend: Optional[GrammarBackend] = None
        self._backend_chosen = False
        self._languages: Dict[str, Language] = {}

    @property
    def backend(self) -> Optional[GrammarBackend]:
        if not self._backend_chosen:
            self._backend = self._choose_backend()
            self._backend_chosen = True
        return self._backend

    def _choose_backend(self) -> Optional[GrammarBackend]:
        for candidate in self._candidates:
            if candidate.available_keys():
                logger.debug("Using %s grammar backend", candidate.name)
                return candidate
        logger.debug("No tree-sitter grammar backend available")
        return None

    def get_language(self, key: str) -> Optional[Language]:
        cached = self._languages.get(key)
        if cached is not None:
            return cached
        backend = self.backend
        if backend is None or not backend.has(key):
            return None
        try:
            language = backend.load(key)
        except Exception as exc:
            logger.debug("Failed to load %s grammar from %s: %s", key, backend.name, exc)
            return None
        self._languages[key] = language
        return language

    def loaded_keys(self) -> List[str]:
        return sorted(self._languages)

    def get_supported_extensions(self) -> List[str]:
        extensions: List[str] = []
        for key in GRAMMAR_KEYS:
            if self.get_language(key) is not None:
                _extend_unique(extensions, LANG_EXTS[key])
        _extend_unique(extensions, FALLBACK_EXTENSIONS)
        return extensions

    def parse(self, source: bytes, key: str) -> Optional[Tree]:
        language = self.get_language(key)
        if language is None:
            return None
        try:
            return Parser(language).parse(source)
        except Exception as exc:
            logger.debug("Failed to parse %s source: %s", key, exc)
            return None


def _extend_unique(target: List[str], values: Iterable[str]) -> None:
    for value in values:
        if value not in target:
            target.append(value)


_default_cache: Optional[GrammarCache] = None


def default_grammar_cache() -> GrammarCache:
    """Return the process-wide cache, creating it on first use."""
    global _default_cache
    if _default_cache is None:
        _default_cache = GrammarCache()
    return _default_cache


__all__ = [
    "BindingsBackend",
    "FALLBACK_EXTENSIONS",
    "GRAMMAR_BINDINGS",
    "GRAMMAR_KEYS",
    "GrammarBackend",
    "GrammarCache",
    "LANG_EXTS",
    "LanguagePackBackend",
    "default_grammar_cache",
]
