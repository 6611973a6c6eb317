"""Language-keyed import scanning that ignores commented-out code."""

from __future__ import annotations

import re
from typing import Callable, Dict, Iterable, List, Pattern

from ..models import ImportEntry

_C_COMMENTS = re.compile(
    r"""(?P<keep>"(?:\\.|[^"\\\n])*"|'(?:\\.|[^'\\\n])*'|`(?:\\.|[^`\\])*`"""
    # Regex literal: a slash that follows an operator or opens a line.
    r"""|(?:(?<=[(,=:\[!&|?{};])|^)[ \t]*/(?![/*])(?:\\.|\[(?:\\.|[^\]\\\n])*\]|[^/\\\n\[])+/[a-z]*)"""
    r"""|(?P<blank>//[^\n]*|/\*.*?\*/)""",
    re.DOTALL | re.MULTILINE,
)
_PHP_COMMENTS = re.compile(
    r"""(?P<keep>"(?:\\.|[^"\\\n])*"|'(?:\\.|[^'\\\n])*')|(?P<blank>//[^\n]*|\#[^\n]*|/\*.*?\*/)""",
    re.DOTALL,
)
_HASH_COMMENTS = re.compile(r"""(?P<keep>"(?:\\.|[^"\\\n])*"|'(?:\\.|[^'\\\n])*')|(?P<blank>\#[^\n]*)""")
# Docstrings are blanked like comments; triple quotes must be tried before plain strings.
_PYTHON_COMMENTS = re.compile(
    r"""(?P<blank>\"\"\".*?\"\"\"|'''.*?'''|\#[^\n]*)|(?P<keep>"(?:\\.|[^"\\\n])*"|'(?:\\.|[^'\\\n])*')""",
    re.DOTALL,
)
_RUBY_BLOCK = re.compile(r"^=begin\b.*?^=end\b", re.DOTALL | re.MULTILINE)

_JS_PATTERNS = (
    re.compile(r"""\bimport\s+(?:type\s+)?[\w$*{}\s,]*?\bfrom\s*["']([^"']+)["']"""),
    re.compile(r"""\bimport\s*["']([^"']+)["']"""),
    re.compile(r"""\bexport\s+(?:type\s+)?(?:\*(?:\s+as\s+[\w$]+)?|\{[^}]*\})\s*from\s*["']([^"']+)["']"""),
    re.compile(r"""\brequire\s*\(\s*["']([^"']+)["']\s*\)"""),
    re.compile(r"""\bimport\s*\(\s*["']([^"']+)["']\s*\)"""),
)
_PY_IMPORT = re.compile(r"^\s*import\s+([\w.]+(?:\s+as\s+\w+)?(?:\s*,\s*[\w.]+(?:\s+as\s+\w+)?)*)", re.MULTILINE)
_PY_FROM = re.compile(r"^\s*from\s+(\.*[\w.]*)\s+import\b", re.MULTILINE)
_GO_SINGLE = re.compile(r"""^\s*import\s+(?:[\w.]+\s+)?"([^"]+)\"""", re.MULTILINE)
_GO_BLOCK = re.compile(r"^\s*import\s*\((.*?)\)", re.MULTILINE | re.DOTALL)
_GO_SPEC = re.compile(r'"([^"]+)"')
_RUST_USE = re.compile(r"^\s*(?:pub(?:\([^)]*\))?\s+)?use\s+([\w:]+)", re.MULTILINE)
_RUST_EXTERN = re.compile(r"^\s*extern\s+crate\s+(\w+)", re.MULTILINE)
_JAVA_IMPORT = re.compile(r"^\s*import\s+(?:static\s+)?([\w.]+)(?:\.\*)?\s*;", re.MULTILINE)
_CSHARP_USING = re.compile(r"^\s*(?:global\s+)?using\s+(?:static\s+)?(?:\w+\s*=\s*)?([\w.]+)\s*;", re.MULTILINE)
_RUBY_REQUIRE = re.compile(r"""^\s*(require|require_relative)\s*\(?\s*["']([^"']+)["']""", re.MULTILINE)
_PHP_USE = re.compile(r"^\s*use\s+(?:function\s+|const\s+)?\\?([\w\\]+)", re.MULTILINE)
_PHP_INCLUDE = re.compile(r"""\b(?:require|include)(?:_once)?\s*\(?\s*["']([^"']+)["']""")


def strip_comments(text: str, pattern: Pattern[str]) -> str:
    """Blank out comments while keeping string literals and line numbers intact."""

    def _replace(match: "re.Match[str]") -> str:
        blank = match.group("blank")
        if blank is None:
            return match.group(0)
        return "\n" * blank.count("\n")

    return pattern.sub(_replace, text)


def _dedupe(entries: Iterable[ImportEntry]) -> List[ImportEntry]:
    seen: set[str] = set()
    result: List[ImportEntry] = []
    for entry in entries:
        if entry.source and entry.source not in seen:
            seen.add(entry.source)
            result.append(entry)
    return result


def _path_relative(source: str) -> bool:
    return source.startswith(("./", "../")) or source in (".", "..")


def _scan_javascript(text: str) -> Iterable[ImportEntry]:
    text = strip_comments(text, _C_COMMENTS)
    found = []
    for pattern in _JS_PATTERNS:
        for match in pattern.finditer(text):
            found.append((match.start(), match.group(1)))
    for _, source in sorted(found):
        yield ImportEntry(source=source, is_relative=_path_relative(source))


def _scan_python(text: str) -> Iterable[ImportEntry]:
    text = strip_comments(text, _PYTHON_COMMENTS)
    found = []
    for match in _PY_FROM.finditer(text):
        found.append((match.start(), match.group(1)))
    for match in _PY_IMPORT.finditer(text):
        for part in match.group(1).split(","):
            found.append((match.start(), part.split(" as ")[0].strip()))
    for _, source in sorted(found, key=lambda item: item[0]):
        yield ImportEntry(source=source, is_relative=source.startswith("."))


def _scan_go(text: str) -> Iterable[ImportEntry]:
    text = strip_comments(text, _C_COMMENTS)
    found = [(match.start(), match.group(1)) for match in _GO_SINGLE.finditer(text)]
    for block in _GO_BLOCK.finditer(text):
        for spec in _GO_SPEC.finditer(block.group(1)):
            found.append((block.start(1) + spec.start(), spec.group(1)))
    for _, source in sorted(found):
        yield ImportEntry(source=source, is_relative=_path_relative(source))


def _scan_rust(text: str) -> Iterable[ImportEntry]:
    text = strip_comments(text, _C_COMMENTS)
    found = [(match.start(), match.group(1).rstrip(":")) for match in _RUST_USE.finditer(text)]
    found.extend((match.start(), match.group(1)) for match in _RUST_EXTERN.finditer(text))
    for _, source in sorted(found):
        relative = source.split("::", 1)[0] in ("crate", "self", "super")
        yield ImportEntry(source=source, is_relative=relative)


def _scan_java(text: str) -> Iterable[ImportEntry]:
    text = strip_comments(text, _C_COMMENTS)
    for match in _JAVA_IMPORT.finditer(text):
        yield ImportEntry(source=match.group(1), is_relative=False)


def _scan_csharp(text: str) -> Iterable[ImportEntry]:
    text = strip_comments(text, _C_COMMENTS)
    for match in _CSHARP_USING.finditer(text):
        yield ImportEntry(source=match.group(1), is_relative=False)


def _scan_ruby(text: str) -> Iterable[ImportEntry]:
    text = _RUBY_BLOCK.sub(lambda m: "\n" * m.group(0).count("\n"), text)
    text = strip_comments(text, _HASH_COMMENTS)
    for match in _RUBY_REQUIRE.finditer(text):
        source = match.group(2)
        relative = match.group(1) == "require_relative" or _path_relative(source)
        yield ImportEntry(source=source, is_relative=relative)


def _scan_php(text: str) -> Iterable[ImportEntry]:
    text = strip_comments(text, _PHP_COMMENTS)
    found = [(match.start(), match.group(1)) for match in _PHP_USE.finditer(text)]
    found.extend((match.start(), match.group(1)) for match in _PHP_INCLUDE.finditer(text))
    for _, source in sorted(found):
        yield ImportEntry(source=source, is_relative=_path_relative(source))


_SCANNERS: Dict[str, Callable[[str], Iterable[ImportEntry]]] = {
    "typescript": _scan_javascript,
    "tsx": _scan_javascript,
    "javascript": _scan_javascript,
    "python": _scan_python,
    "go": _scan_go,
    "rust": _scan_rust,
    "java": _scan_java,
    "csharp": _scan_csharp,
    "ruby": _scan_ruby,
    "php": _scan_php,
}


def extract_imports(content: str, language: str) -> List[ImportEntry]:
    """Imports declared in ``content``, deduplicated by source in file order."""
    scanner = _SCANNERS.get(language)
    if scanner is None:
        return []
    return _dedupe(scanner(content))


__all__ = ["extract_imports", "strip_comments"]
