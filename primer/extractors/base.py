"""Extractor contract and tree-sitter node helpers shared by every language."""

from __future__ import annotations

import re
from abc import ABC, abstractmethod
from typing import Iterable, List, Optional, Sequence

from ..grammars import GrammarCache
from ..models import SignatureEntry

_IDENTIFIER_TYPES = (
    "identifier",
    "name",
    "type_identifier",
    "field_identifier",
    "property_identifier",
    "constant",
    "method_name",
    "scoped_identifier",
)

_WORD = re.compile(r"[A-Za-z_$][A-Za-z0-9_$]*")


class Extractor(ABC):
    """Turns source text into top-level signature entries for one language family."""

    #: Languages (as resolved from file extensions) this variant handles.
    languages: Sequence[str] = ()

    @abstractmethod
    def extract(self, content: str, language: str, grammars: GrammarCache) -> Optional[List[SignatureEntry]]:
        """Return entries, or None when this variant cannot handle the input."""


class TreeSitterExtractor(Extractor):
    """Walks a tree-sitter syntax tree; subclasses classify the top-level nodes."""

    def grammar_key(self, language: str) -> str:
        return language

    def extract(self, content: str, language: str, grammars: GrammarCache) -> Optional[List[SignatureEntry]]:
        source = content.encode("utf-8")
        tree = grammars.parse(source, self.grammar_key(language))
        if tree is None:
            return None
        return self.collect(tree.root_node, source, language)

    @abstractmethod
    def collect(self, root, source: bytes, language: str) -> List[SignatureEntry]:  # type: ignore[no-untyped-def]
        ...


def node_text(source: bytes, node) -> str:  # type: ignore[no-untyped-def]
    return source[node.start_byte : node.end_byte].decode("utf-8", errors="replace")


def span_text(source: bytes, start: int, end: int) -> str:
    return source[start:end].decode("utf-8", errors="replace").strip()


def sig_slice(source: bytes, start: int, node, body_field: str = "body") -> str:  # type: ignore[no-untyped-def]
    """Text from ``start`` up to the node's body, or the whole node when it has none."""
    body = node.child_by_field_name(body_field)
    end = body.start_byte if body is not None else node.end_byte
    return span_text(source, start, end)


def line_of(node) -> int:  # type: ignore[no-untyped-def]
    return node.start_point[0] + 1


def child_by_types(node, types: Iterable[str]):  # type: ignore[no-untyped-def]
    wanted = set(types)
    for child in node.named_children:
        if child.type in wanted:
            return child
    return None


def has_child_type(node, type_name: str) -> bool:  # type: ignore[no-untyped-def]
    return any(child.type == type_name for child in node.children)


def guess_identifier(source: bytes, node) -> str:  # type: ignore[no-untyped-def]
    name = node.child_by_field_name("name")
    if name is not None:
        return node_text(source, name)
    for child in node.named_children:
        if child.type in _IDENTIFIER_TYPES:
            return node_text(source, child)
    match = _WORD.search(node_text(source, node))
    return match.group(0) if match else "<anonymous>"


def strip_semicolon(text: str) -> str:
    return text.strip().rstrip(";").rstrip()


def block_signature(header: str, members: Sequence[str], closer: str = "}") -> str:
    """Render a class-like header with indented member signatures."""
    header = header.strip()
    if closer == "}" and not header.endswith("{"):
        header += " {"
    if not members:
        return f"{header} {closer}" if closer == "}" else f"{header}\n{closer}"
    return "\n".join([header, *(f"  {member}" for member in members), closer])


def modifier_text(source: bytes, node, types: Iterable[str] = ("modifiers", "modifier")) -> str:  # type: ignore[no-untyped-def]
    wanted = set(types)
    return " ".join(node_text(source, child) for child in node.children if child.type in wanted)


__all__ = [
    "Extractor",
    "TreeSitterExtractor",
    "block_signature",
    "child_by_types",
    "guess_identifier",
    "has_child_type",
    "line_of",
    "modifier_text",
    "node_text",
    "sig_slice",
    "span_text",
    "strip_semicolon",
]
