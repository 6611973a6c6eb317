"""PHP functions and class-like declarations, including those inside namespaces."""

from __future__ import annotations

from typing import List

from ..models import SignatureEntry
from .base import (
    TreeSitterExtractor,
    block_signature,
    child_by_types,
    guess_identifier,
    line_of,
    node_text,
    sig_slice,
    span_text,
    strip_semicolon,
)

_TYPE_KINDS = {
    "class_declaration": "class",
    "trait_declaration": "class",
    "interface_declaration": "interface",
    "enum_declaration": "enum",
}

_CONTAINERS = ("program", "namespace_definition", "compound_statement")


class PhpExtractor(TreeSitterExtractor):
    languages = ("php",)

    def collect(self, root, source: bytes, language: str) -> List[SignatureEntry]:  # type: ignore[no-untyped-def]
        entries: List[SignatureEntry] = []
        self._walk(root, source, entries)
        return entries

    def _walk(self, node, source: bytes, entries: List[SignatureEntry]) -> None:  # type: ignore[no-untyped-def]
        for child in node.named_children:
            if child.type == "function_definition":
                entries.append(
                    SignatureEntry(
                        kind="function",
                        name=guess_identifier(source, child),
                        signature=sig_slice(source, child.start_byte, child),
                        exported=True,
                        line=line_of(child),
                    )
                )
            elif child.type in _TYPE_KINDS:
                entries.append(self._type_entry(child, source))
            elif child.type in _CONTAINERS:
                self._walk(child, source, entries)

    def _type_entry(self, node, source: bytes) -> SignatureEntry:  # type: ignore[no-untyped-def]
        body = node.child_by_field_name("body")
        if body is None:
            body = child_by_types(node, ("declaration_list", "enum_declaration_list"))
        header = span_text(source, node.start_byte, body.start_byte if body is not None else node.end_byte)
        members: List[str] = []
        for member in body.named_children if body is not None else []:
            if member.type == "method_declaration":
                members.append(strip_semicolon(sig_slice(source, member.start_byte, member)))
            elif member.type in ("property_declaration", "const_declaration", "enum_case"):
                members.append(strip_semicolon(node_text(source, member)))
        return SignatureEntry(
            kind=_TYPE_KINDS[node.type],
            name=guess_identifier(source, node),
            signature=block_signature(header, members),
            exported=True,
            line=line_of(node),
        )


__all__ = ["PhpExtractor"]
