"""Java and C# type declarations with member signatures."""

from __future__ import annotations

from typing import List

from ..models import SignatureEntry
from .base import (
    TreeSitterExtractor,
    block_signature,
    child_by_types,
    guess_identifier,
    line_of,
    modifier_text,
    node_text,
    sig_slice,
    span_text,
    strip_semicolon,
)

_TYPE_KINDS = {
    "class_declaration": "class",
    "record_declaration": "class",
    "struct_declaration": "class",
    "interface_declaration": "interface",
    "enum_declaration": "enum",
}

_METHODS = ("method_declaration", "constructor_declaration")


class _ClassLikeExtractor(TreeSitterExtractor):
    """Shared rendering: a type header followed by its member signatures."""

    field_members: tuple = ()
    body_types: tuple = ()

    def _is_public(self, source: bytes, node) -> bool:  # type: ignore[no-untyped-def]
        return "public" in modifier_text(source, node).split()

    def _type_entry(self, node, source: bytes) -> SignatureEntry:  # type: ignore[no-untyped-def]
        kind = _TYPE_KINDS[node.type]
        body = node.child_by_field_name("body")
        if body is None:
            body = child_by_types(node, self.body_types)
        header = span_text(source, node.start_byte, body.start_byte if body is not None else node.end_byte)
        members: List[str] = []
        for member in body.named_children if body is not None else []:
            if kind == "enum" and member.type in ("enum_constant", "enum_member_declaration"):
                members.append(guess_identifier(source, member) + ",")
            elif member.type in _METHODS:
                members.append(strip_semicolon(sig_slice(source, member.start_byte, member)))
            elif member.type in self.field_members:
                members.append(self._member_text(member, source))
        return SignatureEntry(
            kind=kind,
            name=guess_identifier(source, node),
            signature=block_signature(header, members),
            exported=self._is_public(source, node),
            line=line_of(node),
        )

    def _member_text(self, member, source: bytes) -> str:  # type: ignore[no-untyped-def]
        return strip_semicolon(node_text(source, member))


class JavaExtractor(_ClassLikeExtractor):
    languages = ("java",)
    field_members = ("field_declaration", "constant_declaration")
    body_types = ("class_body", "interface_body", "enum_body")

    def collect(self, root, source: bytes, language: str) -> List[SignatureEntry]:  # type: ignore[no-untyped-def]
        return [
            self._type_entry(node, source)
            for node in root.named_children
            if node.type in _TYPE_KINDS and node.type != "struct_declaration"
        ]


class CSharpExtractor(_ClassLikeExtractor):
    languages = ("csharp",)
    field_members = ("field_declaration", "property_declaration")
    body_types = ("declaration_list", "enum_member_declaration_list")

    def grammar_key(self, language: str) -> str:
        return "c_sharp"

    def collect(self, root, source: bytes, language: str) -> List[SignatureEntry]:  # type: ignore[no-untyped-def]
        entries: List[SignatureEntry] = []
        self._walk(root, source, entries)
        return entries

    def _walk(self, node, source: bytes, entries: List[SignatureEntry]) -> None:  # type: ignore[no-untyped-def]
        for child in node.named_children:
            if child.type in _TYPE_KINDS:
                entries.append(self._type_entry(child, source))
            elif child.type in (
                "namespace_declaration",
                "file_scoped_namespace_declaration",
                "declaration_list",
            ):
                self._walk(child, source, entries)

    def _member_text(self, member, source: bytes) -> str:  # type: ignore[no-untyped-def]
        if member.type != "property_declaration":
            return super()._member_text(member, source)
        accessors = member.child_by_field_name("accessors")
        if accessors is None:
            # Expression-bodied property: keep everything before the arrow.
            value = child_by_types(member, ("arrow_expression_clause",))
            end = value.start_byte if value is not None else member.end_byte
            return span_text(source, member.start_byte, end).rstrip("=>").rstrip()
        head = span_text(source, member.start_byte, accessors.start_byte)
        names = [
            strip_semicolon(sig_slice(source, accessor.start_byte, accessor))
            for accessor in accessors.named_children
            if accessor.type == "accessor_declaration"
        ]
        return f"{head} {{ {'; '.join(names)}; }}" if names else head


__all__ = ["CSharpExtractor", "JavaExtractor"]
