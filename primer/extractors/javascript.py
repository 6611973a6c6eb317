"""TypeScript, TSX and JavaScript declarations."""

from __future__ import annotations

import re
from typing import List

from ..models import SignatureEntry
from .base import (
    TreeSitterExtractor,
    block_signature,
    child_by_types,
    guess_identifier,
    has_child_type,
    line_of,
    node_text,
    sig_slice,
    span_text,
    strip_semicolon,
)

_DECLARATION_TYPES = (
    "function_declaration",
    "generator_function_declaration",
    "class_declaration",
    "abstract_class_declaration",
    "interface_declaration",
    "type_alias_declaration",
    "enum_declaration",
    "lexical_declaration",
    "variable_declaration",
)

_FUNCTION_VALUES = ("arrow_function", "function", "function_expression", "generator_function")
_CLASS_VALUES = ("class", "class_expression")

_FIELD_MEMBERS = (
    "public_field_definition",
    "field_definition",
    "property_declaration",
    "abstract_method_signature",
    "method_signature",
    "index_signature",
)

_SOURCE = re.compile(r"""from\s+["']([^"']+)["']""")


def reexport_name(source: str) -> str:
    return f"re-export {source}"


class JavaScriptExtractor(TreeSitterExtractor):
    languages = ("typescript", "tsx", "javascript")

    def collect(self, root, source: bytes, language: str) -> List[SignatureEntry]:  # type: ignore[no-untyped-def]
        entries: List[SignatureEntry] = []
        for node in root.named_children:
            if node.type == "export_statement":
                entries.extend(self._export(node, source))
            else:
                entries.extend(self._declaration(node, source, exported=False, start=node.start_byte))
        return entries

    def _export(self, node, source: bytes) -> List[SignatureEntry]:  # type: ignore[no-untyped-def]
        line = line_of(node)
        origin = node.child_by_field_name("source")
        if origin is not None:
            target = node_text(source, origin).strip("\"'`")
            return [
                SignatureEntry(
                    kind="const",
                    name=reexport_name(target),
                    signature=strip_semicolon(node_text(source, node)),
                    exported=True,
                    line=line,
                )
            ]

        declaration = node.child_by_field_name("declaration")
        if declaration is None:
            declaration = child_by_types(node, _DECLARATION_TYPES)
        if declaration is not None:
            return self._declaration(declaration, source, exported=True, start=node.start_byte)

        value = node.child_by_field_name("value")
        if value is not None and has_child_type(node, "default"):
            return [self._default_export(node, value, source)]

        text = strip_semicolon(node_text(source, node))
        match = _SOURCE.search(text)
        name = reexport_name(match.group(1)) if match else "exports"
        return [SignatureEntry(kind="const", name=name, signature=text, exported=True, line=line)]

    def _default_export(self, node, value, source: bytes) -> SignatureEntry:  # type: ignore[no-untyped-def]
        line = line_of(node)
        if value.type in _FUNCTION_VALUES:
            return SignatureEntry(
                kind="function",
                name="default",
                signature=sig_slice(source, node.start_byte, value),
                exported=True,
                line=line,
                is_async=has_child_type(value, "async"),
            )
        if value.type in _CLASS_VALUES:
            return self._class(value, source, "default", True, line, node.start_byte)
        return SignatureEntry(
            kind="const",
            name="default",
            signature=strip_semicolon(node_text(source, node)),
            exported=True,
            line=line,
        )

    def _declaration(self, node, source: bytes, *, exported: bool, start: int) -> List[SignatureEntry]:  # type: ignore[no-untyped-def]
        line = line_of(node)
        kind = node.type
        if kind in ("function_declaration", "generator_function_declaration"):
            return [
                SignatureEntry(
                    kind="function",
                    name=guess_identifier(source, node),
                    signature=sig_slice(source, start, node),
                    exported=exported,
                    line=line,
                    is_async=has_child_type(node, "async"),
                )
            ]
        if kind in ("class_declaration", "abstract_class_declaration"):
            return [self._class(node, source, guess_identifier(source, node), exported, line, start)]
        if kind == "interface_declaration":
            # Interface members are type-only, so the whole body is kept.
            return [self._whole(node, source, "interface", exported, start)]
        if kind == "type_alias_declaration":
            return [self._whole(node, source, "type", exported, start)]
        if kind == "enum_declaration":
            return [self._whole(node, source, "enum", exported, start)]
        if kind in ("lexical_declaration", "variable_declaration"):
            return self._variables(node, source, exported, line, start)
        return []

    def _whole(self, node, source: bytes, kind: str, exported: bool, start: int) -> SignatureEntry:  # type: ignore[no-untyped-def]
        return SignatureEntry(
            kind=kind,
            name=guess_identifier(source, node),
            signature=strip_semicolon(span_text(source, start, node.end_byte)),
            exported=exported,
            line=line_of(node),
        )

    def _variables(self, node, source: bytes, exported: bool, line: int, start: int) -> List[SignatureEntry]:  # type: ignore[no-untyped-def]
        entries: List[SignatureEntry] = []
        for child in node.named_children:
            if child.type != "variable_declarator":
                continue
            name = guess_identifier(source, child)
            value = child.child_by_field_name("value")
            if value is not None and value.type in _FUNCTION_VALUES:
                entries.append(
                    SignatureEntry(
                        kind="function",
                        name=name,
                        signature=sig_slice(source, start, value),
                        exported=exported,
                        line=line,
                        is_async=has_child_type(value, "async"),
                    )
                )
                continue
            if not exported:
                continue
            annotation = child.child_by_field_name("type")
            if annotation is not None:
                signature = span_text(source, start, annotation.end_byte)
            elif value is not None:
                signature = span_text(source, start, value.start_byte).rstrip("=").rstrip()
            else:
                signature = span_text(source, start, child.end_byte)
            entries.append(
                SignatureEntry(kind="const", name=name, signature=signature, exported=exported, line=line)
            )
        return entries

    def _class(self, node, source: bytes, name: str, exported: bool, line: int, start: int) -> SignatureEntry:  # type: ignore[no-untyped-def]
        body = node.child_by_field_name("body")
        header = span_text(source, start, body.start_byte if body is not None else node.end_byte)
        members: List[str] = []
        for member in body.named_children if body is not None else []:
            if member.type == "method_definition":
                members.append(sig_slice(source, member.start_byte, member))
            elif member.type in _FIELD_MEMBERS:
                value = member.child_by_field_name("value")
                if value is not None and value.type in _FUNCTION_VALUES:
                    members.append(sig_slice(source, member.start_byte, value))
                else:
                    members.append(strip_semicolon(node_text(source, member)))
        return SignatureEntry(
            kind="class",
            name=name,
            signature=block_signature(header, members),
            exported=exported,
            line=line,
        )


__all__ = ["JavaScriptExtractor", "reexport_name"]
