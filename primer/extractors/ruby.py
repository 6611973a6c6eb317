"""Ruby methods, classes and modules."""

from __future__ import annotations

from typing import List

from ..models import SignatureEntry
from .base import TreeSitterExtractor, child_by_types, guess_identifier, line_of, span_text

_METHODS = ("method", "singleton_method")


def _method_header(source: bytes, node) -> str:  # type: ignore[no-untyped-def]
    """``def name(params)`` without the body or the closing ``end``."""
    last = node.child_by_field_name("parameters")
    if last is None:
        last = node.child_by_field_name("name")
    end = last.end_byte if last is not None else node.end_byte
    return span_text(source, node.start_byte, end)


def _body(node):  # type: ignore[no-untyped-def]
    body = node.child_by_field_name("body")
    if body is None:
        body = child_by_types(node, ("body_statement",))
    return body


class RubyExtractor(TreeSitterExtractor):
    languages = ("ruby",)

    def collect(self, root, source: bytes, language: str) -> List[SignatureEntry]:  # type: ignore[no-untyped-def]
        entries: List[SignatureEntry] = []
        for node in root.named_children:
            if node.type in _METHODS:
                name = guess_identifier(source, node)
                entries.append(
                    SignatureEntry(
                        kind="function",
                        name=name,
                        signature=_method_header(source, node),
                        exported=not name.startswith("_"),
                        line=line_of(node),
                    )
                )
            elif node.type in ("class", "module"):
                entries.append(self._container(node, source))
        return entries

    def _container(self, node, source: bytes) -> SignatureEntry:  # type: ignore[no-untyped-def]
        anchor = node.child_by_field_name("superclass")
        if anchor is None:
            anchor = node.child_by_field_name("name")
        header = span_text(source, node.start_byte, anchor.end_byte if anchor is not None else node.end_byte)
        header = header.splitlines()[0] if header else header
        lines = [header]
        if node.type == "class":
            body = _body(node)
            members = body.named_children if body is not None else node.named_children
            for member in members:
                if member.type in _METHODS:
                    lines.append(f"  {_method_header(source, member)}")
        lines.append("end")
        return SignatureEntry(
            kind="class",
            name=guess_identifier(source, node),
            signature="\n".join(lines),
            exported=True,
            line=line_of(node),
        )


__all__ = ["RubyExtractor"]
