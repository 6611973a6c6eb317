"""Python declarations: functions and classes with their method signatures."""

from __future__ import annotations

from typing import List

from ..models import SignatureEntry
from .base import TreeSitterExtractor, guess_identifier, has_child_type, line_of, sig_slice


def _definition(node):  # type: ignore[no-untyped-def]
    if node.type == "decorated_definition":
        inner = node.child_by_field_name("definition")
        if inner is not None:
            return inner
    return node


def _header(source: bytes, start: int, definition) -> str:  # type: ignore[no-untyped-def]
    text = sig_slice(source, start, definition).rstrip().rstrip(":").rstrip()
    # Decorators and wrapped parameter lists keep their own lines, re-indented.
    lines = [line.strip() for line in text.splitlines() if line.strip()]
    return "\n".join(lines) + ":"


class PythonExtractor(TreeSitterExtractor):
    languages = ("python",)

    def collect(self, root, source: bytes, language: str) -> List[SignatureEntry]:  # type: ignore[no-untyped-def]
        entries: List[SignatureEntry] = []
        for node in root.named_children:
            definition = _definition(node)
            if definition.type == "function_definition":
                name = guess_identifier(source, definition)
                entries.append(
                    SignatureEntry(
                        kind="function",
                        name=name,
                        signature=_header(source, node.start_byte, definition),
                        exported=not name.startswith("_"),
                        line=line_of(node),
                        is_async=has_child_type(definition, "async"),
                    )
                )
            elif definition.type == "class_definition":
                entries.append(self._class(node, definition, source))
        return entries

    def _class(self, node, definition, source: bytes) -> SignatureEntry:  # type: ignore[no-untyped-def]
        name = guess_identifier(source, definition)
        lines = [_header(source, node.start_byte, definition)]
        body = definition.child_by_field_name("body")
        for member in body.named_children if body is not None else []:
            method = _definition(member)
            if method.type != "function_definition":
                continue
            for line in _header(source, member.start_byte, method).splitlines():
                lines.append(f"    {line}")
        return SignatureEntry(
            kind="class",
            name=name,
            signature="\n".join(lines),
            exported=not name.startswith("_"),
            line=line_of(node),
        )


__all__ = ["PythonExtractor"]
