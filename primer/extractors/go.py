"""Go declarations: functions, methods and named types."""

from __future__ import annotations

from typing import List

from ..models import SignatureEntry
from .base import TreeSitterExtractor, guess_identifier, line_of, node_text, sig_slice, span_text

_TYPE_KINDS = {"struct_type": "class", "interface_type": "interface"}


def _is_exported(name: str) -> bool:
    return name[:1].isupper()


class GoExtractor(TreeSitterExtractor):
    languages = ("go",)

    def collect(self, root, source: bytes, language: str) -> List[SignatureEntry]:  # type: ignore[no-untyped-def]
        entries: List[SignatureEntry] = []
        for node in root.named_children:
            if node.type in ("function_declaration", "method_declaration"):
                name = guess_identifier(source, node)
                entries.append(
                    SignatureEntry(
                        kind="function",
                        name=name,
                        signature=sig_slice(source, node.start_byte, node),
                        exported=_is_exported(name),
                        line=line_of(node),
                    )
                )
            elif node.type == "type_declaration":
                entries.extend(self._types(node, source))
        return entries

    def _types(self, node, source: bytes) -> List[SignatureEntry]:  # type: ignore[no-untyped-def]
        specs = [child for child in node.named_children if child.type in ("type_spec", "type_alias")]
        grouped = len(specs) > 1 or node_text(source, node).lstrip()[4:].lstrip().startswith("(")
        entries: List[SignatureEntry] = []
        for spec in specs:
            name = guess_identifier(source, spec)
            type_node = spec.child_by_field_name("type")
            kind = "type"
            if spec.type == "type_spec" and type_node is not None:
                kind = _TYPE_KINDS.get(type_node.type, "type")
            if grouped:
                signature = "type " + node_text(source, spec).strip()
            else:
                signature = span_text(source, node.start_byte, node.end_byte)
            entries.append(
                SignatureEntry(
                    kind=kind,
                    name=name,
                    signature=signature,
                    exported=_is_exported(name),
                    line=line_of(spec),
                )
            )
        return entries


__all__ = ["GoExtractor"]
