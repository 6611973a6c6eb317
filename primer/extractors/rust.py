"""Rust items: functions, structs, enums, traits, impl methods and type aliases."""

from __future__ import annotations

from typing import List

from ..models import SignatureEntry
from .base import (
    TreeSitterExtractor,
    block_signature,
    guess_identifier,
    has_child_type,
    line_of,
    node_text,
    sig_slice,
    span_text,
    strip_semicolon,
)

_WHOLE_ITEMS = {"struct_item": "class", "enum_item": "enum", "type_item": "type"}


def _is_pub(node) -> bool:  # type: ignore[no-untyped-def]
    return has_child_type(node, "visibility_modifier")


def _is_async(source: bytes, node) -> bool:  # type: ignore[no-untyped-def]
    for child in node.children:
        if child.type == "function_modifiers":
            return "async" in node_text(source, child)
        if child.type == "async":
            return True
    return False


class RustExtractor(TreeSitterExtractor):
    languages = ("rust",)

    def collect(self, root, source: bytes, language: str) -> List[SignatureEntry]:  # type: ignore[no-untyped-def]
        entries: List[SignatureEntry] = []
        for node in root.named_children:
            if node.type == "function_item":
                entries.append(self._function(node, source, _is_pub(node)))
            elif node.type in _WHOLE_ITEMS:
                entries.append(
                    SignatureEntry(
                        kind=_WHOLE_ITEMS[node.type],
                        name=guess_identifier(source, node),
                        signature=node_text(source, node).strip(),
                        exported=_is_pub(node),
                        line=line_of(node),
                    )
                )
            elif node.type == "trait_item":
                entries.append(self._trait(node, source))
            elif node.type == "impl_item":
                entries.extend(self._impl(node, source))
        return entries

    def _function(self, node, source: bytes, exported: bool) -> SignatureEntry:  # type: ignore[no-untyped-def]
        return SignatureEntry(
            kind="function",
            name=guess_identifier(source, node),
            signature=sig_slice(source, node.start_byte, node),
            exported=exported,
            line=line_of(node),
            is_async=_is_async(source, node),
        )

    def _trait(self, node, source: bytes) -> SignatureEntry:  # type: ignore[no-untyped-def]
        body = node.child_by_field_name("body")
        header = span_text(source, node.start_byte, body.start_byte if body is not None else node.end_byte)
        members: List[str] = []
        for member in body.named_children if body is not None else []:
            if member.type == "function_item":
                members.append(sig_slice(source, member.start_byte, member) + ";")
            elif member.type in ("function_signature_item", "associated_type", "const_item"):
                members.append(strip_semicolon(node_text(source, member)) + ";")
        return SignatureEntry(
            kind="interface",
            name=guess_identifier(source, node),
            signature=block_signature(header, members),
            exported=_is_pub(node),
            line=line_of(node),
        )

    def _impl(self, node, source: bytes) -> List[SignatureEntry]:  # type: ignore[no-untyped-def]
        body = node.child_by_field_name("body")
        # Methods of a trait impl are as visible as the trait itself.
        trait_impl = node.child_by_field_name("trait") is not None
        entries: List[SignatureEntry] = []
        for member in body.named_children if body is not None else []:
            if member.type == "function_item":
                entries.append(self._function(member, source, trait_impl or _is_pub(member)))
        return entries


__all__ = ["RustExtractor"]
