"""Line-oriented extractor for TypeScript/JavaScript when no grammar is loadable.

Only top-level (unindented) declarations are recognised. The output is a
best-effort approximation of what the tree-sitter extractor produces.
"""

from __future__ import annotations

import re
from typing import List, Optional, Sequence, Tuple

from ..grammars import GrammarCache
from ..models import SignatureEntry
from .base import Extractor, block_signature, strip_semicolon
from .javascript import reexport_name

_IDENT = r"[A-Za-z_$][\w$]*"

_REEXPORT = re.compile(
    r"""^export\s+(?:type\s+)?(?:\*(?:\s+as\s+""" + _IDENT + r""")?|\{[^}]*\})\s*from\s*["']([^"']+)["']"""
)
_FUNCTION = re.compile(r"^(export\s+)?(?:default\s+)?(async\s+)?function\s*\*?\s*(" + _IDENT + r")?\s*[<(]")
_CLASS = re.compile(r"^(export\s+)?(?:default\s+)?(?:abstract\s+)?class\s+(" + _IDENT + r")")
_INTERFACE = re.compile(r"^(export\s+)?(?:declare\s+)?interface\s+(" + _IDENT + r")")
_TYPE = re.compile(r"^(export\s+)?(?:declare\s+)?type\s+(" + _IDENT + r")\b[^=]*=")
_ENUM = re.compile(r"^(export\s+)?(?:declare\s+)?(?:const\s+)?enum\s+(" + _IDENT + r")")
_ARROW = re.compile(
    r"^(export\s+)?(?:const|let|var)\s+(" + _IDENT + r")[^=]*=\s*(async\s+)?"
    r"(?:\([^)]*\)|" + _IDENT + r")\s*(?::\s*[^=]+)?=>"
)
_CONST = re.compile(r"^export\s+(?:const|let|var)\s+(" + _IDENT + r")(\s*:\s*[^=]+)?")

_MAX_BLOCK_LINES = 200
_CONTINUATIONS = ("=", "|", "&", ",", "(", "<", "=>")


class RegexExtractor(Extractor):
    """Heuristic variant for the JavaScript family, used when parsing is impossible."""

    languages = ("typescript", "tsx", "javascript")

    def extract(self, content: str, language: str, grammars: GrammarCache) -> Optional[List[SignatureEntry]]:
        return extract_with_regex(content)


def extract_with_regex(content: str) -> List[SignatureEntry]:
    lines = content.splitlines()
    entries: List[SignatureEntry] = []
    in_comment = False
    index = 0
    while index < len(lines):
        line = lines[index]
        stripped = line.strip()
        if in_comment:
            if "*/" in stripped:
                in_comment = False
            index += 1
            continue
        if stripped.startswith("/*"):
            in_comment = "*/" not in stripped
            index += 1
            continue
        if not line or line[0].isspace() or stripped.startswith("//"):
            index += 1
            continue

        entry, consumed = _match_line(lines, index)
        if entry is not None:
            entries.append(entry)
        index += max(consumed, 1)
    return entries


def _match_line(lines: Sequence[str], index: int) -> Tuple[Optional[SignatureEntry], int]:
    line = lines[index].rstrip()
    number = index + 1

    match = _REEXPORT.match(line)
    if match:
        return SignatureEntry("const", reexport_name(match.group(1)), strip_semicolon(line), True, number), 1

    match = _FUNCTION.match(line)
    if match:
        header, consumed = _header_until_body(lines, index)
        return (
            SignatureEntry(
                kind="function",
                name=match.group(3) or "default",
                signature=header,
                exported=bool(match.group(1)),
                line=number,
                is_async=bool(match.group(2)),
            ),
            consumed,
        )

    match = _CLASS.match(line)
    if match:
        header = line.split("{", 1)[0].strip()
        _, consumed = _balanced_block(lines, index)
        return SignatureEntry("class", match.group(2), block_signature(header, []), bool(match.group(1)), number), consumed

    for pattern, kind in ((_INTERFACE, "interface"), (_ENUM, "enum"), (_TYPE, "type")):
        match = pattern.match(line)
        if match:
            text, consumed = _balanced_block(lines, index)
            return SignatureEntry(kind, match.group(2), strip_semicolon(text), bool(match.group(1)), number), consumed

    match = _ARROW.match(line)
    if match:
        signature = line[: line.index("=>") + 2].strip()
        _, consumed = _balanced_block(lines, index)
        return (
            SignatureEntry(
                kind="function",
                name=match.group(2),
                signature=signature,
                exported=bool(match.group(1)),
                line=number,
                is_async=bool(match.group(3)),
            ),
            consumed,
        )

    match = _CONST.match(line)
    if match:
        signature = line.split("=", 1)[0].strip() if match.group(2) is None else (
            line[: match.end()].strip()
        )
        _, consumed = _balanced_block(lines, index)
        return SignatureEntry("const", match.group(1), signature, True, number), consumed

    return None, 1


def _header_until_body(lines: Sequence[str], index: int) -> Tuple[str, int]:
    """Collect a function header up to its opening body brace."""
    collected: List[str] = []
    paren_depth = 0
    seen_params = False
    for offset, line in enumerate(lines[index : index + _MAX_BLOCK_LINES]):
        for position, char in enumerate(line):
            if char == "(":
                paren_depth += 1
                seen_params = True
            elif char == ")":
                paren_depth -= 1
            elif char == "{" and seen_params and paren_depth == 0:
                collected.append(line[:position])
                header = " ".join(part.strip() for part in collected if part.strip())
                _, consumed = _balanced_block(lines, index)
                return header, max(consumed, offset + 1)
        collected.append(line)
        if seen_params and paren_depth == 0 and line.rstrip().endswith(";"):
            # Overload or ambient declaration without a body.
            return strip_semicolon(" ".join(part.strip() for part in collected)), offset + 1
    return lines[index].strip(), 1


def _balanced_block(lines: Sequence[str], index: int) -> Tuple[str, int]:
    """Text from ``index`` until braces balance; returns the text and lines consumed.

    At brace depth zero a statement continues while its last line ends with an
    operator or the next line starts a union/intersection arm.
    """
    depth = 0
    window = lines[index : index + _MAX_BLOCK_LINES]
    collected: List[str] = []
    for offset, line in enumerate(window):
        collected.append(line.rstrip())
        depth += line.count("{") - line.count("}")
        if depth > 0:
            continue
        following = window[offset + 1].lstrip() if offset + 1 < len(window) else ""
        if line.rstrip().endswith(_CONTINUATIONS) or following.startswith(("|", "&")):
            continue
        return "\n".join(collected).strip(), offset + 1
    return "\n".join(collected).strip(), len(collected)


__all__ = ["RegexExtractor", "extract_with_regex"]
