"""Reader for the project override document (PRIMER.md front matter + notes)."""

from __future__ import annotations

import re
from pathlib import Path
from typing import Any, Dict, Optional, Tuple

import yaml

from .logging import get_logger
from .models import ProjectOverrides

OVERRIDE_FILENAMES = ("PRIMER.md", ".primer/PRIMER.md")

_FRONT_MATTER = re.compile(r"\A---[ \t]*\r?\n(.*?)^---[ \t]*\r?$\n?", re.DOTALL | re.MULTILINE)

logger = get_logger("overrides")


def split_front_matter(text: str) -> Tuple[Dict[str, Any], str]:
    """Split a document into its YAML front matter mapping and body.

    Raises ``yaml.YAMLError`` or ``ValueError`` when the front matter is present
    but malformed.
    """
    match = _FRONT_MATTER.match(text)
    if not match:
        return {}, text.strip()
    data = yaml.safe_load(match.group(1))
    if data is None:
        data = {}
    if not isinstance(data, dict):
        raise ValueError("front matter must be a mapping")
    return data, text[match.end():].strip()


def find_override_file(root: Path) -> Optional[Path]:
    for name in OVERRIDE_FILENAMES:
        candidate = root / name
        if candidate.is_file():
            return candidate
    return None


def load_overrides(root: Path) -> Optional[ProjectOverrides]:
    """Return the project's overrides, or None when absent or malformed."""
    path = find_override_file(root)
    if path is None:
        return None
    try:
        text = path.read_text(encoding="utf-8")
        data, body = split_front_matter(text)
    except (OSError, UnicodeDecodeError, ValueError, yaml.YAMLError) as exc:
        logger.warning("Ignoring malformed override document %s: %s", path.name, exc)
        return None

    annotations_raw = data.get("annotations")
    annotations: Dict[str, str] = {}
    if isinstance(annotations_raw, dict):
        annotations = {
            str(key): str(value)
            for key, value in annotations_raw.items()
            if value is not None
        }

    return ProjectOverrides(
        type=_optional_str(data.get("type")),
        name=_optional_str(data.get("name")),
        includes=_str_list(data.get("includes")),
        excludes=_str_list(data.get("excludes")),
        annotations=annotations,
        body=body,
        path=path.relative_to(root).as_posix(),
    )


def _optional_str(value: Any) -> Optional[str]:
    if isinstance(value, str) and value.strip():
        return value.strip()
    return None


def _str_list(value: Any) -> list[str]:
    if isinstance(value, str):
        return [value]
    if isinstance(value, list):
        return [str(item) for item in value if isinstance(item, (str, int, float))]
    return []


__all__ = ["OVERRIDE_FILENAMES", "find_override_file", "load_overrides", "split_front_matter"]
