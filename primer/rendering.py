"""Markdown assembly for the context document."""

from __future__ import annotations

from pathlib import Path
from typing import Optional, Sequence

from jinja2 import Environment, FileSystemLoader

from .models import ContextSection
from .sanitize import sanitize_heading

TEMPLATE_NAME = "context.md.j2"
TAGLINE = "Generated by `primer compile` - regenerate with `primer compile`"

_env: Optional[Environment] = None


def _create_env(templates_dir: Path | None = None) -> Environment:
    directories = []
    if templates_dir:
        directories.append(str(templates_dir))
    directories.append(str(Path(__file__).with_name("templates")))
    loader = FileSystemLoader(directories)
    return Environment(loader=loader, autoescape=False, trim_blocks=True, lstrip_blocks=True)


def render_context(
    name: str,
    sections: Sequence[ContextSection],
    *,
    tagline: bool = True,
    templates_dir: Path | None = None,
) -> str:
    """Render the document; sections with empty content are left out.

    A ``context.md.j2`` in ``templates_dir`` takes precedence over the bundled one.
    """
    global _env
    if templates_dir is not None:
        env = _create_env(templates_dir)
    else:
        if _env is None:
            _env = _create_env()
        env = _env

    template = env.get_template(TEMPLATE_NAME)
    rendered = template.render(
        name=sanitize_heading(name),
        tagline=TAGLINE if tagline else None,
        sections=[section for section in sections if section.content],
    )
    return rendered.rstrip("\n") + "\n"


__all__ = ["TAGLINE", "render_context"]
