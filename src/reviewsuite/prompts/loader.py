"""Prompt template loader for the review suite.

Templates are Markdown files named ``<template_name>.md``. A file in the
user override directory wins over the packaged default of the same name,
so a single stage's instructions can be tweaked without touching the
package. A leading YAML-style frontmatter block (``---`` ... ``---``) is
stripped before use.
"""

from __future__ import annotations

import re
from pathlib import Path

import structlog

DEFAULT_TEMPLATE_DIR = Path(__file__).parent / "templates"

_FRONTMATTER = re.compile(r"^---\r?\n[\s\S]*?\r?\n---(?:\r?\n)?([\s\S]*)$")

logger = structlog.get_logger(__name__)


def strip_frontmatter(content: str) -> str:
    """Return ``content`` without a leading frontmatter block, trimmed."""
    match = _FRONTMATTER.match(content)
    return match.group(1).strip() if match else content.strip()


class PromptLoader:
    """Resolves stage prompt templates.

    Resolution order for a template name:
    1. ``<user_dir>/<name>.md``
    2. ``<package_dir>/<name>.md``

    Attributes:
        user_dir: Override directory (None disables overrides)
        package_dir: Directory holding the packaged defaults
    """

    def __init__(self, user_dir: Path | None = None, package_dir: Path | None = None) -> None:
        self.user_dir = user_dir
        self.package_dir = package_dir or DEFAULT_TEMPLATE_DIR

    @property
    def search_dirs(self) -> list[Path]:
        dirs = [self.user_dir] if self.user_dir is not None else []
        dirs.append(self.package_dir)
        return dirs

    def resolve_path(self, template_name: str) -> Path | None:
        """Path of the file that supplies ``template_name``, or None."""
        for directory in self.search_dirs:
            candidate = directory / f"{template_name}.md"
            if candidate.is_file():
                return candidate
        return None

    def load_prompt_text(self, template_name: str) -> str:
        """Load a template body.

        Returns:
            Template text with frontmatter stripped, or an empty string when
            no file supplies ``template_name``
        """
        path = self.resolve_path(template_name)
        if path is None:
            logger.warning("prompt_template_not_found", template=template_name)
            return ""

        logger.debug("prompt_template_loaded", template=template_name, path=str(path))
        return strip_frontmatter(path.read_text(encoding="utf-8"))
