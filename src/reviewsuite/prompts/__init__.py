"""Prompt templates for the review suite.

This module loads stage templates (user overrides first, packaged defaults
second) and fills in their stage placeholder to produce the text sent as
each stage's user turn.
"""

from __future__ import annotations

from reviewsuite.prompts.compiler import (
    MissingTemplateError,
    compile_stage_prompt,
    format_reports,
    substitute,
)
from reviewsuite.prompts.loader import PromptLoader, strip_frontmatter

__all__ = [
    "MissingTemplateError",
    "PromptLoader",
    "compile_stage_prompt",
    "format_reports",
    "strip_frontmatter",
    "substitute",
]
