"""Prompt compiler: the text injected as each stage's user turn.

Review stages receive ``SCOPE`` (the rendered review target); the
synthesis stage receives ``REPORTS`` (every review stage's report under a
heading with its label, in pipeline order).

Stage templates are user-editable Markdown, not template programs. Only the
stage's own placeholder, written ``{{SCOPE}}`` or ``{{ SCOPE }}``, is
replaced; every other character is passed through untouched.
"""

from __future__ import annotations

import re
from typing import Sequence

from reviewsuite.prompts.loader import PromptLoader
from reviewsuite.review.targets import ReviewTarget, describe_scope
from reviewsuite.suite.stages import StageDescriptor, StageKind, StageReport


class MissingTemplateError(Exception):
    """Raised when a stage template resolves to empty text.

    Attributes:
        template_name: Name of the missing template
    """

    def __init__(self, template_name: str) -> None:
        self.template_name = template_name
        super().__init__(f"missing prompt template: {template_name}")


def placeholder_pattern(name: str) -> re.Pattern[str]:
    """Pattern matching ``{{name}}`` with optional inner whitespace."""
    return re.compile(r"\{\{\s*" + re.escape(name) + r"\s*\}\}")


def substitute(template: str, variables: dict[str, str]) -> str:
    """Replace each ``{{ NAME }}`` in ``template`` with ``variables[NAME]``.

    Values are inserted verbatim, and text that merely looks like a
    placeholder for some other name is left alone.
    """
    out = template
    for name, value in variables.items():
        out = placeholder_pattern(name).sub(lambda _: value, out)
    return out


def format_reports(reports: Sequence[StageReport]) -> str:
    """Concatenate reports, each fenced under a ``## <label>`` heading."""
    return "\n".join(
        f"## {report.stage_label}\n\n```\n{report.text.strip()}\n```\n"
        for report in reports
    )


def compile_stage_prompt(
    target: ReviewTarget,
    stage: StageDescriptor,
    reports: Sequence[StageReport],
    loader: PromptLoader,
) -> str:
    """Build the user turn for ``stage``.

    Args:
        target: What is under review
        stage: Stage to build the prompt for
        reports: Reports accumulated so far, in pipeline order
        loader: Template source

    Returns:
        The compiled prompt text

    Raises:
        MissingTemplateError: If the stage template is empty or absent
    """
    text = loader.load_prompt_text(stage.template_name)
    if not text.strip():
        raise MissingTemplateError(stage.template_name)

    if stage.kind == StageKind.SYNTHESIZE:
        return substitute(text, {"REPORTS": format_reports(reports)})
    return substitute(text, {"SCOPE": describe_scope(target).strip()})
