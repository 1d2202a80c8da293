"""Stage pipeline definition for the review suite.

The pipeline is a fixed, ordered tuple of stage descriptors: independent
review passes, each through its own lens, followed by exactly one
synthesis stage that merges the review passes' reports.

    overall -> linus -> staff -> synthesize
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Sequence

from pydantic import BaseModel

# Review templates ask the agent to end its answer with this token
STAGE_DONE_MARKER = "[[REVIEW_STAGE_DONE]]"


class StageKind(str, Enum):
    """Kinds of pipeline stage.

    Kinds:
        REVIEW: An independent review pass that produces a StageReport.
        SYNTHESIZE: The final pass that merges all StageReports.
    """

    REVIEW = "review"
    SYNTHESIZE = "synthesize"


@dataclass(frozen=True)
class StageDescriptor:
    """One step of the pipeline.

    Attributes:
        id: Stable stage identifier
        kind: Review or synthesis
        template_name: Prompt template rendered for the stage
        label: Human-readable stage name
    """

    id: str
    kind: StageKind
    template_name: str
    label: str


class StageReport(BaseModel):
    """Output of one review stage.

    Attributes:
        stage_id: Identifier of the producing stage
        stage_label: Label of the producing stage
        text: Cleaned review text
    """

    stage_id: str
    stage_label: str
    text: str


class InvalidPipelineError(Exception):
    """Raised when a pipeline violates its structural invariants."""


def validate_pipeline(stages: Sequence[StageDescriptor]) -> tuple[StageDescriptor, ...]:
    """Check a pipeline and return it as a tuple.

    A valid pipeline is non-empty, has unique stage ids, and contains exactly
    one synthesize stage, which is the last stage.

    Raises:
        InvalidPipelineError: If any invariant does not hold
    """
    pipeline = tuple(stages)
    if not pipeline:
        raise InvalidPipelineError("Pipeline must contain at least one stage")

    ids = [stage.id for stage in pipeline]
    if len(set(ids)) != len(ids):
        raise InvalidPipelineError(f"Duplicate stage ids in pipeline: {ids}")

    synth = [i for i, stage in enumerate(pipeline) if stage.kind == StageKind.SYNTHESIZE]
    if len(synth) != 1:
        raise InvalidPipelineError(
            f"Pipeline must contain exactly one synthesize stage, found {len(synth)}"
        )
    if synth[0] != len(pipeline) - 1:
        raise InvalidPipelineError("The synthesize stage must be the last stage")

    return pipeline


DEFAULT_PIPELINE: tuple[StageDescriptor, ...] = validate_pipeline(
    [
        StageDescriptor("overall", StageKind.REVIEW, "review-overall", "Overall"),
        StageDescriptor("linus", StageKind.REVIEW, "review-linus", "Linus"),
        StageDescriptor("staff", StageKind.REVIEW, "review-staff", "Staff"),
        StageDescriptor("synthesize", StageKind.SYNTHESIZE, "review-synthesize", "Synthesis"),
    ]
)


def strip_stage_marker(text: str, marker: str = STAGE_DONE_MARKER) -> str:
    """Remove every occurrence of ``marker`` and trim the result."""
    return text.replace(marker, "").strip()
