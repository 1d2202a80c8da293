"""Review suite stage orchestration.

The suite drives an agent through the stage pipeline one turn at a time:
``stages`` defines the pipeline, ``history`` holds the pure helpers used to
hide earlier stages from later ones, ``state_machine`` owns the run state
and ``hooks`` wires it to a host's events.
"""

from reviewsuite.suite.history import (
    extract_last_assistant_text,
    find_last_user_index,
    redact_history,
)
from reviewsuite.suite.stages import (
    DEFAULT_PIPELINE,
    STAGE_DONE_MARKER,
    InvalidPipelineError,
    StageDescriptor,
    StageKind,
    StageReport,
    strip_stage_marker,
    validate_pipeline,
)

__all__ = [
    "DEFAULT_PIPELINE",
    "STAGE_DONE_MARKER",
    "InvalidPipelineError",
    "StageDescriptor",
    "StageKind",
    "StageReport",
    "extract_last_assistant_text",
    "find_last_user_index",
    "redact_history",
    "strip_stage_marker",
    "validate_pipeline",
]
