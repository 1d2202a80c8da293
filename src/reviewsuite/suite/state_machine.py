"""Review suite state machine.

This module owns the single mutable entity of the review suite, the
``SuiteRun``, and every transition applied to it. A run moves through the
stage pipeline strictly in order, one completed agent turn per stage:

    idle -> stage 0 -> stage 1 -> ... -> stage N-1 -> idle

There is no retry. Empty agent output, a missing template, or a user
interruption end the whole run, and every ending goes through
``ReviewSuite._end`` so no path can leave a half-initialized run active.
"""

from __future__ import annotations

import uuid
from dataclasses import dataclass, field, replace
from enum import Enum
from typing import Sequence

import structlog

from reviewsuite.agents.host import AgentHost, NotifyLevel
from reviewsuite.agents.messages import Message
from reviewsuite.config import SuiteConfig
from reviewsuite.logging import bind_suite_context, clear_suite_context, set_correlation_id
from reviewsuite.prompts.compiler import MissingTemplateError, compile_stage_prompt
from reviewsuite.prompts.loader import PromptLoader
from reviewsuite.review.targets import ReviewTarget, target_label
from reviewsuite.suite.history import find_last_user_index, redact_history
from reviewsuite.suite.stages import (
    DEFAULT_PIPELINE,
    StageDescriptor,
    StageKind,
    StageReport,
    strip_stage_marker,
    validate_pipeline,
)

logger = structlog.get_logger(__name__)


class SuiteEndReason(str, Enum):
    """Why a suite run ended. Values are the user-facing wording."""

    COMPLETE = "complete"
    NO_OUTPUT = "aborted: no output"
    MISSING_TEMPLATE = "missing prompt template"
    USER_INTERRUPTED = "user interrupted"
    MISSING_TARGET = "internal error: missing target"


_END_LEVELS: dict[SuiteEndReason, NotifyLevel] = {
    SuiteEndReason.COMPLETE: NotifyLevel.INFO,
    SuiteEndReason.USER_INTERRUPTED: NotifyLevel.INFO,
    SuiteEndReason.NO_OUTPUT: NotifyLevel.WARNING,
    SuiteEndReason.MISSING_TEMPLATE: NotifyLevel.ERROR,
    SuiteEndReason.MISSING_TARGET: NotifyLevel.ERROR,
}


class SuiteAlreadyActiveError(Exception):
    """Raised when a run is started while another run is active."""

    def __init__(self) -> None:
        super().__init__("A review suite is already running")


class SuiteStateError(Exception):
    """Raised when a SuiteRun violates its invariants."""


@dataclass
class SuiteRun:
    """Mutable state of the (at most one) review suite run.

    Attributes:
        active: Whether a run is in progress
        target: What the run reviews
        stage_index: Index of the current stage in the pipeline
        reports: Reports of completed review stages, in pipeline order
        fresh_context: Whether later review stages get a redacted history
        boundary_marker: History index of the first suite-injected turn
        boundary_pending: True until the boundary has been captured
    """

    active: bool = False
    target: ReviewTarget | None = None
    stage_index: int = 0
    reports: list[StageReport] = field(default_factory=list)
    fresh_context: bool = True
    boundary_marker: int | None = None
    boundary_pending: bool = False

    @classmethod
    def idle(cls, fresh_context: bool = True) -> SuiteRun:
        return cls(fresh_context=fresh_context)

    @classmethod
    def begin(cls, target: ReviewTarget, fresh_context: bool = True) -> SuiteRun:
        return cls(
            active=True,
            target=target,
            stage_index=0,
            reports=[],
            fresh_context=fresh_context,
            boundary_marker=None,
            boundary_pending=True,
        )

    def check_invariants(self, pipeline: Sequence[StageDescriptor]) -> None:
        """Validate the run against ``pipeline``.

        Raises:
            SuiteStateError: On the first violated invariant
        """
        if not 0 <= self.stage_index <= len(pipeline):
            raise SuiteStateError(f"stage_index {self.stage_index} out of range")

        if not self.active:
            if self.target is not None or self.stage_index or self.reports:
                raise SuiteStateError("inactive run still carries run state")
            if self.boundary_marker is not None or self.boundary_pending:
                raise SuiteStateError("inactive run still carries boundary state")
            return

        if self.stage_index == len(pipeline):
            raise SuiteStateError("run is active past the end of the pipeline")
        if self.target is None:
            raise SuiteStateError("active run has no target")
        if self.boundary_pending and self.boundary_marker is not None:
            raise SuiteStateError("boundary captured but still pending")

        done = pipeline[: self.stage_index]
        expected = [s.id for s in done if s.kind == StageKind.REVIEW]
        if [r.stage_id for r in self.reports] != expected:
            raise SuiteStateError(
                f"reports {[r.stage_id for r in self.reports]} do not match stages {expected}"
            )


@dataclass(frozen=True)
class SuiteOutcome:
    """Summary of the most recently ended run.

    Attributes:
        reason: Why the run ended
        detail: Extra context (e.g. the missing template name)
        final_report: Synthesis output when the run completed
        report_count: Review reports collected before the end
    """

    reason: SuiteEndReason
    detail: str | None = None
    final_report: str | None = None
    report_count: int = 0

    @property
    def message(self) -> str:
        if self.reason == SuiteEndReason.MISSING_TEMPLATE and self.detail:
            return f"{self.reason.value}: {self.detail}"
        return self.reason.value


class ReviewSuite:
    """Drives one review suite run at a time through the stage pipeline.

    ``start``, ``on_turn_completed`` and ``on_user_interrupt`` are the only
    public mutators; ``filter_context`` touches just the boundary
    bookkeeping. All calls are expected from one event loop, one at a time.

    Attributes:
        host: Conversation host receiving prompts, status and notifications
        loader: Stage template source
        pipeline: Validated stage pipeline
        config: Suite behaviour settings
        last_outcome: Outcome of the most recently ended run
    """

    def __init__(
        self,
        host: AgentHost,
        loader: PromptLoader,
        pipeline: Sequence[StageDescriptor] = DEFAULT_PIPELINE,
        config: SuiteConfig | None = None,
    ) -> None:
        self.host = host
        self.loader = loader
        self.pipeline = validate_pipeline(pipeline)
        self.config = config or SuiteConfig()
        self.last_outcome: SuiteOutcome | None = None
        self._run = SuiteRun.idle(self.config.fresh_context)
        self._run_id: str | None = None
        self._logger = logger.bind(component="ReviewSuite")

    @property
    def run(self) -> SuiteRun:
        """Snapshot of the current run state."""
        return replace(self._run, reports=list(self._run.reports))

    @property
    def is_active(self) -> bool:
        return self._run.active

    @property
    def current_stage(self) -> StageDescriptor | None:
        if not self._run.active or self._run.stage_index >= len(self.pipeline):
            return None
        return self.pipeline[self._run.stage_index]

    @property
    def status_text(self) -> str | None:
        """Status line for the active run, or None when idle."""
        stage = self.current_stage
        if stage is None:
            return None
        progress = f"{self._run.stage_index + 1}/{len(self.pipeline)}"
        fresh = " | fresh" if self._run.fresh_context else ""
        return f"Review suite: {stage.label} ({progress}){fresh}"

    def start(self, target: ReviewTarget) -> None:
        """Begin a run for ``target`` and send stage 0's prompt.

        Raises:
            SuiteAlreadyActiveError: If a run is already active; the active
                run is left untouched
        """
        if self._run.active:
            self._logger.warning(
                "suite_start_rejected",
                run_id=self._run_id,
                stage_index=self._run.stage_index,
            )
            raise SuiteAlreadyActiveError()

        self._run = SuiteRun.begin(target, fresh_context=self.config.fresh_context)
        self._run_id = uuid.uuid4().hex[:12]
        set_correlation_id(self._run_id)

        self._logger.info(
            "suite_started",
            run_id=self._run_id,
            target=target_label(target),
            stages=[s.id for s in self.pipeline],
            fresh_context=self._run.fresh_context,
        )
        self.host.ui.notify("Review started", NotifyLevel.INFO)
        self._send_current_stage_prompt()

    def on_turn_completed(self, produced_text: str) -> None:
        """Harvest a finished agent turn and advance the run.

        Args:
            produced_text: Text of the agent's turn for the current stage
        """
        if not self._run.active:
            self._logger.debug("turn_completed_without_active_suite")
            return

        stage = self.current_stage
        if stage is None:
            self._end(SuiteEndReason.COMPLETE)
            return

        text = (produced_text or "").strip()
        if not text:
            self._end(SuiteEndReason.NO_OUTPUT)
            return

        final_report: str | None = None
        if stage.kind == StageKind.REVIEW:
            self._run.reports.append(
                StageReport(
                    stage_id=stage.id,
                    stage_label=stage.label,
                    text=strip_stage_marker(text),
                )
            )
        else:
            final_report = text

        self._run.stage_index += 1
        self._logger.info(
            "stage_advanced",
            run_id=self._run_id,
            stage_id=stage.id,
            output_length=len(text),
            reports=len(self._run.reports),
        )

        if self._run.stage_index >= len(self.pipeline):
            self._end(SuiteEndReason.COMPLETE, final_report=final_report)
            return

        self._send_current_stage_prompt()
        if self._run.active:
            self._run.check_invariants(self.pipeline)

    def on_user_interrupt(self) -> bool:
        """End the active run because the user typed something.

        Returns:
            True if a run was interrupted; False (and no side effects) otherwise
        """
        if not self._run.active:
            return False
        self._end(SuiteEndReason.USER_INTERRUPTED)
        return True

    def capture_boundary(self, messages: Sequence[Message]) -> None:
        """Record where suite-injected turns begin, once per run."""
        if not self._run.active or not self._run.boundary_pending:
            return
        self._run.boundary_marker = find_last_user_index(messages)
        self._run.boundary_pending = False
        self._logger.debug(
            "suite_boundary_captured",
            run_id=self._run_id,
            boundary=self._run.boundary_marker,
            history_length=len(messages),
        )

    def filter_context(self, messages: Sequence[Message]) -> list[Message] | None:
        """Redacted history for the upcoming turn, or None to pass through.

        The first call of a run captures the boundary marker. Later review
        stages then see the pre-suite context, a fresh-eyes notice, and
        their own prompt onward; earlier stages' prompts and answers are
        left out of the view only.
        """
        if not self._run.active:
            return None

        self.capture_boundary(messages)

        stage = self.current_stage
        if not self._run.fresh_context or stage is None:
            return None
        if stage.kind != StageKind.REVIEW or self._run.stage_index == 0:
            return None
        if self._run.boundary_marker is None:
            return None

        view = redact_history(messages, self._run.boundary_marker, stage.label)
        if view is not None:
            self._logger.info(
                "context_redacted",
                run_id=self._run_id,
                stage_id=stage.id,
                hidden_turns=len(messages) - len(view) + 1,
            )
        return view

    def _send_current_stage_prompt(self) -> None:
        target = self._run.target
        if target is None:
            self._end(SuiteEndReason.MISSING_TARGET)
            return

        stage = self.current_stage
        if stage is None:
            self._end(SuiteEndReason.COMPLETE)
            return

        bind_suite_context(run_id=self._run_id or "", stage_id=stage.id)
        try:
            prompt = compile_stage_prompt(target, stage, self._run.reports, self.loader)
        except MissingTemplateError as e:
            self._end(SuiteEndReason.MISSING_TEMPLATE, detail=e.template_name)
            return

        self._update_status()
        self._logger.info(
            "stage_prompt_sent",
            run_id=self._run_id,
            stage_id=stage.id,
            stage_index=self._run.stage_index,
            prompt_length=len(prompt),
        )
        self.host.send_user_message(prompt)

    def _update_status(self) -> None:
        self.host.ui.set_status(self.config.status_key, self.status_text)

    def _end(
        self,
        reason: SuiteEndReason,
        detail: str | None = None,
        final_report: str | None = None,
    ) -> None:
        outcome = SuiteOutcome(
            reason=reason,
            detail=detail,
            final_report=final_report,
            report_count=len(self._run.reports),
        )
        run_id = self._run_id

        self._run = SuiteRun.idle(self.config.fresh_context)
        self._run_id = None
        self.last_outcome = outcome
        self._update_status()

        level = _END_LEVELS[reason]
        log = self._logger.warning if level != NotifyLevel.INFO else self._logger.info
        log(
            "suite_ended",
            run_id=run_id,
            reason=reason.value,
            detail=detail,
            reports=outcome.report_count,
        )
        clear_suite_context()
        set_correlation_id(None)

        self.host.ui.notify(f"Review suite ended: {outcome.message}", level)
