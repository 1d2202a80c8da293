"""The ``review`` command: resolve a review target and start a suite run."""

from __future__ import annotations

import structlog

from reviewsuite.agents.host import AgentHost, NotifyLevel
from reviewsuite.review.repository import RepositoryInspector
from reviewsuite.review.resolver import TargetResolver
from reviewsuite.review.targets import ReviewTarget, strip_legacy_prefix
from reviewsuite.suite.state_machine import ReviewSuite, SuiteAlreadyActiveError

logger = structlog.get_logger(__name__)

ALREADY_RUNNING = "A review suite is already running. Type anything to interrupt it."


class ReviewCommand:
    """Handler behind ``/review [args]``.

    Setup errors (busy agent, no git repository, a run already active) are
    reported and leave the suite untouched.

    Attributes:
        host: Conversation host
        suite: Suite to start
        resolver: Turns arguments or picker choices into a target
        inspector: Repository checks
    """

    name = "review"
    description = (
        "Interactive review picker (working tree / staged / PR / recent commits), then run "
        "a multi-stage review (overall -> linus -> staff -> synthesis)."
    )

    def __init__(
        self,
        host: AgentHost,
        suite: ReviewSuite,
        resolver: TargetResolver,
        inspector: RepositoryInspector,
    ) -> None:
        self.host = host
        self.suite = suite
        self.resolver = resolver
        self.inspector = inspector

    async def run(self, args: str | None = None) -> ReviewTarget | None:
        """Execute the command.

        Args:
            args: Raw argument string (shorthand, possibly empty)

        Returns:
            The target of the started run, or None if nothing was started
        """
        ui = self.host.ui

        if not self.host.is_idle():
            ui.notify("Agent is busy; try again when idle", NotifyLevel.WARNING)
            return None

        if not self.inspector.is_inside_work_tree():
            ui.notify(f"/{self.name}: not inside a git repository", NotifyLevel.ERROR)
            return None

        if self.suite.is_active:
            ui.notify(ALREADY_RUNNING, NotifyLevel.WARNING)
            return None

        target = await self.resolver.resolve(strip_legacy_prefix(args))
        if target is None:
            logger.info("review_command_cancelled")
            return None

        try:
            self.suite.start(target)
        except SuiteAlreadyActiveError:
            ui.notify(ALREADY_RUNNING, NotifyLevel.WARNING)
            return None

        return target
