"""Turn review command arguments into a ReviewTarget.

Shorthand arguments resolve directly. Without arguments an interactive host
asks the user what to review, looping back to the first question whenever a
follow-up prompt (PR number, base-commit picker) is cancelled; a host
without a UI falls back to reviewing the working tree.
"""

from __future__ import annotations

import structlog

from reviewsuite.agents.host import AgentHost, NotifyLevel, SelectItem
from reviewsuite.config import GitConfig
from reviewsuite.review.repository import RepositoryError, RepositoryInspector
from reviewsuite.review.targets import (
    PullRequestTarget,
    RecentPickerRequest,
    RecentTarget,
    ReviewTarget,
    StagedTarget,
    WorktreeTarget,
    parse_target_args,
)

logger = structlog.get_logger(__name__)

CHOICE_WORKTREE = "Working tree (staged + unstaged + untracked)"
CHOICE_STAGED = "Staged changes only"
CHOICE_PR = "GitHub PR by number"
CHOICE_RECENT = "Recent commits (pick base commit)"

SCOPE_CHOICES = [CHOICE_WORKTREE, CHOICE_STAGED, CHOICE_PR, CHOICE_RECENT]


def parse_pr_number(raw: str) -> int | None:
    """Parse user-typed PR input (``123`` or ``#123``); None if invalid."""
    text = raw.strip()
    if text.startswith("#"):
        text = text[1:]
    if not text.isdigit():
        return None
    number = int(text)
    return number if number > 0 else None


class TargetResolver:
    """Resolves the review target for one review command invocation.

    Attributes:
        host: Host providing the UI and the has_ui flag
        inspector: Repository queries for the commit picker
        config: Picker limits
    """

    def __init__(
        self,
        host: AgentHost,
        inspector: RepositoryInspector,
        config: GitConfig | None = None,
    ) -> None:
        self.host = host
        self.inspector = inspector
        self.config = config or GitConfig()

    async def resolve(self, args: str | None) -> ReviewTarget | None:
        """Resolve ``args`` to a target.

        Returns:
            The chosen target, or None when the user cancelled
        """
        parsed = parse_target_args(
            args,
            default_limit=self.config.picker_limit,
            min_limit=self.config.picker_min,
            max_limit=self.config.picker_max,
        )

        if isinstance(parsed, RecentPickerRequest):
            if not self.host.has_ui:
                return WorktreeTarget()
            sha = await self.pick_base_commit(parsed.limit)
            return RecentTarget(base_ref=sha) if sha else None

        if parsed is not None:
            return parsed

        if not self.host.has_ui:
            return WorktreeTarget()

        return await self._select_interactively()

    async def _select_interactively(self) -> ReviewTarget | None:
        ui = self.host.ui
        while True:
            choice = await ui.select("What do you want to review?", SCOPE_CHOICES)
            if not choice:
                logger.debug("target_selection_cancelled")
                return None

            if choice == CHOICE_WORKTREE:
                return WorktreeTarget()
            if choice == CHOICE_STAGED:
                return StagedTarget()
            if choice == CHOICE_RECENT:
                sha = await self.pick_base_commit(self.config.picker_limit)
                if sha:
                    return RecentTarget(base_ref=sha)
                continue

            raw = await ui.input("PR number", "e.g. 123")
            if not raw:
                continue
            number = parse_pr_number(raw)
            if number is None:
                ui.notify("Invalid PR number", NotifyLevel.ERROR)
                continue
            return PullRequestTarget(number=number)

    async def pick_base_commit(self, limit: int) -> str | None:
        """Let the user pick the oldest commit to include in the review.

        Returns:
            Abbreviated sha of the chosen commit, or None
        """
        ui = self.host.ui
        try:
            commits = self.inspector.recent_commits(limit)
        except RepositoryError as e:
            ui.notify(f"Failed to run git log: {e}".strip(), NotifyLevel.ERROR)
            return None

        if not commits:
            ui.notify("No commits found.", NotifyLevel.WARNING)
            return None

        items = [
            SelectItem(value=c.sha, label=c.label, description=c.description)
            for c in commits
        ]
        return await ui.pick(
            "Pick base commit",
            "(Review will include the selected commit -> HEAD)",
            items,
        )
