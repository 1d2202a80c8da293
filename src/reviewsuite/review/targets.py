"""Review targets: what diff or commit range a suite run reviews.

A ``ReviewTarget`` is one of four immutable variants. ``describe_scope``
renders a target into the instruction block stage templates receive as
``SCOPE``: which read-only git/gh commands the agent should run to see the
change. The per-variant instructions are Jinja2 templates shipped in
``scopes/``. ``parse_target_args`` understands the command-line shorthand.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import Union

from jinja2 import Environment, FileSystemLoader


class ReviewTargetKind(str, Enum):
    """Discriminator of the ReviewTarget variants."""

    WORKTREE = "worktree"
    STAGED = "staged"
    PR = "pr"
    RECENT = "recent"


@dataclass(frozen=True)
class WorktreeTarget:
    """Staged, unstaged and untracked changes in the working tree."""

    kind: ReviewTargetKind = ReviewTargetKind.WORKTREE


@dataclass(frozen=True)
class StagedTarget:
    """Staged changes only."""

    kind: ReviewTargetKind = ReviewTargetKind.STAGED


@dataclass(frozen=True)
class PullRequestTarget:
    """A GitHub pull request of the current repository."""

    number: int
    kind: ReviewTargetKind = ReviewTargetKind.PR

    def __post_init__(self) -> None:
        if isinstance(self.number, bool) or not isinstance(self.number, int) or self.number <= 0:
            raise ValueError(f"PR number must be a positive integer, got {self.number!r}")


@dataclass(frozen=True)
class RecentTarget:
    """Commits from ``base_ref`` (inclusive) up to HEAD."""

    base_ref: str
    kind: ReviewTargetKind = ReviewTargetKind.RECENT

    def __post_init__(self) -> None:
        if not isinstance(self.base_ref, str) or not self.base_ref.strip():
            raise ValueError("Base commit reference must be a non-empty string")


ReviewTarget = Union[WorktreeTarget, StagedTarget, PullRequestTarget, RecentTarget]


@dataclass(frozen=True)
class RecentPickerRequest:
    """``recent [N]`` shorthand: the base commit still has to be picked."""

    limit: int


REVIEW_PRIORITIES = (
    "You are doing a high-signal code review.\n\n"
    "Review priorities (in order):\n"
    "1) Correctness / logic errors\n"
    "2) Security / auth / secrets\n"
    "3) Error handling & observability (logs/metrics)\n"
    "4) Data correctness (schemas/migrations/serialization)\n"
    "5) Performance / concurrency / idempotency\n"
    "6) Tests (missing/weak tests)\n\n"
)


SCOPE_TEMPLATE_DIR = Path(__file__).parent / "scopes"

_scope_env = Environment(
    loader=FileSystemLoader(str(SCOPE_TEMPLATE_DIR)),
    autoescape=False,
    keep_trailing_newline=True,
    trim_blocks=True,
    lstrip_blocks=True,
    auto_reload=False,
)


def _render_scope(kind: ReviewTargetKind, **variables: object) -> str:
    return _scope_env.get_template(f"{kind.value}.j2").render(**variables)


def describe_scope(target: ReviewTarget) -> str:
    """Render the scope instructions for ``target``.

    Args:
        target: Review target to describe

    Returns:
        Instruction block naming the read-only commands to inspect the change

    Raises:
        TypeError: If ``target`` is not a ReviewTarget variant
    """
    if isinstance(target, (WorktreeTarget, StagedTarget)):
        body = _render_scope(target.kind)
    elif isinstance(target, PullRequestTarget):
        body = _render_scope(target.kind, number=target.number)
    elif isinstance(target, RecentTarget):
        body = _render_scope(target.kind, ref=target.base_ref)
    else:
        raise TypeError(f"Unsupported review target: {target!r}")
    return REVIEW_PRIORITIES + body


def target_label(target: ReviewTarget) -> str:
    """Short human-readable name of a target, used in logs and banners."""
    if isinstance(target, PullRequestTarget):
        return f"PR #{target.number}"
    if isinstance(target, RecentTarget):
        return f"{target.base_ref}..HEAD"
    if isinstance(target, StagedTarget):
        return "staged changes"
    return "working tree"


def clamp_int(value: int, minimum: int, maximum: int) -> int:
    return max(minimum, min(maximum, value))


_LEGACY_PREFIX = re.compile(r"^(suite|multi)\b\s*", re.IGNORECASE)
_STAGED = re.compile(r"^(staged|stage)$", re.IGNORECASE)
_WORKTREE = re.compile(r"^(worktree|wt|working-tree)$", re.IGNORECASE)
_RECENT = re.compile(r"^recent(?:\s+(\d+))?$", re.IGNORECASE)
_PR = re.compile(r"^#?(\d+)$")


def strip_legacy_prefix(raw: str | None) -> str:
    """Drop a leading ``suite``/``multi`` word kept for old invocations."""
    return _LEGACY_PREFIX.sub("", (raw or "").strip(), count=1)


def parse_target_args(
    raw: str | None,
    default_limit: int = 50,
    min_limit: int = 10,
    max_limit: int = 200,
) -> ReviewTarget | RecentPickerRequest | None:
    """Parse the review command's argument shorthand.

    Recognised forms (case-insensitive)::

        staged | stage
        worktree | wt | working-tree
        recent [N]        (N clamped to [min_limit, max_limit])
        123 | #123        (pull request)

    Returns:
        A target, a picker request for ``recent``, or None when the
        arguments are empty or not understood (interactive selection needed)
    """
    args = strip_legacy_prefix(raw)
    if not args:
        return None

    if _STAGED.match(args):
        return StagedTarget()
    if _WORKTREE.match(args):
        return WorktreeTarget()

    recent = _RECENT.match(args)
    if recent:
        limit = int(recent.group(1)) if recent.group(1) else default_limit
        return RecentPickerRequest(limit=clamp_int(limit, min_limit, max_limit))

    pr = _PR.match(args)
    if pr and int(pr.group(1)) > 0:
        return PullRequestTarget(number=int(pr.group(1)))

    return None
