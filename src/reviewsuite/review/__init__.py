"""Review scope selection for reviewsuite.

This module describes what a suite run reviews (working tree, staged
changes, a pull request or a commit range), renders that scope into agent
instructions, and resolves command arguments or interactive choices into a
target.
"""

from reviewsuite.review.repository import CommitChoice, RepositoryError, RepositoryInspector
from reviewsuite.review.resolver import TargetResolver
from reviewsuite.review.targets import (
    PullRequestTarget,
    RecentPickerRequest,
    RecentTarget,
    ReviewTarget,
    ReviewTargetKind,
    StagedTarget,
    WorktreeTarget,
    describe_scope,
    parse_target_args,
)

__all__ = [
    "CommitChoice",
    "PullRequestTarget",
    "RecentPickerRequest",
    "RecentTarget",
    "RepositoryError",
    "RepositoryInspector",
    "ReviewTarget",
    "ReviewTargetKind",
    "StagedTarget",
    "TargetResolver",
    "WorktreeTarget",
    "describe_scope",
    "parse_target_args",
]
