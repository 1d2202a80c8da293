"""Read-only git inspection for reviewsuite.

This module wraps the few repository queries the review command needs
before a suite starts: whether the working directory is inside a git work
tree, and the recent commit log offered by the base-commit picker. It uses
GitPython and never modifies the repository.

Example usage:
    >>> from pathlib import Path
    >>> from reviewsuite.review.repository import RepositoryInspector
    >>>
    >>> inspector = RepositoryInspector(Path.cwd())
    >>> if inspector.is_inside_work_tree():
    ...     for commit in inspector.recent_commits(limit=10):
    ...         print(commit.label)
"""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path

import git
from git import GitCommandError, InvalidGitRepositoryError, NoSuchPathError

from reviewsuite.logging import get_logger


class RepositoryError(Exception):
    """Raised when a git query fails."""


@dataclass(frozen=True)
class CommitChoice:
    """One line of ``git log --oneline --decorate``.

    Attributes:
        sha: Abbreviated commit hash (the picker's value)
        label: Full log line
        description: Everything after the hash, or None
    """

    sha: str
    label: str
    description: str | None = None

    @classmethod
    def from_log_line(cls, line: str) -> CommitChoice:
        sha, _, rest = line.strip().partition(" ")
        rest = " ".join(rest.split())
        return cls(sha=sha or line, label=line.strip(), description=rest or None)


class RepositoryInspector:
    """Read-only queries against the repository containing ``path``.

    Attributes:
        path: Directory the queries run from
        logger: Structured logger instance
    """

    def __init__(self, path: Path | None = None) -> None:
        self.path = path or Path.cwd()
        self.logger = get_logger(__name__)

    def _repo(self) -> git.Repo:
        return git.Repo(self.path, search_parent_directories=True)

    def is_inside_work_tree(self) -> bool:
        """Return True when ``path`` is inside a non-bare git work tree."""
        try:
            repo = self._repo()
        except (InvalidGitRepositoryError, NoSuchPathError) as e:
            self.logger.info(
                "not_a_git_repository",
                path=str(self.path),
                error_type=type(e).__name__,
            )
            return False

        try:
            inside = repo.git.rev_parse("--is-inside-work-tree").strip() == "true"
        except GitCommandError as e:
            self.logger.info("rev_parse_failed", path=str(self.path), error=str(e))
            return False
        finally:
            repo.close()
        return inside

    def recent_commits(self, limit: int) -> list[CommitChoice]:
        """List the ``limit`` most recent commits reachable from HEAD.

        Args:
            limit: Maximum number of commits

        Returns:
            Commits newest first; empty for a repository without commits

        Raises:
            RepositoryError: If the repository cannot be opened or git log fails
        """
        try:
            repo = self._repo()
        except (InvalidGitRepositoryError, NoSuchPathError) as e:
            raise RepositoryError(f"not a git repository: {self.path}") from e

        try:
            if not repo.head.is_valid():
                return []
            output = repo.git.log("--oneline", "--decorate", "-n", str(limit))
        except GitCommandError as e:
            self.logger.error(
                "git_log_failed",
                path=str(self.path),
                limit=limit,
                error=str(e),
            )
            raise RepositoryError((e.stderr or str(e)).strip()) from e
        finally:
            repo.close()

        commits = [
            CommitChoice.from_log_line(line)
            for line in output.splitlines()
            if line.strip()
        ]
        self.logger.debug("recent_commits_listed", count=len(commits), limit=limit)
        return commits
