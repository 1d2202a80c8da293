"""Pytest fixtures for integration tests.

Provides real git repositories in temporary directories and a scripted
agent command (a small Python program run as a subprocess) so the review
suite can be exercised end to end without a real coding agent.
"""

from __future__ import annotations

import sys
import textwrap
from pathlib import Path

import git
import pytest

FAKE_AGENT = textwrap.dedent(
    """
    import sys

    transcript = sys.stdin.read()
    prompt = transcript.rsplit("## User", 1)[-1]

    def stage_name():
        if "independent code reviews" in prompt or "Merge these reviews" in prompt:
            return "synthesis"
        if "Lens: Linus" in prompt or "Stage linus" in prompt:
            return "linus"
        if "staff engineer" in prompt or "Stage staff" in prompt:
            return "staff"
        return "overall"

    stage = stage_name()
    if stage == "synthesis":
        seen = [name for name in ("OVERALL", "LINUS", "STAFF") if name + " REPORT" in prompt]
        print("SYNTHESIS of " + ", ".join(seen))
    else:
        print(stage.upper() + " REPORT")
        print("earlier stages visible" if "REPORT" in transcript else "fresh eyes")
        print("[[REVIEW_STAGE_DONE]]")
    """
)


@pytest.fixture
def temp_repo(tmp_path: Path) -> git.Repo:
    """Create a temporary git repository with two commits.

    Args:
        tmp_path: pytest temporary directory fixture

    Returns:
        GitPython Repo object for the temporary repository
    """
    repo_path = tmp_path / "test_repo"
    repo_path.mkdir()

    repo = git.Repo.init(repo_path)
    repo.config_writer().set_value("user", "name", "Test User").release()
    repo.config_writer().set_value("user", "email", "test@example.com").release()

    (repo_path / "README.md").write_text("# Test Repository\n")
    repo.index.add(["README.md"])
    repo.index.commit("Initial commit")

    (repo_path / "app.py").write_text("print('hello')\n")
    repo.index.add(["app.py"])
    repo.index.commit("Add app")

    return repo


@pytest.fixture
def empty_repo(tmp_path: Path) -> git.Repo:
    """A freshly initialized repository without commits."""
    repo_path = tmp_path / "empty_repo"
    repo_path.mkdir()
    return git.Repo.init(repo_path)


@pytest.fixture
def fake_agent(tmp_path: Path) -> list[str]:
    """Argument vector of a scripted agent that answers every stage.

    Review stages answer with a stage-specific report followed by the
    end-of-stage marker; the synthesis stage reports whether it saw the
    fresh-eyes notice anywhere in its transcript.
    """
    script = tmp_path / "fake_agent.py"
    script.write_text(FAKE_AGENT, encoding="utf-8")
    return [sys.executable, str(script)]
