"""Integration tests for the subprocess agent backend.

The agent commands here are short Python programs run with the current
interpreter, so the tests exercise real process spawning, stdin/stdout
plumbing, exit codes and timeouts.
"""

from __future__ import annotations

import shlex
import sys
from pathlib import Path

import pytest

from reviewsuite.agents.backend import AgentBackendError, CommandAgentBackend, render_transcript
from reviewsuite.agents.messages import Message, MessageRole

pytestmark = pytest.mark.integration


def python_agent(code: str) -> list[str]:
    return [sys.executable, "-c", code]


class TestRenderTranscript:
    def test_headings_per_role(self) -> None:
        transcript = render_transcript(
            [
                Message.user("Review this"),
                Message.assistant("Running git diff"),
                Message(role=MessageRole.TOOL_RESULT, content="diff --git a/x b/x"),
            ]
        )
        assert transcript == (
            "## User\n\nReview this\n\n"
            "## Assistant\n\nRunning git diff\n\n"
            "## Tool result\n\ndiff --git a/x b/x\n"
        )

    def test_empty_turns_skipped(self) -> None:
        transcript = render_transcript([Message.assistant("   "), Message.user("Q")])
        assert transcript == "## User\n\nQ\n"


class TestCommandAgentBackend:
    """Test running external agent commands."""

    async def test_transcript_on_stdin_reply_on_stdout(self) -> None:
        backend = CommandAgentBackend(
            python_agent("import sys; print(sys.stdin.read().upper(), end='')")
        )

        reply = await backend.complete([Message.user("hello agent")])

        assert reply == "## USER\n\nHELLO AGENT\n"

    async def test_string_command_is_split(self) -> None:
        command = " ".join(
            shlex.quote(part) for part in python_agent("print('from string command')")
        )
        backend = CommandAgentBackend(command)

        assert backend.command[0] == sys.executable
        assert (await backend.complete([Message.user("x")])).strip() == "from string command"

    async def test_runs_in_working_directory(self, tmp_path: Path) -> None:
        backend = CommandAgentBackend(
            python_agent("import os; print(os.getcwd())"), cwd=str(tmp_path)
        )

        reply = await backend.complete([Message.user("where")])

        assert Path(reply.strip()).resolve() == tmp_path.resolve()

    async def test_non_zero_exit_raises(self) -> None:
        backend = CommandAgentBackend(
            python_agent("import sys; sys.stderr.write('bad flag'); sys.exit(3)")
        )

        with pytest.raises(AgentBackendError, match="exited with 3: bad flag"):
            await backend.complete([Message.user("x")])

    async def test_missing_command_raises(self) -> None:
        backend = CommandAgentBackend(["reviewsuite-no-such-agent-binary"])

        with pytest.raises(AgentBackendError, match="not found"):
            await backend.complete([Message.user("x")])

    async def test_timeout_kills_agent(self) -> None:
        backend = CommandAgentBackend(
            python_agent("import time; time.sleep(30)"), timeout_seconds=0.5
        )

        with pytest.raises(AgentBackendError, match="timed out"):
            await backend.complete([Message.user("x")])

    def test_empty_command_rejected(self) -> None:
        with pytest.raises(ValueError, match="must not be empty"):
            CommandAgentBackend("   ")
