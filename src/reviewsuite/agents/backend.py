"""Agent backends for the bundled conversation host.

A backend turns the (possibly filtered) conversation history for one turn
into the agent's reply. ``CommandAgentBackend`` shells out to an external
coding-agent CLI that reads a prompt on stdin and writes its answer to
stdout, e.g. ``claude -p`` or ``codex exec -``.
"""

from __future__ import annotations

import asyncio
import shlex
import time
from typing import Protocol, runtime_checkable

import structlog

from reviewsuite.agents.messages import Message, MessageRole

logger = structlog.get_logger(__name__)


class AgentBackendError(Exception):
    """Raised when the agent backend fails to produce a turn."""


@runtime_checkable
class AgentBackend(Protocol):
    """Protocol for anything that can produce the agent's next turn."""

    async def complete(self, messages: list[Message]) -> str:
        """Produce the assistant reply for ``messages``.

        Args:
            messages: History to answer, oldest first; the last turn is
                the user turn being answered.

        Returns:
            Assistant reply text (may be empty)

        Raises:
            AgentBackendError: If the agent could not be run
        """
        ...


def render_transcript(messages: list[Message]) -> str:
    """Flatten a history into the plain-text transcript fed to CLI agents."""
    blocks: list[str] = []
    for message in messages:
        text = message.text.strip()
        if not text:
            continue
        heading = "User" if message.role == MessageRole.USER else "Assistant"
        if message.role == MessageRole.TOOL_RESULT:
            heading = "Tool result"
        blocks.append(f"## {heading}\n\n{text}")
    return "\n\n".join(blocks) + "\n"


class CommandAgentBackend:
    """Runs an external agent command once per turn.

    Attributes:
        command: Argument vector of the agent command
        timeout_seconds: Maximum duration of one turn
        cwd: Working directory for the command (None inherits)
    """

    def __init__(
        self,
        command: str | list[str],
        timeout_seconds: float = 600.0,
        cwd: str | None = None,
    ) -> None:
        self.command = shlex.split(command) if isinstance(command, str) else list(command)
        if not self.command:
            raise ValueError("Agent command must not be empty")
        self.timeout_seconds = timeout_seconds
        self.cwd = cwd

    async def complete(self, messages: list[Message]) -> str:
        transcript = render_transcript(messages)
        start_time = time.monotonic()

        logger.debug(
            "agent_command_started",
            command=self.command,
            transcript_length=len(transcript),
        )

        try:
            proc = await asyncio.create_subprocess_exec(
                *self.command,
                stdin=asyncio.subprocess.PIPE,
                stdout=asyncio.subprocess.PIPE,
                stderr=asyncio.subprocess.PIPE,
                cwd=self.cwd,
            )
        except FileNotFoundError as e:
            raise AgentBackendError(f"Agent command not found: {self.command[0]}") from e

        try:
            stdout_bytes, stderr_bytes = await asyncio.wait_for(
                proc.communicate(input=transcript.encode("utf-8")),
                timeout=self.timeout_seconds,
            )
        except asyncio.TimeoutError as e:
            proc.kill()
            await proc.wait()
            logger.error(
                "agent_command_timeout",
                command=self.command,
                timeout_seconds=self.timeout_seconds,
            )
            raise AgentBackendError(
                f"Agent command timed out after {self.timeout_seconds} seconds"
            ) from e
        except asyncio.CancelledError:
            proc.kill()
            await proc.wait()
            logger.info("agent_command_cancelled", command=self.command)
            raise

        stdout = stdout_bytes.decode("utf-8", errors="replace")
        stderr = stderr_bytes.decode("utf-8", errors="replace")

        if proc.returncode != 0:
            logger.error(
                "agent_command_failed",
                command=self.command,
                returncode=proc.returncode,
                stderr=stderr[:500],
            )
            raise AgentBackendError(
                f"Agent command exited with {proc.returncode}: {stderr.strip()[:200]}"
            )

        logger.debug(
            "agent_command_completed",
            command=self.command,
            output_length=len(stdout),
            duration_seconds=round(time.monotonic() - start_time, 3),
        )
        return stdout
