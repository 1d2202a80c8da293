"""Host event handlers that connect a ReviewSuite to a conversation host.

- ``ContextRedactionFilter`` (``context``): hands later review stages a
  history without the earlier stages' prompts and answers.
- ``TurnCompletionHandler`` (``agent_end``): extracts the agent's answer and
  advances the suite.
- ``InterruptHandler`` (``input``): any interactive input ends an active run
  and is then processed normally.
"""

from __future__ import annotations

from typing import Any, Awaitable, Callable, Protocol

import structlog

from reviewsuite.agents.host import (
    AgentEndEvent,
    AgentHost,
    ContextEvent,
    ContextResult,
    InputAction,
    InputEvent,
    InputSource,
)
from reviewsuite.suite.history import extract_last_assistant_text
from reviewsuite.suite.state_machine import ReviewSuite

logger = structlog.get_logger(__name__)


class EventSource(Protocol):
    """Anything handlers can be registered on (e.g. ConversationSession)."""

    def on(self, event: str, handler: Callable[[Any], Awaitable[Any]]) -> None:
        ...


class ContextRedactionFilter:
    """``context`` handler applying the suite's fresh-eyes redaction."""

    def __init__(self, suite: ReviewSuite) -> None:
        self.suite = suite

    async def __call__(self, event: ContextEvent) -> ContextResult | None:
        if not event.messages:
            return None
        view = self.suite.filter_context(event.messages)
        if view is None:
            return None
        return ContextResult(messages=view)


class TurnCompletionHandler:
    """``agent_end`` handler reporting the agent's answer to the suite."""

    def __init__(self, suite: ReviewSuite) -> None:
        self.suite = suite

    async def __call__(self, event: AgentEndEvent) -> None:
        if not self.suite.is_active:
            return
        self.suite.on_turn_completed(extract_last_assistant_text(event.messages or []))


class InterruptHandler:
    """``input`` handler: interactive input interrupts an active run."""

    def __init__(self, suite: ReviewSuite, host: AgentHost) -> None:
        self.suite = suite
        self.host = host

    async def __call__(self, event: InputEvent) -> InputAction:
        if not self.host.has_ui:
            return InputAction.CONTINUE

        if event.source == InputSource.INTERACTIVE and self.suite.is_active:
            logger.info("suite_interrupt_requested", input_length=len(event.text))
            self.suite.on_user_interrupt()

        return InputAction.CONTINUE


def register_review_suite(source: EventSource, suite: ReviewSuite) -> None:
    """Register all three suite handlers on ``source``.

    The interrupt handler is registered on ``input`` so it runs before the
    input is queued as a user turn.
    """
    source.on("input", InterruptHandler(suite, suite.host))
    source.on("context", ContextRedactionFilter(suite))
    source.on("agent_end", TurnCompletionHandler(suite))
