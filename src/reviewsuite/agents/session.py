"""In-process conversation host for reviewsuite.

``ConversationSession`` plays the role of the hosting environment: it keeps
the durable conversation history, queues user turns, and delivers the
``context``, ``agent_end`` and ``input`` events to registered handlers one at
a time. Handlers run to completion before the next event is delivered, so
state owned by a handler is never mutated concurrently.

Turn lifecycle:
    queued user text -> user turn appended -> context handlers (may return a
    replacement view for this turn only) -> backend -> assistant turn
    appended -> agent_end handlers (may queue further user turns)
"""

from __future__ import annotations

import asyncio
from collections import deque
from typing import Any, Awaitable, Callable

import structlog

from reviewsuite.agents.backend import AgentBackend, AgentBackendError
from reviewsuite.agents.host import (
    AgentEndEvent,
    ContextEvent,
    ContextResult,
    HostUI,
    InputAction,
    InputEvent,
    InputSource,
    NotifyLevel,
)
from reviewsuite.agents.messages import Message

EventHandler = Callable[[Any], Awaitable[Any]]

EVENTS = ("context", "agent_end", "input")


class ConversationSession:
    """Durable conversation plus the event loop that drives an agent backend.

    Attributes:
        backend: Produces assistant turns
        ui: User-facing surface used by handlers
    """

    def __init__(
        self,
        backend: AgentBackend,
        ui: HostUI,
        has_ui: bool = True,
        messages: list[Message] | None = None,
    ) -> None:
        self.backend = backend
        self._ui = ui
        self._has_ui = has_ui
        self._messages: list[Message] = list(messages or [])
        self._pending: deque[str] = deque()
        self._handlers: dict[str, list[EventHandler]] = {name: [] for name in EVENTS}
        self._running = False
        self._logger = structlog.get_logger(__name__)

    @property
    def ui(self) -> HostUI:
        return self._ui

    @property
    def has_ui(self) -> bool:
        return self._has_ui

    @property
    def messages(self) -> list[Message]:
        """Copy of the durable history."""
        return list(self._messages)

    def on(self, event: str, handler: EventHandler) -> None:
        """Register ``handler`` for ``event``.

        Raises:
            ValueError: If ``event`` is not one of ``EVENTS``
        """
        if event not in self._handlers:
            raise ValueError(f"Unknown event: {event}. Must be one of {EVENTS}")
        self._handlers[event].append(handler)

    def is_idle(self) -> bool:
        return not self._running and not self._pending

    def send_user_message(self, text: str) -> None:
        self._pending.append(text)
        self._logger.debug("user_message_queued", length=len(text), queued=len(self._pending))

    async def submit_input(
        self, text: str, source: InputSource = InputSource.INTERACTIVE
    ) -> bool:
        """Deliver user input: input handlers first, then queue it.

        Returns:
            True if the text was queued as a user turn
        """
        action = await self._emit_input(InputEvent(text=text, source=source))
        if action == InputAction.HANDLED or not text.strip():
            return False
        self._pending.append(text)
        return True

    async def interrupt(self) -> None:
        """Drop queued turns and tell input handlers the user broke in."""
        dropped = len(self._pending)
        self._pending.clear()
        self._logger.info("session_interrupted", dropped_turns=dropped)
        await self._emit_input(InputEvent(text="", source=InputSource.INTERACTIVE))

    async def run_turn(self) -> Message | None:
        """Run the next queued user turn through the backend.

        Returns:
            The appended assistant turn, or None if nothing was queued
        """
        if not self._pending:
            return None

        self._running = True
        try:
            self._messages.append(Message.user(self._pending.popleft()))
            view = await self._emit_context()

            try:
                reply = await self.backend.complete(view)
            except AgentBackendError as e:
                self._logger.error("agent_turn_failed", error=str(e))
                self._ui.notify(f"Agent failed: {e}", NotifyLevel.ERROR)
                reply = ""

            assistant = Message.assistant(reply.strip())
            self._messages.append(assistant)
        finally:
            self._running = False

        await self._emit("agent_end", AgentEndEvent(messages=list(self._messages)))
        return assistant

    async def run_until_idle(self, stop_event: asyncio.Event | None = None) -> int:
        """Run queued turns until none remain or ``stop_event`` is set.

        Setting ``stop_event`` cancels the turn in flight and delivers an
        interactive interrupt.

        Returns:
            Number of turns completed
        """
        completed = 0
        while self._pending:
            if stop_event is None:
                await self.run_turn()
                completed += 1
                continue

            turn = asyncio.ensure_future(self.run_turn())
            stopper = asyncio.ensure_future(stop_event.wait())
            done, _ = await asyncio.wait({turn, stopper}, return_when=asyncio.FIRST_COMPLETED)

            if turn in done:
                stopper.cancel()
                turn.result()
                completed += 1
                if not stop_event.is_set():
                    continue

            turn.cancel()
            try:
                await turn
            except asyncio.CancelledError:
                pass
            self._running = False
            stop_event.clear()
            await self.interrupt()
            break
        return completed

    async def _emit(self, event: str, payload: Any) -> list[Any]:
        results = []
        for handler in self._handlers[event]:
            results.append(await handler(payload))
        return results

    async def _emit_context(self) -> list[Message]:
        view = list(self._messages)
        for handler in self._handlers["context"]:
            result = await handler(ContextEvent(messages=view))
            if isinstance(result, ContextResult):
                view = list(result.messages)
        return view

    async def _emit_input(self, event: InputEvent) -> InputAction:
        for handler in self._handlers["input"]:
            action = await handler(event)
            if action == InputAction.HANDLED:
                return InputAction.HANDLED
        return InputAction.CONTINUE
