"""Hosting environment interfaces for reviewsuite.

This module provides Protocol-based abstractions over the environment that
runs the conversational agent: the user-facing surface (notifications, the
status line, pickers) and the conversation itself (sending a user turn,
idle detection). The review suite only talks to these protocols, so it can
be driven by the bundled ``ConversationSession`` or by any other host that
delivers the same three events.

Events, delivered one at a time:
    context    - before a turn's history is handed to the agent
    agent_end  - after the agent finished producing a turn
    input      - when new user input arrives
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Protocol, runtime_checkable

from reviewsuite.agents.messages import Message


class NotifyLevel(str, Enum):
    """Severity of a user-facing notification."""

    INFO = "info"
    WARNING = "warning"
    ERROR = "error"


class InputSource(str, Enum):
    """Channel a piece of user input arrived through.

    Sources:
        INTERACTIVE: Typed by a person at the terminal.
        RPC: Delivered programmatically by another process.
        EXTENSION: Injected by an extension (e.g. a suite stage prompt).
    """

    INTERACTIVE = "interactive"
    RPC = "rpc"
    EXTENSION = "extension"


class InputAction(str, Enum):
    """What the host should do with input after the input hooks ran."""

    CONTINUE = "continue"
    HANDLED = "handled"


@dataclass
class ContextEvent:
    """Fired before a turn; ``messages`` is the history about to be sent."""

    messages: list[Message]


@dataclass
class AgentEndEvent:
    """Fired after a turn; ``messages`` is the full durable history."""

    messages: list[Message]


@dataclass
class InputEvent:
    """Fired when user input arrives, before it is queued."""

    text: str
    source: InputSource = InputSource.INTERACTIVE


@dataclass
class ContextResult:
    """Replacement history for the upcoming turn only."""

    messages: list[Message] = field(default_factory=list)


@dataclass
class SelectItem:
    """One entry of a picker list.

    Attributes:
        value: Value returned when the entry is chosen
        label: Text shown for the entry
        description: Optional secondary text
    """

    value: str
    label: str
    description: str | None = None


@runtime_checkable
class HostUI(Protocol):
    """Protocol for the user-facing surface of the host."""

    def notify(self, message: str, level: NotifyLevel = NotifyLevel.INFO) -> None:
        """Show a one-off notification."""
        ...

    def set_status(self, key: str, text: str | None) -> None:
        """Publish (or clear with None) the status line registered under ``key``."""
        ...

    async def select(self, title: str, options: list[str]) -> str | None:
        """Ask the user to choose one option; None when cancelled."""
        ...

    async def input(self, title: str, placeholder: str = "") -> str | None:
        """Ask the user for free text; None when cancelled."""
        ...

    async def pick(self, title: str, hint: str, items: list[SelectItem]) -> str | None:
        """Show a searchable list and return the chosen value; None when cancelled."""
        ...


@runtime_checkable
class AgentHost(Protocol):
    """Protocol for the conversation host the suite drives."""

    @property
    def ui(self) -> HostUI:
        """User-facing surface of the host."""
        ...

    @property
    def has_ui(self) -> bool:
        """True when a person can answer pickers and prompts."""
        ...

    def is_idle(self) -> bool:
        """True when no agent turn is running or queued."""
        ...

    def send_user_message(self, text: str) -> None:
        """Queue ``text`` as the next user turn."""
        ...
