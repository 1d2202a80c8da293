"""Agent hosting for reviewsuite.

This module defines the conversation model, the host protocols the review
suite talks to, and a bundled in-process host that runs turns through an
external agent command.
"""

from reviewsuite.agents.backend import (
    AgentBackend,
    AgentBackendError,
    CommandAgentBackend,
    render_transcript,
)
from reviewsuite.agents.host import (
    AgentEndEvent,
    AgentHost,
    ContextEvent,
    ContextResult,
    HostUI,
    InputAction,
    InputEvent,
    InputSource,
    NotifyLevel,
    SelectItem,
)
from reviewsuite.agents.messages import ContentPart, Message, MessageRole
from reviewsuite.agents.session import ConversationSession

__all__ = [
    # Conversation model
    "ContentPart",
    "Message",
    "MessageRole",
    # Host protocols and events
    "AgentEndEvent",
    "AgentHost",
    "ContextEvent",
    "ContextResult",
    "HostUI",
    "InputAction",
    "InputEvent",
    "InputSource",
    "NotifyLevel",
    "SelectItem",
    # Backends and bundled host
    "AgentBackend",
    "AgentBackendError",
    "CommandAgentBackend",
    "ConversationSession",
    "render_transcript",
]
