"""Pure helpers over conversation histories.

Boundary capture and context redaction must agree on which turn is "the
current stage's prompt", so both go through ``find_last_user_index``.
"""

from __future__ import annotations

from typing import Sequence

from reviewsuite.agents.messages import Message, MessageRole

FRESH_EYES_NOTICE = (
    "[Review suite stage {label}. Prior stage outputs are intentionally hidden. "
    "Review with fresh eyes.]"
)


def find_last_user_index(messages: Sequence[Message]) -> int | None:
    """Index of the most recent user-authored turn, or None."""
    for idx in range(len(messages) - 1, -1, -1):
        if messages[idx].role == MessageRole.USER:
            return idx
    return None


def fresh_eyes_notice(stage_label: str) -> Message:
    """Synthetic user turn standing in for the hidden stages."""
    return Message.user(FRESH_EYES_NOTICE.format(label=stage_label))


def redact_history(
    messages: Sequence[Message],
    boundary: int,
    stage_label: str,
) -> list[Message] | None:
    """Hide every turn between ``boundary`` and the current stage prompt.

    The result keeps the turns before ``boundary`` (pre-suite context), a
    fresh-eyes notice, and the turns from the last user turn onward.
    ``messages`` itself is never modified.

    Args:
        messages: Full history about to be sent
        boundary: Index of the first suite-injected turn
        stage_label: Label of the current stage, quoted in the notice

    Returns:
        The redacted view, or None when there is nothing to hide
    """
    current = find_last_user_index(messages)
    if current is None or current <= boundary:
        return None

    view = list(messages[:boundary])
    view.append(fresh_eyes_notice(stage_label))
    view.extend(messages[current:])
    return view


def extract_last_assistant_text(messages: Sequence[Message]) -> str:
    """Text of the most recent assistant turn, segments joined, trimmed.

    Returns an empty string when there is no assistant turn at all.
    """
    for message in reversed(messages):
        if message.role == MessageRole.ASSISTANT:
            return "\n".join(message.text_segments()).strip()
    return ""
