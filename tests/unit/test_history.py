"""Unit tests for conversation history helpers and fresh-eyes redaction."""

from __future__ import annotations

from reviewsuite.agents.messages import ContentPart, Message, MessageRole
from reviewsuite.suite.history import (
    extract_last_assistant_text,
    find_last_user_index,
    fresh_eyes_notice,
    redact_history,
)


def _tool(text: str) -> Message:
    return Message(role=MessageRole.TOOL_RESULT, content=text)


class TestFindLastUserIndex:
    def test_empty_history(self) -> None:
        assert find_last_user_index([]) is None

    def test_no_user_turn(self) -> None:
        assert find_last_user_index([Message.assistant("hi")]) is None

    def test_skips_trailing_non_user_turns(self) -> None:
        history = [
            Message.user("U0"),
            Message.assistant("A0"),
            Message.user("U1"),
            Message.assistant("A1"),
            _tool("T1"),
        ]
        assert find_last_user_index(history) == 2


class TestFreshEyesNotice:
    def test_notice_is_user_turn_naming_stage(self) -> None:
        notice = fresh_eyes_notice("Staff")
        assert notice.role == MessageRole.USER
        assert notice.text == (
            "[Review suite stage Staff. Prior stage outputs are intentionally hidden. "
            "Review with fresh eyes.]"
        )


class TestRedactHistory:
    """Test fresh-eyes redaction of earlier suite stages."""

    def test_hides_turns_between_boundary_and_current_prompt(self) -> None:
        """Boundary 2 with the current prompt at 6 keeps [U0, A0, notice, U3]."""
        history = [
            Message.user("U0"),
            Message.assistant("A0"),
            Message.user("U1"),
            Message.assistant("A1"),
            Message.user("U2"),
            Message.assistant("A2"),
            Message.user("U3"),
        ]

        view = redact_history(history, boundary=2, stage_label="Staff")

        assert view is not None
        assert [m.text for m in view] == [
            "U0",
            "A0",
            fresh_eyes_notice("Staff").text,
            "U3",
        ]
        assert [m.role for m in view] == [
            MessageRole.USER,
            MessageRole.ASSISTANT,
            MessageRole.USER,
            MessageRole.USER,
        ]

    def test_keeps_turns_after_current_prompt(self) -> None:
        history = [
            Message.user("U1"),
            Message.assistant("A1"),
            Message.user("U2"),
            Message.assistant("partial"),
            _tool("tool output"),
        ]
        view = redact_history(history, boundary=0, stage_label="Linus")

        assert view is not None
        assert [m.text for m in view][1:] == ["U2", "partial", "tool output"]
        assert view[0].text.startswith("[Review suite stage Linus.")

    def test_nothing_to_hide_returns_none(self) -> None:
        history = [Message.user("U0"), Message.assistant("A0"), Message.user("U1")]
        assert redact_history(history, boundary=2, stage_label="Overall") is None

    def test_boundary_after_current_returns_none(self) -> None:
        history = [Message.user("U0"), Message.assistant("A0")]
        assert redact_history(history, boundary=5, stage_label="Overall") is None

    def test_no_user_turn_returns_none(self) -> None:
        assert redact_history([Message.assistant("A0")], boundary=0, stage_label="X") is None

    def test_input_history_is_not_modified(self) -> None:
        history = [
            Message.user("U1"),
            Message.assistant("A1"),
            Message.user("U2"),
        ]
        snapshot = [m.model_copy(deep=True) for m in history]

        redact_history(history, boundary=0, stage_label="Linus")

        assert history == snapshot


class TestExtractLastAssistantText:
    def test_no_assistant_turn(self) -> None:
        assert extract_last_assistant_text([Message.user("U0")]) == ""

    def test_uses_most_recent_assistant_turn(self) -> None:
        history = [
            Message.assistant("old"),
            Message.user("U1"),
            Message.assistant("  new report \n"),
            _tool("ignored"),
        ]
        assert extract_last_assistant_text(history) == "new report"

    def test_joins_text_segments_and_skips_others(self) -> None:
        message = Message(
            role=MessageRole.ASSISTANT,
            content=[
                ContentPart(type="text", text="part one"),
                ContentPart(type="toolCall"),
                ContentPart(type="text", text="part two"),
            ],
        )
        assert extract_last_assistant_text([message]) == "part one\npart two"

    def test_assistant_without_text_is_empty(self) -> None:
        message = Message(role=MessageRole.ASSISTANT, content=[ContentPart(type="toolCall")])
        assert extract_last_assistant_text([Message.user("U0"), message]) == ""
