"""Shared pytest fixtures for reviewsuite tests.

Provides in-memory fakes for the hosting environment (UI, host, agent
backend) and a prompt loader over a throwaway template directory, so the
suite state machine and its handlers can be driven without a terminal or
an external agent.
"""

from __future__ import annotations

from pathlib import Path
from typing import Any

import pytest
import structlog

from reviewsuite.agents.host import NotifyLevel, SelectItem
from reviewsuite.agents.messages import Message
from reviewsuite.logging import set_correlation_id
from reviewsuite.prompts.loader import PromptLoader

REVIEW_TEMPLATE = "Stage {name}\n\n{{{{ SCOPE }}}}\n\nEnd with [[REVIEW_STAGE_DONE]]\n"
SYNTH_TEMPLATE = "Merge these reviews:\n\n{{ REPORTS }}\n"


class FakeUI:
    """Scripted HostUI that records everything shown to the user."""

    def __init__(
        self,
        selections: list[str | None] | None = None,
        inputs: list[str | None] | None = None,
        picks: list[str | None] | None = None,
    ) -> None:
        self.notifications: list[tuple[str, NotifyLevel]] = []
        self.statuses: dict[str, str | None] = {}
        self.status_history: list[str | None] = []
        self.selections = list(selections or [])
        self.inputs = list(inputs or [])
        self.picks = list(picks or [])
        self.select_calls: list[tuple[str, list[str]]] = []
        self.input_calls: list[tuple[str, str]] = []
        self.pick_calls: list[tuple[str, str, list[SelectItem]]] = []

    def notify(self, message: str, level: NotifyLevel = NotifyLevel.INFO) -> None:
        self.notifications.append((message, level))

    def set_status(self, key: str, text: str | None) -> None:
        self.statuses[key] = text
        self.status_history.append(text)

    async def select(self, title: str, options: list[str]) -> str | None:
        self.select_calls.append((title, list(options)))
        return self.selections.pop(0) if self.selections else None

    async def input(self, title: str, placeholder: str = "") -> str | None:
        self.input_calls.append((title, placeholder))
        return self.inputs.pop(0) if self.inputs else None

    async def pick(self, title: str, hint: str, items: list[SelectItem]) -> str | None:
        self.pick_calls.append((title, hint, list(items)))
        return self.picks.pop(0) if self.picks else None

    @property
    def messages(self) -> list[str]:
        return [message for message, _ in self.notifications]


class FakeHost:
    """AgentHost that records queued user turns instead of running them."""

    def __init__(self, ui: FakeUI | None = None, has_ui: bool = True, idle: bool = True) -> None:
        self._ui = ui or FakeUI()
        self._has_ui = has_ui
        self.idle = idle
        self.sent: list[str] = []

    @property
    def ui(self) -> FakeUI:
        return self._ui

    @property
    def has_ui(self) -> bool:
        return self._has_ui

    def is_idle(self) -> bool:
        return self.idle

    def send_user_message(self, text: str) -> None:
        self.sent.append(text)


class ScriptedBackend:
    """AgentBackend replaying canned replies; an Exception entry is raised."""

    def __init__(self, replies: list[Any]) -> None:
        self.replies = list(replies)
        self.calls: list[list[Message]] = []

    async def complete(self, messages: list[Message]) -> str:
        self.calls.append(list(messages))
        reply = self.replies.pop(0) if self.replies else ""
        if isinstance(reply, Exception):
            raise reply
        return reply


@pytest.fixture(autouse=True)
def reset_log_context() -> None:
    """Keep correlation ids and bound suite context from leaking between tests."""
    structlog.contextvars.clear_contextvars()
    set_correlation_id(None)


@pytest.fixture
def template_dir(tmp_path: Path) -> Path:
    """Directory with a minimal template for every default stage."""
    directory = tmp_path / "templates"
    directory.mkdir()
    for name in ("overall", "linus", "staff"):
        (directory / f"review-{name}.md").write_text(
            REVIEW_TEMPLATE.format(name=name), encoding="utf-8"
        )
    (directory / "review-synthesize.md").write_text(SYNTH_TEMPLATE, encoding="utf-8")
    return directory


@pytest.fixture
def loader(template_dir: Path, tmp_path: Path) -> PromptLoader:
    """Loader reading only from ``template_dir`` (empty override directory)."""
    return PromptLoader(user_dir=tmp_path / "no-overrides", package_dir=template_dir)


@pytest.fixture
def ui() -> FakeUI:
    return FakeUI()


@pytest.fixture
def host(ui: FakeUI) -> FakeHost:
    return FakeHost(ui)


@pytest.fixture
def make_ui() -> type[FakeUI]:
    """FakeUI class, for tests that script selections, inputs or picks."""
    return FakeUI


@pytest.fixture
def make_host() -> type[FakeHost]:
    return FakeHost


@pytest.fixture
def make_backend() -> type[ScriptedBackend]:
    return ScriptedBackend
