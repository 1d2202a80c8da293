"""Terminal implementation of the host UI using rich."""

from __future__ import annotations

import asyncio

from rich.console import Console
from rich.prompt import Prompt
from rich.table import Table

from reviewsuite.agents.host import NotifyLevel, SelectItem

_LEVEL_STYLES = {
    NotifyLevel.INFO: "cyan",
    NotifyLevel.WARNING: "yellow",
    NotifyLevel.ERROR: "red",
}


class ConsoleUI:
    """Notifications, status line and pickers rendered on a rich Console.

    Attributes:
        console: Console everything is printed to
        statuses: Last published text per status key
    """

    def __init__(self, console: Console | None = None) -> None:
        self.console = console or Console()
        self.statuses: dict[str, str] = {}

    def notify(self, message: str, level: NotifyLevel = NotifyLevel.INFO) -> None:
        style = _LEVEL_STYLES.get(level, "cyan")
        self.console.print(f"[{style}]{message}[/{style}]")

    def set_status(self, key: str, text: str | None) -> None:
        if text is None:
            self.statuses.pop(key, None)
            return
        if self.statuses.get(key) == text:
            return
        self.statuses[key] = text
        self.console.print(f"[dim]{text}[/dim]")

    async def select(self, title: str, options: list[str]) -> str | None:
        self.console.print(f"[bold]{title}[/bold]")
        for idx, option in enumerate(options, start=1):
            self.console.print(f"  {idx}) {option}")
        answer = await asyncio.to_thread(
            Prompt.ask, "Choice (empty to cancel)", default="", console=self.console
        )
        answer = answer.strip()
        if not answer:
            return None
        if answer.isdigit() and 1 <= int(answer) <= len(options):
            return options[int(answer) - 1]
        for option in options:
            if option.lower().startswith(answer.lower()):
                return option
        self.notify(f"Unknown choice: {answer}", NotifyLevel.WARNING)
        return None

    async def input(self, title: str, placeholder: str = "") -> str | None:
        prompt = f"{title} ({placeholder})" if placeholder else title
        answer = await asyncio.to_thread(Prompt.ask, prompt, default="", console=self.console)
        return answer.strip() or None

    async def pick(self, title: str, hint: str, items: list[SelectItem]) -> str | None:
        table = Table(title=title, caption=hint, show_header=False)
        table.add_column("#", style="bold cyan", justify="right")
        table.add_column("Entry")
        for idx, item in enumerate(items, start=1):
            table.add_row(str(idx), item.label)
        self.console.print(table)

        answer = await asyncio.to_thread(
            Prompt.ask, "Number or search text (empty to go back)", default="", console=self.console
        )
        answer = answer.strip()
        if not answer:
            return None
        if answer.isdigit() and 1 <= int(answer) <= len(items):
            return items[int(answer) - 1].value

        matches = [item for item in items if answer.lower() in item.label.lower()]
        if len(matches) == 1:
            return matches[0].value
        self.notify(f"{len(matches)} entries match '{answer}'", NotifyLevel.WARNING)
        return None
