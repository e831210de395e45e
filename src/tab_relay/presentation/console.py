"""Terminal presenter built on Rich."""

from __future__ import annotations

import asyncio
from typing import Awaitable, Optional, Sequence

from rich.console import Console
from rich.prompt import Confirm, IntPrompt
from rich.table import Table

from ..models import BrowserLogRecord, LogKind
from .base import PageChoice, Presenter

_KIND_STYLES = {
    LogKind.LOG: "white",
    LogKind.INFO: "cyan",
    LogKind.DEBUG: "dim",
    LogKind.WARN: "yellow",
    LogKind.ERROR: "red",
}


class ConsolePresenter(Presenter):
    """Presenter that prints to the terminal and prompts on stdin."""

    def __init__(self, console: Optional[Console] = None) -> None:
        self._console = console or Console()

    async def pick_page(self, choices: Sequence[PageChoice]) -> Optional[PageChoice]:
        table = Table(title="Select the webpage to monitor")
        table.add_column("#", justify="right")
        table.add_column("Title")
        table.add_column("URL", style="dim")
        for index, choice in enumerate(choices, start=1):
            table.add_row(str(index), choice.label, choice.description)
        self._console.print(table)
        selected = await asyncio.to_thread(
            IntPrompt.ask,
            "Page number (0 to cancel)",
            console=self._console,
            choices=[str(index) for index in range(len(choices) + 1)],
            show_choices=False,
            default=1,
        )
        if not selected:
            return None
        return choices[selected - 1]

    def show_error(self, text: str) -> None:
        self._console.print(f"[ERROR] {text}", style="red", markup=False)

    async def show_progress(self, title: str, work: Awaitable[object]) -> None:
        with self._console.status(title):
            await work
        self._console.print(title, style="green")

    async def confirm(self, question: str) -> bool:
        return await asyncio.to_thread(Confirm.ask, question, console=self._console, default=False)

    def show_log(self, record: BrowserLogRecord) -> None:
        style = _KIND_STYLES.get(record.kind, "white")
        self._console.print(f"{record.kind.value}: {record.text}", style=style, markup=False)

    def show_notice(self, text: str) -> None:
        self._console.print(text, style="yellow")
