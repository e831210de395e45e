"""Interfaces for the user-facing presentation layer."""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Awaitable, Optional, Sequence

from ..browser.base import PageHandle
from ..models import MonitoredPageInfo


@dataclass
class PageChoice:
    """One candidate page offered for selection."""

    label: str
    description: str
    page: PageHandle
    info: MonitoredPageInfo


class Presenter(ABC):
    """Prompts, errors and progress notices shown to the user."""

    @abstractmethod
    async def pick_page(self, choices: Sequence[PageChoice]) -> Optional[PageChoice]:
        """Return the page the user wants to monitor, or ``None`` to cancel."""

    @abstractmethod
    def show_error(self, text: str) -> None:
        """Display an error message."""

    @abstractmethod
    async def show_progress(self, title: str, work: Awaitable[object]) -> None:
        """Display ``title`` while ``work`` runs."""

    @abstractmethod
    def show_notice(self, text: str) -> None:
        """Display an informational message such as a disconnect notice."""

    @abstractmethod
    async def confirm(self, question: str) -> bool:
        """Ask a yes/no question."""
