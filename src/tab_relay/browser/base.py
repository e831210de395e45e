"""Debugging-protocol transport abstractions."""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Any, Callable, List, Literal, Optional

EventHandler = Callable[[dict[str, Any]], None]
PageEvent = Literal["close", "crash"]


class ProtocolSession(ABC):
    """One debugging-protocol channel scoped to a single page."""

    @abstractmethod
    async def send(self, method: str, params: Optional[dict[str, Any]] = None) -> dict[str, Any]:
        """Send a protocol command and return its result."""

    @abstractmethod
    def on(self, event: str, handler: EventHandler) -> None:
        """Subscribe ``handler`` to a protocol event such as ``Runtime.consoleAPICalled``."""

    @abstractmethod
    async def detach(self) -> None:
        """Close the channel."""


class PageHandle(ABC):
    """A browser page reachable through the debugging endpoint."""

    @abstractmethod
    async def title(self) -> str:
        """Return the page title."""

    @abstractmethod
    async def url(self) -> str:
        """Return the page URL."""

    @abstractmethod
    async def open_session(self) -> ProtocolSession:
        """Create a protocol channel scoped to this page."""

    @abstractmethod
    def on(self, event: PageEvent, callback: Callable[[], None]) -> None:
        """Register a callback for page lifecycle events."""

    @abstractmethod
    async def evaluate(self, expression: str) -> Any:
        """Evaluate a script expression inside the page."""

    @abstractmethod
    async def screenshot(
        self,
        *,
        image_format: str = "png",
        quality: Optional[int] = None,
        full_page: bool = True,
    ) -> bytes:
        """Capture the page and return raw image bytes."""


class BrowserConnection(ABC):
    """Browser-level connection to a debugging endpoint."""

    @abstractmethod
    async def pages(self) -> List[PageHandle]:
        """Return all open pages."""

    @abstractmethod
    async def close(self) -> None:
        """Release the connection without closing the browser."""


class DebuggerTransport(ABC):
    """Factory for browser connections."""

    @abstractmethod
    async def connect(self, endpoint_url: str) -> BrowserConnection:
        """Connect to the debugging endpoint at ``endpoint_url``."""
