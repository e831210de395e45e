"""Clipboard abstraction and the clear/write/verify transfer bracket."""

from __future__ import annotations

import asyncio
import enum
import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass
from pathlib import Path
from typing import Awaitable, Callable, Union

from ..errors import ClipboardVerificationError

LOGGER = logging.getLogger(__name__)


class ContentClass(str, enum.Enum):
    """Coarse classification of what the clipboard currently holds."""

    EMPTY = "empty"
    TEXT = "text"
    IMAGE = "image"


class Clipboard(ABC):
    """Process-wide clipboard. Other applications may write to it at any time."""

    @abstractmethod
    async def clear(self) -> None:
        """Empty the clipboard."""

    @abstractmethod
    async def write_text(self, text: str) -> None:
        """Place ``text`` on the clipboard."""

    @abstractmethod
    async def write_image(self, path: Path, mime_type: str = "image/png") -> None:
        """Place the image stored at ``path`` on the clipboard."""

    @abstractmethod
    async def content_class(self) -> ContentClass:
        """Report the class of the current clipboard content."""


@dataclass(frozen=True)
class TextContent:
    text: str

    kind = ContentClass.TEXT

    async def place(self, clipboard: Clipboard) -> None:
        await clipboard.write_text(self.text)


@dataclass(frozen=True)
class ImageContent:
    path: Path
    mime_type: str = "image/png"

    kind = ContentClass.IMAGE

    async def place(self, clipboard: Clipboard) -> None:
        await clipboard.write_image(self.path, self.mime_type)


ClipboardContent = Union[TextContent, ImageContent]


class ClipboardTransfer:
    """Move one piece of content through the clipboard into a consuming action.

    Every transfer clears the clipboard first, places its content, lets the UI
    settle, runs ``consume`` and finally checks that the clipboard still holds
    the expected content class. A mismatch raises
    :class:`ClipboardVerificationError`.
    """

    def __init__(self, clipboard: Clipboard, *, settle_delay: float = 0.05) -> None:
        self._clipboard = clipboard
        self._settle_delay = settle_delay

    async def transfer(
        self,
        content: ClipboardContent,
        consume: Callable[[], Awaitable[None]],
    ) -> None:
        await self._clipboard.clear()
        await content.place(self._clipboard)
        await asyncio.sleep(self._settle_delay)
        await consume()
        await asyncio.sleep(self._settle_delay)
        await self.verify(content.kind)

    async def verify(self, expected: ContentClass) -> None:
        actual = ContentClass(await self._clipboard.content_class())
        if actual is not expected:
            LOGGER.debug("Clipboard verification failed: expected %s, found %s", expected, actual)
            raise ClipboardVerificationError(expected.value, actual.value)
