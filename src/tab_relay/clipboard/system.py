"""System clipboard backends driven through command-line tools."""

from __future__ import annotations

import asyncio
import logging
import os
import shutil
import subprocess
from pathlib import Path
from typing import Optional, Sequence

from ..errors import ClipboardError
from .base import Clipboard, ContentClass

LOGGER = logging.getLogger(__name__)


class CommandLineClipboard(Clipboard):
    """Base class for clipboards reached through external programs."""

    required_tools: Sequence[str] = ()

    @classmethod
    def available(cls) -> bool:
        return all(shutil.which(tool) for tool in cls.required_tools)

    async def _run(
        self,
        args: Sequence[str],
        *,
        stdin: Optional[bytes] = None,
        capture: bool = False,
        check: bool = True,
    ) -> tuple[int, bytes]:
        LOGGER.debug("Running clipboard command %s", " ".join(args))
        try:
            process = await asyncio.create_subprocess_exec(
                *args,
                stdin=subprocess.PIPE if stdin is not None else subprocess.DEVNULL,
                stdout=subprocess.PIPE if capture else subprocess.DEVNULL,
                stderr=subprocess.DEVNULL,
            )
        except OSError as exc:
            raise ClipboardError(f"Unable to run {args[0]}: {exc}") from exc
        stdout, _ = await process.communicate(stdin)
        returncode = process.returncode or 0
        if check and returncode != 0:
            raise ClipboardError(f"{args[0]} exited with status {returncode}")
        return returncode, stdout or b""


class XclipClipboard(CommandLineClipboard):
    """X11 clipboard via ``xclip``."""

    required_tools = ("xclip",)
    _base = ("xclip", "-selection", "clipboard")

    async def clear(self) -> None:
        await self._run([*self._base, "-i"], stdin=b"")

    async def write_text(self, text: str) -> None:
        await self._run([*self._base, "-i"], stdin=text.encode("utf-8"))

    async def write_image(self, path: Path, mime_type: str = "image/png") -> None:
        await self._run([*self._base, "-t", mime_type, "-i", str(path)])

    async def content_class(self) -> ContentClass:
        code, targets = await self._run(
            [*self._base, "-o", "-t", "TARGETS"], capture=True, check=False
        )
        if code != 0:
            return ContentClass.EMPTY
        return await self._classify(targets.decode("utf-8", "replace").split())

    async def _classify(self, targets: Sequence[str]) -> ContentClass:
        if any(target.startswith("image/") for target in targets):
            return ContentClass.IMAGE
        code, text = await self._run([*self._base, "-o"], capture=True, check=False)
        if code == 0 and text:
            return ContentClass.TEXT
        return ContentClass.EMPTY


class WaylandClipboard(CommandLineClipboard):
    """Wayland clipboard via ``wl-copy`` and ``wl-paste``."""

    required_tools = ("wl-copy", "wl-paste")

    async def clear(self) -> None:
        await self._run(["wl-copy", "--clear"])

    async def write_text(self, text: str) -> None:
        await self._run(["wl-copy", "--type", "text/plain"], stdin=text.encode("utf-8"))

    async def write_image(self, path: Path, mime_type: str = "image/png") -> None:
        await self._run(["wl-copy", "--type", mime_type], stdin=path.read_bytes())

    async def content_class(self) -> ContentClass:
        code, types = await self._run(["wl-paste", "--list-types"], capture=True, check=False)
        if code != 0:
            return ContentClass.EMPTY
        if any(line.startswith("image/") for line in types.decode("utf-8", "replace").split()):
            return ContentClass.IMAGE
        code, text = await self._run(["wl-paste", "--no-newline"], capture=True, check=False)
        if code == 0 and text:
            return ContentClass.TEXT
        return ContentClass.EMPTY


def detect_clipboard(backend: str = "auto") -> Clipboard:
    """Pick a clipboard backend for the current desktop session."""

    if backend == "xclip":
        return XclipClipboard()
    if backend == "wayland":
        return WaylandClipboard()
    if os.environ.get("WAYLAND_DISPLAY") and WaylandClipboard.available():
        return WaylandClipboard()
    if XclipClipboard.available():
        return XclipClipboard()
    if WaylandClipboard.available():
        return WaylandClipboard()
    raise ClipboardError("No clipboard tool found; install xclip or wl-clipboard")
