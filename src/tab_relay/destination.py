"""Commands that bring the destination surface forward and paste into it."""

from __future__ import annotations

import asyncio
import logging
import subprocess
from abc import ABC, abstractmethod
from collections.abc import Mapping, Sequence

from .errors import DestinationCommandError

LOGGER = logging.getLogger(__name__)


class CommandExecutor(ABC):
    """Generic interface for invoking named commands."""

    @abstractmethod
    async def execute(self, name: str) -> None:
        """Run the command registered under ``name``."""


class ShellCommandExecutor(CommandExecutor):
    """Executor that maps command names onto argv lists.

    An empty argv is accepted and does nothing.
    """

    def __init__(self, commands: Mapping[str, Sequence[str]]) -> None:
        self._commands = {name: list(argv) for name, argv in commands.items()}

    async def execute(self, name: str) -> None:
        try:
            argv = self._commands[name]
        except KeyError:
            raise DestinationCommandError(f"Unknown command: {name}") from None
        if not argv:
            LOGGER.debug("Command %s has no program configured; skipping", name)
            return
        LOGGER.debug("Executing command %s: %s", name, argv)
        try:
            process = await asyncio.create_subprocess_exec(
                *argv,
                stdout=subprocess.DEVNULL,
                stderr=subprocess.PIPE,
            )
        except OSError as exc:
            raise DestinationCommandError(f"Unable to run {name}: {exc}") from exc
        _, stderr = await process.communicate()
        if process.returncode:
            detail = stderr.decode("utf-8", "replace").strip()
            raise DestinationCommandError(
                f"Command {name} exited with status {process.returncode}: {detail}"
            )
