"""Temporary files that hold screenshots while they are on the clipboard."""

from __future__ import annotations

import logging
import tempfile
import time
from pathlib import Path
from typing import Optional

from ..errors import StagingFailure

LOGGER = logging.getLogger(__name__)


class ScreenshotStager:
    """Write screenshots to uniquely named files and remove them afterwards."""

    def __init__(self, directory: Optional[Path] = None, *, prefix: str = "tab-relay-preview") -> None:
        self._directory = directory
        self._prefix = prefix

    @property
    def directory(self) -> Path:
        return self._directory or Path(tempfile.gettempdir())

    def stage(self, data: bytes, suffix: str = ".png") -> Path:
        directory = self.directory
        try:
            directory.mkdir(parents=True, exist_ok=True)
            path = self._unique_path(directory, suffix)
            path.write_bytes(data)
        except OSError as exc:
            raise StagingFailure(f"Failed to stage screenshot: {exc}") from exc
        LOGGER.debug("Staged screenshot at %s", path)
        return path

    def discard(self, path: Path) -> None:
        try:
            path.unlink(missing_ok=True)
        except OSError:
            LOGGER.exception("Failed to clean up temporary file %s", path)

    def _unique_path(self, directory: Path, suffix: str) -> Path:
        stamp = time.time_ns() // 1_000_000
        candidate = directory / f"{self._prefix}-{stamp}{suffix}"
        counter = 1
        while candidate.exists():
            candidate = directory / f"{self._prefix}-{stamp}-{counter}{suffix}"
            counter += 1
        return candidate
