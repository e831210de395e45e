"""Shared models used across tab relay."""

from __future__ import annotations

import enum
import time
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field

FAILED_REQUEST_URL = "Failed request"


def now_ms() -> int:
    """Return the current wall-clock time in epoch milliseconds."""

    return int(time.time() * 1000)


class LogKind(str, enum.Enum):
    """Severity of a captured console record."""

    LOG = "log"
    WARN = "warn"
    ERROR = "error"
    INFO = "info"
    DEBUG = "debug"

    @classmethod
    def from_protocol(cls, value: Optional[str]) -> "LogKind":
        """Map a protocol level/type name onto a log kind.

        ``warning`` becomes ``warn``; anything unrecognised falls back to ``log``.
        """

        if value == "warning":
            return cls.WARN
        try:
            return cls(value)
        except ValueError:
            return cls.LOG


class BrowserLogRecord(BaseModel):
    """A normalized console message."""

    model_config = ConfigDict(frozen=True)

    kind: LogKind = LogKind.LOG
    text: str
    timestamp: int = Field(default_factory=now_ms)


class NetworkRecord(BaseModel):
    """A completed or failed network load.

    Failed loads carry ``status == 0`` and the ``"Failed request"`` sentinel as
    ``url``; the real URL is not available for them, so ``url`` is meaningless
    whenever ``error`` is set.
    """

    model_config = ConfigDict(frozen=True)

    url: str
    status: int
    error: Optional[str] = None
    timestamp: int = Field(default_factory=now_ms)

    @property
    def failed(self) -> bool:
        return self.error is not None


class MonitoredPageInfo(BaseModel):
    """Identity of the monitored page. ``id`` mirrors ``url``."""

    model_config = ConfigDict(frozen=True)

    title: str = ""
    url: str = ""
    id: str = ""


class LogData(BaseModel):
    """Point-in-time copy of the captured console and network records."""

    console: list[BrowserLogRecord] = Field(default_factory=list)
    network: list[NetworkRecord] = Field(default_factory=list)


class ArtifactKind(str, enum.Enum):
    """Artifacts the delivery pipeline can move through the clipboard."""

    SCREENSHOT = "screenshot"
    LOGS = "logs"
