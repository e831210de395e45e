"""In-memory buffer for captured records."""

from __future__ import annotations

from typing import List

from ..models import BrowserLogRecord, LogData, NetworkRecord


class LogBuffer:
    """Accumulates console and network records in arrival order."""

    def __init__(self) -> None:
        self._console: List[BrowserLogRecord] = []
        self._network: List[NetworkRecord] = []

    def add_console(self, record: BrowserLogRecord) -> None:
        self._console.append(record)

    def add_network(self, record: NetworkRecord) -> None:
        self._network.append(record)

    def clear(self) -> None:
        self._console, self._network = [], []

    def snapshot(self) -> LogData:
        return LogData(console=list(self._console), network=list(self._network))
