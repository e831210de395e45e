"""Publish/subscribe plumbing for manager notifications."""

from __future__ import annotations

import logging
from typing import Any, Callable, List

LOGGER = logging.getLogger(__name__)

Listener = Callable[..., None]


class Subscription:
    """Handle returned by :meth:`Signal.connect`; call :meth:`dispose` to unsubscribe."""

    def __init__(self, signal: "Signal", listener: Listener) -> None:
        self._signal = signal
        self._listener: Listener | None = listener

    def dispose(self) -> None:
        if self._listener is None:
            return
        self._signal._remove(self._listener)
        self._listener = None

    def __enter__(self) -> "Subscription":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.dispose()


class Signal:
    """A single notification kind with any number of listeners."""

    def __init__(self, name: str) -> None:
        self.name = name
        self._listeners: List[Listener] = []

    def connect(self, listener: Listener) -> Subscription:
        self._listeners.append(listener)
        return Subscription(self, listener)

    def fire(self, *args: Any) -> None:
        for listener in list(self._listeners):
            try:
                listener(*args)
            except Exception:
                LOGGER.exception("Listener for %s failed", self.name)

    def _remove(self, listener: Listener) -> None:
        try:
            self._listeners.remove(listener)
        except ValueError:
            pass
