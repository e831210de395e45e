"""Exceptions raised by tab relay."""

from __future__ import annotations

from collections.abc import Iterable

from .models import ArtifactKind


class TabRelayError(RuntimeError):
    """Base class for all tab relay failures."""


class ConnectionFailure(TabRelayError):
    """Raised when a debugging connection or session cannot be established."""


class NoPagesAvailable(ConnectionFailure):
    """Raised when the debugging endpoint exposes no open pages."""


class SessionLoss(TabRelayError):
    """Describes why a live session ended. Logged, never raised to callers."""


class ClipboardError(TabRelayError):
    """Raised when a clipboard command fails."""


class ClipboardVerificationError(ClipboardError):
    """Raised when the clipboard does not hold the expected content class."""

    def __init__(self, expected: object, actual: object) -> None:
        super().__init__(f"Clipboard holds {actual} content, expected {expected}")
        self.expected = expected
        self.actual = actual


class DestinationCommandError(TabRelayError):
    """Raised when a destination command cannot be executed."""


class DeliveryFailure(TabRelayError):
    """Raised when one or more artifacts could not be delivered."""

    def __init__(
        self,
        message: str,
        *,
        failed: Iterable[ArtifactKind] = (),
        delivered: Iterable[ArtifactKind] = (),
    ) -> None:
        super().__init__(message)
        self.failed = tuple(failed)
        self.delivered = tuple(delivered)

    @property
    def partial(self) -> bool:
        """True when at least one requested artifact did reach the destination."""

        return bool(self.delivered)


class StagingFailure(DeliveryFailure):
    """Raised when the screenshot cannot be written to its temporary location."""

    def __init__(self, message: str) -> None:
        super().__init__(message, failed=(ArtifactKind.SCREENSHOT,))
