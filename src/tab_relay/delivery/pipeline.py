"""Deliver screenshots and log bundles to the destination through the clipboard."""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

from ..browser.base import PageHandle
from ..clipboard.base import Clipboard, ClipboardContent, ClipboardTransfer, ImageContent, TextContent
from ..config import CaptureConfig, DeliveryConfig, DestinationConfig
from ..destination import CommandExecutor
from ..errors import DeliveryFailure, StagingFailure
from ..models import ArtifactKind, LogData
from ..presentation.base import Presenter
from .formatting import format_logs
from .staging import ScreenshotStager

LOGGER = logging.getLogger(__name__)


@dataclass
class ArtifactState:
    """Retry bookkeeping for one artifact during a single delivery."""

    kind: ArtifactKind
    attempts: int = 0
    succeeded: bool = False
    failed: bool = False
    error: Optional[BaseException] = None

    @property
    def pending(self) -> bool:
        return not self.succeeded and not self.failed


class CaptureDeliveryPipeline:
    """Pushes artifacts through the shared clipboard into the destination surface.

    Each artifact gets ``max_retries + 1`` attempts. An attempt clears the
    clipboard, places the artifact, triggers the paste command and verifies the
    clipboard still holds the expected content class.
    """

    def __init__(
        self,
        clipboard: Clipboard,
        commands: CommandExecutor,
        presenter: Presenter,
        *,
        delivery: Optional[DeliveryConfig] = None,
        destination: Optional[DestinationConfig] = None,
        capture: Optional[CaptureConfig] = None,
        stager: Optional[ScreenshotStager] = None,
    ) -> None:
        self._commands = commands
        self._presenter = presenter
        self._delivery = delivery or DeliveryConfig()
        self._destination = destination or DestinationConfig()
        self._capture = capture or CaptureConfig()
        self._stager = stager or ScreenshotStager(self._delivery.staging_dir)
        self._transfer = ClipboardTransfer(clipboard, settle_delay=self._delivery.settle_delay)
        self._destination_opened = False

    # Convenience operations --------------------------------------------------

    async def send_logs(self, logs: LogData) -> tuple[ArtifactKind, ...]:
        return await self.deliver(logs=logs)

    async def send_screenshot(self, page: PageHandle) -> tuple[ArtifactKind, ...]:
        return await self.deliver(screenshot=await self.capture_screenshot(page))

    async def send_capture(self, page: PageHandle, logs: LogData) -> tuple[ArtifactKind, ...]:
        return await self.deliver(screenshot=await self.capture_screenshot(page), logs=logs)

    async def capture_screenshot(self, page: PageHandle) -> bytes:
        try:
            return await page.screenshot(
                image_format=self._capture.image_format,
                quality=self._capture.quality,
                full_page=self._capture.full_page,
            )
        except Exception as exc:
            failure = DeliveryFailure(
                f"Failed to capture screenshot: {exc}",
                failed=(ArtifactKind.SCREENSHOT,),
            )
            self._presenter.show_error(str(failure))
            raise failure from exc

    # Delivery ----------------------------------------------------------------

    async def deliver(
        self,
        screenshot: Optional[bytes] = None,
        logs: Optional[LogData] = None,
    ) -> tuple[ArtifactKind, ...]:
        """Deliver the requested artifacts and return the ones that arrived.

        Raises :class:`DeliveryFailure` naming the artifacts that exhausted
        their attempts; ``delivered`` on the error lists any that succeeded.
        """

        states: dict[ArtifactKind, ArtifactState] = {}
        text: Optional[str] = None
        if screenshot is not None:
            states[ArtifactKind.SCREENSHOT] = ArtifactState(ArtifactKind.SCREENSHOT)
        if logs is not None:
            text = format_logs(logs)
            states[ArtifactKind.LOGS] = ArtifactState(ArtifactKind.LOGS)
        if not states:
            return ()

        staged: Optional[Path] = None
        try:
            while any(state.pending for state in states.values()):
                await self._open_destination(states)

                image = states.get(ArtifactKind.SCREENSHOT)
                if image is not None and image.pending and screenshot is not None:
                    if staged is None:
                        staged = self._stage(image, screenshot)
                    if staged is not None:
                        await self._attempt(
                            image,
                            ImageContent(staged, self._capture.mime_type),
                        )
                    if not image.pending and staged is not None:
                        self._stager.discard(staged)
                        staged = None

                bundle = states.get(ArtifactKind.LOGS)
                if bundle is not None and bundle.pending and text is not None:
                    await self._attempt(bundle, TextContent(text))

            self._raise_for_failures(states)
        except DeliveryFailure as exc:
            self._presenter.show_error(f"Failed to send data to destination: {exc}")
            raise
        finally:
            self._destination_opened = False
            if staged is not None:
                self._stager.discard(staged)

        await self._presenter.show_progress(
            "Successfully sent to destination",
            asyncio.sleep(self._delivery.notice_seconds),
        )
        return tuple(states)

    async def _open_destination(self, states: dict[ArtifactKind, ArtifactState]) -> None:
        if self._destination_opened:
            return
        try:
            await self._commands.execute(self._destination.open_command)
        except Exception as exc:
            raise DeliveryFailure(
                f"Failed to open destination: {exc}",
                failed=[kind for kind, state in states.items() if not state.succeeded],
                delivered=[kind for kind, state in states.items() if state.succeeded],
            ) from exc
        self._destination_opened = True
        await asyncio.sleep(self._delivery.settle_delay)

    def _stage(self, state: ArtifactState, screenshot: bytes) -> Optional[Path]:
        try:
            return self._stager.stage(screenshot, suffix=f".{self._capture.image_format}")
        except StagingFailure as exc:
            LOGGER.error("%s", exc)
            state.error = exc
            state.failed = True
            return None

    async def _attempt(self, state: ArtifactState, content: ClipboardContent) -> None:
        state.attempts += 1
        try:
            await self._transfer.transfer(content, self._paste)
        except Exception as exc:
            state.error = exc
            LOGGER.warning(
                "Delivering %s failed (attempt %d of %d): %s",
                state.kind.value,
                state.attempts,
                self._delivery.max_retries + 1,
                exc,
            )
            if state.attempts > self._delivery.max_retries:
                state.failed = True
            else:
                await asyncio.sleep(self._delivery.retry_delay)
            return
        LOGGER.info("Delivered %s after %d attempt(s)", state.kind.value, state.attempts)
        state.succeeded = True

    async def _paste(self) -> None:
        await self._commands.execute(self._destination.paste_command)

    @staticmethod
    def _raise_for_failures(states: dict[ArtifactKind, ArtifactState]) -> None:
        failed = [state for state in states.values() if state.failed]
        if not failed:
            return
        message = "; ".join(f"Failed to send {state.kind.value}: {state.error}" for state in failed)
        raise DeliveryFailure(
            message,
            failed=[state.kind for state in failed],
            delivered=[state.kind for state in states.values() if state.succeeded],
        )
