"""User-facing commands built on the connection manager and delivery pipeline."""

from __future__ import annotations

import logging

from .browser.monitor import BrowserConnectionManager
from .delivery.pipeline import CaptureDeliveryPipeline
from .errors import ConnectionFailure, DeliveryFailure
from .presentation.base import Presenter

LOGGER = logging.getLogger(__name__)

NOT_CONNECTED = "No browser tab connected. Please connect to a tab first."


class CommandHandlers:
    """Entry points invoked by the CLI or an editor command palette.

    Every handler returns ``True`` when it did what was asked. Failures are
    already shown to the user by the time a handler returns ``False``.
    """

    def __init__(
        self,
        monitor: BrowserConnectionManager,
        pipeline: CaptureDeliveryPipeline,
        presenter: Presenter,
    ) -> None:
        self._monitor = monitor
        self._pipeline = pipeline
        self._presenter = presenter

    async def smart_capture(self) -> bool:
        """Connect when no tab is monitored, otherwise capture it."""

        if not self._monitor.is_connected():
            try:
                return await self._monitor.connect()
            except ConnectionFailure:
                return False
        return await self.capture()

    async def capture(self, *, screenshot: bool = True, logs: bool = True) -> bool:
        if not self._monitor.is_connected():
            self._presenter.show_error(NOT_CONNECTED)
            return False
        page = None
        if screenshot:
            page = await self._monitor.get_page_for_screenshot()
            if page is None:
                self._presenter.show_error("Failed to get page for capture. Please try reconnecting.")
                return False
        try:
            if page is not None and logs:
                await self._pipeline.send_capture(page, self._monitor.get_logs())
            elif page is not None:
                await self._pipeline.send_screenshot(page)
            elif logs:
                await self._pipeline.send_logs(self._monitor.get_logs())
        except DeliveryFailure as exc:
            LOGGER.error("Failed to capture tab state: %s", exc)
            return False
        return True

    async def send_logs(self) -> bool:
        return await self.capture(screenshot=False, logs=True)

    async def send_screenshot(self) -> bool:
        return await self.capture(screenshot=True, logs=False)

    async def clear_logs(self) -> bool:
        if not self._monitor.is_connected():
            self._presenter.show_error(NOT_CONNECTED)
            return False
        if not await self._presenter.confirm("Are you sure you want to clear all logs?"):
            return False
        self._monitor.clear_logs()
        return True
