"""Playwright-powered debugging transport."""

from __future__ import annotations

import logging
from typing import Any, Callable, List, Optional

from playwright.async_api import Browser, CDPSession, Error, Page, Playwright, async_playwright

from ..errors import ConnectionFailure
from .base import BrowserConnection, DebuggerTransport, EventHandler, PageEvent, PageHandle, ProtocolSession

LOGGER = logging.getLogger(__name__)


class PlaywrightProtocolSession(ProtocolSession):
    """CDP session created through Playwright."""

    def __init__(self, cdp: CDPSession) -> None:
        self._cdp = cdp

    async def send(self, method: str, params: Optional[dict[str, Any]] = None) -> dict[str, Any]:
        return await self._cdp.send(method, params)

    def on(self, event: str, handler: EventHandler) -> None:
        self._cdp.on(event, handler)

    async def detach(self) -> None:
        await self._cdp.detach()


class PlaywrightPage(PageHandle):
    """Page handle backed by a Playwright page."""

    def __init__(self, page: Page) -> None:
        self._page = page

    async def title(self) -> str:
        return await self._page.title()

    async def url(self) -> str:
        return self._page.url

    async def open_session(self) -> ProtocolSession:
        cdp = await self._page.context.new_cdp_session(self._page)
        return PlaywrightProtocolSession(cdp)

    def on(self, event: PageEvent, callback: Callable[[], None]) -> None:
        self._page.on(event, lambda *_: callback())

    async def evaluate(self, expression: str) -> Any:
        return await self._page.evaluate(expression)

    async def screenshot(
        self,
        *,
        image_format: str = "png",
        quality: Optional[int] = None,
        full_page: bool = True,
    ) -> bytes:
        kwargs: dict[str, Any] = {"type": image_format, "full_page": full_page}
        if image_format == "jpeg" and quality is not None:
            kwargs["quality"] = quality
        return await self._page.screenshot(**kwargs)


class PlaywrightConnection(BrowserConnection):
    """Browser attached with ``connect_over_cdp``."""

    def __init__(self, playwright: Playwright, browser: Browser) -> None:
        self._playwright = playwright
        self._browser = browser

    async def pages(self) -> List[PageHandle]:
        return [
            PlaywrightPage(page)
            for context in self._browser.contexts
            for page in context.pages
        ]

    async def close(self) -> None:
        LOGGER.debug("Releasing browser connection")
        try:
            await self._browser.close()
        finally:
            await self._playwright.stop()


class PlaywrightTransport(DebuggerTransport):
    """Attach to an already running browser over its remote-debugging endpoint."""

    async def connect(self, endpoint_url: str) -> BrowserConnection:
        LOGGER.debug("Attaching to debugging endpoint %s", endpoint_url)
        playwright = await async_playwright().start()
        try:
            browser = await playwright.chromium.connect_over_cdp(endpoint_url)
        except Error as exc:
            await playwright.stop()
            raise ConnectionFailure(
                f"Unable to reach debugging endpoint {endpoint_url}: {exc}"
            ) from exc
        except BaseException:
            await playwright.stop()
            raise
        return PlaywrightConnection(playwright, browser)
