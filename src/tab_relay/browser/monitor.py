"""Supervise a single debugging session with a browser page."""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass
from typing import Any, Callable, List, Optional, Set

from ..config import MonitorConfig
from ..errors import ConnectionFailure, NoPagesAvailable, SessionLoss
from ..events import Signal, Subscription
from ..models import BrowserLogRecord, LogData, MonitoredPageInfo
from ..presentation.base import PageChoice, Presenter
from . import normalize
from .base import BrowserConnection, DebuggerTransport, PageHandle, ProtocolSession
from .logs import LogBuffer

LOGGER = logging.getLogger(__name__)

PROTOCOL_DOMAINS = ("Page", "Network", "Runtime", "Log")


@dataclass
class ActiveSession:
    """The page, channel and identity of the monitored tab."""

    page: PageHandle
    channel: ProtocolSession
    info: MonitoredPageInfo


class BrowserConnectionManager:
    """Connects to one page at a time and collects its console and network activity.

    At most one session is live. ``is_connected()`` is derived from it and never
    tracked separately. Records survive session teardown until :meth:`clear_logs`.
    """

    def __init__(
        self,
        transport: DebuggerTransport,
        presenter: Presenter,
        config: Optional[MonitorConfig] = None,
    ) -> None:
        self._transport = transport
        self._presenter = presenter
        self._config = config or MonitorConfig()
        self._connection: Optional[BrowserConnection] = None
        self._session: Optional[ActiveSession] = None
        self._health_task: Optional[asyncio.Task[None]] = None
        self._background: Set[asyncio.Task[None]] = set()
        self._logs = LogBuffer()
        self._disconnected = Signal("disconnected")
        self._state_changed = Signal("connection_state_changed")
        self._new_log = Signal("new_log")

    # Public API --------------------------------------------------------------

    async def connect(self) -> bool:
        """Attach to the configured endpoint and monitor the page the user picks.

        Returns ``False`` when the user cancels the selection. Any failure is
        reported to the presenter, forces a full disconnect and is re-raised as
        :class:`ConnectionFailure`.
        """

        endpoint = self._config.remote_debugging_url
        LOGGER.info("Connecting to browser at %s", endpoint)
        connection: Optional[BrowserConnection] = None
        try:
            connection = await self._transport.connect(endpoint)
            choices = await self._list_pages(connection)
            LOGGER.debug("Page options: %s", [choice.description for choice in choices])
            selection = await self._presenter.pick_page(choices)
            if selection is None:
                LOGGER.info("No page selected, aborting connection")
                await _close_quietly(connection)
                return False
            LOGGER.info("Selected page %s", selection.info.url)
            previous, self._connection = self._connection, connection
            if previous is not None and previous is not connection:
                await self._teardown_session()
                await _close_quietly(previous)
            await self._initialize_session(selection.page, selection.info)
        except Exception as exc:
            failure = exc if isinstance(exc, ConnectionFailure) else ConnectionFailure(str(exc))
            LOGGER.error("Connection error: %s", failure)
            self._presenter.show_error(f"Failed to connect: {failure}")
            if connection is not None and connection is not self._connection:
                await _close_quietly(connection)
            await self.disconnect()
            if failure is exc:
                raise
            raise failure from exc
        await self._presenter.show_progress(
            "Successfully connected to tab",
            asyncio.sleep(self._config.notice_seconds),
        )
        return True

    async def disconnect(self) -> None:
        """Tear down the session and release the browser connection.

        Safe to call at any time, including from session-loss callbacks. Does
        nothing when neither a session nor a connection exists.
        """

        self._cancel_health_check()
        session, self._session = self._session, None
        connection, self._connection = self._connection, None
        if session is None and connection is None:
            return
        if session is not None:
            await _detach_quietly(session.channel)
        if connection is not None:
            await _close_quietly(connection)
        LOGGER.info("Disconnected from browser")
        self._state_changed.fire()
        self._disconnected.fire()

    async def dispose(self) -> None:
        await self.disconnect()
        for task in list(self._background):
            task.cancel()

    def clear_logs(self) -> None:
        self._logs.clear()

    def is_connected(self) -> bool:
        return self._session is not None

    def get_active_page(self) -> Optional[MonitoredPageInfo]:
        return self._session.info if self._session else None

    def get_logs(self) -> LogData:
        return self._logs.snapshot()

    async def get_page_for_screenshot(self) -> Optional[PageHandle]:
        """Return the monitored page if it still answers a trivial evaluation."""

        session = self._session
        if session is None:
            return None
        try:
            await session.page.evaluate("() => true")
        except Exception as exc:
            await self._handle_session_loss(session, SessionLoss(f"page unresponsive: {exc}"))
            return None
        return session.page

    def status_text(self) -> str:
        if self._session is None:
            return "Connect Browser Tab"
        return f"Capture Tab Info ({self._session.info.title})"

    def on_disconnect(self, listener: Callable[[], None]) -> Subscription:
        return self._disconnected.connect(listener)

    def on_connection_state_change(self, listener: Callable[[], None]) -> Subscription:
        return self._state_changed.connect(listener)

    def on_new_log(self, listener: Callable[[BrowserLogRecord], None]) -> Subscription:
        return self._new_log.connect(listener)

    # Session lifecycle -------------------------------------------------------

    async def _list_pages(self, connection: BrowserConnection) -> List[PageChoice]:
        pages = await connection.pages()
        LOGGER.debug("Found %d pages", len(pages))
        if not pages:
            raise NoPagesAvailable("No open pages found. Please open at least one tab in the browser.")
        return list(await asyncio.gather(*(_describe_page(page) for page in pages)))

    async def _initialize_session(self, page: PageHandle, info: MonitoredPageInfo) -> None:
        await self._teardown_session()
        channel = await page.open_session()
        try:
            await asyncio.gather(*(channel.send(f"{domain}.enable") for domain in PROTOCOL_DOMAINS))
        except Exception as exc:
            await _detach_quietly(channel)
            raise ConnectionFailure("Failed to initialize browser session") from exc
        session = ActiveSession(page=page, channel=channel, info=info)
        self._register_listeners(session)
        self._session = session
        self._start_health_check(session)
        LOGGER.info("Monitoring %s (%s)", info.title or "untitled page", info.url)
        self._state_changed.fire()

    async def _teardown_session(self) -> None:
        self._cancel_health_check()
        session, self._session = self._session, None
        if session is not None:
            await _detach_quietly(session.channel)

    async def _handle_session_loss(self, session: ActiveSession, reason: SessionLoss) -> None:
        if self._session is not session:
            return
        LOGGER.warning("Browser session lost: %s", reason)
        await self.disconnect()

    def _register_listeners(self, session: ActiveSession) -> None:
        channel = session.channel

        def on_console(params: dict[str, Any]) -> None:
            if self._session is session:
                self._record_console(normalize.console_api_record(params))

        def on_log_entry(params: dict[str, Any]) -> None:
            if self._session is session:
                self._record_console(normalize.log_entry_record(params))

        def on_response(params: dict[str, Any]) -> None:
            if self._session is session:
                self._logs.add_network(normalize.response_record(params))

        def on_loading_failed(params: dict[str, Any]) -> None:
            if self._session is session:
                self._logs.add_network(normalize.loading_failed_record(params))

        channel.on(normalize.CONSOLE_API_CALLED, on_console)
        channel.on(normalize.LOG_ENTRY_ADDED, on_log_entry)
        channel.on(normalize.RESPONSE_RECEIVED, on_response)
        channel.on(normalize.LOADING_FAILED, on_loading_failed)
        session.page.on("close", lambda: self._spawn(
            self._handle_session_loss(session, SessionLoss("page closed"))
        ))
        session.page.on("crash", lambda: self._spawn(
            self._handle_session_loss(session, SessionLoss("page crashed"))
        ))

    def _record_console(self, record: BrowserLogRecord) -> None:
        self._logs.add_console(record)
        self._new_log.fire(record)

    # Liveness check ----------------------------------------------------------

    def _start_health_check(self, session: ActiveSession) -> None:
        self._cancel_health_check()
        self._health_task = asyncio.create_task(self._run_health_check(session))

    async def _run_health_check(self, session: ActiveSession) -> None:
        while True:
            await asyncio.sleep(self._config.health_check_interval)
            try:
                await session.channel.send("Runtime.evaluate", {"expression": "1"})
            except Exception as exc:
                if self._health_task is asyncio.current_task():
                    self._health_task = None
                await self._handle_session_loss(session, SessionLoss(f"health check failed: {exc}"))
                return

    def _cancel_health_check(self) -> None:
        task, self._health_task = self._health_task, None
        if task is not None and task is not asyncio.current_task():
            task.cancel()

    def _spawn(self, coro: Any) -> None:
        task = asyncio.ensure_future(coro)
        self._background.add(task)
        task.add_done_callback(self._background.discard)


async def _describe_page(page: PageHandle) -> PageChoice:
    title = ""
    url = ""
    try:
        title = await page.title()
        url = await page.url()
    except Exception:
        LOGGER.debug("Could not read page title/url", exc_info=True)
    return PageChoice(
        label=title or url or "Untitled Page",
        description=url,
        page=page,
        info=MonitoredPageInfo(title=title, url=url, id=url),
    )


async def _detach_quietly(channel: ProtocolSession) -> None:
    try:
        await channel.detach()
    except Exception:
        LOGGER.debug("Failed to detach protocol session", exc_info=True)


async def _close_quietly(connection: BrowserConnection) -> None:
    try:
        await connection.close()
    except Exception:
        LOGGER.debug("Failed to release browser connection", exc_info=True)
