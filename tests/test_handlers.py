from __future__ import annotations

import asyncio

from tab_relay.errors import ConnectionFailure, DeliveryFailure
from tab_relay.handlers import NOT_CONNECTED, CommandHandlers
from tab_relay.models import ArtifactKind, LogData


class FakeMonitor:
    def __init__(self, connected: bool = True, page: object | None = "page") -> None:
        self.connected = connected
        self.page = page
        self.logs = LogData()
        self.connect_calls = 0
        self.cleared = 0
        self.connect_error: Exception | None = None

    async def connect(self) -> bool:
        self.connect_calls += 1
        if self.connect_error is not None:
            raise self.connect_error
        self.connected = True
        return True

    def is_connected(self) -> bool:
        return self.connected

    async def get_page_for_screenshot(self):
        return self.page

    def get_logs(self) -> LogData:
        return self.logs

    def clear_logs(self) -> None:
        self.cleared += 1


class FakePipeline:
    def __init__(self, failure: DeliveryFailure | None = None) -> None:
        self.calls: list[tuple] = []
        self.failure = failure

    async def _record(self, *call):
        self.calls.append(call)
        if self.failure is not None:
            raise self.failure

    async def send_capture(self, page, logs):
        await self._record("capture", page, logs)

    async def send_screenshot(self, page):
        await self._record("screenshot", page)

    async def send_logs(self, logs):
        await self._record("logs", logs)


class FakePresenter:
    def __init__(self, answer: bool = True) -> None:
        self.errors: list[str] = []
        self.questions: list[str] = []
        self.answer = answer

    def show_error(self, text: str) -> None:
        self.errors.append(text)

    async def confirm(self, question: str) -> bool:
        self.questions.append(question)
        return self.answer


def _handlers(monitor=None, pipeline=None, presenter=None):
    monitor = monitor or FakeMonitor()
    pipeline = pipeline or FakePipeline()
    presenter = presenter or FakePresenter()
    return CommandHandlers(monitor, pipeline, presenter), monitor, pipeline, presenter


def test_smart_capture_connects_when_idle():
    handlers, monitor, pipeline, _ = _handlers(FakeMonitor(connected=False))

    assert asyncio.run(handlers.smart_capture()) is True
    assert monitor.connect_calls == 1
    assert pipeline.calls == []


def test_smart_capture_swallows_connection_failure():
    monitor = FakeMonitor(connected=False)
    monitor.connect_error = ConnectionFailure("refused")
    handlers, _, _, _ = _handlers(monitor)

    assert asyncio.run(handlers.smart_capture()) is False


def test_smart_capture_captures_when_connected():
    handlers, monitor, pipeline, _ = _handlers()

    assert asyncio.run(handlers.smart_capture()) is True
    assert pipeline.calls == [("capture", "page", monitor.logs)]


def test_capture_requires_connection():
    handlers, _, pipeline, presenter = _handlers(FakeMonitor(connected=False))

    assert asyncio.run(handlers.capture()) is False
    assert presenter.errors == [NOT_CONNECTED]
    assert pipeline.calls == []


def test_capture_reports_unresponsive_page():
    handlers, _, pipeline, presenter = _handlers(FakeMonitor(page=None))

    assert asyncio.run(handlers.send_screenshot()) is False
    assert "reconnecting" in presenter.errors[0]
    assert pipeline.calls == []


def test_send_logs_skips_screenshot_lookup():
    handlers, monitor, pipeline, _ = _handlers(FakeMonitor(page=None))

    assert asyncio.run(handlers.send_logs()) is True
    assert pipeline.calls == [("logs", monitor.logs)]


def test_delivery_failure_returns_false():
    failure = DeliveryFailure("lost", failed=[ArtifactKind.SCREENSHOT])
    handlers, _, pipeline, _ = _handlers(pipeline=FakePipeline(failure))

    assert asyncio.run(handlers.send_screenshot()) is False
    assert pipeline.calls == [("screenshot", "page")]


def test_clear_logs_asks_first():
    handlers, monitor, _, presenter = _handlers(presenter=FakePresenter(answer=False))
    assert asyncio.run(handlers.clear_logs()) is False
    assert monitor.cleared == 0
    assert presenter.questions

    handlers, monitor, _, _ = _handlers()
    assert asyncio.run(handlers.clear_logs()) is True
    assert monitor.cleared == 1
