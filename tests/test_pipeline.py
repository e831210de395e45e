from __future__ import annotations

import asyncio
from pathlib import Path
from typing import Optional, Sequence

import pytest

from tab_relay.clipboard.base import Clipboard, ContentClass
from tab_relay.config import CaptureConfig, DeliveryConfig
from tab_relay.delivery import pipeline as pipeline_module
from tab_relay.delivery.formatting import format_logs
from tab_relay.delivery.pipeline import CaptureDeliveryPipeline
from tab_relay.delivery.staging import ScreenshotStager
from tab_relay.destination import CommandExecutor
from tab_relay.errors import DeliveryFailure, DestinationCommandError
from tab_relay.models import ArtifactKind, BrowserLogRecord, LogData, LogKind, NetworkRecord
from tab_relay.presentation.base import Presenter


class ScriptedClipboard(Clipboard):
    """Clipboard whose verification answers can be scripted per content class."""

    def __init__(
        self,
        *,
        image_verdicts: Sequence[ContentClass] = (),
        text_verdicts: Sequence[ContentClass] = (),
        always_lose: Sequence[ContentClass] = (),
    ) -> None:
        self.calls: list[tuple] = []
        self.current = ContentClass.EMPTY
        self._verdicts = {
            ContentClass.IMAGE: list(image_verdicts),
            ContentClass.TEXT: list(text_verdicts),
        }
        self._always_lose = set(always_lose)

    async def clear(self) -> None:
        self.calls.append(("clear",))
        self.current = ContentClass.EMPTY

    async def write_text(self, text: str) -> None:
        self.calls.append(("text", text))
        self.current = ContentClass.TEXT

    async def write_image(self, path: Path, mime_type: str = "image/png") -> None:
        assert path.exists()
        self.calls.append(("image", path, mime_type))
        self.current = ContentClass.IMAGE

    async def content_class(self) -> ContentClass:
        self.calls.append(("read",))
        if self.current in self._always_lose:
            return ContentClass.EMPTY
        scripted = self._verdicts.get(self.current)
        if scripted:
            return scripted.pop(0)
        return self.current

    def writes(self, kind: str) -> list[tuple]:
        return [call for call in self.calls if call[0] == kind]


class RecordingCommands(CommandExecutor):
    def __init__(self, fail_on: Optional[set[str]] = None) -> None:
        self.executed: list[str] = []
        self.fail_on = fail_on or set()

    async def execute(self, name: str) -> None:
        self.executed.append(name)
        if name in self.fail_on:
            raise DestinationCommandError(f"{name} unavailable")


class CountingStager(ScreenshotStager):
    def __init__(self, directory: Path) -> None:
        super().__init__(directory)
        self.staged: list[Path] = []
        self.discarded: list[Path] = []

    def stage(self, data: bytes, suffix: str = ".png") -> Path:
        path = super().stage(data, suffix)
        self.staged.append(path)
        return path

    def discard(self, path: Path) -> None:
        self.discarded.append(path)
        super().discard(path)


class CollectingPresenter(Presenter):
    def __init__(self) -> None:
        self.errors: list[str] = []
        self.progress: list[str] = []

    async def pick_page(self, choices):
        return None

    def show_error(self, text: str) -> None:
        self.errors.append(text)

    async def show_progress(self, title: str, work) -> None:
        self.progress.append(title)
        await work

    def show_notice(self, text: str) -> None:
        pass

    async def confirm(self, question: str) -> bool:
        return False


class ScreenshotPage:
    def __init__(self, fail: bool = False) -> None:
        self.fail = fail
        self.requests: list[dict] = []

    async def screenshot(self, **kwargs) -> bytes:
        self.requests.append(kwargs)
        if self.fail:
            raise RuntimeError("Target closed")
        return b"\x89PNG"


def sample_logs() -> LogData:
    return LogData(
        console=[BrowserLogRecord(kind=LogKind.INFO, text="ready", timestamp=1)],
        network=[NetworkRecord(url="https://example.com", status=200, timestamp=2)],
    )


def build_pipeline(
    tmp_path: Path,
    clipboard: ScriptedClipboard,
    commands: Optional[RecordingCommands] = None,
    capture: Optional[CaptureConfig] = None,
) -> tuple[CaptureDeliveryPipeline, RecordingCommands, CountingStager, CollectingPresenter]:
    commands = commands or RecordingCommands()
    stager = CountingStager(tmp_path / "staging")
    presenter = CollectingPresenter()
    pipeline = CaptureDeliveryPipeline(
        clipboard,
        commands,
        presenter,
        delivery=DeliveryConfig(retry_delay=0, settle_delay=0, notice_seconds=0),
        capture=capture,
        stager=stager,
    )
    return pipeline, commands, stager, presenter


def test_logs_only_never_touches_image_path(tmp_path: Path) -> None:
    clipboard = ScriptedClipboard()
    pipeline, commands, stager, presenter = build_pipeline(tmp_path, clipboard)

    delivered = asyncio.run(pipeline.deliver(logs=sample_logs()))

    assert delivered == (ArtifactKind.LOGS,)
    assert clipboard.writes("image") == []
    assert stager.staged == []
    assert clipboard.writes("text") == [("text", format_logs(sample_logs()))]
    assert commands.executed == ["destination.open", "destination.paste"]
    assert presenter.progress == ["Successfully sent to destination"]


def test_screenshot_only_never_formats_logs(tmp_path: Path, monkeypatch) -> None:
    def fail_format(logs):
        raise AssertionError("logs should not be formatted")

    monkeypatch.setattr(pipeline_module, "format_logs", fail_format)
    clipboard = ScriptedClipboard()
    pipeline, _, stager, _ = build_pipeline(tmp_path, clipboard)

    delivered = asyncio.run(pipeline.deliver(screenshot=b"\x89PNG"))

    assert delivered == (ArtifactKind.SCREENSHOT,)
    assert clipboard.writes("text") == []
    assert len(stager.staged) == 1
    assert stager.discarded == stager.staged
    assert not stager.staged[0].exists()


def test_clipboard_is_cleared_before_each_write(tmp_path: Path) -> None:
    clipboard = ScriptedClipboard()
    pipeline, _, _, _ = build_pipeline(tmp_path, clipboard)

    asyncio.run(pipeline.deliver(screenshot=b"img", logs=sample_logs()))

    kinds = [call[0] for call in clipboard.calls]
    assert kinds == ["clear", "image", "read", "clear", "text", "read"]


def test_two_failed_verifications_then_success(tmp_path: Path) -> None:
    clipboard = ScriptedClipboard(image_verdicts=[ContentClass.TEXT, ContentClass.EMPTY])
    pipeline, commands, stager, presenter = build_pipeline(tmp_path, clipboard)

    delivered = asyncio.run(pipeline.deliver(screenshot=b"img"))

    assert delivered == (ArtifactKind.SCREENSHOT,)
    assert len(clipboard.writes("image")) == 3
    assert commands.executed.count("destination.open") == 1
    assert commands.executed.count("destination.paste") == 3
    assert len(stager.staged) == 1
    assert len(stager.discarded) == 1
    assert presenter.errors == []


def test_exhausted_budget_raises_after_three_attempts(tmp_path: Path) -> None:
    clipboard = ScriptedClipboard(always_lose=[ContentClass.IMAGE])
    pipeline, _, stager, presenter = build_pipeline(tmp_path, clipboard)

    with pytest.raises(DeliveryFailure) as info:
        asyncio.run(pipeline.deliver(screenshot=b"img"))

    assert info.value.failed == (ArtifactKind.SCREENSHOT,)
    assert info.value.delivered == ()
    assert info.value.partial is False
    assert len(clipboard.writes("image")) == 3
    assert len(stager.discarded) == 1
    assert list((tmp_path / "staging").iterdir()) == []
    assert presenter.errors and "screenshot" in presenter.errors[0]


def test_partial_delivery_is_distinguishable(tmp_path: Path) -> None:
    clipboard = ScriptedClipboard(always_lose=[ContentClass.TEXT])
    pipeline, _, _, _ = build_pipeline(tmp_path, clipboard)

    with pytest.raises(DeliveryFailure) as info:
        asyncio.run(pipeline.deliver(screenshot=b"img", logs=sample_logs()))

    assert info.value.failed == (ArtifactKind.LOGS,)
    assert info.value.delivered == (ArtifactKind.SCREENSHOT,)
    assert info.value.partial is True
    assert len(clipboard.writes("image")) == 1
    assert len(clipboard.writes("text")) == 3


def test_failed_artifact_does_not_stop_the_other(tmp_path: Path) -> None:
    clipboard = ScriptedClipboard(
        always_lose=[ContentClass.IMAGE],
        text_verdicts=[ContentClass.EMPTY],
    )
    pipeline, _, _, _ = build_pipeline(tmp_path, clipboard)

    with pytest.raises(DeliveryFailure) as info:
        asyncio.run(pipeline.deliver(screenshot=b"img", logs=sample_logs()))

    assert info.value.failed == (ArtifactKind.SCREENSHOT,)
    assert info.value.delivered == (ArtifactKind.LOGS,)
    assert len(clipboard.writes("text")) == 2


def test_destination_open_failure_resets_marker(tmp_path: Path) -> None:
    clipboard = ScriptedClipboard()
    commands = RecordingCommands(fail_on={"destination.open"})
    pipeline, _, _, presenter = build_pipeline(tmp_path, clipboard, commands)

    with pytest.raises(DeliveryFailure) as info:
        asyncio.run(pipeline.deliver(logs=sample_logs()))

    assert info.value.failed == (ArtifactKind.LOGS,)
    assert isinstance(info.value.__cause__, DestinationCommandError)
    assert clipboard.calls == []
    assert presenter.errors

    commands.fail_on.clear()
    asyncio.run(pipeline.deliver(logs=sample_logs()))
    assert commands.executed.count("destination.open") == 2


def test_paste_failure_counts_as_attempt(tmp_path: Path) -> None:
    clipboard = ScriptedClipboard()
    commands = RecordingCommands(fail_on={"destination.paste"})
    pipeline, _, _, _ = build_pipeline(tmp_path, clipboard, commands)

    with pytest.raises(DeliveryFailure):
        asyncio.run(pipeline.deliver(logs=sample_logs()))

    assert commands.executed.count("destination.paste") == 3


def test_staging_failure_fails_only_the_screenshot(tmp_path: Path) -> None:
    blocker = tmp_path / "staging"
    blocker.write_text("occupied")
    clipboard = ScriptedClipboard()
    pipeline, _, _, _ = build_pipeline(tmp_path, clipboard)

    with pytest.raises(DeliveryFailure) as info:
        asyncio.run(pipeline.deliver(screenshot=b"img", logs=sample_logs()))

    assert info.value.failed == (ArtifactKind.SCREENSHOT,)
    assert info.value.delivered == (ArtifactKind.LOGS,)
    assert clipboard.writes("image") == []


def test_nothing_requested_is_a_noop(tmp_path: Path) -> None:
    clipboard = ScriptedClipboard()
    pipeline, commands, _, presenter = build_pipeline(tmp_path, clipboard)

    assert asyncio.run(pipeline.deliver()) == ()
    assert commands.executed == []
    assert presenter.progress == []


def test_send_screenshot_uses_capture_settings(tmp_path: Path) -> None:
    clipboard = ScriptedClipboard()
    capture = CaptureConfig(image_format="jpeg", quality=55)
    pipeline, _, stager, _ = build_pipeline(tmp_path, clipboard, capture=capture)
    page = ScreenshotPage()

    asyncio.run(pipeline.send_screenshot(page))

    assert page.requests == [{"image_format": "jpeg", "quality": 55, "full_page": True}]
    assert clipboard.writes("image")[0][2] == "image/jpeg"
    assert stager.staged[0].suffix == ".jpeg"


def test_screenshot_capture_failure_is_a_delivery_failure(tmp_path: Path) -> None:
    clipboard = ScriptedClipboard()
    pipeline, commands, _, presenter = build_pipeline(tmp_path, clipboard)

    with pytest.raises(DeliveryFailure) as info:
        asyncio.run(pipeline.send_capture(ScreenshotPage(fail=True), sample_logs()))

    assert info.value.failed == (ArtifactKind.SCREENSHOT,)
    assert commands.executed == []
    assert presenter.errors
