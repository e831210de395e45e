"""Factories for constructing components from configuration."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import List, Optional

from .browser.base import DebuggerTransport
from .browser.monitor import BrowserConnectionManager
from .browser.playwright_transport import PlaywrightTransport
from .clipboard.base import Clipboard
from .clipboard.system import detect_clipboard
from .config import AppConfig, ClipboardConfig, DestinationConfig
from .delivery.pipeline import CaptureDeliveryPipeline
from .delivery.staging import ScreenshotStager
from .destination import CommandExecutor, ShellCommandExecutor
from .events import Subscription
from .handlers import CommandHandlers
from .presentation.base import Presenter
from .presentation.console import ConsolePresenter


@dataclass
class AppContext:
    """Owns the single manager and pipeline instances for one process."""

    config: AppConfig
    presenter: Presenter
    monitor: BrowserConnectionManager
    pipeline: CaptureDeliveryPipeline
    handlers: CommandHandlers
    subscriptions: List[Subscription] = field(default_factory=list)

    async def close(self) -> None:
        for subscription in self.subscriptions:
            subscription.dispose()
        self.subscriptions.clear()
        await self.monitor.dispose()


def build_transport() -> DebuggerTransport:
    return PlaywrightTransport()


def build_clipboard(config: ClipboardConfig) -> Clipboard:
    return detect_clipboard(config.backend)


def build_commands(config: DestinationConfig) -> CommandExecutor:
    return ShellCommandExecutor(config.commands)


def build_app(
    config: AppConfig,
    *,
    presenter: Optional[Presenter] = None,
    transport: Optional[DebuggerTransport] = None,
    clipboard: Optional[Clipboard] = None,
    commands: Optional[CommandExecutor] = None,
) -> AppContext:
    presenter = presenter or ConsolePresenter()
    monitor = BrowserConnectionManager(
        transport or build_transport(),
        presenter,
        config.monitor,
    )
    pipeline = CaptureDeliveryPipeline(
        clipboard or build_clipboard(config.clipboard),
        commands or build_commands(config.destination),
        presenter,
        delivery=config.delivery,
        destination=config.destination,
        capture=config.capture,
        stager=ScreenshotStager(config.delivery.staging_dir),
    )
    context = AppContext(
        config=config,
        presenter=presenter,
        monitor=monitor,
        pipeline=pipeline,
        handlers=CommandHandlers(monitor, pipeline, presenter),
    )
    context.subscriptions.append(
        monitor.on_disconnect(lambda: presenter.show_notice("Browser disconnected"))
    )
    return context
