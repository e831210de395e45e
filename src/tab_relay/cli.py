"""Command line interface for tab-relay."""

from __future__ import annotations

import asyncio
import logging
from importlib.metadata import PackageNotFoundError
from importlib.metadata import version as get_version
from pathlib import Path
from typing import Annotated, Any, Optional

import typer

from .config import AppConfig, load_config
from .errors import ConnectionFailure, DeliveryFailure, TabRelayError
from .factory import AppContext, build_app
from .log_relay import install_relay, relay_url_from_env
from .presentation.console import ConsolePresenter

app = typer.Typer(help="Tab Relay entry point")

ConfigOption = Annotated[
    Optional[Path],
    typer.Option("--config", "-c", help="Path to YAML configuration."),
]
EnvFileOption = Annotated[
    Optional[Path],
    typer.Option("--env-file", help="Path to an .env file with default configuration values."),
]
EndpointOption = Annotated[
    Optional[str],
    typer.Option("--endpoint", help="Remote debugging URL of the browser."),
]


@app.callback()
def main(
    ctx: typer.Context,
    verbose: Annotated[
        bool,
        typer.Option("--verbose", "-v", help="Enable debug logging"),
    ] = False,
) -> None:
    """Configure logging before executing any command."""

    level = logging.DEBUG if verbose else logging.INFO
    logging.basicConfig(level=level, format="%(asctime)s %(levelname)s %(name)s: %(message)s")
    ctx.obj = {"verbose": verbose}


@app.command()
def version() -> None:
    """Print the package version."""

    try:
        typer.echo(get_version("tab-relay"))
    except PackageNotFoundError:  # pragma: no cover - when running from source tree
        typer.echo("0.0.0")


@app.command()
def watch(
    ctx: typer.Context,
    config_path: ConfigOption = None,
    env_file: EnvFileOption = None,
    endpoint: EndpointOption = None,
    duration: Annotated[
        float,
        typer.Option("--duration", "-d", help="Seconds to collect logs before capturing."),
    ] = 30.0,
    screenshot: Annotated[
        bool,
        typer.Option("--screenshot/--no-screenshot", help="Deliver a full-page screenshot."),
    ] = True,
    logs: Annotated[
        bool,
        typer.Option("--logs/--no-logs", help="Deliver the collected console and network logs."),
    ] = True,
) -> None:
    """Monitor a tab, stream its console output, then deliver a capture."""

    config = _load(ctx, config_path, env_file, endpoint)
    presenter = ConsolePresenter()
    context = _build(config, presenter)
    success = asyncio.run(_watch(context, presenter, duration, screenshot, logs))
    if not success:
        raise typer.Exit(code=1)
    typer.echo("Capture delivered.")


@app.command()
def screenshot(
    ctx: typer.Context,
    config_path: ConfigOption = None,
    env_file: EnvFileOption = None,
    endpoint: EndpointOption = None,
) -> None:
    """Connect to a tab and deliver a single screenshot."""

    config = _load(ctx, config_path, env_file, endpoint)
    context = _build(config, ConsolePresenter())
    success = asyncio.run(_screenshot(context))
    if not success:
        raise typer.Exit(code=1)
    typer.echo("Screenshot delivered.")


def _load(
    ctx: typer.Context,
    config_path: Optional[Path],
    env_file: Optional[Path],
    endpoint: Optional[str],
) -> AppConfig:
    overrides: dict[str, Any] = {}
    if endpoint:
        overrides["monitor"] = {"remote_debugging_url": endpoint}
    config = load_config(config_path, env_file=env_file, **overrides)
    verbose = bool((ctx.obj or {}).get("verbose"))
    if not verbose:
        logging.getLogger().setLevel(config.logging.level.upper())
    relay_url = relay_url_from_env(config.logging.relay_url)
    if relay_url:
        install_relay(relay_url)
    return config


def _build(config: AppConfig, presenter: ConsolePresenter) -> AppContext:
    try:
        return build_app(config, presenter=presenter)
    except TabRelayError as exc:
        presenter.show_error(str(exc))
        raise typer.Exit(code=1) from exc


async def _connect(context: AppContext) -> bool:
    try:
        return await context.monitor.connect()
    except ConnectionFailure:
        return False


async def _watch(
    context: AppContext,
    presenter: ConsolePresenter,
    duration: float,
    screenshot: bool,
    logs: bool,
) -> bool:
    try:
        if not await _connect(context):
            return False
        ended = asyncio.Event()
        context.subscriptions.append(context.monitor.on_new_log(presenter.show_log))
        context.subscriptions.append(context.monitor.on_disconnect(ended.set))
        try:
            await asyncio.wait_for(ended.wait(), timeout=duration)
        except asyncio.TimeoutError:
            pass
        if context.monitor.is_connected():
            return await context.handlers.capture(screenshot=screenshot, logs=logs)
        if not logs:
            return False
        # The tab is gone but its records are still buffered.
        try:
            await context.pipeline.send_logs(context.monitor.get_logs())
        except DeliveryFailure:
            return False
        return True
    finally:
        await context.close()


async def _screenshot(context: AppContext) -> bool:
    try:
        if not await _connect(context):
            return False
        return await context.handlers.send_screenshot()
    finally:
        await context.close()


if __name__ == "__main__":
    app()
