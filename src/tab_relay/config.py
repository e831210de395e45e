"""Configuration models for tab relay."""

from __future__ import annotations

from collections.abc import Mapping
from pathlib import Path
from typing import Any, Literal, Optional

from pydantic import BaseModel, Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class MonitorConfig(BaseModel):
    """Settings for the browser connection manager."""

    remote_debugging_url: str = Field(default="http://localhost:9222")
    health_check_interval: float = Field(
        default=300.0,
        description="Seconds between liveness round-trips on the active session.",
    )
    notice_seconds: float = 2.0


class CaptureConfig(BaseModel):
    """Screenshot capture settings."""

    image_format: Literal["png", "jpeg"] = "png"
    quality: int = Field(default=80, ge=0, le=100, description="Only applied to jpeg.")
    full_page: bool = True

    @property
    def mime_type(self) -> str:
        return f"image/{self.image_format}"


class DeliveryConfig(BaseModel):
    """Retry and timing settings for clipboard delivery."""

    max_retries: int = Field(default=2, ge=0)
    retry_delay: float = 0.1
    settle_delay: float = 0.05
    notice_seconds: float = 2.0
    staging_dir: Optional[Path] = None


def _default_commands() -> dict[str, list[str]]:
    return {
        "destination.open": [],
        "destination.paste": ["xdotool", "key", "--clearmodifiers", "ctrl+v"],
    }


class DestinationConfig(BaseModel):
    """Named commands used to open and paste into the destination surface."""

    open_command: str = "destination.open"
    paste_command: str = "destination.paste"
    commands: dict[str, list[str]] = Field(default_factory=_default_commands)


class ClipboardConfig(BaseModel):
    """System clipboard backend selection."""

    backend: Literal["auto", "xclip", "wayland"] = "auto"


class LoggingConfig(BaseModel):
    """Logging level and optional HTTP relay."""

    level: str = "INFO"
    relay_url: Optional[str] = None


class AppConfig(BaseSettings):
    """Top-level configuration."""

    model_config = SettingsConfigDict(
        env_prefix="TAB_RELAY_",
        env_file=(".env",),
        env_file_encoding="utf-8",
        env_nested_delimiter="__",
        extra="ignore",
    )

    monitor: MonitorConfig = Field(default_factory=MonitorConfig)
    capture: CaptureConfig = Field(default_factory=CaptureConfig)
    delivery: DeliveryConfig = Field(default_factory=DeliveryConfig)
    destination: DestinationConfig = Field(default_factory=DestinationConfig)
    clipboard: ClipboardConfig = Field(default_factory=ClipboardConfig)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)


def load_config(
    path: Path | None = None,
    *,
    env_file: Path | None = None,
    **overrides: object,
) -> AppConfig:
    """Load configuration from an optional YAML file and overrides."""

    data: dict[str, Any] = {}
    if path:
        import yaml

        data = yaml.safe_load(path.read_text()) or {}
    if overrides:
        _deep_update(data, overrides)
    settings_kwargs: dict[str, object] = {}
    if env_file is not None:
        settings_kwargs["_env_file"] = env_file
    config = AppConfig(**data, **settings_kwargs)
    if not data:
        return config

    merged = config.model_dump(mode="python")
    _deep_update(merged, data)
    return AppConfig.model_validate(merged)


def _deep_update(target: dict[str, Any], updates: Mapping[str, Any]) -> None:
    """Recursively merge ``updates`` into ``target`` in-place."""

    for key, value in updates.items():
        if (
            isinstance(value, Mapping)
            and isinstance(existing := target.get(key), Mapping)
        ):
            nested: dict[str, Any]
            if isinstance(existing, dict):
                nested = existing
            else:
                nested = dict(existing)
            _deep_update(nested, value)
            target[key] = nested
        else:
            target[key] = value
