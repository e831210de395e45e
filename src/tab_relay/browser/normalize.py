"""Turn raw protocol events into log records."""

from __future__ import annotations

from typing import Any, Mapping

from ..models import FAILED_REQUEST_URL, BrowserLogRecord, LogKind, NetworkRecord, now_ms
from .console_format import render_arguments

CONSOLE_API_CALLED = "Runtime.consoleAPICalled"
LOG_ENTRY_ADDED = "Log.entryAdded"
RESPONSE_RECEIVED = "Network.responseReceived"
LOADING_FAILED = "Network.loadingFailed"


def console_api_record(params: Mapping[str, Any]) -> BrowserLogRecord:
    return BrowserLogRecord(
        kind=LogKind.from_protocol(params.get("type")),
        text=render_arguments(params.get("args") or []),
        timestamp=now_ms(),
    )


def log_entry_record(params: Mapping[str, Any]) -> BrowserLogRecord:
    entry = params.get("entry") or {}
    return BrowserLogRecord(
        kind=LogKind.from_protocol(entry.get("level")),
        text=str(entry.get("text", "")),
        timestamp=now_ms(),
    )


def response_record(params: Mapping[str, Any]) -> NetworkRecord:
    response = params.get("response") or {}
    return NetworkRecord(
        url=str(response.get("url", "")),
        status=int(response.get("status", 0)),
        timestamp=now_ms(),
    )


def loading_failed_record(params: Mapping[str, Any]) -> NetworkRecord:
    # The failure event only carries a request id, so the URL is not known here.
    return NetworkRecord(
        url=FAILED_REQUEST_URL,
        status=0,
        error=str(params.get("errorText", "")),
        timestamp=now_ms(),
    )
