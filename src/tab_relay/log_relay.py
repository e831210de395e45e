"""Forward log records to an HTTP debug relay."""

from __future__ import annotations

import logging
import os
from datetime import datetime, timezone
from typing import Any, Optional

import httpx

_LEVEL_NAMES = {
    logging.DEBUG: "debug",
    logging.INFO: "info",
    logging.WARNING: "warn",
    logging.ERROR: "error",
    logging.CRITICAL: "error",
}


class HTTPRelayHandler(logging.Handler):
    """Logging handler that POSTs each record as JSON to a relay endpoint."""

    def __init__(
        self,
        url: str,
        *,
        source: str = "tab-relay",
        timeout: float = 2.0,
        client: Optional[httpx.Client] = None,
    ) -> None:
        super().__init__()
        self.url = url
        self.source = source
        self._client = client or httpx.Client(timeout=timeout)

    def build_payload(self, record: logging.LogRecord) -> dict[str, Any]:
        payload: dict[str, Any] = {
            "level": _LEVEL_NAMES.get(record.levelno, "trace"),
            "message": record.getMessage(),
            "timestamp": datetime.fromtimestamp(record.created, timezone.utc).isoformat(),
            "source": self.source,
        }
        if record.exc_info and record.exc_info[1] is not None:
            payload["error"] = repr(record.exc_info[1])
        return payload

    def emit(self, record: logging.LogRecord) -> None:
        try:
            response = self._client.post(self.url, json=self.build_payload(record))
            response.raise_for_status()
        except Exception:
            self.handleError(record)

    def close(self) -> None:
        try:
            self._client.close()
        finally:
            super().close()


def relay_url_from_env(configured: Optional[str] = None) -> Optional[str]:
    """Return the configured relay url, or one derived from ``DEBUG_PORT``."""

    if configured:
        return configured
    port = os.environ.get("DEBUG_PORT")
    if port:
        return f"http://localhost:{port}"
    return None


def install_relay(url: str, level: int = logging.DEBUG) -> HTTPRelayHandler:
    handler = HTTPRelayHandler(url)
    handler.setLevel(level)
    # httpx logs each request; relaying those would recurse.
    handler.addFilter(lambda record: not record.name.startswith(("httpx", "httpcore")))
    logging.getLogger().addHandler(handler)
    return handler
