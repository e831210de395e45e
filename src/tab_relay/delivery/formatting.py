"""Plain-text rendering of captured logs."""

from __future__ import annotations

from ..models import LogData

CONSOLE_HEADER = "---Console Logs---"
NETWORK_HEADER = "---Network Requests---"


def format_logs(logs: LogData) -> str:
    lines = [CONSOLE_HEADER]
    lines.extend(f"{record.kind.value}: {record.text}" for record in logs.console)
    lines.append("")
    lines.append(NETWORK_HEADER)
    for record in logs.network:
        if record.failed:
            lines.append(f"Failed: {record.url} ({record.error})")
        else:
            lines.append(f"{record.status}: {record.url}")
    return "\n".join(lines) + "\n"
