import asyncio
import sys

import pytest

from tab_relay.destination import ShellCommandExecutor
from tab_relay.errors import DestinationCommandError


def test_unknown_command_is_rejected():
    executor = ShellCommandExecutor({"destination.paste": []})
    with pytest.raises(DestinationCommandError, match="Unknown command"):
        asyncio.run(executor.execute("destination.focus"))


def test_empty_argv_is_a_noop():
    executor = ShellCommandExecutor({"destination.open": []})
    asyncio.run(executor.execute("destination.open"))


def test_successful_program_runs(tmp_path):
    marker = tmp_path / "ran"
    executor = ShellCommandExecutor(
        {"destination.open": [sys.executable, "-c", f"open({str(marker)!r}, 'w').close()"]}
    )
    asyncio.run(executor.execute("destination.open"))
    assert marker.exists()


def test_nonzero_exit_raises_with_stderr():
    executor = ShellCommandExecutor(
        {
            "destination.paste": [
                sys.executable,
                "-c",
                "import sys; sys.stderr.write('no focus'); sys.exit(3)",
            ]
        }
    )
    with pytest.raises(DestinationCommandError) as info:
        asyncio.run(executor.execute("destination.paste"))
    assert "status 3" in str(info.value)
    assert "no focus" in str(info.value)


def test_missing_program_raises(tmp_path):
    executor = ShellCommandExecutor({"destination.open": [str(tmp_path / "missing-binary")]})
    with pytest.raises(DestinationCommandError, match="Unable to run"):
        asyncio.run(executor.execute("destination.open"))
