from __future__ import annotations

import subprocess
import sys
from typing import Any

import pytest

from emulauncher.utils.cli import Completed, run_cmd, spawn_detached


def test_run_cmd_success() -> None:
    """run_cmd should succeed and capture stdout as a string."""
    out = run_cmd([sys.executable, "-c", "print('hello')"], check=True)
    assert out.returncode == 0
    assert "hello" in out.stdout


def test_run_cmd_error_check_true_raises() -> None:
    """When check=True and the command fails, run_cmd must raise CalledProcessError."""
    with pytest.raises(subprocess.CalledProcessError):
        run_cmd([sys.executable, "-c", "import sys; sys.exit(1)"], check=True)


def test_run_cmd_error_check_false_returns_stderr() -> None:
    out = run_cmd(
        [sys.executable, "-c", "import sys; sys.stderr.write('boom'); sys.exit(3)"], check=False
    )
    assert out.returncode == 3
    assert out.stderr == "boom"


def test_completed_replaces_undecodable_bytes() -> None:
    proc = subprocess.CompletedProcess(["emulator"], 0, stdout=b"Pixel_\xff6\n", stderr=None)
    out = Completed(proc)
    assert out.stdout == "Pixel_\ufffd6\n"
    assert out.stderr == ""


def test_run_cmd_timeout() -> None:
    with pytest.raises(subprocess.TimeoutExpired):
        run_cmd([sys.executable, "-c", "import time; time.sleep(5)"], timeout=0.2)


def test_spawn_detached_discards_streams(monkeypatch: pytest.MonkeyPatch) -> None:
    """spawn_detached returns the Popen instance with all streams discarded."""
    spawned: dict[str, Any] = {}

    class DummyP:
        def __init__(self, args: list[str], **kwargs: Any) -> None:
            spawned["args"] = args
            spawned["kwargs"] = kwargs

    monkeypatch.setattr("emulauncher.utils.cli.subprocess.Popen", DummyP)
    p = spawn_detached(["emulator", "-avd", "Pixel_6"])

    assert isinstance(p, DummyP)
    assert spawned["args"] == ["emulator", "-avd", "Pixel_6"]
    kw = spawned["kwargs"]
    assert kw["stdin"] is subprocess.DEVNULL
    assert kw["stdout"] is subprocess.DEVNULL
    assert kw["stderr"] is subprocess.DEVNULL
    assert kw.get("start_new_session") is True or "creationflags" in kw
