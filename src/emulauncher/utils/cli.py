from __future__ import annotations

import os
import subprocess
from collections.abc import Sequence
from typing import Any


def _text(stream: bytes | str | None) -> str:
    if isinstance(stream, bytes | bytearray):
        # undecodable bytes become U+FFFD
        return stream.decode(errors="replace")
    return stream or ""


class Completed:
    """Exit code plus decoded output of a finished SDK tool invocation."""

    def __init__(self, proc: subprocess.CompletedProcess) -> None:
        self.returncode = proc.returncode
        self.stdout = _text(proc.stdout)
        self.stderr = _text(proc.stderr)


def run_cmd(
    args: Sequence[str],
    *,
    check: bool = True,
    timeout: float | None = None,
) -> Completed:
    """
    Run an SDK tool to completion with stdin closed and both streams captured.

    Args:
        args (Sequence[str]): Command and arguments to execute.
        check (bool): If True, raise CalledProcessError on failure.
        timeout (float | None): Optional timeout in seconds for waiting for completion.

    Returns:
        Completed: Result with stdout/stderr as strings.

    Raises:
        subprocess.CalledProcessError: If `check=True` and process exits with a nonzero code.
        subprocess.TimeoutExpired: If the command did not finish within `timeout`.
        OSError: If the executable could not be started.
    """
    proc = subprocess.run(
        list(args),
        capture_output=True,
        stdin=subprocess.DEVNULL,
        timeout=timeout,
        check=False,
    )

    if check and proc.returncode != 0:
        raise subprocess.CalledProcessError(proc.returncode, args, proc.stdout, proc.stderr)

    return Completed(proc)


def spawn_detached(args: Sequence[str]) -> subprocess.Popen[Any]:
    """
    Start a long-lived process detached from our process group.

    All standard streams are discarded so the child never blocks on a pipe
    we stopped reading, and signals sent to our group (Ctrl+C) do not reach it.

    Raises:
        OSError: If the OS refuses to start the executable.
    """
    kwargs: dict[str, Any] = {
        "stdin": subprocess.DEVNULL,
        "stdout": subprocess.DEVNULL,
        "stderr": subprocess.DEVNULL,
        "close_fds": True,
    }
    if os.name == "nt":
        kwargs["creationflags"] = getattr(subprocess, "DETACHED_PROCESS", 0) | getattr(
            subprocess, "CREATE_NEW_PROCESS_GROUP", 0
        )
    else:
        kwargs["start_new_session"] = True
    return subprocess.Popen(list(args), **kwargs)
