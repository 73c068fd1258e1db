from __future__ import annotations

import threading
from pathlib import Path
from typing import Any

import pytest
from structlog.contextvars import clear_contextvars

from emulauncher.config.models import Settings


class FakeProcess:
    """Stand-in for subprocess.Popen: wait() blocks until terminate()/finish() is called."""

    _next_pid = 4000

    def __init__(self, args: list[str] | None = None) -> None:
        FakeProcess._next_pid += 1
        self.pid = FakeProcess._next_pid
        self.args = list(args or [])
        self.returncode: int | None = None
        self.terminated = False
        self.terminate_error: OSError | None = None
        self._done = threading.Event()

    def terminate(self) -> None:
        if self.terminate_error is not None:
            raise self.terminate_error
        self.terminated = True
        self.finish(-15)

    def finish(self, code: int = 0) -> None:
        self.returncode = code
        self._done.set()

    def poll(self) -> int | None:
        return self.returncode

    def wait(self, timeout: float | None = None) -> int:
        self._done.wait(timeout)
        return self.returncode if self.returncode is not None else 0


class FakeRunCmd:
    """Records commands and answers them from a (binary name, first arg) keyed table."""

    def __init__(self) -> None:
        self.calls: list[list[str]] = []
        self.responses: dict[tuple[str, ...], Any] = {}

    def respond(self, key: tuple[str, ...], rc: int = 0, out: str = "", err: str = "") -> None:
        self.responses[key] = (rc, out, err)

    def fail(self, key: tuple[str, ...], exc: BaseException) -> None:
        self.responses[key] = exc

    def __call__(self, args: list[str], **kw: Any) -> Any:
        args = list(args)
        self.calls.append(args)
        tool = Path(args[0]).stem
        # Longest matching key wins: ("adb", "-s", "emulator-5554") before ("adb", "-s")
        for size in range(len(args), 0, -1):
            key = (tool, *args[1:size])
            if key in self.responses:
                resp = self.responses[key]
                if isinstance(resp, BaseException):
                    raise resp
                rc, out, err = resp
                return _Result(rc, out, err)
        return _Result(0, "", "")

    def commands(self, tool: str) -> list[list[str]]:
        return [c[1:] for c in self.calls if Path(c[0]).stem == tool]


class _Result:
    def __init__(self, rc: int, out: str, err: str) -> None:
        self.returncode = rc
        self.stdout = out
        self.stderr = err


def _make_sdk(root: Path, *, emulator: bool = True, adb: bool = True) -> Path:
    """Create a fake SDK tree with empty binaries."""
    (root / "emulator").mkdir(parents=True, exist_ok=True)
    (root / "platform-tools").mkdir(parents=True, exist_ok=True)
    if emulator:
        (root / "emulator" / "emulator").write_text("")
    if adb:
        (root / "platform-tools" / "adb").write_text("")
    return root


@pytest.fixture
def sdk_root(tmp_path: Path) -> Path:
    return _make_sdk(tmp_path / "sdk")


@pytest.fixture
def settings(sdk_root: Path) -> Settings:
    return Settings(sdk_root=str(sdk_root))


@pytest.fixture
def fake_run(monkeypatch: pytest.MonkeyPatch) -> FakeRunCmd:
    fake = FakeRunCmd()
    monkeypatch.setattr("emulauncher.tools.invoker.run_cmd", fake)
    return fake


@pytest.fixture(autouse=True)
def _isolate_env(monkeypatch: pytest.MonkeyPatch) -> None:
    """Keep the developer's own SDK variables out of the tests."""
    for var in ("ANDROID_HOME", "ANDROID_SDK_ROOT", "EMULAUNCHER_SDK_ROOT", "EMULAUNCHER_CONFIG"):
        monkeypatch.delenv(var, raising=False)


@pytest.fixture
def make_sdk() -> Any:
    return _make_sdk


@pytest.fixture
def no_default_sdk(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setattr("emulauncher.sdk.locator.default_sdk_paths", lambda platform, home: [])


@pytest.fixture(autouse=True)
def _clear_log_context() -> Any:
    clear_contextvars()
    yield
    clear_contextvars()
