from __future__ import annotations

from pathlib import Path


class EmulatorError(Exception):
    """
    Base class for every failure surfaced by emulauncher.

    The string form is human readable and is what the status boundary
    reports back to the presentation process.
    """


class SdkNotFoundError(EmulatorError):
    """No Android SDK root could be resolved."""

    def __init__(self, message: str | None = None) -> None:
        super().__init__(
            message or "Android SDK not found. Please set ANDROID_HOME environment variable."
        )


class BinaryMissingError(EmulatorError):
    """A toolchain binary required for the operation is absent."""

    def __init__(self, tool: str, path: Path | str) -> None:
        self.tool = tool
        self.path = str(path)
        super().__init__(f"{tool.capitalize()} binary not found at: {self.path}")


class ToolError(EmulatorError):
    """Base class for failures of a one-shot toolchain invocation."""


class ToolUnavailableError(ToolError):
    def __init__(self, tool: str, path: Path | str | None = None) -> None:
        self.tool = tool
        self.path = str(path) if path is not None else None
        where = f" at: {self.path}" if self.path else ""
        super().__init__(f"{tool} is not available{where}")


class ToolExecutionError(ToolError):
    """The tool ran but exited non-zero, timed out, or could not be executed."""

    def __init__(self, tool: str, stderr: str, returncode: int | None = None) -> None:
        self.tool = tool
        self.stderr = stderr
        self.returncode = returncode
        detail = stderr.strip() or f"exit code {returncode}"
        super().__init__(f"{tool} failed: {detail}")


class ListFailedError(EmulatorError):
    def __init__(self, cause: ToolError) -> None:
        self.cause = cause
        super().__init__(f"Failed to list emulators: {cause}")


class LaunchFailedError(EmulatorError):
    def __init__(self, name: str, cause: BaseException | str) -> None:
        self.name = name
        self.cause = cause
        super().__init__(f"Failed to start emulator {name}: {cause}")


class KillFailedError(EmulatorError):
    def __init__(self, name: str, cause: BaseException | str) -> None:
        self.name = name
        self.cause = cause
        super().__init__(f"Failed to kill emulator {name}: {cause}")


class ProcessTableError(EmulatorError):
    def __init__(self, name: str, message: str) -> None:
        self.name = name
        super().__init__(message)


class ProcessNotFoundError(ProcessTableError):
    def __init__(self, name: str) -> None:
        super().__init__(name, f"No managed process for emulator {name}")


class SignalFailedError(ProcessTableError):
    def __init__(self, name: str, cause: BaseException) -> None:
        self.cause = cause
        super().__init__(name, f"Failed to signal emulator {name}: {cause}")


__all__ = [
    "EmulatorError",
    "SdkNotFoundError",
    "BinaryMissingError",
    "ToolError",
    "ToolUnavailableError",
    "ToolExecutionError",
    "ListFailedError",
    "LaunchFailedError",
    "KillFailedError",
    "ProcessTableError",
    "ProcessNotFoundError",
    "SignalFailedError",
]
