from __future__ import annotations

import subprocess
from pathlib import Path

from ..config.models import Settings
from ..device.models import BridgeStatus
from ..errors import ToolError, ToolExecutionError, ToolUnavailableError
from ..platform import HostPlatform
from ..sdk.locator import ToolKind, binary_path
from ..utils.cli import Completed, run_cmd
from ..utils.logging import get_logger
from .parsing import filter_avd_names, parse_avd_name, parse_bridge_targets


class ToolInvoker:
    """
    Runs the emulator and adb binaries as one-shot child processes.

    Every call captures stdout/stderr, applies a timeout from settings and
    maps non-zero exits, timeouts and OS errors into ``ToolError`` subclasses.
    """

    def __init__(
        self, settings: Settings | None = None, platform: HostPlatform | None = None
    ) -> None:
        self._settings = settings or Settings()
        self._platform = platform or HostPlatform.current()
        self._log = get_logger(__name__)

    def binary(self, root: Path | str, tool: ToolKind) -> Path:
        return binary_path(root, tool, self._platform)

    def _run(self, tool: ToolKind, root: Path | str, args: list[str], timeout: float) -> Completed:
        exe = self.binary(root, tool)
        if not exe.exists():
            raise ToolUnavailableError(tool.value, exe)

        cmd = [str(exe), *args]
        self._log.debug("Running tool", action="tool_run", cmd=" ".join(cmd), timeout=timeout)
        try:
            out = run_cmd(cmd, check=False, timeout=timeout)
        except subprocess.TimeoutExpired:
            raise ToolExecutionError(tool.value, f"timed out after {timeout}s") from None
        except OSError as e:
            raise ToolExecutionError(tool.value, str(e)) from e

        if out.returncode != 0:
            self._log.warning(
                "Tool exited with an error",
                action="tool_failed",
                tool=tool.value,
                returncode=out.returncode,
                stderr=out.stderr.strip(),
            )
            raise ToolExecutionError(tool.value, out.stderr, out.returncode)
        return out

    def list_device_images(self, root: Path | str) -> list[str]:
        """
        List configured AVD names via `emulator -list-avds`.

        Raises:
            ToolUnavailableError: If the emulator binary is absent.
            ToolExecutionError: If the emulator exits non-zero or times out.
        """
        out = self._run(
            ToolKind.EMULATOR, root, ["-list-avds"], self._settings.timeouts.list_sec
        )
        return filter_avd_names(out.stdout)

    def list_bridge_targets(self, root: Path | str | None) -> BridgeStatus:
        """
        Enumerate running emulator transports via `adb devices`.

        Never raises: an unknown root, a missing adb or a failing adb all
        degrade to an empty target list flagged as ``degraded``.
        """
        if root is None:
            return BridgeStatus(degraded=True, reason="Android SDK not found")
        try:
            out = self._run(ToolKind.ADB, root, ["devices"], self._settings.timeouts.bridge_sec)
        except ToolError as e:
            self._log.debug("Bridge enumeration degraded", action="bridge_degraded", error=str(e))
            return BridgeStatus(degraded=True, reason=str(e))
        return BridgeStatus(targets=parse_bridge_targets(out.stdout))

    def kill_target(self, root: Path | str, transport_id: str) -> None:
        """Ask one running emulator to shut down via `adb -s <id> emu kill`."""
        self._run(
            ToolKind.ADB,
            root,
            ["-s", transport_id, "emu", "kill"],
            self._settings.timeouts.kill_sec,
        )

    def query_avd_name(self, root: Path | str, transport_id: str) -> str | None:
        """Return the AVD name behind a transport id, or None if it cannot be determined."""
        try:
            out = self._run(
                ToolKind.ADB,
                root,
                ["-s", transport_id, "emu", "avd", "name"],
                self._settings.timeouts.query_sec,
            )
        except ToolError as e:
            self._log.debug(
                "AVD name query failed", action="avd_name_query", target=transport_id, error=str(e)
            )
            return None
        return parse_avd_name(out.stdout)
