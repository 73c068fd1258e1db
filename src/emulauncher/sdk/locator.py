from __future__ import annotations

import os
from collections.abc import Mapping
from enum import Enum
from pathlib import Path
from typing import Any

from pydantic import BaseModel

from ..config.models import Settings
from ..platform import HostPlatform
from ..utils.logging import get_logger

_log = get_logger(__name__)


class ToolKind(str, Enum):
    EMULATOR = "emulator"
    ADB = "adb"


# Directory of each tool relative to the SDK root
_TOOL_DIRS: dict[ToolKind, str] = {
    ToolKind.EMULATOR: "emulator",
    ToolKind.ADB: "platform-tools",
}


class SdkStatus(BaseModel):
    """Snapshot of the SDK environment. Recomputed on every call, never cached."""

    found: bool
    path: str | None = None
    emulator_found: bool = False
    adb_found: bool = False

    def to_payload(self) -> dict[str, Any]:
        return {
            "found": self.found,
            "path": self.path,
            "emulatorFound": self.emulator_found,
            "adbFound": self.adb_found,
        }


def default_sdk_paths(platform: HostPlatform, home: Path) -> list[Path]:
    """Conventional SDK install locations for a host platform, in search order."""
    if platform is HostPlatform.WINDOWS:
        return [
            home / "AppData" / "Local" / "Android" / "Sdk",
            Path("C:\\Android\\sdk"),
            home / "Android" / "Sdk",
        ]
    if platform is HostPlatform.MACOS:
        return [
            home / "Library" / "Android" / "sdk",
            Path("/usr/local/share/android-sdk"),
        ]
    return [
        home / "Android" / "Sdk",
        Path("/opt/android-sdk"),
        Path("/usr/local/android-sdk"),
    ]


def locate(
    settings: Settings | None = None,
    *,
    platform: HostPlatform | None = None,
    env: Mapping[str, str] | None = None,
    home: Path | None = None,
) -> Path | None:
    """
    Resolve the Android SDK root.

    Resolution order:
    1. ``settings.sdk_root`` when it exists on disk
    2. the first *set* variable of ``settings.sdk_env_vars``, when it exists on disk
    3. the first existing conventional location for the host platform

    Returns None when nothing is found; absence is a normal state, not an error.
    """
    settings = settings or Settings()
    env = os.environ if env is None else env

    if settings.sdk_root:
        explicit = Path(settings.sdk_root).expanduser()
        if explicit.exists():
            return explicit
        _log.debug("Configured SDK root does not exist", action="sdk_locate", path=str(explicit))

    from_env = next((env[k] for k in settings.sdk_env_vars if env.get(k)), None)
    if from_env:
        candidate = Path(from_env).expanduser()
        if candidate.exists():
            return candidate
        _log.debug("SDK root from environment does not exist", action="sdk_locate", path=from_env)

    platform = platform or HostPlatform.current()
    home = home or Path.home()
    for candidate in default_sdk_paths(platform, home):
        if candidate.exists():
            return candidate
    return None


def binary_path(root: Path | str, tool: ToolKind, platform: HostPlatform | None = None) -> Path:
    """Pure path composition of a toolchain binary; performs no I/O."""
    platform = platform or HostPlatform.current()
    return Path(root) / _TOOL_DIRS[tool] / f"{tool.value}{platform.executable_suffix}"


def check_sdk_status(
    settings: Settings | None = None,
    *,
    platform: HostPlatform | None = None,
    env: Mapping[str, str] | None = None,
    home: Path | None = None,
) -> SdkStatus:
    root = locate(settings, platform=platform, env=env, home=home)
    if root is None:
        return SdkStatus(found=False)
    return SdkStatus(
        found=True,
        path=str(root),
        emulator_found=binary_path(root, ToolKind.EMULATOR, platform).exists(),
        adb_found=binary_path(root, ToolKind.ADB, platform).exists(),
    )
