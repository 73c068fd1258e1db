from __future__ import annotations

import sys
from enum import Enum


class HostPlatform(str, Enum):
    """
    Enumeration for supported host operating systems.

    Used only to select binary suffixes and default SDK search paths.
    """

    WINDOWS = "windows"
    MACOS = "macos"
    LINUX = "linux"

    @classmethod
    def current(cls) -> HostPlatform:
        """Return the platform of the running interpreter."""
        if sys.platform.startswith("win"):
            return cls.WINDOWS
        if sys.platform == "darwin":
            return cls.MACOS
        return cls.LINUX

    @property
    def executable_suffix(self) -> str:
        return ".exe" if self is HostPlatform.WINDOWS else ""
