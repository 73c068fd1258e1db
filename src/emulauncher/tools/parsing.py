from __future__ import annotations

import re

# Diagnostic lines the emulator interleaves with the AVD list
_DIAGNOSTIC_PREFIXES = ("INFO", "WARNING", "ERROR")
# Informational table rows ("AVD|Pixel|x86") use this separator
_COLUMN_SEPARATOR = "|"

# "emulator-5554\tdevice"; offline/unauthorized transports do not match
_BRIDGE_DEVICE_RE = re.compile(r"^(emulator-\d+)\s+device\s*$")


def filter_avd_names(stdout: str) -> list[str]:
    """
    Extract AVD names from `emulator -list-avds` output.

    Order is preserved and duplicates are passed through as-is.
    Applying the filter to its own (newline-joined) output is a no-op.
    """
    names: list[str] = []
    for raw in stdout.splitlines():
        line = raw.strip()
        if not line:
            continue
        if line.startswith(_DIAGNOSTIC_PREFIXES):
            continue
        if _COLUMN_SEPARATOR in line:
            continue
        names.append(line)
    return names


def parse_bridge_targets(stdout: str) -> list[str]:
    """Return transport ids of running emulators from `adb devices` output."""
    targets: list[str] = []
    for raw in stdout.splitlines():
        m = _BRIDGE_DEVICE_RE.match(raw.strip())
        if m:
            targets.append(m.group(1))
    return targets


def parse_avd_name(stdout: str) -> str | None:
    """
    Extract the AVD name from `adb -s <id> emu avd name` output.

    The console answers with the name followed by an "OK" status line.
    """
    for raw in stdout.splitlines():
        line = raw.strip()
        if line and line != "OK":
            return line
    return None
