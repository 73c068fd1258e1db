from __future__ import annotations

import subprocess
from dataclasses import dataclass
from enum import Enum
from typing import Any

from pydantic import AliasChoices, BaseModel, ConfigDict, Field


class GpuMode(str, Enum):
    """GPU rendering modes accepted by the emulator's ``-gpu`` flag."""

    AUTO = "auto"
    HOST = "host"
    SWIFTSHADER_INDIRECT = "swiftshader_indirect"
    OFF = "off"


class LaunchOptions(BaseModel):
    """
    Independent boot-time toggles for one launch request.

    Every field maps to exactly one emulator flag. ``None``/``False`` means
    "use the emulator's default". Accepts the camelCase keys sent by the
    presentation process as well as snake_case.
    """

    model_config = ConfigDict(populate_by_name=True, frozen=True)

    cold_boot: bool = Field(False, validation_alias=AliasChoices("coldBoot", "cold_boot"))
    wipe_data: bool = Field(False, validation_alias=AliasChoices("wipeData", "wipe_data"))
    no_audio: bool = Field(False, validation_alias=AliasChoices("noAudio", "no_audio"))
    gpu_mode: GpuMode | None = Field(None, validation_alias=AliasChoices("gpuMode", "gpu_mode"))
    read_only: bool = Field(False, validation_alias=AliasChoices("readOnly", "read_only"))


class VirtualDevice(BaseModel):
    """One configured AVD. ``running`` is a snapshot recomputed on every query."""

    name: str
    running: bool = False

    def to_payload(self) -> dict[str, Any]:
        return {"name": self.name, "isRunning": self.running}


class ProcessState(str, Enum):
    STARTING = "starting"
    RUNNING = "running"
    EXITED = "exited"
    FAILED = "failed"


@dataclass(slots=True, eq=False)
class ManagedProcess:
    """Ownership record for an emulator process spawned by this manager."""

    name: str
    handle: subprocess.Popen[Any]
    state: ProcessState = ProcessState.STARTING
    exit_code: int | None = None
    error: str | None = None

    @property
    def pid(self) -> int | None:
        return getattr(self.handle, "pid", None)


@dataclass(frozen=True, slots=True)
class ProcessEvent:
    """A single state transition of a managed process."""

    name: str
    state: ProcessState
    pid: int | None = None
    exit_code: int | None = None
    error: str | None = None


class BridgeStatus(BaseModel):
    """
    Result of enumerating running instances through adb.

    ``degraded`` is set when the enumeration could not be performed and
    ``targets`` is empty for that reason rather than because nothing runs.
    """

    targets: list[str] = Field(default_factory=list)
    degraded: bool = False
    reason: str | None = None


class DeviceSurvey(BaseModel):
    devices: list[VirtualDevice]
    bridge: BridgeStatus


class KillPath(str, Enum):
    PROCESS = "process"  # terminated through the owned handle
    BRIDGE = "bridge"  # fell back to `adb emu kill`
    NONE = "none"  # nothing could be signalled


class KillOutcome(BaseModel):
    name: str
    path: KillPath
    targets: list[str] = Field(default_factory=list)
    failed_targets: list[str] = Field(default_factory=list)

    @property
    def degraded(self) -> bool:
        return self.path is not KillPath.PROCESS or bool(self.failed_targets)


class LaunchResult(BaseModel):
    name: str
    success: bool
    error: str | None = None

    def to_payload(self) -> dict[str, Any]:
        payload: dict[str, Any] = {"name": self.name, "success": self.success}
        if self.error is not None:
            payload["error"] = self.error
        return payload
