from __future__ import annotations

import threading
from collections.abc import Callable, Sequence
from pathlib import Path
from typing import Any

from ..config.models import Settings
from ..errors import (
    BinaryMissingError,
    KillFailedError,
    LaunchFailedError,
    ListFailedError,
    ProcessNotFoundError,
    SdkNotFoundError,
    SignalFailedError,
    ToolError,
)
from ..platform import HostPlatform
from ..sdk.locator import SdkStatus, ToolKind, binary_path, check_sdk_status, locate
from ..tools.invoker import ToolInvoker
from ..utils.cli import spawn_detached
from ..utils.logging import get_logger
from .base import EmulatorManager
from .events import ProcessEvents
from .models import (
    BridgeStatus,
    DeviceSurvey,
    KillOutcome,
    KillPath,
    LaunchOptions,
    LaunchResult,
    ManagedProcess,
    ProcessEvent,
    ProcessState,
    VirtualDevice,
)
from .process_table import ProcessTable

Spawner = Callable[[Sequence[str]], Any]


def build_launch_args(name: str, options: LaunchOptions | None = None) -> list[str]:
    """
    Build emulator arguments for one AVD.

    Flags always come in the same order: cold boot, wipe data, no audio,
    gpu mode, read only.
    """
    options = options or LaunchOptions()
    args = ["-avd", name]
    if options.cold_boot:
        args.append("-no-snapshot-load")
    if options.wipe_data:
        args.append("-wipe-data")
    if options.no_audio:
        args.append("-no-audio")
    if options.gpu_mode is not None:
        args += ["-gpu", options.gpu_mode.value]
    if options.read_only:
        args.append("-read-only")
    return args


class AndroidEmulatorManager(EmulatorManager):
    """
    Manages the lifecycle of Android emulator instances.

    Reconciles two sources of truth into one view of which AVDs exist and
    which are running:
    - the process table of emulators spawned by this instance (exact names)
    - `adb devices` output (transport ids such as ``emulator-5554``, no names)

    adb cannot map a transport id back to an AVD name without a per-instance
    query, so unless ``Settings.resolve_transport_names`` is enabled, only
    names found in the process table (or literally equal to a transport id)
    are reported as running, and the adb kill fallback signals every running
    emulator it can see.
    """

    def __init__(
        self,
        settings: Settings | None = None,
        *,
        invoker: ToolInvoker | None = None,
        table: ProcessTable | None = None,
        events: ProcessEvents | None = None,
        spawn: Spawner = spawn_detached,
        platform: HostPlatform | None = None,
    ) -> None:
        """
        Initialize AndroidEmulatorManager.

        Args:
            settings (Settings | None): Configuration; defaults are loaded from the environment.
            invoker (ToolInvoker | None): Runner for the emulator/adb one-shot commands.
            table (ProcessTable | None): Registry of spawned processes, owned by this manager.
            events (ProcessEvents | None): Channel receiving process state transitions.
            spawn (Spawner): Starts a detached emulator process.
            platform (HostPlatform | None): Host platform override.
        """
        self._settings = settings or Settings()
        self._platform = platform or HostPlatform.current()
        self._invoker = invoker or ToolInvoker(self._settings, self._platform)
        self._table = table if table is not None else ProcessTable()
        self._events = events if events is not None else ProcessEvents()
        self._spawn = spawn
        self._log = get_logger(__name__)

    @property
    def table(self) -> ProcessTable:
        return self._table

    @property
    def events(self) -> ProcessEvents:
        return self._events

    # ------------------------
    # Public API
    # ------------------------
    def sdk_status(self) -> SdkStatus:
        return check_sdk_status(self._settings, platform=self._platform)

    def survey(self) -> DeviceSurvey:
        """
        List AVDs with their running state and report how the bridge fared.

        Raises:
            SdkNotFoundError: If no SDK root can be resolved.
            BinaryMissingError: If the emulator binary is absent.
            ListFailedError: If `emulator -list-avds` fails.
        """
        root = self._require_root()
        self._require_binary(root, ToolKind.EMULATOR)

        try:
            names = self._invoker.list_device_images(root)
        except ToolError as e:
            self._log.error("Failed to list emulators", action="emulator_list_failed", error=str(e))
            raise ListFailedError(e) from e

        bridge = self._bridge_status(root)
        resolved = self._resolve_names(root, bridge.targets)

        devices = [
            VirtualDevice(
                name=name,
                running=(
                    self._table.contains(name) or name in bridge.targets or name in resolved
                ),
            )
            for name in names
        ]
        self._log.debug(
            "Emulators discovered",
            action="emulator_list",
            count=len(devices),
            running=[d.name for d in devices if d.running],
            bridge_targets=bridge.targets,
            bridge_degraded=bridge.degraded,
        )
        return DeviceSurvey(devices=devices, bridge=bridge)

    def discover(self) -> list[VirtualDevice]:
        return self.survey().devices

    def launch(self, name: str, options: LaunchOptions | None = None) -> None:
        """
        Spawn a detached emulator for ``name`` and register it.

        Success means the process started, not that the device has booted;
        poll ``discover()`` to observe the running state.

        Raises:
            SdkNotFoundError: If no SDK root can be resolved.
            BinaryMissingError: If the emulator binary is absent.
            LaunchFailedError: If the OS refused to start the process.
        """
        log = self._log.bind(device=name)
        root = self._require_root()
        exe = self._require_binary(root, ToolKind.EMULATOR)

        options = options if options is not None else self._settings.launch
        cmd = [str(exe), *build_launch_args(name, options)]
        log.info("Launching emulator", action="emulator_launch", cmd=" ".join(cmd))

        try:
            handle = self._spawn(cmd)
        except (OSError, ValueError) as e:
            # ValueError: Popen rejects arguments with embedded NUL bytes
            log.error("Failed to start emulator", action="emulator_launch_failed", error=str(e))
            raise LaunchFailedError(name, e) from e

        if self._table.contains(name):
            log.warning("Replacing existing process record", action="emulator_relaunch")
        record = self._table.insert(name, handle)
        self._publish(record)
        self._start_observer(record)
        log.info("Emulator process started", action="emulator_started", pid=record.pid)

    def kill(self, name: str) -> KillOutcome:
        """
        Stop the emulator for ``name``.

        Uses the owned process handle when this instance spawned it; otherwise
        falls back to `adb emu kill` on running emulators. The process table
        entry for ``name`` is removed whichever path is taken.

        Raises:
            KillFailedError: If neither path could be attempted.
        """
        log = self._log.bind(device=name)
        try:
            if self._table.contains(name):
                try:
                    record = self._table.kill(name)
                except ProcessNotFoundError:
                    log.debug("Process exited before kill", action="emulator_kill_raced")
                except SignalFailedError as e:
                    log.warning(
                        "Failed to signal emulator process, falling back to adb",
                        action="emulator_signal_failed",
                        error=str(e.cause),
                    )
                else:
                    log.info("Emulator process terminated", action="emulator_killed", pid=record.pid)
                    return KillOutcome(name=name, path=KillPath.PROCESS)

            return self._kill_via_bridge(name)
        finally:
            self._table.remove(name)

    def launch_multiple(
        self, names: Sequence[str], options: LaunchOptions | None = None
    ) -> list[LaunchResult]:
        results = super().launch_multiple(names, options)
        self._log.info(
            "Launched emulators",
            action="emulator_launch_multiple",
            requested=len(results),
            failed=[r.name for r in results if not r.success],
        )
        return results

    # ------------------------
    # Helper methods
    # ------------------------
    def _require_root(self) -> Path:
        root = locate(self._settings, platform=self._platform)
        if root is None:
            raise SdkNotFoundError()
        return root

    def _require_binary(self, root: Path, tool: ToolKind) -> Path:
        exe = binary_path(root, tool, self._platform)
        if not exe.exists():
            raise BinaryMissingError(tool.value, exe)
        return exe

    def _bridge_status(self, root: Path) -> BridgeStatus:
        """Enumerate running transports; the invoker reports failures as a degraded status."""
        status = self._invoker.list_bridge_targets(root)
        if status.degraded:
            self._log.warning(
                "Running state unavailable from adb",
                action="bridge_degraded",
                reason=status.reason,
            )
        return status

    def _resolve_names(self, root: Path, targets: list[str]) -> dict[str, str]:
        """Map AVD name -> transport id for targets that report their name."""
        if not self._settings.resolve_transport_names:
            return {}
        resolved: dict[str, str] = {}
        for target in targets:
            avd = self._invoker.query_avd_name(root, target)
            if avd:
                resolved[avd] = target
        return resolved

    def _kill_via_bridge(self, name: str) -> KillOutcome:
        log = self._log.bind(device=name)
        root = locate(self._settings, platform=self._platform)
        if root is None:
            raise KillFailedError(name, SdkNotFoundError())

        adb = binary_path(root, ToolKind.ADB, self._platform)
        if not adb.exists():
            log.warning("adb not found, nothing to signal", action="emulator_kill_skipped", adb=str(adb))
            return KillOutcome(name=name, path=KillPath.NONE)

        status = self._invoker.list_bridge_targets(root)
        if status.degraded:
            raise KillFailedError(name, f"Failed to get device list: {status.reason}")

        targets = status.targets
        if self._settings.resolve_transport_names:
            targets = [t for t in targets if self._invoker.query_avd_name(root, t) in (None, name)]

        failed: list[str] = []
        for target in targets:
            try:
                self._invoker.kill_target(root, target)
            except ToolError as e:
                log.warning(
                    "Error killing emulator", action="bridge_kill_failed", target=target, error=str(e)
                )
                failed.append(target)

        log.info(
            "Emulator kill requested via adb",
            action="emulator_killed_bridge",
            targets=targets,
            failed=failed,
        )
        return KillOutcome(name=name, path=KillPath.BRIDGE, targets=targets, failed_targets=failed)

    def _publish(self, record: ManagedProcess) -> None:
        self._events.publish(
            ProcessEvent(
                name=record.name,
                state=record.state,
                pid=record.pid,
                exit_code=record.exit_code,
                error=record.error,
            )
        )

    def _start_observer(self, record: ManagedProcess) -> None:
        t = threading.Thread(
            target=self._observe,
            args=(record,),
            name=f"emulator-observer-{record.name}",
            daemon=True,
        )
        t.start()

    def _observe(self, record: ManagedProcess) -> None:
        """Track one process until it exits, then drop its table entry."""
        record.state = ProcessState.RUNNING
        self._publish(record)
        try:
            code = record.handle.wait()
        except Exception as e:
            record.state = ProcessState.FAILED
            record.error = str(e)
        else:
            record.state = ProcessState.EXITED
            record.exit_code = code
        self._table.remove_if(record.name, record)
        self._publish(record)

        if record.state is ProcessState.FAILED:
            self._log.error(
                "Emulator process failed",
                action="emulator_failed",
                device=record.name,
                pid=record.pid,
                error=record.error,
            )
        else:
            self._log.info(
                "Emulator exited",
                action="emulator_exited",
                device=record.name,
                pid=record.pid,
                code=record.exit_code,
            )
