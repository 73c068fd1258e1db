from __future__ import annotations

from abc import ABC, abstractmethod
from collections.abc import Sequence

from ..sdk.locator import SdkStatus
from .models import KillOutcome, LaunchOptions, LaunchResult, VirtualDevice


class EmulatorManager(ABC):
    """
    Abstract base class for virtual device lifecycle managers.

    Defines the operations the status boundary exposes to the presentation
    process: environment probe, discovery, launch and kill.
    """

    @abstractmethod
    def sdk_status(self) -> SdkStatus:
        """Probe the toolchain installation. Never cached."""
        ...

    @abstractmethod
    def discover(self) -> list[VirtualDevice]:
        """
        List configured virtual devices with a running-state snapshot.

        Implementations must not fail because running state is unavailable.
        """
        ...

    @abstractmethod
    def launch(self, name: str, options: LaunchOptions | None = None) -> None:
        """
        Start the named device.

        Returns once the process has been spawned, not once it has booted.
        """
        ...

    @abstractmethod
    def kill(self, name: str) -> KillOutcome:
        """Stop the named device."""
        ...

    def launch_multiple(
        self, names: Sequence[str], options: LaunchOptions | None = None
    ) -> list[LaunchResult]:
        """
        Launch each name in order; a failure on one name never stops the rest.

        Returns one outcome per input name, in input order.
        """
        results: list[LaunchResult] = []
        for name in names:
            try:
                self.launch(name, options)
            except Exception as e:
                results.append(LaunchResult(name=name, success=False, error=str(e) or "Unknown error"))
            else:
                results.append(LaunchResult(name=name, success=True))
        return results
