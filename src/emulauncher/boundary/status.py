from __future__ import annotations

from collections.abc import Callable, Mapping, Sequence
from typing import Any, TypeVar

from pydantic import BaseModel

from ..device.base import EmulatorManager
from ..device.models import LaunchOptions, LaunchResult
from ..utils.logging import get_logger

T = TypeVar("T")

logger = get_logger(__name__)

OptionsInput = LaunchOptions | Mapping[str, Any] | None


class Envelope(BaseModel):
    """Uniform `{success, data?, error?}` response sent to the presentation process."""

    success: bool
    data: Any = None
    error: str | None = None

    def to_payload(self) -> dict[str, Any]:
        payload: dict[str, Any] = {"success": self.success}
        if self.data is not None:
            payload["data"] = self.data
        if self.error is not None:
            payload["error"] = self.error
        return payload


def _error_message(exc: BaseException) -> str:
    return str(exc) or "Unknown error"


def _coerce_options(options: OptionsInput) -> LaunchOptions | None:
    if options is None or isinstance(options, LaunchOptions):
        return options
    return LaunchOptions.model_validate(dict(options))


class StatusBoundary:
    """
    Request/response surface over an EmulatorManager.

    Pure mapping: every call returns an Envelope and never raises.
    """

    def __init__(self, manager: EmulatorManager) -> None:
        self._manager = manager

    def _call(self, operation: str, fn: Callable[[], T], wrap: Callable[[T], Any]) -> Envelope:
        try:
            return Envelope(success=True, data=wrap(fn()))
        except Exception as e:
            logger.warning("Operation failed", action=operation, error=_error_message(e))
            return Envelope(success=False, error=_error_message(e))

    def sdk_status(self) -> Envelope:
        return self._call("sdk_status", self._manager.sdk_status, lambda s: s.to_payload())

    def list_devices(self) -> Envelope:
        return self._call(
            "list_devices",
            self._manager.discover,
            lambda devices: [d.to_payload() for d in devices],
        )

    def launch(self, name: str, options: OptionsInput = None) -> Envelope:
        return self._call(
            "launch",
            lambda: self._manager.launch(name, _coerce_options(options)),
            lambda _: None,
        )

    def kill(self, name: str) -> Envelope:
        return self._call("kill", lambda: self._manager.kill(name), lambda _: None)

    def launch_multiple(self, names: Sequence[str], options: OptionsInput = None) -> Envelope:
        try:
            coerced = _coerce_options(options)
        except (TypeError, ValueError) as e:
            # Bad options fail every name; nothing is spawned
            logger.warning("Invalid launch options", action="launch_multiple", error=_error_message(e))
            results = [LaunchResult(name=n, success=False, error=_error_message(e)) for n in names]
            return Envelope(success=True, data=[r.to_payload() for r in results])
        return self._call(
            "launch_multiple",
            lambda: self._manager.launch_multiple(names, coerced),
            lambda results: [r.to_payload() for r in results],
        )
