from __future__ import annotations

import subprocess
import threading
from typing import Any

from ..errors import ProcessNotFoundError, SignalFailedError
from .models import ManagedProcess


class ProcessTable:
    """
    Registry of emulator processes spawned by one manager instance.

    Keyed by AVD name. Every operation runs under a single re-entrant lock,
    so insert/remove/kill on the same name never interleave.
    """

    def __init__(self) -> None:
        self._entries: dict[str, ManagedProcess] = {}
        self._lock = threading.RLock()

    def insert(self, name: str, handle: subprocess.Popen[Any]) -> ManagedProcess:
        """Register a freshly spawned process; an existing entry is replaced."""
        record = ManagedProcess(name=name, handle=handle)
        with self._lock:
            self._entries[name] = record
        return record

    def get(self, name: str) -> ManagedProcess | None:
        with self._lock:
            return self._entries.get(name)

    def remove(self, name: str) -> ManagedProcess | None:
        with self._lock:
            return self._entries.pop(name, None)

    def remove_if(self, name: str, record: ManagedProcess) -> bool:
        """Remove the entry only if it is still ``record``."""
        with self._lock:
            if self._entries.get(name) is record:
                del self._entries[name]
                return True
            return False

    def contains(self, name: str) -> bool:
        with self._lock:
            return name in self._entries

    __contains__ = contains

    def names(self) -> list[str]:
        with self._lock:
            return list(self._entries)

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)

    def kill(self, name: str) -> ManagedProcess:
        """
        Terminate the stored process, then drop its entry.

        Raises:
            ProcessNotFoundError: If there is no entry for ``name``.
            SignalFailedError: If the OS refused the terminate call; the entry is kept.
        """
        with self._lock:
            record = self._entries.get(name)
            if record is None:
                raise ProcessNotFoundError(name)
            try:
                record.handle.terminate()
            except ProcessLookupError:
                # Already gone between our last poll and the signal
                pass
            except OSError as e:
                raise SignalFailedError(name, e) from e
            del self._entries[name]
            return record
