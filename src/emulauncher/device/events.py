from __future__ import annotations

import queue
import threading

from .models import ProcessEvent


class ProcessEvents:
    """
    Thread-safe fan-out channel for managed process transitions.

    Each subscriber gets its own unbounded queue and receives every event
    published after it subscribed, in publish order.
    """

    def __init__(self) -> None:
        self._subscribers: list[queue.Queue[ProcessEvent]] = []
        self._lock = threading.RLock()

    def subscribe(self) -> queue.Queue[ProcessEvent]:
        q: queue.Queue[ProcessEvent] = queue.Queue()
        with self._lock:
            self._subscribers.append(q)
        return q

    def unsubscribe(self, q: queue.Queue[ProcessEvent]) -> None:
        with self._lock:
            if q in self._subscribers:
                self._subscribers.remove(q)

    def publish(self, event: ProcessEvent) -> None:
        with self._lock:
            for q in self._subscribers:
                q.put_nowait(event)
