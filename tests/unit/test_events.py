from __future__ import annotations

from emulauncher.device.events import ProcessEvents
from emulauncher.device.models import ProcessEvent, ProcessState


def test_subscribers_receive_events_in_order() -> None:
    events = ProcessEvents()
    a = events.subscribe()
    events.publish(ProcessEvent("Pixel_6", ProcessState.STARTING, pid=1))
    b = events.subscribe()
    events.publish(ProcessEvent("Pixel_6", ProcessState.RUNNING, pid=1))

    assert [a.get_nowait().state, a.get_nowait().state] == [
        ProcessState.STARTING,
        ProcessState.RUNNING,
    ]
    # Late subscriber only sees what was published after it subscribed
    assert b.get_nowait().state is ProcessState.RUNNING
    assert b.empty()


def test_unsubscribe_stops_delivery() -> None:
    events = ProcessEvents()
    q = events.subscribe()
    events.unsubscribe(q)
    events.unsubscribe(q)  # second call is a no-op
    events.publish(ProcessEvent("Pixel_6", ProcessState.EXITED, exit_code=0))
    assert q.empty()
