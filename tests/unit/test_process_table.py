from __future__ import annotations

import threading
from typing import Any

import pytest

from emulauncher.device.models import ProcessState
from emulauncher.device.process_table import ProcessTable
from emulauncher.errors import ProcessNotFoundError, SignalFailedError

from conftest import FakeProcess


def test_insert_lookup_remove() -> None:
    table = ProcessTable()
    p = FakeProcess()
    record = table.insert("Pixel_6", p)  # type: ignore[arg-type]

    assert record.state is ProcessState.STARTING
    assert record.pid == p.pid
    assert table.contains("Pixel_6") and "Pixel_6" in table
    assert table.get("Pixel_6") is record
    assert table.names() == ["Pixel_6"]
    assert len(table) == 1

    assert table.remove("Pixel_6") is record
    assert table.remove("Pixel_6") is None
    assert not table.contains("Pixel_6")


def test_insert_same_name_last_writer_wins() -> None:
    table = ProcessTable()
    first = table.insert("Pixel_6", FakeProcess())  # type: ignore[arg-type]
    second = table.insert("Pixel_6", FakeProcess())  # type: ignore[arg-type]
    assert table.get("Pixel_6") is second
    assert len(table) == 1
    # A stale observer for the first process must not drop the newer record
    assert table.remove_if("Pixel_6", first) is False
    assert table.remove_if("Pixel_6", second) is True
    assert len(table) == 0


def test_kill_terminates_and_removes() -> None:
    table = ProcessTable()
    p = FakeProcess()
    table.insert("Pixel_6", p)  # type: ignore[arg-type]
    record = table.kill("Pixel_6")
    assert p.terminated
    assert record.handle is p
    assert not table.contains("Pixel_6")


def test_kill_missing_name() -> None:
    with pytest.raises(ProcessNotFoundError):
        ProcessTable().kill("ghost")


def test_kill_signal_failure_keeps_entry() -> None:
    table = ProcessTable()
    p = FakeProcess()
    p.terminate_error = PermissionError("operation not permitted")
    table.insert("Pixel_6", p)  # type: ignore[arg-type]
    with pytest.raises(SignalFailedError) as ei:
        table.kill("Pixel_6")
    assert isinstance(ei.value.cause, PermissionError)
    assert table.contains("Pixel_6")


def test_kill_already_exited_process_is_success() -> None:
    table = ProcessTable()
    p = FakeProcess()
    p.terminate_error = ProcessLookupError("no such process")
    table.insert("Pixel_6", p)  # type: ignore[arg-type]
    table.kill("Pixel_6")
    assert not table.contains("Pixel_6")


def test_concurrent_access_for_different_names() -> None:
    table = ProcessTable()
    errors: list[BaseException] = []

    def worker(i: int) -> None:
        try:
            for _ in range(50):
                name = f"avd_{i}"
                table.insert(name, FakeProcess())  # type: ignore[arg-type]
                assert table.contains(name)
                table.kill(name)
        except BaseException as e:  # pragma: no cover - surfaced below
            errors.append(e)

    threads: list[Any] = [threading.Thread(target=worker, args=(i,)) for i in range(8)]
    for t in threads:
        t.start()
    for t in threads:
        t.join()

    assert errors == []
    assert len(table) == 0
