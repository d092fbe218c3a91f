from __future__ import annotations

import threading

import pytest
from pydantic import ValidationError

from pacdeck.pkgops.models import Operation, OperationKind, ProgressRecord
from pacdeck.pkgops.progress import OperationProgress, ProgressReporter, QueueObserver


def _record(**overrides: object) -> ProgressRecord:
    payload: dict[str, object] = {
        "operation_kind": OperationKind.INSTALL,
        "target_package": "vim",
        "progress": 10,
        "status": "Processing install...",
        "output_lines": ["resolving dependencies..."],
    }
    payload.update(overrides)
    return ProgressRecord(**payload)


def test_reporter_delivers_copies() -> None:
    received: list[ProgressRecord] = []
    record = _record()

    ProgressReporter(received.append).publish(record)
    record.output_lines.append("mutated after publish")

    assert received[0].output_lines == ["resolving dependencies..."]
    assert received[0] is not record


def test_reporter_swallows_observer_failures() -> None:
    def broken(_record: ProgressRecord) -> None:
        raise RuntimeError("ui bridge is gone")

    ProgressReporter(broken).publish(_record())


def test_reporter_without_observer_is_noop() -> None:
    ProgressReporter().publish(_record())


def test_queue_observer_accepts_concurrent_publishers() -> None:
    channel = QueueObserver()
    reporter = ProgressReporter(channel)

    def produce(worker: int) -> None:
        for step in range(50):
            reporter.publish(_record(status=f"worker-{worker}", progress=step))

    threads = [threading.Thread(target=produce, args=(index,)) for index in range(8)]
    for thread in threads:
        thread.start()
    for thread in threads:
        thread.join()

    records = channel.drain()
    assert len(records) == 400
    assert channel.drain() == []


def test_progress_record_serializes_with_wire_names() -> None:
    event = _record(running=False, progress=100).to_event()

    assert event == {
        "operation": "install",
        "package_name": "vim",
        "progress": 100,
        "status": "Processing install...",
        "output": ["resolving dependencies..."],
        "running": False,
    }


def test_progress_record_rejects_out_of_range_progress() -> None:
    with pytest.raises(ValidationError):
        _record(progress=101)


def test_operation_progress_caps_line_increments() -> None:
    received: list[ProgressRecord] = []
    tracker = OperationProgress(
        Operation(kind=OperationKind.INSTALL, target_package="vim"),
        ProgressReporter(received.append),
    )

    tracker.starting()
    for index in range(20):
        tracker.line(f"line {index}")

    values = [record.progress for record in received]
    assert values[:4] == [0, 15, 20, 25]
    assert max(values) == 90
    assert values[-1] == 90
    assert received[-1].output_lines[-1] == "line 19"
    assert all(record.running for record in received)


def test_operation_progress_ignores_records_after_final() -> None:
    received: list[ProgressRecord] = []
    tracker = OperationProgress(Operation(kind=OperationKind.SYSTEM_UPDATE), ProgressReporter(received.append))

    tracker.starting()
    tracker.completed("system update completed successfully")
    tracker.line("late output")

    assert [record.running for record in received] == [True, False]
    assert received[-1].progress == 100
    assert received[-1].target_package is None


def test_operation_progress_append_buffers_without_publishing() -> None:
    received: list[ProgressRecord] = []
    tracker = OperationProgress(
        Operation(kind=OperationKind.REMOVE, target_package="vim"),
        ProgressReporter(received.append),
    )

    tracker.append("ERROR: target not found: vim")
    tracker.completed("remove failed")

    assert len(received) == 1
    assert received[0].output_lines == ["ERROR: target not found: vim"]
