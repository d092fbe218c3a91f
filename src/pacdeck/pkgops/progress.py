"""Progress record publishing for package operations."""

from __future__ import annotations

import logging as py_logging
import queue
import threading
from collections.abc import Callable

from pacdeck.pkgops.models import Operation, ProgressRecord

logger = py_logging.getLogger(__name__)

PACKAGE_PROGRESS_EVENT = "package-progress"

PIPED_BASE_PROGRESS = 10
PIPED_PROGRESS_STEP = 5
PIPED_PROGRESS_CAP = 90
INTERACTIVE_PROGRESS = 50

ProgressObserver = Callable[[ProgressRecord], None]


class ProgressReporter:
    """Fire-and-forget delivery of progress records to a single observer.

    Observers receive deep copies. Delivery failures are logged and never
    propagate into the running operation.
    """

    def __init__(self, observer: ProgressObserver | None = None) -> None:
        self._observer = observer
        self._lock = threading.Lock()

    def publish(self, record: ProgressRecord) -> None:
        if self._observer is None:
            return
        snapshot = record.model_copy(deep=True)
        with self._lock:
            try:
                self._observer(snapshot)
            except Exception:
                logger.warning(
                    "Failed to emit %s operation=%s progress=%s",
                    PACKAGE_PROGRESS_EVENT,
                    record.operation_kind.value,
                    record.progress,
                    exc_info=True,
                )


class QueueObserver:
    """Thread-safe multi-producer channel that buffers published records."""

    def __init__(self) -> None:
        self._queue: queue.SimpleQueue[ProgressRecord] = queue.SimpleQueue()

    def __call__(self, record: ProgressRecord) -> None:
        self._queue.put(record)

    def get(self, timeout: float | None = None) -> ProgressRecord:
        return self._queue.get(timeout=timeout)

    def drain(self) -> list[ProgressRecord]:
        records: list[ProgressRecord] = []
        while True:
            try:
                records.append(self._queue.get_nowait())
            except queue.Empty:
                return records


class OperationProgress:
    """Builds and publishes the record stream of one operation.

    Progress never decreases and nothing is published after the final record.
    """

    def __init__(self, operation: Operation, reporter: ProgressReporter) -> None:
        self.operation = operation
        self.reporter = reporter
        self.progress = 0
        self.output_lines: list[str] = []
        self.finished = False

    @property
    def label(self) -> str:
        return self.operation.label

    def _publish(self, *, progress: int, status: str, running: bool) -> None:
        if self.finished:
            logger.warning("progress-after-final ignored operation=%s status=%s", self.label, status)
            return
        if running:
            self.progress = max(self.progress, progress)
        else:
            self.progress = progress
            self.finished = True
        record = ProgressRecord(
            operation_kind=self.operation.kind,
            target_package=self.operation.target_package,
            progress=self.progress,
            status=status,
            output_lines=list(self.output_lines),
            running=running,
        )
        self.reporter.publish(record)

    def starting(self) -> None:
        self._publish(progress=0, status=f"Starting {self.label}...", running=True)

    def append(self, text: str) -> None:
        self.output_lines.append(text)

    def line(self, text: str) -> None:
        self.output_lines.append(text)
        current = max(self.progress, PIPED_BASE_PROGRESS)
        self._publish(
            progress=min(current + PIPED_PROGRESS_STEP, PIPED_PROGRESS_CAP),
            status=f"Processing {self.label}...",
            running=True,
        )

    def in_terminal(self, terminal: str) -> None:
        self.output_lines.append(f"Opening {terminal} terminal for interactive command...")
        self._publish(
            progress=INTERACTIVE_PROGRESS,
            status=f"Running {self.label} in terminal...",
            running=True,
        )

    def completed(self, status: str) -> None:
        self._publish(progress=100, status=status, running=False)

    def no_terminal(self, message: str) -> None:
        self.output_lines.append(message)
        self._publish(
            progress=0,
            status=f"Failed to find suitable terminal for {self.label}",
            running=False,
        )
