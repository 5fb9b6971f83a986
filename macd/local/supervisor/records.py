"""In-memory bookkeeping for supervised processes."""

from __future__ import annotations

import enum
import subprocess
from dataclasses import dataclass, field
from typing import Iterator, List, Optional, Tuple


class ProcessState(enum.Enum):
    FAILED_TO_START = "failed_to_start"
    RUNNING = "running"
    EXITED_NORMALLY = "exited_normally"
    TERMINATED = "terminated"

    @property
    def is_terminal(self) -> bool:
        return self is not ProcessState.RUNNING


@dataclass(frozen=True)
class ProcessSpec:
    """An executable path plus its full argument vector (args[0] is the path)."""

    path: str
    args: Tuple[str, ...]

    @property
    def arguments(self) -> Tuple[str, ...]:
        """The arguments after argv[0]."""
        return self.args[1:]


@dataclass
class ProcessRecord:
    """State of one supervised process for the lifetime of a run."""

    index: int
    spec: ProcessSpec
    state: ProcessState
    pid: Optional[int] = None
    was_terminated: bool = False
    timed_out: bool = False
    exit_code: Optional[int] = None
    process: Optional[subprocess.Popen] = field(default=None, repr=False)

    @property
    def is_running(self) -> bool:
        return self.state is ProcessState.RUNNING


class ProcessTable:
    """
    Ordered store of ProcessRecords, indexable by record index.

    Records are appended while processes are being launched, after which the
    table is sealed and only the state of existing records may change. The
    running count is updated together with each state transition so it always
    equals the number of records in the RUNNING state.
    """

    def __init__(self) -> None:
        self._records: List[ProcessRecord] = []
        self._sealed = False
        self._running = 0

    def __len__(self) -> int:
        return len(self._records)

    def __iter__(self) -> Iterator[ProcessRecord]:
        return iter(self._records)

    def __getitem__(self, index: int) -> ProcessRecord:
        return self._records[index]

    @property
    def running_count(self) -> int:
        return self._running

    @property
    def sealed(self) -> bool:
        return self._sealed

    def seal(self) -> None:
        """Fixes the record count; called once every spec has been launched."""
        self._sealed = True

    def running(self) -> List[ProcessRecord]:
        """Snapshot of the RUNNING records in index order."""
        return [record for record in self._records if record.is_running]

    def count_in_state(self, state: ProcessState) -> int:
        return sum(1 for record in self._records if record.state is state)

    def add(self, spec: ProcessSpec) -> ProcessRecord:
        """
        Appends a record for `spec` at the next index in the FAILED_TO_START state.

        The launcher promotes it with `mark_running` once the OS process exists.

        :raises RuntimeError: If the table has already been sealed.
        """
        if self._sealed:
            raise RuntimeError("Cannot add process records after supervision has started.")
        record = ProcessRecord(index=len(self._records), spec=spec, state=ProcessState.FAILED_TO_START)
        self._records.append(record)
        return record

    def mark_running(self, record: ProcessRecord, process: subprocess.Popen) -> None:
        if record.is_running:
            raise RuntimeError(f"Process record {record.index} is already running.")
        record.process = process
        record.pid = process.pid
        record.state = ProcessState.RUNNING
        self._running += 1

    def mark_finished(
        self,
        record: ProcessRecord,
        state: ProcessState,
        was_terminated: bool,
        exit_code: Optional[int] = None,
    ) -> None:
        """
        Moves a RUNNING record to a terminal state after its process was reaped.

        The OS handle and pid are dropped so the process is never polled or
        waited on again.

        :raises RuntimeError: If the record is not RUNNING or `state` is not terminal.
        """
        if not record.is_running:
            raise RuntimeError(f"Process record {record.index} is not running (state: {record.state.value}).")
        if not state.is_terminal or state is ProcessState.FAILED_TO_START:
            raise RuntimeError(f"Invalid transition for record {record.index}: running -> {state.value}.")
        record.state = state
        record.was_terminated = was_terminated
        record.exit_code = exit_code
        record.pid = None
        record.process = None
        self._running -= 1
