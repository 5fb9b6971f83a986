"""
Human-readable status output for the supervisor.

Every report is a timestamp line carrying a header, followed by one line per
process record in index order. Reports are written to the manager's output
stream (stdout by default) and never change process state.
"""

import time
from typing import TYPE_CHECKING, Callable, Optional, TextIO, Tuple

from macd.local.supervisor.records import ProcessRecord, ProcessState

if TYPE_CHECKING:
    from .supervisor import ProcessManager

Sampler = Callable[[int], Optional[Tuple[int, float]]]

START_HEADER = "Starting report"
PERIODIC_HEADER = "Normal report"
FINAL_EXITED_HEADER = "All processes exited"
FINAL_TIMEOUT_HEADER = "Time limit reached"
FINAL_SIGNAL_HEADER = "Signal received"


def _emit(stream: TextIO, line: str) -> None:
    print(line, file=stream, flush=True)


def format_timestamp(header: str, now: Optional[float] = None) -> str:
    """Formats `<header>, <ctime-style date>`, e.g. 'Normal report, Sun Oct 18 10:01:02 2026'."""
    return f"{header}, {time.ctime(now)}"


def print_timestamp(stream: TextIO, header: str) -> None:
    _emit(stream, format_timestamp(header))


def print_start_message(stream: TextIO, record: ProcessRecord) -> None:
    command = " ".join((record.spec.path,) + record.spec.arguments)
    _emit(stream, f"[{record.index}] {command}, started successfully (pid: {record.pid})")


def print_launch_failure(stream: TextIO, record: ProcessRecord) -> None:
    _emit(stream, f"[{record.index}] {record.spec.path}, failed to start")


def format_status_line(record: ProcessRecord, sampler: Sampler) -> str:
    """
    Renders the status of one record.

    RUNNING records are sampled for CPU and memory; a sample that comes back
    empty (the process vanished in between) just leaves the figures out.
    """
    if record.state is ProcessState.RUNNING:
        usage = sampler(record.pid)
        if usage is None:
            return f"[{record.index}] Running"
        cpu_percent, memory_mb = usage
        return f"[{record.index}] Running, cpu usage: {cpu_percent}%, mem usage: {memory_mb:.2f} MB"
    if record.state is ProcessState.TERMINATED:
        return f"[{record.index}] Terminated"
    return f"[{record.index}] Exited"


def report(manager: "ProcessManager", header: str) -> None:
    """Prints a timestamped header followed by one status line per process."""
    print_timestamp(manager.stream, header)
    for record in manager.processes:
        _emit(manager.stream, format_status_line(record, manager.sampler))


def report_final(manager: "ProcessManager", header: str) -> None:
    """Prints the last report of a run and the total elapsed time."""
    report(manager, header)
    _emit(manager.stream, f"Exiting (total time: {manager.elapsed_seconds:g} seconds)")
