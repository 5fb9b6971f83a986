import os
import errno
import signal
import logging
import threading
import subprocess
from pathlib import Path
from typing import TYPE_CHECKING, Any, Dict
from macd.local.supervisor import reporter
from macd.local.supervisor.records import ProcessRecord, ProcessSpec, ProcessState

if TYPE_CHECKING:
    from .supervisor import ProcessManager

log = logging.getLogger(__name__)

# exec() failures that make a single spec unlaunchable without affecting the run.
EXEC_FAILURE_ERRNOS = {errno.ENOENT, errno.EACCES, errno.ENOEXEC, errno.ENOTDIR, errno.EISDIR}


class SupervisorError(RuntimeError):
    """An OS-level failure after which process bookkeeping can no longer be trusted."""


#* --- Process Output ---
def _read_pipe(pipe, process_name: str, level: int) -> None:
    """Target function for reader threads. Reads and logs lines from a subprocess pipe."""
    proc_logger = logging.getLogger(f"proc.{process_name}")
    try:
        for line_bytes in iter(pipe.readline, b""):
            line = line_bytes.decode("utf-8", errors="replace").rstrip()
            if line:
                proc_logger.log(level, line)
    except (OSError, ValueError) as e:
        proc_logger.debug(f"Pipe reader for {process_name} stream exited: {e}")
    finally:
        pipe.close()


def log_process_output(process: subprocess.Popen, name: str) -> None:
    """Starts background threads to consume and log a process's stdout/stderr."""
    if process.stdout:
        threading.Thread(target=_read_pipe, args=(process.stdout, name, logging.INFO), daemon=True).start()
    if process.stderr:
        threading.Thread(target=_read_pipe, args=(process.stderr, name, logging.ERROR), daemon=True).start()


#* --- Process Creation ---
def _get_popen_kwargs(capture_output: bool) -> Dict[str, Any]:
    """Returns the keyword arguments for subprocess.Popen."""
    # Own session: terminal signals reach only the supervisor, which then kills its children.
    popen_kwargs: Dict[str, Any] = {"start_new_session": True}
    if capture_output:
        popen_kwargs.update(stdout=subprocess.PIPE, stderr=subprocess.PIPE)
    return popen_kwargs


def launch_process(manager: "ProcessManager", spec: ProcessSpec) -> ProcessRecord:
    """
    Launches a single process and records it in the manager's process table.

    A missing or non-executable program marks the record FAILED_TO_START and
    the run carries on. Any other failure to create the process is fatal.

    :param manager: The ProcessManager instance.
    :param spec: The program and arguments to run.
    :return: The new record, RUNNING or FAILED_TO_START.
    :raises SupervisorError: If the OS refuses to create the process.
    """
    record = manager.processes.add(spec)
    executable = Path(os.path.abspath(spec.path))

    if not executable.exists():
        log.warning(f"Process {record.index}: executable '{spec.path}' does not exist.")
        reporter.print_launch_failure(manager.stream, record)
        return record

    try:
        process = subprocess.Popen(
            list(spec.args),
            executable=str(executable),
            **_get_popen_kwargs(manager.capture_output),
        )
    except OSError as e:
        if e.errno in EXEC_FAILURE_ERRNOS:
            log.warning(f"Process {record.index}: cannot execute '{spec.path}': {e.strerror}")
            reporter.print_launch_failure(manager.stream, record)
            return record
        raise SupervisorError(f"Failed to create process for '{spec.path}': {e}") from e

    manager.processes.mark_running(record, process)
    if manager.capture_output:
        log_process_output(process, str(record.index))

    log.debug(f"Process {record.index} started with PID {process.pid}: {list(spec.args)}")
    reporter.print_start_message(manager.stream, record)
    return record


#* --- Process Status & Monitoring ---
def _signal_name(signum: int) -> str:
    try:
        return signal.Signals(signum).name
    except ValueError:
        return f"signal {signum}"


def classify_exit(returncode: int) -> ProcessState:
    """A negative returncode means the child was ended by signal -returncode."""
    return ProcessState.TERMINATED if returncode < 0 else ProcessState.EXITED_NORMALLY


def _record_exit(manager: "ProcessManager", record: ProcessRecord, returncode: int) -> None:
    """Moves a reaped record to the terminal state its returncode describes."""
    state = classify_exit(returncode)
    if state is ProcessState.TERMINATED:
        log.info(f"Process {record.index} (PID {record.pid}) was killed by {_signal_name(-returncode)}.")
        manager.processes.mark_finished(record, state, was_terminated=True)
    else:
        if returncode != 0:
            log.warning(f"Process {record.index} (PID {record.pid}) exited with status {returncode}.")
        else:
            log.info(f"Process {record.index} (PID {record.pid}) exited normally.")
        manager.processes.mark_finished(record, state, was_terminated=False, exit_code=returncode)


def poll_process(manager: "ProcessManager", record: ProcessRecord) -> bool:
    """
    Non-blocking liveness check for a RUNNING record.

    If the process has exited it is reaped by the poll itself and the record
    moves to its terminal state.

    :return: True if the process has exited, False if it is still running.
    """
    returncode = record.process.poll()
    if returncode is None:
        return False

    _record_exit(manager, record, returncode)
    return True


def kill_and_reap(manager: "ProcessManager", record: ProcessRecord, reason: str) -> bool:
    """
    Sends SIGKILL to a RUNNING record's process and blocks until it is reaped.

    A child that exits on its own just before the kill is recorded with its
    real exit status instead.

    :param reason: Short description for the log (e.g. 'time limit reached').
    :return: True if the process was killed, False if it had already exited.
    :raises SupervisorError: If the signal cannot be delivered or the process cannot be reaped.
    """
    process = record.process
    log.info(f"Killing process {record.index} (PID {record.pid}): {reason}.")
    try:
        process.kill()
    except OSError as e:
        raise SupervisorError(f"Failed to kill process {record.index} (PID {record.pid}): {e}") from e
    try:
        returncode = process.wait()
    except OSError as e:
        raise SupervisorError(f"Failed to reap process {record.index} (PID {record.pid}): {e}") from e

    if returncode != -signal.SIGKILL:
        log.info(f"Process {record.index} (PID {record.pid}) had already exited before the kill.")
        _record_exit(manager, record, returncode)
        return False

    manager.processes.mark_finished(record, ProcessState.TERMINATED, was_terminated=True)
    return True
