import logging
from typing import TYPE_CHECKING
from macd.local.supervisor.process_utils import SupervisorError, kill_and_reap

if TYPE_CHECKING:
    from .supervisor import ProcessManager

log = logging.getLogger(__name__)


def terminate_running(manager: "ProcessManager", reason: str) -> int:
    """
    Kills and reaps every RUNNING process, in index order.

    :param manager: The ProcessManager instance.
    :param reason: Why the processes are being killed, for the log.
    :return: The number of processes that were killed, not counting any that
        had already exited on their own.
    :raises SupervisorError: On the first kill or reap failure.
    """
    running = manager.processes.running()
    if running:
        log.info(f"Terminating {len(running)} running process(es): {reason}.")
    return sum(1 for record in running if kill_and_reap(manager, record, reason))


def cleanup_after_failure(manager: "ProcessManager") -> None:
    """
    Best-effort kill and reap of every RUNNING process after a fatal error.

    Unlike `terminate_running`, a failure on one process is logged and the
    remaining processes are still handled.
    """
    running = manager.processes.running()
    if not running:
        return

    log.warning(f"Cleaning up {len(running)} process(es) after a supervisor failure.")
    for record in running:
        try:
            kill_and_reap(manager, record, "supervisor failure")
        except SupervisorError as e:
            log.error(f"Could not clean up process {record.index}: {e}")
