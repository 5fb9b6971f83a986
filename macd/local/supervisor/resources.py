import time
import psutil
import logging
from typing import Optional, Tuple

log = logging.getLogger(__name__)

BYTES_PER_MB = 1024 * 1024


def sample(pid: int) -> Optional[Tuple[int, float]]:
    """
    Takes a point-in-time resource sample of a live process.

    CPU usage is the cumulative CPU time (user + system) divided by the wall
    time since the process was created, so it is an average over the whole
    lifetime rather than a rate over the last interval. Memory is the resident
    set size in megabytes.

    :param pid: The process ID to sample.
    :return: `(cpu_percent, memory_mb)`, or None if the process is gone,
        inaccessible, or was sampled at its exact start instant.
    """
    try:
        proc = psutil.Process(pid)
        with proc.oneshot():
            cpu_times = proc.cpu_times()
            rss = proc.memory_info().rss
            created = proc.create_time()
    except (psutil.NoSuchProcess, psutil.AccessDenied):
        # ZombieProcess is a NoSuchProcess subclass.
        log.debug(f"Process {pid} could not be sampled; it has likely exited.")
        return None

    elapsed = time.time() - created
    if elapsed <= 0:
        return None

    cpu_percent = int((cpu_times.user + cpu_times.system) / elapsed * 100)
    return cpu_percent, rss / BYTES_PER_MB
