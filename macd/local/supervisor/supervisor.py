import sys
import time
import logging
from typing import Callable, Iterable, List, Optional, TextIO
from macd.local.config import effective_settings as config
from macd.local.supervisor import process_utils, reporter, resources, shutdown
from macd.local.supervisor.records import ProcessSpec, ProcessTable
from macd.local.supervisor.signals import SignalBridge

log = logging.getLogger(__name__)


class ProcessManager:
    """
    Launches a fixed set of programs and supervises them until they finish.

    A single instance holds all of the state of one run: the process table,
    the elapsed tick count and the shutdown signal flag. Programs that outlive
    the time limit are killed, and a shutdown signal kills everything that is
    still running.
    """

    def __init__(
        self,
        specs: Iterable[ProcessSpec],
        timelimit: int,
        tick_interval: Optional[float] = None,
        report_interval: Optional[int] = None,
        capture_output: Optional[bool] = None,
        sampler: reporter.Sampler = resources.sample,
        sleep: Callable[[float], None] = time.sleep,
        stream: Optional[TextIO] = None,
        signals: Optional[SignalBridge] = None,
    ) -> None:
        """
        Initializes the ProcessManager state.

        :param specs: The programs to supervise, in report order.
        :param timelimit: Seconds after which still-running programs are killed.
        :param tick_interval: Seconds per supervision tick (default from settings).
        :param report_interval: Ticks between periodic reports (default from settings).
        :param capture_output: Log child stdout/stderr instead of inheriting ours.
        :param sampler: Resource sampler used by the reports.
        :param sleep: Function used to wait between ticks.
        :param stream: Where reports are written, stdout by default.
        :param signals: Signal bridge to observe, a fresh one by default.
        """
        if timelimit <= 0:
            raise ValueError(f"Time limit must be positive, got {timelimit}")

        self.specs: List[ProcessSpec] = list(specs)
        self.timelimit = timelimit
        self.tick_interval = config.TICK_INTERVAL_SECONDS if tick_interval is None else tick_interval
        self.report_interval = config.REPORT_INTERVAL_TICKS if report_interval is None else report_interval
        self.capture_output = config.CAPTURE_CHILD_OUTPUT if capture_output is None else capture_output
        if self.tick_interval <= 0 or self.report_interval < 1:
            raise ValueError(
                f"Invalid supervision cadence: tick interval {self.tick_interval}s, "
                f"report every {self.report_interval} tick(s)"
            )
        self.sampler = sampler
        self.stream = stream or sys.stdout
        self.signals = signals or SignalBridge()
        self.processes = ProcessTable()
        self.ticks = 0
        self._sleep = sleep

    @property
    def elapsed_seconds(self) -> float:
        return round(self.ticks * self.tick_interval, 6)

    def start_all(self) -> None:
        """
        Launches every configured program, in order, and seals the process table.

        :raises SupervisorError: If the OS fails to create a process.
        """
        reporter.print_timestamp(self.stream, reporter.START_HEADER)
        for spec in self.specs:
            process_utils.launch_process(self, spec)
        self.processes.seal()
        log.info(f"Launched {self.processes.running_count} of {len(self.specs)} program(s).")

    def check_processes(self) -> None:
        """
        Polls every RUNNING process once, in index order.

        Exited processes are reaped and recorded. Processes still alive once
        the time limit has been reached are killed.
        """
        for record in self.processes.running():
            if process_utils.poll_process(self, record):
                continue
            if self.elapsed_seconds >= self.timelimit:
                if process_utils.kill_and_reap(self, record, "time limit reached"):
                    record.timed_out = True

    def _final_header(self) -> str:
        if any(record.timed_out for record in self.processes):
            return reporter.FINAL_TIMEOUT_HEADER
        return reporter.FINAL_EXITED_HEADER

    def supervision_loop(self) -> str:
        """
        Main supervisor loop, one iteration per tick until the run is over.

        :return: The header of the final report.
        :raises SupervisorError: If a process cannot be killed or reaped.
        """
        if self.processes.running_count == 0:
            log.info("No processes are running. Nothing to supervise.")
            reporter.report_final(self, reporter.FINAL_EXITED_HEADER)
            return reporter.FINAL_EXITED_HEADER

        while True:
            self._sleep(self.tick_interval)
            self.ticks += 1

            if self.signals.received:
                log.warning(f"{self.signals.signal_name} received. Shutting down.")
                shutdown.terminate_running(self, "shutdown signal received")
                reporter.report_final(self, reporter.FINAL_SIGNAL_HEADER)
                return reporter.FINAL_SIGNAL_HEADER

            self.check_processes()

            if self.processes.running_count == 0:
                header = self._final_header()
                log.info(f"{header} after {self.elapsed_seconds:g} seconds.")
                reporter.report_final(self, header)
                return header

            if self.ticks % self.report_interval == 0:
                reporter.report(self, reporter.PERIODIC_HEADER)

    def run(self) -> int:
        """
        Launches all programs and supervises them until the run ends.

        Signal handlers are installed for the duration of the run. On any
        unexpected error, processes that are still running are killed and
        reaped before returning.

        :return: The process exit status, 0 on success and 1 on failure.
        """
        with self.signals:
            try:
                self.start_all()
                self.supervision_loop()
            except Exception as e:
                log.critical(f"Critical error in supervisor: {e}", exc_info=True)
                shutdown.cleanup_after_failure(self)
                return 1
        return 0
