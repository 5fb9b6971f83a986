import signal
import logging
import threading
from typing import Dict, Optional

log = logging.getLogger(__name__)

SHUTDOWN_SIGNALS = (signal.SIGINT, signal.SIGABRT)


class SignalBridge:
    """
    Turns SIGINT/SIGABRT into a flag the supervision loop checks once per tick.

    The handler only records the signal number and sets an event; killing the
    children and reporting happen in the loop. Use as a context manager to
    install the handlers and restore the previous ones afterwards.
    """

    def __init__(self) -> None:
        self.shutdown_signal_received = threading.Event()
        self.signum: Optional[int] = None
        self._previous_handlers: Dict[int, object] = {}

    def handle(self, signum, frame) -> None:
        self.signum = signum
        self.shutdown_signal_received.set()

    @property
    def received(self) -> bool:
        return self.shutdown_signal_received.is_set()

    @property
    def signal_name(self) -> Optional[str]:
        if self.signum is None:
            return None
        return signal.Signals(self.signum).name

    def install(self) -> None:
        for sig in SHUTDOWN_SIGNALS:
            self._previous_handlers[sig] = signal.signal(sig, self.handle)
        log.debug("Shutdown signal handlers installed.")

    def restore(self) -> None:
        for sig, handler in self._previous_handlers.items():
            # None means the previous handler was not installed from Python.
            signal.signal(sig, signal.SIG_DFL if handler is None else handler)
        self._previous_handlers.clear()
        log.debug("Previous signal handlers restored.")

    def __enter__(self) -> "SignalBridge":
        self.install()
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.restore()
