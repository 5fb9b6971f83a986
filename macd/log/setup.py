import logging
import sys


class MainFormatter(logging.Formatter):
    """A custom formatter to handle regular logs and raw child process output."""

    DEFAULT_FORMAT = '%(asctime)s - %(levelname)-8s - [%(name)s] - %(message)s'

    def __init__(self) -> None:
        super().__init__(self.DEFAULT_FORMAT)

    def format(self, record):
        # Lines captured from a child process are shown raw, tagged with its index.
        # The 'proc.' prefix is used by log_process_output in process_utils.py
        if record.name.startswith('proc.'):
            return f"[{record.name[len('proc.'):]}] {record.getMessage()}"
        return super().format(record)


def setup_logging(console_level: int = logging.INFO) -> None:
    """
    Configures the root logger for the supervisor.
    Diagnostics go to stderr so that stdout carries only the status reports.
    Any previously configured handlers are cleared to prevent duplication.

    :param console_level: The logging level for the console output (e.g., logging.INFO).
    """
    root_logger = logging.getLogger()
    # Set root level to lowest to capture all messages for handler filtering
    root_logger.setLevel(logging.DEBUG)

    # Clear any existing handlers to prevent re-adding them on re-runs
    if root_logger.hasHandlers():
        root_logger.handlers.clear()

    # --- Console Handler ---
    console_handler = logging.StreamHandler(sys.stderr)
    console_handler.setLevel(console_level)
    console_handler.setFormatter(MainFormatter())
    root_logger.addHandler(console_handler)
