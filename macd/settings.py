"""
This module contains the configuration settings for the macD supervisor.
It defines the supervision cadence, logging behaviour and process identity.
Values can be overridden through environment variables or a `.env` file.
"""

import os
import math
import logging
import pathlib
from dotenv import load_dotenv

log = logging.getLogger(__name__)

# Load environment variables from .env file
load_dotenv(override=True)


def _env_flag(name: str, default: str = "False") -> bool:
    return os.getenv(name, default).lower() in ('true', '1', 't', 'yes', 'y')


def _env_positive(name: str, default, cast=float):
    """Reads a positive number from the environment, falling back to `default` if it is unusable."""
    raw = os.getenv(name)
    if raw is None:
        return default
    try:
        value = cast(raw)
    except ValueError:
        log.warning(f"Ignoring {name}={raw!r}: not a number. Using {default}.")
        return default
    if not is_positive(value):
        log.warning(f"Ignoring {name}={raw!r}: must be positive. Using {default}.")
        return default
    return value


def is_positive(value) -> bool:
    return not isinstance(value, bool) and math.isfinite(value) and value > 0


#* --- Configuration Files ---
OVERRIDES_JSON_PATH = pathlib.Path(os.getenv("MACD_OVERRIDES_PATH", "macd.overrides.json"))

#* --- Process Identity ---
PROCESS_TITLE = "macD - Supervisor"

#* --- Supervision Settings ---
TICK_INTERVAL_SECONDS = _env_positive("MACD_TICK_INTERVAL", 1.0)
REPORT_INTERVAL_TICKS = _env_positive("MACD_REPORT_INTERVAL", 5, int)  # periodic report every N ticks

# Pipe child stdout/stderr into the 'proc.<index>' loggers instead of inheriting ours.
CAPTURE_CHILD_OUTPUT = _env_flag("MACD_CAPTURE_CHILD_OUTPUT")

#* --- Logging ---
VERBOSE_LOGGING = _env_flag("MACD_VERBOSE")

#* --- MODIFIABLE SETTINGS (Changeable through the overrides file) ---
MODIFIABLE_SETTINGS = {
    "TICK_INTERVAL_SECONDS",
    "REPORT_INTERVAL_TICKS",
    "CAPTURE_CHILD_OUTPUT",
    "VERBOSE_LOGGING",
}

# Settings that must stay strictly positive, whichever source sets them.
POSITIVE_SETTINGS = {
    "TICK_INTERVAL_SECONDS",
    "REPORT_INTERVAL_TICKS",
}
