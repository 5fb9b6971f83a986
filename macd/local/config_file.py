"""
Parser for supervision config files.

A config file starts with a `timelimit <seconds>` line followed by one line
per program to supervise::

    timelimit 10
    # comments and blank lines are ignored
    ./pi_n
    /bin/sleep 30

Each program line is split on whitespace; the first token is the executable
path and the full token list becomes the argument vector.
"""

import logging
from pathlib import Path
from typing import List, NamedTuple, Union

from macd.local.supervisor.records import ProcessSpec

log = logging.getLogger(__name__)

TIMELIMIT_KEYWORD = "timelimit"


class ConfigError(ValueError):
    """Raised when a supervision config file cannot be used."""


class SupervisionConfig(NamedTuple):
    timelimit: int
    specs: List[ProcessSpec]


def _meaningful_lines(text: str):
    for line_number, raw in enumerate(text.splitlines(), start=1):
        line = raw.strip()
        if not line or line.startswith("#"):
            continue
        yield line_number, line


def validate_timelimit_line(line: str) -> int:
    """
    Validates a `timelimit <N>` line and returns N.

    :param line: The stripped line.
    :raises ConfigError: If the keyword is missing or N is not a positive integer.
    """
    parts = line.split()
    if len(parts) != 2 or parts[0] != TIMELIMIT_KEYWORD:
        raise ConfigError(f"Expected '{TIMELIMIT_KEYWORD} <seconds>' but got '{line}'")
    try:
        timelimit = int(parts[1])
    except ValueError:
        raise ConfigError(f"Time limit '{parts[1]}' is not an integer") from None
    if timelimit <= 0:
        raise ConfigError(f"Time limit must be positive, got {timelimit}")
    return timelimit


def parse_config_text(text: str) -> SupervisionConfig:
    """
    Parses the contents of a config file.

    :param text: The full file contents.
    :return: The validated time limit and the ordered list of process specs.
    :raises ConfigError: If the time limit line is missing or invalid.
    """
    lines = _meaningful_lines(text)
    first = next(lines, None)
    if first is None:
        raise ConfigError(f"Config is empty, a '{TIMELIMIT_KEYWORD}' line is required")

    line_number, line = first
    try:
        timelimit = validate_timelimit_line(line)
    except ConfigError as e:
        raise ConfigError(f"line {line_number}: {e}") from None

    specs = []
    for line_number, line in lines:
        args = tuple(line.split())
        specs.append(ProcessSpec(path=args[0], args=args))
        log.debug(f"Config line {line_number}: program {args[0]!r} with {len(args) - 1} argument(s)")

    return SupervisionConfig(timelimit=timelimit, specs=specs)


def parse_config(config_path: Union[str, Path]) -> SupervisionConfig:
    """
    Reads and parses a config file from disk.

    :param config_path: Path to the config file.
    :raises ConfigError: If the file cannot be read or its contents are invalid.
    """
    path = Path(config_path)
    try:
        text = path.read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError) as e:
        raise ConfigError(f"Unable to read config file '{path}': {e}") from e

    config = parse_config_text(text)
    log.info(f"Loaded {len(config.specs)} program(s) from '{path}' with a time limit of {config.timelimit}s")
    return config
