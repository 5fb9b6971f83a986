import sys
import logging
import argparse
import setproctitle
from pathlib import Path
from typing import List, Optional

from macd.local import effective_settings as config
from macd.log.setup import setup_logging
from macd.local.config_file import ConfigError, parse_config
from macd.local.supervisor import ProcessManager

log = logging.getLogger(__name__)

PROG = "macd"


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog=PROG,
        description="Launch the programs listed in a config file and supervise them until they finish "
                    "or the configured time limit expires.",
    )
    parser.add_argument(
        "-i", dest="config_file", required=True, metavar="CONFIG",
        help="Config file: a 'timelimit <seconds>' line followed by one program per line.",
    )
    parser.add_argument(
        "--verbose", action="store_true",
        help="Log debug messages to stderr.",
    )
    return parser


def main(argv: Optional[List[str]] = None) -> int:
    """
    The main entry point for the supervisor.

    :param argv: Command-line arguments, `sys.argv[1:]` by default.
    :return: The exit status: 0 on success, 1 on configuration or supervisor failure.
    """
    args = build_parser().parse_args(argv)

    verbose = args.verbose or config.VERBOSE_LOGGING
    setup_logging(logging.DEBUG if verbose else logging.INFO)

    config_path = Path(args.config_file)
    if not config_path.is_file():
        print(f"{PROG}: {config_path} not found", file=sys.stderr)
        return 1

    try:
        supervision = parse_config(config_path)
    except ConfigError as e:
        print(f"{PROG}: {e}", file=sys.stderr)
        return 1

    try:
        manager = ProcessManager(supervision.specs, supervision.timelimit)
    except ValueError as e:
        print(f"{PROG}: {e}", file=sys.stderr)
        return 1

    setproctitle.setproctitle(config.PROCESS_TITLE)
    return manager.run()


if __name__ == "__main__":
    sys.exit(main())
