"""`gantry run` command implementation."""

import argparse
import logging

from gantry.cli.shared import configure_logging, print_error
from gantry.config import default_project_root, find_project_root
from gantry.errors import GantryError
from gantry.session import run_session

log = logging.getLogger(__name__)


def build_parser() -> argparse.ArgumentParser:
    """Build parser for the run command."""
    parser = argparse.ArgumentParser(
        prog="gantry run",
        description="Run a command inside the project's gantry container",
    )
    parser.add_argument("-d", "--debug", action="store_true", help="Enable debug logging")
    parser.add_argument(
        "--project-root",
        default=default_project_root(),
        help=(
            "Project directory containing gantry.yml "
            "(default: $GANTRY_PROJECT_ROOT, else search upward from the current directory)"
        ),
    )
    parser.add_argument(
        "command",
        nargs=argparse.REMAINDER,
        metavar="command [args ...]",
        help="Command to run inside the container, followed by its arguments",
    )
    return parser


def run(argv: list[str]) -> int:
    """Execute the run command."""
    parser = build_parser()
    args = parser.parse_args(argv)
    if not args.command:
        parser.error("a command to run is required")

    configure_logging(args.debug)

    try:
        root = find_project_root(args.project_root)
        code = run_session(root, args.command)
    except GantryError as e:
        print_error(str(e))
        return 1

    log.debug("exit code %d", code)
    return code
