"""`gantry init` command implementation."""

import argparse
import os

from gantry.cli.shared import configure_logging, print_error
from gantry.config import default_project_root, find_project_root, load_project_config
from gantry.constants import STATE_DIRNAME
from gantry.errors import GantryError
from gantry.shims import write_shims


def build_parser() -> argparse.ArgumentParser:
    """Build parser for the init command."""
    parser = argparse.ArgumentParser(
        prog="gantry init",
        description="Write command shims and the activation script for a project",
    )
    parser.add_argument("-d", "--debug", action="store_true", help="Enable debug logging")
    parser.add_argument(
        "--project-root",
        default=default_project_root(),
        help="Project directory containing gantry.yml (default: search upward)",
    )
    return parser


def run(argv: list[str]) -> int:
    """Execute the init command."""
    parser = build_parser()
    args = parser.parse_args(argv)

    configure_logging(args.debug)

    try:
        root = find_project_root(args.project_root)
        config = load_project_config(root)
        shims = write_shims(root, config)
    except GantryError as e:
        print_error(str(e))
        return 1

    activate = os.path.join(os.path.relpath(root), STATE_DIRNAME, "activate")
    print(f"Wrote {len(shims)} shim(s) to {os.path.join(root, STATE_DIRNAME, 'bin')}")
    for shim in shims:
        print(f"  {shim.name}")
    print(f"\nActivate with:  . {activate}")
    return 0
