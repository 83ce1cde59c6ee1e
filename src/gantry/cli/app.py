"""Top-level CLI router."""

import sys

from gantry import __version__

from . import init as init_cmd
from . import run as run_cmd

USAGE = """\
usage: gantry [-h] [-V] {run,init} ...

Run project commands inside a lazily provisioned Docker container.

commands:
  run     run a command inside the project container
  init    write command shims and the activation script

Run `gantry <command> --help` for command options.
"""


def main(argv: list[str] | None = None) -> int:
    """Route to a subcommand."""
    args = list(sys.argv[1:] if argv is None else argv)
    if not args:
        print(USAGE, end="", file=sys.stderr)
        return 2
    if args[0] in {"-h", "--help"}:
        print(USAGE, end="")
        return 0
    if args[0] in {"-V", "--version"}:
        print(f"gantry {__version__}")
        return 0
    if args[0] == "run":
        return run_cmd.run(args[1:])
    if args[0] == "init":
        return init_cmd.run(args[1:])

    print(f"gantry: unknown command {args[0]!r}\n", file=sys.stderr)
    print(USAGE, end="", file=sys.stderr)
    return 2


def entrypoint() -> None:
    """Console script entrypoint."""
    raise SystemExit(main())
