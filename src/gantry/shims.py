"""Shim scripts and the activation file written under <root>/.gantry."""

import logging
import os
import shlex
import shutil
import stat
import sys
from pathlib import Path

from gantry.constants import STATE_DIRNAME
from gantry.errors import ConfigError
from gantry.models import ProjectConfig

log = logging.getLogger(__name__)

SHIM_MARKER = "# generated by gantry init"


def gantry_invocation() -> str:
    """Return the shell-quoted command that launches gantry from a shim."""
    executable = shutil.which("gantry")
    if executable:
        return shlex.quote(executable)
    return f"{shlex.quote(sys.executable)} -m gantry"


def _validate_command(command: str) -> None:
    if not command or command.startswith(".") or "/" in command or os.sep in command:
        raise ConfigError(f"Invalid command name in gantry.yml: {command!r}")


def render_shim(command: str, invocation: str) -> str:
    """Return the body of the shim script for one configured command."""
    return (
        "#!/bin/sh\n"
        f"{SHIM_MARKER}\n"
        # The shim lives in <root>/.gantry/bin, two levels below the root.
        'root="$(cd "$(dirname "$0")/../.." && pwd)"\n'
        f'exec {invocation} run --project-root "$root" {shlex.quote(command)} "$@"\n'
    )


def render_activate(bin_dir: Path) -> str:
    """Return the body of the sourceable activation script."""
    quoted = shlex.quote(str(bin_dir))
    return (
        f"{SHIM_MARKER}\n"
        "# Source this file: . .gantry/activate\n"
        "deactivate_gantry() {\n"
        '  if [ -n "${_GANTRY_OLD_PATH+x}" ]; then\n'
        '    PATH="$_GANTRY_OLD_PATH"\n'
        "    export PATH\n"
        "    unset _GANTRY_OLD_PATH\n"
        "  fi\n"
        "  unset -f deactivate_gantry\n"
        "  hash -r 2>/dev/null\n"
        "}\n"
        'if [ -z "${_GANTRY_OLD_PATH+x}" ]; then\n'
        '  _GANTRY_OLD_PATH="$PATH"\n'
        "fi\n"
        f'PATH={quoted}:"$_GANTRY_OLD_PATH"\n'
        "export PATH\n"
        "hash -r 2>/dev/null\n"
    )


def _write_executable(path: Path, content: str) -> None:
    path.write_text(content, encoding="utf-8")
    mode = path.stat().st_mode
    path.chmod(mode | stat.S_IXUSR | stat.S_IXGRP | stat.S_IXOTH)


def _is_generated(path: Path) -> bool:
    try:
        with open(path, encoding="utf-8") as f:
            f.readline()
            return f.readline().rstrip("\n") == SHIM_MARKER
    except (OSError, UnicodeDecodeError):
        return False


def write_shims(
    project_root: str | os.PathLike[str],
    config: ProjectConfig,
    invocation: str | None = None,
) -> list[Path]:
    """Write one shim per configured command plus the activation file.

    Shims left over from commands that are no longer configured are
    removed. Returns the paths of the shims written.
    """
    for command in config.commands:
        _validate_command(command)

    invocation = invocation or gantry_invocation()
    state_dir = Path(project_root).resolve() / STATE_DIRNAME
    bin_dir = state_dir / "bin"
    bin_dir.mkdir(parents=True, exist_ok=True)

    wanted = set(config.commands)
    for existing in bin_dir.iterdir():
        if existing.name not in wanted and _is_generated(existing):
            log.debug("removing stale shim %s", existing)
            existing.unlink()

    written: list[Path] = []
    for command in config.commands:
        shim = bin_dir / command
        _write_executable(shim, render_shim(command, invocation))
        written.append(shim)
    log.debug("wrote %d shims to %s", len(written), bin_dir)

    (state_dir / "activate").write_text(render_activate(bin_dir), encoding="utf-8")
    return written
