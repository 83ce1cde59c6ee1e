"""Top-level session orchestration: ensure the container, then attach."""

import logging
import os

import docker

from gantry.bridge import attach_session, exit_code
from gantry.config import load_project_config
from gantry.constants import CONTAINER_NAME
from gantry.lifecycle import connect, ensure_running
from gantry.lock import session_lock
from gantry.models import SessionEnd

log = logging.getLogger(__name__)


def run_session(
    project_root: str | os.PathLike[str],
    command: list[str],
    *,
    name: str = CONTAINER_NAME,
    client: docker.DockerClient | None = None,
) -> int:
    """Run *command* in the session container and return the process exit code.

    A session ended by a signal or by local input closing exits 0. A
    session ended by the remote output closing returns the remote exit code.
    """
    root = os.path.abspath(os.fspath(project_root))
    config = load_project_config(root)
    if config.commands and command[0] not in config.commands:
        log.warning("%s is not listed in commands of gantry.yml", command[0])

    if client is None:
        client = connect()

    with session_lock(name):
        ensure_running(client, root, config, name=name)

    session = attach_session(client, name, command)
    if session.end is SessionEnd.OUTPUT_CLOSED:
        return exit_code(client, session.id)
    return 0
