"""Reconcile the session container to the running state.

Every call inspects the engine afresh. Anything other than a running
container, including a failed inspect, triggers a destructive rebuild:
remove, build, create, start.
"""

import logging
import os
import sys
import tempfile
from pathlib import Path
from typing import BinaryIO

import docker
import requests
from docker.errors import DockerException, NotFound

from gantry.archive import tar_directory
from gantry.constants import CONTAINER_NAME, CONTAINER_WORKDIR, KEEPALIVE_COMMAND
from gantry.errors import (
    BuildFailed,
    CreateFailed,
    EngineUnavailable,
    InspectIndeterminate,
    StartFailed,
)
from gantry.models import ContainerState, ProjectConfig
from gantry.progress import Spinner

log = logging.getLogger(__name__)

# Build contexts larger than this spill from memory to a temporary file.
CONTEXT_SPOOL_BYTES = 64 * 1024 * 1024

# The docker SDK lets transport failures from requests through unwrapped.
ENGINE_ERRORS = (DockerException, requests.exceptions.RequestException)


def connect() -> docker.DockerClient:
    """Return a Docker client configured from the environment."""
    try:
        return docker.from_env()
    except ENGINE_ERRORS as e:
        raise EngineUnavailable(f"Unable to connect to Docker: {e}") from e


def _inspect(client: docker.DockerClient, name: str) -> ContainerState:
    try:
        container = client.containers.get(name)
    except NotFound:
        return ContainerState.ABSENT
    except ENGINE_ERRORS as e:
        raise InspectIndeterminate(str(e)) from e

    try:
        running = bool(container.attrs["State"]["Running"])
    except (KeyError, TypeError) as e:
        raise InspectIndeterminate(f"unexpected inspect response for {name}: {e!r}") from e
    return ContainerState.RUNNING if running else ContainerState.STOPPED


def inspect_state(client: docker.DockerClient, name: str = CONTAINER_NAME) -> ContainerState:
    """Return the current container state; an indeterminate inspect counts as absent."""
    try:
        state = _inspect(client, name)
    except InspectIndeterminate as e:
        log.warning("inspect %s failed, treating as absent: %s", name, e)
        return ContainerState.ABSENT
    log.debug("container %s is %s", name, state.value)
    return state


def remove_container(client: docker.DockerClient, name: str = CONTAINER_NAME) -> None:
    """Force-remove the named container. Failure is logged, never raised."""
    try:
        client.api.remove_container(name, force=True)
    except ENGINE_ERRORS as e:
        # Usually the container is already gone.
        log.info("remove %s skipped: %s", name, e)
    else:
        log.debug("removed container %s", name)


def build_image(
    client: docker.DockerClient,
    context: BinaryIO,
    dockerfile: str,
    tag: str = CONTAINER_NAME,
    out: BinaryIO | None = None,
) -> None:
    """Build *tag* from a gzip tar *context*, streaming the build log to *out*."""
    out = out if out is not None else sys.stdout.buffer
    try:
        for chunk in client.api.build(
            fileobj=context,
            custom_context=True,
            encoding="gzip",
            dockerfile=dockerfile,
            tag=tag,
            rm=True,
            decode=True,
        ):
            if "error" in chunk:
                detail = chunk.get("errorDetail", {}).get("message") or chunk["error"]
                raise BuildFailed(f"Image build failed: {str(detail).strip()}")
            text = chunk.get("stream") or chunk.get("status")
            if text:
                if not text.endswith("\n") and "stream" not in chunk:
                    text += "\n"
                out.write(text.encode())
                out.flush()
    except ENGINE_ERRORS as e:
        raise BuildFailed(f"Image build failed: {e}") from e


def create_and_start(
    client: docker.DockerClient, project_root: str, name: str = CONTAINER_NAME
) -> str:
    """Create the session container with the project bind-mounted and start it."""
    try:
        container = client.containers.create(
            image=name,
            command=KEEPALIVE_COMMAND,
            name=name,
            volumes={project_root: {"bind": CONTAINER_WORKDIR, "mode": "rw"}},
            working_dir=CONTAINER_WORKDIR,
        )
    except ENGINE_ERRORS as e:
        raise CreateFailed(f"Unable to create container {name}: {e}") from e
    log.debug("created container %s (%s)", name, container.id)

    try:
        container.start()
    except ENGINE_ERRORS as e:
        raise StartFailed(f"Unable to start container {name}: {e}") from e
    return container.id


def ensure_running(
    client: docker.DockerClient,
    project_root: str | os.PathLike[str],
    config: ProjectConfig,
    name: str = CONTAINER_NAME,
    out: BinaryIO | None = None,
) -> ContainerState:
    """Make sure a container called *name* is running, rebuilding if needed.

    Returns the state observed before any work was done.
    """
    root = os.path.abspath(os.fspath(project_root))
    state = inspect_state(client, name)
    if state is ContainerState.RUNNING:
        return state

    log.info("container %s is %s, rebuilding", name, state.value)
    remove_container(client, name)

    dockerfile = Path(root) / config.dockerfile_path
    if not dockerfile.is_file():
        raise BuildFailed(f"Dockerfile not found: {dockerfile}")

    with tempfile.SpooledTemporaryFile(max_size=CONTEXT_SPOOL_BYTES) as context:
        with Spinner("Packing build context"):
            tar_directory(root, context)
        context.seek(0)
        build_image(client, context, config.dockerfile_path, tag=name, out=out)

    create_and_start(client, root, name)
    return state
