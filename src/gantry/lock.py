"""Advisory lock serializing container reconciliation per session identity."""

import fcntl
import logging
import os
import tempfile
from collections.abc import Iterator
from contextlib import contextmanager

from gantry.constants import CONTAINER_NAME
from gantry.errors import LockUnavailable

log = logging.getLogger(__name__)


def lock_path(name: str = CONTAINER_NAME) -> str:
    """Return the per-user lock file path for a session identity."""
    return os.path.join(tempfile.gettempdir(), f"gantry-{os.getuid()}-{name}.lock")


@contextmanager
def session_lock(name: str = CONTAINER_NAME, path: str | None = None) -> Iterator[None]:
    """Hold an exclusive flock for *name* for the duration of the with-block.

    Blocks while another gantry process is inspecting, rebuilding or
    starting the same container.
    """
    path = path or lock_path(name)
    try:
        fd = os.open(path, os.O_RDWR | os.O_CREAT, 0o600)
    except OSError as e:
        raise LockUnavailable(f"Unable to open lock file {path}: {e.strerror or e}") from e
    try:
        try:
            fcntl.flock(fd, fcntl.LOCK_EX | fcntl.LOCK_NB)
        except BlockingIOError:
            log.warning("another gantry session is preparing %s, waiting", name)
            fcntl.flock(fd, fcntl.LOCK_EX)
        try:
            yield
        finally:
            fcntl.flock(fd, fcntl.LOCK_UN)
    finally:
        os.close(fd)
