"""Interactive exec bridge between the local terminal and the session container.

Three units run once the exec is attached: a signal listener, a forward
task (local stdin to the exec socket) and a relay task (exec socket to local
stdout/stderr). Whichever finishes first ends the session. The others are
not waited on: the exec socket is closed, which stops the relay task, and
the forward task stays blocked on stdin as a daemon thread until exit.
"""

import logging
import os
import queue
import signal
import socket
import sys
import threading
import time
from collections.abc import Callable, Iterator
from contextlib import contextmanager
from typing import Any

import docker
from docker.utils.socket import STDERR, SocketError, frames_iter
from docker.utils.socket import read as socket_read

from gantry.constants import CONTAINER_WORKDIR
from gantry.errors import ExecSetupFailed
from gantry.lifecycle import ENGINE_ERRORS
from gantry.models import ExecSession, SessionEnd
from gantry.terminal import raw_terminal, winsize

log = logging.getLogger(__name__)

INPUT_CHUNK_SIZE = 1024
OUTPUT_CHUNK_SIZE = 4096
TERMINATION_SIGNALS = (signal.SIGINT, signal.SIGTERM)

# Upper bound on how long a signal delivered to a worker thread waits
# before the main thread runs its handler.
WAIT_POLL_SECONDS = 0.1

EXIT_CODE_ATTEMPTS = 10
EXIT_CODE_POLL_SECONDS = 0.05


def _raw_socket(sock: Any) -> Any:
    """Return the socket object underneath docker's SocketIO wrapper."""
    return getattr(sock, "_sock", sock)


def _write_all(fd: int, data: bytes) -> None:
    view = memoryview(data)
    while view:
        written = os.write(fd, view)
        view = view[written:]


def create_exec(
    client: docker.DockerClient,
    container: str,
    command: list[str],
    tty: bool,
    workdir: str = CONTAINER_WORKDIR,
) -> str:
    """Create an exec with stdin/stdout/stderr attached and return its id."""
    try:
        response = client.api.exec_create(
            container,
            command,
            stdout=True,
            stderr=True,
            stdin=True,
            tty=tty,
            workdir=workdir,
        )
    except ENGINE_ERRORS as e:
        raise ExecSetupFailed(f"Unable to create exec in {container}: {e}") from e
    exec_id = response["Id"]
    log.debug("created exec %s for %s", exec_id, command)
    return exec_id


def attach_exec(client: docker.DockerClient, exec_id: str, tty: bool) -> ExecSession:
    """Start the exec and return its duplex socket."""
    try:
        sock = client.api.exec_start(exec_id, tty=tty, socket=True)
    except ENGINE_ERRORS as e:
        raise ExecSetupFailed(f"Unable to attach to exec {exec_id}: {e}") from e
    return ExecSession(id=exec_id, sock=sock, tty=tty)


def forward_input(stdin_fd: int, sock: Any) -> None:
    """Copy local stdin to the exec socket until stdin closes or errors."""
    raw = _raw_socket(sock)
    while True:
        try:
            data = os.read(stdin_fd, INPUT_CHUNK_SIZE)
        except OSError as e:
            log.debug("stdin read failed: %s", e)
            return
        if not data:
            return
        try:
            raw.sendall(data)
        except OSError as e:
            log.debug("exec socket write failed: %s", e)
            return


def relay_output(sock: Any, tty: bool, stdout_fd: int, stderr_fd: int) -> None:
    """Copy exec output to local stdout/stderr until the stream closes or errors.

    Without a TTY the engine multiplexes stdout and stderr into framed
    chunks, which are split back out here.
    """
    try:
        if tty:
            while True:
                data = socket_read(sock, OUTPUT_CHUNK_SIZE)
                if data is None:
                    continue
                if not data:
                    return
                _write_all(stdout_fd, data)
        else:
            for stream, data in frames_iter(sock, tty=False):
                _write_all(stderr_fd if stream == STDERR else stdout_fd, data)
    except (OSError, ValueError, SocketError) as e:
        log.debug("output relay stopped: %s", e)


def _close(sock: Any) -> None:
    raw = _raw_socket(sock)
    try:
        raw.shutdown(socket.SHUT_RDWR)
    except OSError:
        pass
    sock.close()
    if raw is not sock:
        raw.close()


def _spawn(
    name: str,
    target: Callable[..., None],
    end: SessionEnd,
    completion: "queue.SimpleQueue[SessionEnd]",
    *args: Any,
) -> threading.Thread:
    def run() -> None:
        try:
            target(*args)
        finally:
            completion.put(end)

    thread = threading.Thread(target=run, name=name, daemon=True)
    thread.start()
    return thread


@contextmanager
def _signal_listener(completion: "queue.SimpleQueue[SessionEnd]") -> Iterator[None]:
    def _on_signal(signum, _frame):
        log.debug("received signal %d", signum)
        completion.put(SessionEnd.SIGNAL)

    previous = {sig: signal.signal(sig, _on_signal) for sig in TERMINATION_SIGNALS}
    try:
        yield
    finally:
        for sig, handler in previous.items():
            signal.signal(sig, handler if handler is not None else signal.SIG_DFL)


@contextmanager
def _resize_forwarding(
    client: docker.DockerClient, session: ExecSession, fd: int
) -> Iterator[None]:
    """Keep the exec TTY size in step with the local terminal."""
    if not session.tty or not os.isatty(fd):
        yield
        return

    def _resize(_signum=None, _frame=None):
        try:
            rows, cols = winsize(fd)
            client.api.exec_resize(session.id, height=rows, width=cols)
        except (OSError, *ENGINE_ERRORS) as e:
            log.debug("exec resize failed: %s", e)

    _resize()
    previous = signal.signal(signal.SIGWINCH, _resize)
    try:
        yield
    finally:
        signal.signal(signal.SIGWINCH, previous if previous is not None else signal.SIG_DFL)


def _wait_first(completion: "queue.SimpleQueue[SessionEnd]") -> SessionEnd:
    while True:
        try:
            return completion.get(timeout=WAIT_POLL_SECONDS)
        except queue.Empty:
            continue


def attach_session(
    client: docker.DockerClient,
    container: str,
    command: list[str],
    *,
    stdin_fd: int | None = None,
    stdout_fd: int | None = None,
    stderr_fd: int | None = None,
    tty: bool = True,
    workdir: str = CONTAINER_WORKDIR,
) -> ExecSession:
    """Run *command* interactively in *container* and return once the session ends.

    The local terminal is in raw mode from just before attaching until just
    before this function returns, whatever the exit path. The returned
    session's ``end`` records which unit finished first.

    Pass ``tty=False`` to get stdout and stderr back as separate streams.
    """
    exec_id = create_exec(client, container, command, tty=tty, workdir=workdir)
    stdin_fd = sys.stdin.fileno() if stdin_fd is None else stdin_fd
    stdout_fd = sys.stdout.fileno() if stdout_fd is None else stdout_fd
    stderr_fd = sys.stderr.fileno() if stderr_fd is None else stderr_fd
    completion: queue.SimpleQueue[SessionEnd] = queue.SimpleQueue()

    with raw_terminal(stdin_fd):
        session = attach_exec(client, exec_id, tty)
        try:
            with _signal_listener(completion), _resize_forwarding(client, session, stdin_fd):
                _spawn(
                    "gantry-forward",
                    forward_input,
                    SessionEnd.INPUT_CLOSED,
                    completion,
                    stdin_fd,
                    session.sock,
                )
                _spawn(
                    "gantry-relay",
                    relay_output,
                    SessionEnd.OUTPUT_CLOSED,
                    completion,
                    session.sock,
                    tty,
                    stdout_fd,
                    stderr_fd,
                )
                session.end = _wait_first(completion)
        finally:
            _close(session.sock)

    log.debug("exec %s ended: %s", exec_id, session.end.value)
    return session


def exit_code(client: docker.DockerClient, exec_id: str) -> int:
    """Return the exit code of a finished exec, or 0 when it cannot be read."""
    for _ in range(EXIT_CODE_ATTEMPTS):
        try:
            info = client.api.exec_inspect(exec_id)
        except ENGINE_ERRORS as e:
            log.debug("exec inspect %s failed: %s", exec_id, e)
            return 0
        code = info.get("ExitCode")
        if not info.get("Running") and isinstance(code, int):
            return code
        time.sleep(EXIT_CODE_POLL_SECONDS)
    return 0
