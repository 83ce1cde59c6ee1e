"""Local terminal helpers: raw mode and window size."""

import fcntl
import os
import struct
import termios
import tty
from collections.abc import Iterator
from contextlib import contextmanager


def winsize(fd: int) -> tuple[int, int]:
    """Return (rows, cols) for the given tty fd."""
    rows, cols, _, _ = struct.unpack("HHHH", fcntl.ioctl(fd, termios.TIOCGWINSZ, b"\x00" * 8))
    return rows, cols


@contextmanager
def raw_terminal(fd: int) -> Iterator[bool]:
    """Put *fd* into raw mode for the with-block and restore it on every exit path.

    Yields whether raw mode was actually entered; a non-tty fd is left alone.
    """
    if not os.isatty(fd):
        yield False
        return

    old_attrs = termios.tcgetattr(fd)
    tty.setraw(fd)
    try:
        yield True
    finally:
        termios.tcsetattr(fd, termios.TCSAFLUSH, old_attrs)
