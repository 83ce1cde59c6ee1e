"""Terminal spinner shown while slow local work is in progress."""

import itertools
import shutil
import sys
import threading
from typing import TextIO

SPINNER_FRAMES = ("|", "/", "-", "\\")
SPINNER_INTERVAL_SECONDS = 0.1


class Spinner:
    """Render a one-line TTY spinner on stderr for the duration of a with-block."""

    def __init__(
        self,
        message: str,
        stream: TextIO | None = None,
        interval: float = SPINNER_INTERVAL_SECONDS,
    ) -> None:
        self._message = message
        self._stream = stream if stream is not None else sys.stderr
        self._interval = interval
        self._stop_event = threading.Event()
        self._thread: threading.Thread | None = None
        self._enabled = hasattr(self._stream, "isatty") and self._stream.isatty()

    def __enter__(self) -> "Spinner":
        self.start()
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.stop()

    def start(self) -> None:
        if not self._enabled:
            return
        self._thread = threading.Thread(target=self._run, daemon=True, name="gantry-spinner")
        self._thread.start()

    def stop(self) -> None:
        if not self._enabled:
            return
        self._stop_event.set()
        if self._thread is not None:
            self._thread.join(timeout=1)
        self._clear_line()

    def _run(self) -> None:
        for frame in itertools.cycle(SPINNER_FRAMES):
            if self._stop_event.is_set():
                return
            width = self._width()
            self._write("\r" + f"{frame} {self._message}..."[:width].ljust(width))
            self._stop_event.wait(self._interval)

    def _width(self) -> int:
        cols = shutil.get_terminal_size(fallback=(80, 24)).columns
        return max(cols - 1, 10)

    def _clear_line(self) -> None:
        self._write("\r" + (" " * self._width()) + "\r")

    def _write(self, text: str) -> None:
        try:
            self._stream.write(text)
            self._stream.flush()
        except OSError:
            self._stop_event.set()
