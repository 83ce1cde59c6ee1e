"""Exec session models for the attach bridge."""

from dataclasses import dataclass
from enum import Enum
from typing import Any


class SessionEnd(Enum):
    """Which concurrent unit finished first and ended the session."""

    SIGNAL = "signal"
    INPUT_CLOSED = "input-closed"
    OUTPUT_CLOSED = "output-closed"


@dataclass
class ExecSession:
    """An attached exec inside the session container."""

    id: str
    sock: Any
    tty: bool
    end: SessionEnd | None = None
