"""Observed state of the session container."""

from enum import Enum


class ContainerState(Enum):
    ABSENT = "absent"
    STOPPED = "stopped"
    RUNNING = "running"
