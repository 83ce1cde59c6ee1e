"""Model package for gantry."""

from gantry.models.container_state import ContainerState
from gantry.models.exec_session import ExecSession, SessionEnd
from gantry.models.project_config import ProjectConfig

__all__ = [
    "ContainerState",
    "ExecSession",
    "ProjectConfig",
    "SessionEnd",
]
