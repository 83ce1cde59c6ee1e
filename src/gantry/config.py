"""Project configuration discovery and loading."""

import logging
import os
from pathlib import Path

import yaml
from pydantic import ValidationError

from gantry.constants import CONFIG_FILENAME
from gantry.errors import ConfigError
from gantry.models import ProjectConfig

log = logging.getLogger(__name__)


def default_project_root() -> str | None:
    """Return the project root override from GANTRY_PROJECT_ROOT, if set."""
    value = os.environ.get("GANTRY_PROJECT_ROOT", "").strip()
    return value or None


def find_project_root(start: str | os.PathLike[str] | None = None) -> Path:
    """Walk upward from *start* until a directory containing gantry.yml is found."""
    current = Path(start if start is not None else os.getcwd()).resolve()
    for candidate in (current, *current.parents):
        if (candidate / CONFIG_FILENAME).is_file():
            log.debug("project root: %s", candidate)
            return candidate
    raise ConfigError(f"No {CONFIG_FILENAME} found in {current} or any parent directory")


def load_project_config(project_root: str | os.PathLike[str]) -> ProjectConfig:
    """Load and validate gantry.yml from the project root."""
    path = Path(project_root) / CONFIG_FILENAME
    try:
        text = path.read_text(encoding="utf-8")
    except OSError as e:
        raise ConfigError(f"Unable to read {path}: {e}") from e

    try:
        data = yaml.safe_load(text)
    except yaml.YAMLError as e:
        raise ConfigError(f"{path} is not valid YAML: {e}") from e

    # An empty file is a valid config with all defaults.
    if data is None:
        data = {}
    if not isinstance(data, dict):
        raise ConfigError(f"{path} must contain a mapping, got {type(data).__name__}")

    try:
        config = ProjectConfig.model_validate(data)
    except ValidationError as e:
        raise ConfigError(f"Invalid {path}:\n{e}") from e
    log.debug("dockerfile=%s commands=%s", config.dockerfile_path, config.commands)
    return config
