"""Project configuration model for gantry."""

from pydantic import BaseModel, ConfigDict, Field

DEFAULT_DOCKERFILE = "Dockerfile"


class ProjectConfig(BaseModel):
    """Contents of a project's gantry.yml."""

    model_config = ConfigDict(extra="forbid", populate_by_name=True)

    dockerfile_path: str = Field(default=DEFAULT_DOCKERFILE, alias="dockerfile")
    commands: list[str] = Field(default_factory=list)
