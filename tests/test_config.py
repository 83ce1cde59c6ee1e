"""Unit tests for gantry.config."""

from pathlib import Path

import pytest

from gantry.config import default_project_root, find_project_root, load_project_config
from gantry.errors import ConfigError
from gantry.models import ProjectConfig


def _write_config(root: Path, text: str) -> None:
    (root / "gantry.yml").write_text(text, encoding="utf-8")


class TestFindProjectRoot:
    def test_finds_config_in_start_directory(self, tmp_path):
        _write_config(tmp_path, "commands: []\n")
        assert find_project_root(tmp_path) == tmp_path.resolve()

    def test_walks_upward_to_nearest_config(self, tmp_path):
        _write_config(tmp_path, "commands: []\n")
        nested = tmp_path / "a" / "b"
        nested.mkdir(parents=True)
        assert find_project_root(nested) == tmp_path.resolve()

    def test_defaults_to_current_directory(self, tmp_path, monkeypatch):
        _write_config(tmp_path, "")
        monkeypatch.chdir(tmp_path)
        assert find_project_root() == tmp_path.resolve()

    def test_raises_when_no_config_found(self, tmp_path, monkeypatch):
        monkeypatch.setattr(Path, "is_file", lambda self: False)
        with pytest.raises(ConfigError, match="No gantry.yml"):
            find_project_root(tmp_path)


class TestDefaultProjectRoot:
    def test_reads_env(self, monkeypatch):
        monkeypatch.setenv("GANTRY_PROJECT_ROOT", "/srv/app")
        assert default_project_root() == "/srv/app"

    def test_blank_env_is_none(self, monkeypatch):
        monkeypatch.setenv("GANTRY_PROJECT_ROOT", "  ")
        assert default_project_root() is None

    def test_unset_env_is_none(self, monkeypatch):
        monkeypatch.delenv("GANTRY_PROJECT_ROOT", raising=False)
        assert default_project_root() is None


class TestLoadProjectConfig:
    def test_loads_dockerfile_and_commands(self, tmp_path):
        _write_config(tmp_path, "dockerfile: docker/Dockerfile.dev\ncommands:\n  - python\n  - pytest\n")
        config = load_project_config(tmp_path)
        assert config.dockerfile_path == "docker/Dockerfile.dev"
        assert config.commands == ["python", "pytest"]

    def test_empty_file_uses_defaults(self, tmp_path):
        _write_config(tmp_path, "")
        assert load_project_config(tmp_path) == ProjectConfig()
        assert ProjectConfig().dockerfile_path == "Dockerfile"

    def test_missing_file_raises_config_error(self, tmp_path):
        with pytest.raises(ConfigError, match="Unable to read"):
            load_project_config(tmp_path)

    def test_invalid_yaml_raises_config_error(self, tmp_path):
        _write_config(tmp_path, "commands: [python\n")
        with pytest.raises(ConfigError, match="not valid YAML"):
            load_project_config(tmp_path)

    def test_non_mapping_raises_config_error(self, tmp_path):
        _write_config(tmp_path, "- python\n")
        with pytest.raises(ConfigError, match="must contain a mapping"):
            load_project_config(tmp_path)

    def test_unknown_key_is_rejected(self, tmp_path):
        _write_config(tmp_path, "dockerfile: Dockerfile\nimage: alpine\n")
        with pytest.raises(ConfigError, match="Invalid"):
            load_project_config(tmp_path)

    def test_wrong_type_is_rejected(self, tmp_path):
        _write_config(tmp_path, "commands: python\n")
        with pytest.raises(ConfigError):
            load_project_config(tmp_path)
