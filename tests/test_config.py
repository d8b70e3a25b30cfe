import pytest
import yaml
from pathlib import Path
from dockpush.config import Config, Settings
from dockpush.exceptions import (
    ConfigFileMissingError,
    ConfigParsingError,
    ConfigValidationError,
)

BASE_CONFIG = {
    'engine': 'myengine.live:Engine',
    'build_timeout': 120,
    'dockerignore': '.buildignore',
    'compose_file': 'compose.yaml',
    'stage_images': ['builder:cache'],
    'log_levels': 'svc=DEBUG',
}


@pytest.fixture
def create_config_file(tmp_path: Path):
    """A pytest fixture to create a temporary .dockpush.yml file."""
    def _create_file(config_data, name: str = ".dockpush.yml") -> Path:
        config_file = tmp_path / name
        with open(config_file, 'w') as f:
            if isinstance(config_data, str):
                f.write(config_data)
            else:
                yaml.dump(config_data, f)
        return config_file
    return _create_file


class TestConfigLoading:
    """Tests for basic loading and validation success/failure."""

    def test_load_valid_config_successfully(self, create_config_file, tmp_path):
        """Should load a well-formed config without raising exceptions."""
        create_config_file(BASE_CONFIG)
        settings = Config(str(tmp_path), {}).settings()
        assert settings.engine == 'myengine.live:Engine'
        assert settings.build_timeout == 120
        assert settings.dockerignore == '.buildignore'
        assert settings.default_compose_file == 'compose.yaml'
        assert settings.stage_images == ['builder:cache']
        assert settings.log_levels == 'svc=DEBUG'

    def test_missing_default_file_uses_defaults(self, tmp_path):
        """No config file in the working directory is not an error."""
        settings = Config(str(tmp_path), {}).settings()
        assert settings.engine is None
        assert settings.build_timeout == 600
        assert settings.dockerignore == '.dockerignore'
        assert settings.default_compose_file == 'docker-compose.yml'
        assert settings.stage_images == []

    def test_empty_file_uses_defaults(self, create_config_file, tmp_path):
        create_config_file("")
        assert Config(str(tmp_path), {}).settings().build_timeout == 600

    def test_explicit_missing_file_fails(self, tmp_path):
        with pytest.raises(ConfigFileMissingError):
            Config(str(tmp_path), {}, "custom.yml")

    def test_explicit_file_is_read(self, create_config_file, tmp_path):
        create_config_file({'build_timeout': 5}, name="custom.yml")
        assert Config(str(tmp_path), {}, "custom.yml").settings().build_timeout == 5

    def test_invalid_yaml_raises_error(self, create_config_file, tmp_path):
        create_config_file("engine: [unclosed")
        with pytest.raises(ConfigParsingError):
            Config(str(tmp_path), {})

    def test_non_mapping_document_raises_error(self, create_config_file, tmp_path):
        create_config_file("- a\n- b\n")
        with pytest.raises(ConfigParsingError):
            Config(str(tmp_path), {})

    def test_unknown_key_raises_error(self, create_config_file, tmp_path):
        create_config_file({'enginee': 'typo:Engine'})
        with pytest.raises(ConfigValidationError):
            Config(str(tmp_path), {})

    def test_non_positive_timeout_raises_error(self, create_config_file, tmp_path):
        create_config_file({'build_timeout': 0})
        with pytest.raises(ConfigValidationError):
            Config(str(tmp_path), {})


class TestPrecedence:
    """Command-line values beat the file, which beats the environment."""

    def test_cli_overrides_file(self, create_config_file, tmp_path):
        create_config_file(BASE_CONFIG)
        settings = Config(str(tmp_path), {}).settings(engine='cli:Engine', build_timeout=1.5)
        assert settings.engine == 'cli:Engine'
        assert settings.build_timeout == 1.5

    def test_file_overrides_environment(self, create_config_file, tmp_path):
        create_config_file(BASE_CONFIG)
        settings = Config(str(tmp_path), {'DOCKPUSH_ENGINE': 'env:Engine'}).settings()
        assert settings.engine == 'myengine.live:Engine'

    def test_environment_is_last_resort(self, tmp_path):
        settings = Config(str(tmp_path), {'DOCKPUSH_ENGINE': 'env:Engine'}).settings()
        assert settings.engine == 'env:Engine'

    def test_environment_is_carried(self, tmp_path):
        settings = Config(str(tmp_path), {'TOKEN': 'x'}).settings()
        assert settings.env == {'TOKEN': 'x'}


class TestSettings:

    def test_cwd_must_be_absolute(self):
        with pytest.raises(ValueError):
            Settings(cwd="relative/dir")

    def test_resolve(self, tmp_path):
        settings = Settings(cwd=str(tmp_path) + "/./")
        assert settings.cwd == str(tmp_path)
        assert settings.resolve("a/../b") == str(tmp_path / "b")
        assert settings.resolve("/abs") == "/abs"
