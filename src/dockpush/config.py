import os
import yaml
import logging
from typing import Any, Dict, List, Mapping, Optional
from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

from . import constants
from .exceptions import (
    ConfigFileMissingError,
    ConfigParsingError,
    ConfigValidationError,
)

logger = logging.getLogger(__name__)


class ConfigModel(BaseModel):
    """
        Class Config-Validation Model describing `.dockpush.yml`
    """
    engine: Optional[str] = None
    build_timeout: Optional[float] = Field(None, gt=0)
    dockerignore: Optional[str] = None
    compose_file: Optional[str] = None
    stage_images: List[str] = Field(default_factory=list)
    log_levels: Optional[str] = None
    model_config = ConfigDict(extra="forbid")


class Settings(BaseModel):
    """
    Resolved settings for one invocation.

    The working directory and environment are carried here instead of being
    read from the process, so assembly and build-argument parsing can run
    against any directory.
    """
    model_config = ConfigDict(frozen=True)

    cwd: str
    env: Dict[str, str] = Field(default_factory=dict)
    engine: Optional[str] = None
    build_timeout: float = Field(constants.DEFAULT_BUILD_TIMEOUT, gt=0)
    dockerignore: str = constants.DOCKERIGNORE_FILENAME
    default_compose_file: str = constants.DOCKER_COMPOSE_FILENAME
    stage_images: List[str] = Field(default_factory=list)
    log_levels: Optional[str] = None

    @field_validator("cwd")
    @classmethod
    def cwd_must_be_absolute(cls, value: str) -> str:
        if not os.path.isabs(value):
            raise ValueError(f"working directory must be absolute, got '{value}'")
        return os.path.normpath(value)

    def resolve(self, path: str) -> str:
        """Make `path` absolute against the configured working directory."""
        return os.path.normpath(os.path.join(self.cwd, path))


class Config:
    """
    Loads and validates the optional `.dockpush.yml` file using Pydantic models
    and turns it into Settings.
    """
    def __init__(self, cwd: str, env: Mapping[str, str], config_path: Optional[str] = None):
        self.cwd = cwd
        self.env = dict(env)
        self.explicit = config_path is not None
        self.path = os.path.join(cwd, config_path or constants.CONFIG_FILENAME)
        raw_data = self._load_raw_config()
        try:
            self.model = ConfigModel.model_validate(raw_data)
        except ValidationError as e:
            raise ConfigValidationError(f"Configuration validation failed:\n{e}")
        logger.debug(f"Configuration: {self.model.model_dump_json(exclude_none=True)}")

    def _load_raw_config(self) -> Dict[str, Any]:
        try:
            with open(self.path, "r", encoding="utf-8") as f:
                content = f.read()
        except FileNotFoundError:
            if self.explicit:
                raise ConfigFileMissingError(f"Configuration file not found at: {self.path}")
            logger.debug(f"No configuration file at '{self.path}', using defaults.")
            return {}

        logger.info(f"Loading configuration from '{self.path}'...")
        try:
            config_data = yaml.safe_load(content)
        except yaml.YAMLError as e:
            raise ConfigParsingError(f"Error parsing YAML file: {e}")
        if config_data is None:
            return {}
        if not isinstance(config_data, dict):
            raise ConfigParsingError("Configuration file must be a YAML document containing a dictionary.")
        return config_data

    def settings(self, engine: Optional[str] = None, build_timeout: Optional[float] = None) -> Settings:
        """Merge command-line overrides, the file and the environment, in that order."""
        values: Dict[str, Any] = {
            "cwd": self.cwd,
            "env": self.env,
            "engine": engine or self.model.engine or self.env.get(constants.ENGINE_ENV),
            "stage_images": self.model.stage_images,
            "log_levels": self.model.log_levels,
        }
        timeout = build_timeout if build_timeout is not None else self.model.build_timeout
        if timeout is not None:
            values["build_timeout"] = timeout
        if self.model.dockerignore:
            values["dockerignore"] = self.model.dockerignore
        if self.model.compose_file:
            values["default_compose_file"] = self.model.compose_file
        try:
            return Settings(**values)
        except ValidationError as e:
            raise ConfigValidationError(f"Invalid settings:\n{e}")
