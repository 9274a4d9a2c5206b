"""Build configuration with Pydantic.

A single ``BuildConfig`` instance is created by the CLI (from a YAML file,
environment variables and command-line flags) and passed to every target
action. There is no process-wide configuration object.
"""

import os
from enum import Enum
from pathlib import Path
from typing import Any

import structlog
import yaml
from pydantic import BaseModel, Field, field_validator, model_validator

logger = structlog.get_logger(__name__)

DEFAULT_CONFIG_FILES = ("targetflow.yaml", "targetflow.yml")

# Environment variables set by common build servers
SERVER_ENV_VARS = ("CI", "TF_BUILD", "JENKINS_URL", "TEAMCITY_VERSION")


class Configuration(str, Enum):
    """Build configuration handed to compile and test steps."""

    DEBUG = "Debug"
    RELEASE = "Release"

    def __str__(self) -> str:
        return self.value


def detect_local_build(environ: dict[str, str] | None = None) -> bool:
    """Return True unless one of the build-server marker variables is set."""
    environ = os.environ if environ is None else environ
    return not any(environ.get(var) for var in SERVER_ENV_VARS)


def find_config_file(directory: str | Path = ".") -> Path | None:
    """Return the first default settings file present in ``directory``."""
    for name in DEFAULT_CONFIG_FILES:
        candidate = Path(directory) / name
        if candidate.is_file():
            return candidate
    return None


class BuildConfig(BaseModel):
    """Settings for one build run.

    Attributes:
        configuration: Debug or Release; None only when explicitly cleared
        root_directory: Repository root, all other paths default relative to it
        artifacts_directory: Output directory for build artifacts
        source_directory: Directory holding the project sources
        test_directory: Directory holding the tests
        parameters: Free-form KEY=VALUE parameters from the command line
        is_local_build: False when running on a build server
        logging_level: Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
        json_logs: Render logs as JSON lines instead of console output
    """

    configuration: Configuration | None = Field(
        default=None,
        description="Configuration to build - Debug (local) or Release (server)",
    )
    root_directory: Path = Field(default_factory=Path.cwd)
    artifacts_directory: Path | None = None
    source_directory: Path | None = None
    test_directory: Path | None = None
    parameters: dict[str, str] = Field(default_factory=dict)
    is_local_build: bool = Field(default_factory=detect_local_build)
    logging_level: str = Field(
        default="INFO",
        pattern=r"^(DEBUG|INFO|WARNING|ERROR|CRITICAL)$",
    )
    json_logs: bool = False

    model_config = {"str_strip_whitespace": True}

    @field_validator("configuration", mode="before")
    @classmethod
    def parse_configuration(cls, v: Any) -> Any:
        """Accept configuration names case-insensitively."""
        if isinstance(v, str):
            for member in Configuration:
                if member.value.lower() == v.strip().lower():
                    return member
            msg = f"Configuration must be one of {[c.value for c in Configuration]}, got {v!r}"
            raise ValueError(msg)
        return v

    @field_validator("logging_level", mode="before")
    @classmethod
    def upper_logging_level(cls, v: Any) -> Any:
        if isinstance(v, str):
            return v.strip().upper()
        return v

    @model_validator(mode="after")
    def derive_directories(self) -> "BuildConfig":
        """Resolve the root and fill in directories that were not given."""
        root = self.root_directory.expanduser().resolve()
        defaults = {
            "root_directory": root,
            "artifacts_directory": self.artifacts_directory or root / "artifacts",
            "source_directory": self.source_directory or root / "src",
            "test_directory": self.test_directory or root / "tests",
        }
        for key, value in defaults.items():
            path = Path(value)
            if not path.is_absolute():
                path = root / path
            setattr(self, key, path)
        return self

    @classmethod
    def create(
        cls,
        configuration: str | Configuration | None = None,
        **overrides: Any,
    ) -> "BuildConfig":
        """Create a config applying the local/server default configuration.

        Args:
            configuration: Explicit configuration; when None, Debug is used
                for local builds and Release on a build server
            **overrides: Any other BuildConfig field

        Returns:
            Validated BuildConfig
        """
        is_local = overrides.pop("is_local_build", None)
        if is_local is None:
            is_local = detect_local_build()
        if configuration is None:
            configuration = Configuration.DEBUG if is_local else Configuration.RELEASE
        return cls(configuration=configuration, is_local_build=is_local, **overrides)

    @classmethod
    def load(
        cls,
        path: str | Path | None = None,
        **cli_overrides: Any,
    ) -> "BuildConfig":
        """Load settings from an optional YAML file, env vars and CLI flags.

        Precedence, lowest to highest: YAML file, environment variables,
        command-line values. ``None`` command-line values are ignored.

        Args:
            path: Optional YAML settings file
            **cli_overrides: Values given on the command line

        Returns:
            Validated BuildConfig

        Raises:
            FileNotFoundError: If the settings file doesn't exist
            ValueError: If the settings are invalid
        """
        data: dict[str, Any] = cls.read_yaml(path) if path is not None else {}
        data = cls._apply_env_overrides(data)

        for key, value in cli_overrides.items():
            if value is None:
                continue
            if key == "parameters":
                data["parameters"] = {**data.get("parameters", {}), **value}
            else:
                data[key] = value

        config = cls.create(**data)
        logger.debug(
            "build_config_loaded",
            configuration=str(config.configuration),
            root_directory=str(config.root_directory),
            is_local_build=config.is_local_build,
        )
        return config

    @classmethod
    def read_yaml(cls, path: str | Path) -> dict[str, Any]:
        """Read a YAML settings file into a dictionary.

        Raises:
            FileNotFoundError: If the settings file doesn't exist
            ValueError: If the YAML is malformed or not a mapping
        """
        config_path = Path(path)
        if not config_path.exists():
            msg = f"Configuration file not found: {config_path}"
            raise FileNotFoundError(msg)

        logger.info("loading_configuration", path=str(config_path))

        try:
            with config_path.open() as f:
                data = yaml.safe_load(f)
        except yaml.YAMLError as e:
            logger.exception("yaml_parse_error", path=str(config_path))
            msg = f"Invalid YAML in configuration file: {e}"
            raise ValueError(msg) from e

        if data is None:
            return {}
        if not isinstance(data, dict):
            msg = f"Configuration file must contain a mapping, got {type(data).__name__}"
            raise ValueError(msg)
        return data

    @classmethod
    def from_yaml(cls, path: str | Path) -> "BuildConfig":
        """Load configuration from a YAML file (no env or CLI overrides)."""
        return cls.create(**cls.read_yaml(path))

    @classmethod
    def _apply_env_overrides(cls, config_data: dict[str, Any]) -> dict[str, Any]:
        """Apply TARGETFLOW_* environment variables on top of file settings.

        Args:
            config_data: Base configuration dictionary from file

        Returns:
            New dictionary with environment overrides applied
        """
        env_overrides = {
            "configuration": "TARGETFLOW_CONFIGURATION",
            "root_directory": "TARGETFLOW_ROOT_DIRECTORY",
            "artifacts_directory": "TARGETFLOW_ARTIFACTS_DIRECTORY",
            "logging_level": "TARGETFLOW_LOGGING_LEVEL",
            "json_logs": "TARGETFLOW_JSON_LOGS",
        }

        data = dict(config_data)
        for key, env_var in env_overrides.items():
            value = os.environ.get(env_var)
            if value is None:
                continue
            if key == "json_logs":
                data[key] = value.lower() in ("true", "1", "yes")
            else:
                data[key] = value
            logger.debug("env_override_applied", env_var=env_var, config_key=key)
        return data

    def get_parameter(self, name: str) -> Any:
        """Look up a named build parameter.

        Field names are matched first, case-insensitively and ignoring
        underscores, then the free-form ``parameters``.

        Returns:
            The value, or None when the parameter is absent
        """
        wanted = name.replace("_", "").lower()
        for field_name in type(self).model_fields:
            if field_name.replace("_", "").lower() == wanted:
                return getattr(self, field_name)
        for key, value in self.parameters.items():
            if key.replace("_", "").lower() == wanted:
                return value
        return None


__all__ = ["BuildConfig", "Configuration", "detect_local_build", "find_config_file"]
