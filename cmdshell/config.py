"""Configuration management for cmdshell."""

from pathlib import Path

import yaml
from pydantic import BaseModel, Field
from pydantic_settings import BaseSettings, SettingsConfigDict

from cmdshell.exceptions import ConfigurationError


# Paths
DEFAULT_CONFIG_PATH = Path("~/.cmdshell/config.yaml").expanduser()
DEFAULT_HISTORY_PATH = Path("~/.cmdshell/history").expanduser()
LOCAL_CONFIG_FILENAME = "cmdshell.yaml"


class ShellConfig(BaseModel):
    """Interactive shell configuration."""

    prompt: str = "[cmdshell]# "
    history_file: str = str(DEFAULT_HISTORY_PATH)
    history_length: int = 1000
    erase_empty_line: bool = True
    colors: bool = True


class LoggingConfig(BaseModel):
    """Logging configuration."""

    level: str = "WARNING"
    format: str = "console"


class Config(BaseSettings):
    """Main configuration for cmdshell."""

    shell: ShellConfig = Field(default_factory=ShellConfig)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)

    model_config = SettingsConfigDict(
        env_prefix="CMDSHELL_",
        env_nested_delimiter="__",
    )

    @classmethod
    def resolve_default_config_path(cls) -> Path:
        """Resolve default config path with local-first precedence."""
        local_path = Path.cwd() / LOCAL_CONFIG_FILENAME
        if local_path.exists():
            return local_path
        return DEFAULT_CONFIG_PATH

    @classmethod
    def from_yaml(cls, path: Path | str | None = None) -> "Config":
        """Load configuration from YAML file."""
        config_path = Path(path).expanduser() if path else cls.resolve_default_config_path()

        if not config_path.exists():
            return cls()

        try:
            with open(config_path) as f:
                data = yaml.safe_load(f) or {}
        except yaml.YAMLError as e:
            raise ConfigurationError(f"Invalid config file {config_path}: {e}") from e

        if not isinstance(data, dict):
            raise ConfigurationError(f"Config file {config_path} must contain a mapping")

        return cls(**data)

    @classmethod
    def load(cls) -> "Config":
        """Load configuration from the local or default YAML file."""
        return cls.from_yaml()

    def resolved_history_path(self) -> Path | None:
        """History file path, or None when persistence is disabled."""
        raw = self.shell.history_file.strip()
        if not raw:
            return None
        return Path(raw).expanduser()


# Global config instance
_config: Config | None = None


def get_config() -> Config:
    """Get the global configuration instance."""
    global _config
    if _config is None:
        _config = Config.load()
    return _config


def set_config(config: Config) -> None:
    """Set the global configuration instance."""
    global _config
    _config = config
