"""Configuration management."""

from pathlib import Path
from typing import Literal, Optional

import yaml
from pydantic import BaseModel, Field

# Relative to the working directory the command is run from.
DEFAULT_CONFIG_PATH = Path("config") / "config.yaml"


class Config(BaseModel):
    """Application configuration."""

    data_dir: Path = Field(default_factory=lambda: Path.cwd() / "data")
    log_dir: Path = Field(default_factory=lambda: Path.cwd() / "logs")
    storage_key: str = "jobs.applications.v1"
    log_level: str = "INFO"
    export_filename: str = "طلبات_التوظيف.xlsx"
    sheet_name: str = "طلبات"
    notifier: Literal["mailto", "gmail", "none"] = "mailto"
    credentials_dir: Path = Field(default_factory=lambda: Path.cwd() / "config")
    lock_timeout: float = 10.0

    @property
    def lock_path(self) -> Path:
        return self.data_dir / f"{self.storage_key}.lock"


_config: Optional[Config] = None


def load_config(config_path: Optional[Path] = None) -> Config:
    """Load configuration from YAML file.

    Without an explicit path the default ``config/config.yaml`` is used when
    present, and built-in defaults otherwise.
    """
    global _config

    if _config is not None and config_path is None:
        return _config

    if config_path is None:
        if not DEFAULT_CONFIG_PATH.exists():
            _config = Config()
            return _config
        config_path = DEFAULT_CONFIG_PATH

    if not config_path.exists():
        raise FileNotFoundError(
            f"Config file not found: {config_path}. "
            "Copy config/config.yaml.example to config/config.yaml and adjust it."
        )

    with open(config_path, encoding="utf-8") as f:
        data = yaml.safe_load(f) or {}

    _config = Config(**data)
    return _config


def get_config() -> Config:
    """Get the loaded configuration."""
    if _config is None:
        return load_config()
    return _config


def reset_config() -> None:
    """Forget the cached configuration."""
    global _config
    _config = None
