"""
Client configuration loaded from YAML.

Config file format (``$ORIGINFS_HOME/config.yaml``, default ``~/.originfs``):
```yaml
base_url: https://api.rotur.dev
token: <credential>
timeout_sec: 30
auth_scheme: query   # or "bearer"
log_level: INFO
```
`ORIGINFS_TOKEN` and `ORIGINFS_BASE_URL` override the file.
"""
import os
import logging
from pathlib import Path
from typing import Literal, Optional, Union

import yaml
from pydantic import BaseModel, ConfigDict, Field, ValidationError

from .exceptions import ConfigError

logger = logging.getLogger(__name__)

CONFIG_FILE_NAME = "config.yaml"


def get_originfs_home_dir() -> Path:
    return Path(os.getenv("ORIGINFS_HOME", Path.home() / ".originfs")).expanduser()


class OriginFSConfig(BaseModel):
    model_config = ConfigDict(extra='ignore')

    base_url: str = Field(default="https://api.rotur.dev", description="Remote store root URL")
    token: str = Field(default="", description="Opaque credential of the owner")
    timeout_sec: float = Field(default=30.0, gt=0, description="Request timeout in seconds")
    auth_scheme: Literal["query", "bearer"] = Field(default="query", description="How the token is sent")
    log_level: str = Field(default="INFO", description="Logging level for the CLI")


def load_config(path: Optional[Union[str, Path]] = None) -> OriginFSConfig:
    """Load configuration from `path` (or the home directory) and apply environment overrides."""
    config_path = Path(path) if path is not None else get_originfs_home_dir() / CONFIG_FILE_NAME
    raw = {}

    if config_path.exists():
        try:
            with open(config_path, "r", encoding="utf-8") as f:
                raw = yaml.safe_load(f) or {}
        except (OSError, yaml.YAMLError) as e:
            raise ConfigError(f"Failed to read config file '{config_path}': {e}", context={"path": str(config_path)})
        if not isinstance(raw, dict):
            raise ConfigError(f"Config file '{config_path}' must contain a mapping", context={"path": str(config_path)})
    else:
        logger.warning(f"Config file '{config_path}' not found, using defaults")

    token = os.getenv("ORIGINFS_TOKEN")
    if token:
        raw["token"] = token
    base_url = os.getenv("ORIGINFS_BASE_URL")
    if base_url:
        raw["base_url"] = base_url

    for key, value in raw.items():
        if isinstance(value, str):
            raw[key] = value.strip()

    try:
        return OriginFSConfig.model_validate(raw)
    except ValidationError as e:
        raise ConfigError(f"Invalid configuration in '{config_path}': {e}", context={"path": str(config_path)})
