"""Configuration management for statusrelay.

Loads settings from a YAML configuration file. Values the file does not
set come from ``STATUSRELAY_``-prefixed environment variables (nested with
``__``, e.g. ``STATUSRELAY_RELAY__MAX_MESSAGE_SIZE``) or a .env file.
"""

from __future__ import annotations

import logging
from pathlib import Path

import yaml
from pydantic import BaseModel, Field
from pydantic_settings import BaseSettings

logger = logging.getLogger(__name__)

DEFAULT_CONFIG_PATH = Path("config/statusrelay.yaml")


class ServerConfig(BaseModel):
    host: str = Field(default="0.0.0.0")
    port: int = Field(default=8080, ge=1, le=65535)


class RelayConfig(BaseModel):
    path: str = Field(default="/v1/ss14status", description="WebSocket route")
    max_message_size: int = Field(default=512, gt=0, description="Inbound frame cap in bytes")
    freshness_window: float = Field(default=0.4, ge=0, description="Cache freshness in seconds")
    strict_commands: bool = Field(default=False, description="Reject unknown commands")


class UpstreamConfig(BaseModel):
    max_response_size: int = Field(default=2048, gt=0)
    timeout: float = Field(default=10.0, gt=0)


class LoggingConfig(BaseModel):
    level: str = Field(default="INFO")
    format: str = Field(
        default="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
    )
    file: str | None = Field(default=None)


class Settings(BaseSettings):
    """Root configuration for the relay."""

    model_config = {
        "env_prefix": "STATUSRELAY_",
        "env_nested_delimiter": "__",
        "env_file": ".env",
        "env_file_encoding": "utf-8",
        "extra": "ignore",
    }

    server: ServerConfig = Field(default_factory=ServerConfig)
    relay: RelayConfig = Field(default_factory=RelayConfig)
    upstream: UpstreamConfig = Field(default_factory=UpstreamConfig)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)


def load_settings(config_path: Path | str | None = None) -> Settings:
    """Load settings from YAML + .env + environment variables.

    Priority: YAML file > env vars > .env file > defaults
    """
    path = Path(config_path) if config_path else DEFAULT_CONFIG_PATH

    yaml_data = {}
    if path.exists():
        with open(path) as f:
            yaml_data = yaml.safe_load(f) or {}
        logger.info("Loaded configuration from %s", path)
    else:
        logger.warning("Config file %s not found, using defaults + env vars", path)

    return Settings(**yaml_data)
