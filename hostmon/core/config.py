#!/usr/bin/env python3
"""
hostmon Server Configuration Management

Settings come from a YAML file; the `database` section can be overridden by
HOSTMON_DATABASE_<FIELD> environment variables (a local .env file is loaded
first) so credentials do not have to live in the YAML.

    database:
      host: influxdb.local
      port: "8086"        # number or numeral string
      username: collectd
      password: secret
      name: collectd
"""

import logging
import os
from pathlib import Path
from typing import Any, Dict, Optional, Union

import yaml
from dotenv import load_dotenv
from pydantic import BaseModel, ValidationError, field_validator

from ..errors import ConfigError

logger = logging.getLogger("hostmon.server")

ENV_PREFIX = "HOSTMON_DATABASE_"
DEFAULT_CONFIG_PATH = "config.yaml"


class DatabaseConfig(BaseModel):
    host: str
    port: int = 8086
    username: Optional[str] = None
    password: Optional[str] = None
    name: str
    protocol: str = "http"
    # None keeps the historical behaviour: requests wait forever
    timeout: Optional[float] = None
    # None means unbounded fan-out
    max_concurrency: Optional[int] = None

    @field_validator("port", mode="before")
    @classmethod
    def coerce_port(cls, value: Union[int, str]) -> int:
        """Accept the port as a number or as a numeral string."""
        if isinstance(value, str):
            try:
                return int(value.strip())
            except ValueError:
                raise ValueError(f"database.port is not a number: {value!r}")
        return value

    @field_validator("max_concurrency")
    @classmethod
    def positive_concurrency(cls, value: Optional[int]) -> Optional[int]:
        if value is not None and value < 1:
            raise ValueError("database.max_concurrency must be at least 1")
        return value

    @property
    def base_url(self) -> str:
        return f"{self.protocol}://{self.host}:{self.port}"


class ServerConfig(BaseModel):
    host: str = "0.0.0.0"
    port: int = 8000
    log_level: str = "INFO"
    database: DatabaseConfig


def _env_overrides(environ: Dict[str, str]) -> Dict[str, Any]:
    """Collect HOSTMON_DATABASE_* variables as database fields."""
    overrides = {}
    for field in DatabaseConfig.model_fields:
        value = environ.get(ENV_PREFIX + field.upper())
        if value is not None:
            overrides[field] = value
    return overrides


def build_config(data: Dict[str, Any], environ: Optional[Dict[str, str]] = None) -> ServerConfig:
    """Validate a raw configuration mapping, applying environment overrides."""
    environ = os.environ if environ is None else environ
    data = dict(data or {})
    database = dict(data.get("database") or {})
    database.update(_env_overrides(environ))
    data["database"] = database

    try:
        return ServerConfig(**data)
    except ValidationError as e:
        raise ConfigError(f"Invalid configuration: {e}") from e


def load_config_from(path: str) -> ServerConfig:
    """Load server configuration from YAML file."""
    config_file = Path(path)
    load_dotenv()

    try:
        with open(config_file, "r") as f:
            data = yaml.safe_load(f) or {}
    except OSError as e:
        raise ConfigError(f"Cannot read configuration file {config_file}: {e}") from e
    except yaml.YAMLError as e:
        raise ConfigError(f"Malformed configuration file {config_file}: {e}") from e

    if not isinstance(data, dict):
        raise ConfigError(f"Configuration file {config_file} must contain a mapping")

    logger.info(f"Loading configuration from: {config_file}")
    return build_config(data)


# Global config instance
_config: Optional[ServerConfig] = None


def get_config() -> ServerConfig:
    """Get global configuration instance (HOSTMON_CONFIG or ./config.yaml)."""
    global _config
    if _config is None:
        _config = load_config_from(os.environ.get("HOSTMON_CONFIG", DEFAULT_CONFIG_PATH))
    return _config
