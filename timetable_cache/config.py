"""
Configuration loading for the timetable cache.

Settings come from an optional config.yaml, with environment overrides
for deployment-specific values.
"""

from __future__ import annotations

import os
from pathlib import Path
from typing import Optional

import yaml
from pydantic import BaseModel, Field

DEFAULT_CONFIG_PATH = "config.yaml"

# Environment variable -> AppConfig field
ENV_OVERRIDES = {
    "UPSTREAM_BASE_URL": "upstream_base_url",
    "DB_PATH": "db_path",
    "PORT": "port",
}


class AppConfig(BaseModel):
    """Application configuration."""

    # Upstream settings
    upstream_base_url: str = "http://rozklady.lodz.pl"
    upstream_timeout: float = Field(default=10.0, gt=0)

    # Cache storage
    db_path: str = "cache.db"

    # Listener
    host: str = "0.0.0.0"
    port: int = Field(default=8080, ge=1, le=65535)


def load_config(config_path: Optional[str] = None) -> AppConfig:
    """
    Load configuration from YAML file + environment variables.

    Args:
        config_path: Path to config.yaml. If None, reads CONFIG_PATH env var.
                     A file named explicitly (argument or env) must exist;
                     the default config.yaml is optional.

    Returns:
        Validated AppConfig instance.
    """
    explicit = config_path is not None or "CONFIG_PATH" in os.environ
    if config_path is None:
        config_path = os.environ.get("CONFIG_PATH", DEFAULT_CONFIG_PATH)

    path = Path(config_path)
    raw = None
    if path.exists():
        with open(path) as f:
            raw = yaml.safe_load(f)
    elif explicit:
        raise FileNotFoundError(f"Config file not found: {config_path}")

    if raw is None:
        raw = {}

    overrides = {
        field: os.environ[env_var]
        for env_var, field in ENV_OVERRIDES.items()
        if os.environ.get(env_var)
    }

    return AppConfig(**{**raw, **overrides})
