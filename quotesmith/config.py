"""
quotesmith.config - YAML config loading, defaults merging, validation.

Handles loading quotesmith.yaml from the working directory, applying
defaults, and resolving the API credential from the environment.
"""

from __future__ import annotations

import os
from pathlib import Path
from typing import Any

import yaml
from pydantic import BaseModel, Field, field_validator

from quotesmith.exceptions import ConfigError

CONFIG_FILENAME = "quotesmith.yaml"
API_KEY_ENV_VARS = ("GEMINI_API_KEY", "API_KEY")

VALID_LENGTHS = {"xs", "s", "m", "l", "xl", "xxl"}


class QuotesmithConfig(BaseModel):
    """Resolved configuration for a Quotesmith session."""

    model: str = "gemini-2.5-flash"
    timeout: int = Field(default=300, gt=0)
    temperature: float = Field(default=1.0, ge=0.0, le=2.0)

    max_retries: int = Field(default=2, ge=0)
    retry_delay: float = Field(default=2.0, ge=0.0)

    max_video_seconds: float = Field(default=300.0, gt=0.0)
    default_length: str = "s"

    progress_tick_seconds: float = Field(default=0.15, gt=0.0)
    rotation_period_seconds: int = Field(default=120, gt=0)
    page_size: int = Field(default=8, gt=0)

    config_path: Path | None = None

    @field_validator("default_length")
    @classmethod
    def validate_default_length(cls, v: str) -> str:
        if v not in VALID_LENGTHS:
            raise ValueError(f"default_length must be one of: {sorted(VALID_LENGTHS)}")
        return v

    @field_validator("model")
    @classmethod
    def validate_model(cls, v: str) -> str:
        if not v.strip():
            raise ValueError("model must not be empty")
        return v.strip()


def resolve_api_key(environ: dict[str, str] | None = None) -> str:
    """Look up the API credential in the environment.

    Raises:
        ConfigError: If no credential variable is set
    """
    env = os.environ if environ is None else environ
    for name in API_KEY_ENV_VARS:
        value = env.get(name, "").strip()
        if value:
            return value
    raise ConfigError(
        f"API key not found in environment. Set {API_KEY_ENV_VARS[0]} before starting."
    )


def merge_config(file_config: dict[str, Any], defaults: dict[str, Any]) -> dict[str, Any]:
    """Merge file config over defaults. File values take precedence unless None."""
    merged = defaults.copy()
    for key, value in file_config.items():
        if value is not None:
            merged[key] = value
    return merged


def load_config(directory: Path | None = None) -> QuotesmithConfig:
    """Load configuration, reading quotesmith.yaml from `directory` if present."""
    directory = directory or Path.cwd()
    config_file = directory / CONFIG_FILENAME
    if not config_file.exists():
        return QuotesmithConfig()

    with open(config_file, encoding="utf-8") as f:
        raw_config = yaml.safe_load(f) or {}

    if not isinstance(raw_config, dict):
        raise ConfigError(f"{config_file} must contain a mapping")

    merged = merge_config(raw_config, create_default_config())
    merged["config_path"] = config_file

    try:
        return QuotesmithConfig(**merged)
    except ValueError as e:
        raise ConfigError(f"Invalid configuration in {config_file}: {e}") from e


def create_default_config() -> dict[str, Any]:
    """Create a default config dict suitable for writing to quotesmith.yaml."""
    defaults = QuotesmithConfig().model_dump(exclude={"config_path"})
    return defaults


def write_config(config: dict[str, Any], path: Path) -> None:
    """Write configuration to a YAML file."""
    path.parent.mkdir(parents=True, exist_ok=True)
    with open(path, "w", encoding="utf-8") as f:
        yaml.dump(config, f, default_flow_style=False, sort_keys=False, allow_unicode=True)
