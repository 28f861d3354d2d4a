"""Configuration loader with validation."""

import os
from pathlib import Path

import yaml
from pydantic import ValidationError

from .models import InsightBoardConfig


class ConfigError(Exception):
    """Configuration error."""

    pass


def load_config(config_path: Path) -> InsightBoardConfig:
    """Load and validate configuration from YAML file.

    Args:
        config_path: Path to config YAML file

    Returns:
        Validated InsightBoardConfig instance

    Raises:
        ConfigError: If config file missing or invalid
    """
    if not config_path.exists():
        raise ConfigError(f"Configuration file not found: {config_path}")

    try:
        with open(config_path, "r") as f:
            data = yaml.safe_load(f)
    except yaml.YAMLError as e:
        raise ConfigError(f"Invalid YAML in {config_path}: {e}")

    if not data:
        raise ConfigError(f"Empty configuration file: {config_path}")
    if not isinstance(data, dict):
        raise ConfigError(f"Configuration must be a mapping: {config_path}")

    # Resolve directories relative to config file
    for section, key in (("storage", "data_dir"), ("logging", "log_dir")):
        if isinstance(data.get(section), dict) and data[section].get(key):
            path = Path(data[section][key])
            if not path.is_absolute():
                data[section][key] = (config_path.parent / path).resolve()

    try:
        config = InsightBoardConfig(**data)
    except ValidationError as e:
        raise ConfigError(f"Configuration validation failed: {e}")

    return apply_env_overrides(config)


def apply_env_overrides(config: InsightBoardConfig) -> InsightBoardConfig:
    """Apply OPENAI_MODEL and LLM_TIMEOUT_SEC environment overrides.

    Args:
        config: Loaded configuration

    Returns:
        Configuration with overrides applied

    Raises:
        ConfigError: If LLM_TIMEOUT_SEC is not a positive number
    """
    model = os.environ.get("OPENAI_MODEL", "").strip()
    if model:
        config.llm.model = model

    timeout = os.environ.get("LLM_TIMEOUT_SEC", "").strip()
    if timeout:
        try:
            timeout_sec = float(timeout)
        except ValueError:
            raise ConfigError(f"Invalid LLM_TIMEOUT_SEC: {timeout}")
        if timeout_sec <= 0:
            raise ConfigError(f"LLM_TIMEOUT_SEC must be positive: {timeout}")
        config.llm.timeout_sec = timeout_sec

    return config


def create_default_config(config_path: Path) -> None:
    """Create default configuration file.

    Args:
        config_path: Path where config should be created
    """
    config_path.parent.mkdir(parents=True, exist_ok=True)

    default_config = {
        "parser": {
            "mode": "auto",
            "max_tasks": 100,
        },
        "llm": {
            "model": "gpt-4o-mini",
            "api_key_env": "OPENAI_API_KEY",
            "timeout_sec": 60,
            "max_transcript_chars": 120_000,
            "temperature": 0.2,
        },
        "transcript": {
            "max_length": 10_000_000,
        },
        "storage": {
            "data_dir": "data",
        },
        "logging": {
            "level": "INFO",
            "log_dir": "logs",
        },
    }

    with open(config_path, "w") as f:
        yaml.dump(default_config, f, default_flow_style=False, sort_keys=False)
