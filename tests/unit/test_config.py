"""Unit tests for configuration models and loader."""

from pathlib import Path

import pytest

from insightboard.config.loader import ConfigError, create_default_config, load_config
from insightboard.config.models import InsightBoardConfig, LLMConfig, ParserConfig


@pytest.fixture(autouse=True)
def clear_llm_env(monkeypatch):
    monkeypatch.delenv("OPENAI_MODEL", raising=False)
    monkeypatch.delenv("LLM_TIMEOUT_SEC", raising=False)


def test_config_defaults():
    """Test InsightBoardConfig default values."""
    config = InsightBoardConfig()

    assert config.parser.mode == "auto"
    assert config.parser.max_tasks == 100
    assert config.llm.model == "gpt-4o-mini"
    assert config.llm.timeout_sec == 60
    assert config.transcript.max_length == 10_000_000
    assert config.storage.data_dir == Path(".insightboard/data")


def test_config_custom_sections():
    """Test nested sections accept dicts."""
    config = InsightBoardConfig(
        parser={"mode": "mock", "max_tasks": 10},
        llm={"model": "gpt-4o", "timeout_sec": 5},
    )

    assert config.parser == ParserConfig(mode="mock", max_tasks=10)
    assert config.llm.model == "gpt-4o"
    assert config.llm == LLMConfig(model="gpt-4o", timeout_sec=5)


def test_default_config_round_trip(tmp_path):
    """Test the generated config loads and resolves relative directories."""
    config_path = tmp_path / ".insightboard" / "config.yml"
    create_default_config(config_path)

    config = load_config(config_path)

    assert config.storage.data_dir == (config_path.parent / "data").resolve()
    assert config.logging.log_dir == (config_path.parent / "logs").resolve()
    assert config.parser.mode == "auto"


def test_load_config_missing(tmp_path):
    """Test missing config file raises ConfigError."""
    with pytest.raises(ConfigError, match="not found"):
        load_config(tmp_path / "missing.yml")


def test_load_config_empty(tmp_path):
    """Test empty config file raises ConfigError."""
    config_path = tmp_path / "config.yml"
    config_path.write_text("")

    with pytest.raises(ConfigError, match="Empty"):
        load_config(config_path)


def test_load_config_invalid_yaml(tmp_path):
    """Test malformed YAML raises ConfigError."""
    config_path = tmp_path / "config.yml"
    config_path.write_text("parser: [unclosed")

    with pytest.raises(ConfigError, match="Invalid YAML"):
        load_config(config_path)


def test_load_config_validation_error(tmp_path):
    """Test invalid values raise ConfigError."""
    config_path = tmp_path / "config.yml"
    config_path.write_text("parser:\n  max_tasks: lots\n")

    with pytest.raises(ConfigError, match="validation failed"):
        load_config(config_path)


def test_env_overrides(tmp_path, monkeypatch):
    """Test OPENAI_MODEL and LLM_TIMEOUT_SEC override the file."""
    config_path = tmp_path / "config.yml"
    create_default_config(config_path)
    monkeypatch.setenv("OPENAI_MODEL", "gpt-4.1-mini")
    monkeypatch.setenv("LLM_TIMEOUT_SEC", "12.5")

    config = load_config(config_path)

    assert config.llm.model == "gpt-4.1-mini"
    assert config.llm.timeout_sec == 12.5


def test_env_override_invalid_timeout(tmp_path, monkeypatch):
    """Test non-numeric timeout override is rejected."""
    config_path = tmp_path / "config.yml"
    create_default_config(config_path)
    monkeypatch.setenv("LLM_TIMEOUT_SEC", "soon")

    with pytest.raises(ConfigError, match="LLM_TIMEOUT_SEC"):
        load_config(config_path)
