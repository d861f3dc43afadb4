"""Unit tests for config loading and validation."""

from __future__ import annotations

import logging

import pytest
from pydantic import ValidationError

from kairos.config import get_config, load_config, reset_config
from kairos.config.schema import BackendConfig, LLMConfig, LoggingConfig


def _write(path, text):
    path.write_text(text, encoding="utf-8")
    return path


@pytest.mark.unit
def test_missing_file_gives_defaults(tmp_path):
    config = load_config(tmp_path / "absent.yml")

    assert config.llm.enabled is False
    assert config.llm.parse_timeout_ms == 8000
    assert config.shell.history_limit == 500
    assert config.logging.level == "INFO"
    assert config.backend.factory is None


@pytest.mark.unit
def test_yaml_values_are_loaded(tmp_path):
    path = _write(
        tmp_path / "config.yml",
        "llm:\n  enabled: true\n  confidence_threshold: 0.9\n"
        "shell:\n  history_limit: 50\n"
        "logging:\n  level: debug\n"
        "backend:\n  factory: myplanner.wiring:build\n",
    )

    config = load_config(path)

    assert config.llm.enabled is True
    assert config.llm.confidence_threshold == 0.9
    assert config.shell.history_limit == 50
    assert config.logging.level == "DEBUG"
    assert config.backend.factory == "myplanner.wiring:build"


@pytest.mark.unit
def test_environment_overrides_the_file(tmp_path, monkeypatch):
    path = _write(tmp_path / "config.yml", "llm:\n  enabled: true\n  parse_timeout_ms: 5000\n")
    monkeypatch.setenv("KAIROS_LLM_ENABLED", "off")
    monkeypatch.setenv("KAIROS_LLM_PARSE_TIMEOUT_MS", "15000")
    monkeypatch.setenv("KAIROS_LOG_LEVEL", "warning")
    monkeypatch.setenv("KAIROS_BACKEND", "other.module:make")

    config = load_config(path)

    assert config.llm.enabled is False
    assert config.llm.parse_timeout_ms == 15000
    assert config.logging.level == "WARNING"
    assert config.backend.factory == "other.module:make"


@pytest.mark.unit
def test_non_numeric_env_values_are_ignored(tmp_path, monkeypatch, caplog):
    monkeypatch.setenv("KAIROS_LLM_PARSE_TIMEOUT_MS", "soon")
    monkeypatch.setenv("KAIROS_LLM_CONFIDENCE_THRESHOLD", "high")

    with caplog.at_level(logging.WARNING, logger="kairos.config.loader"):
        config = load_config(tmp_path / "absent.yml")

    assert config.llm.parse_timeout_ms == 8000
    assert config.llm.confidence_threshold == 0.85
    assert "KAIROS_LLM_PARSE_TIMEOUT_MS" in caplog.text


@pytest.mark.unit
def test_malformed_yaml_falls_back_to_defaults(tmp_path):
    path = _write(tmp_path / "config.yml", "llm: [unclosed\n")

    assert load_config(path).llm.enabled is False


@pytest.mark.unit
def test_non_mapping_top_level_is_ignored(tmp_path):
    path = _write(tmp_path / "config.yml", "- just\n- a list\n")

    assert load_config(path).shell.default_minutes == 60


@pytest.mark.unit
def test_unknown_keys_are_warned_about(tmp_path, caplog):
    path = _write(tmp_path / "config.yml", "shell:\n  colour: blue\n")

    with caplog.at_level(logging.WARNING, logger="kairos.config.loader"):
        load_config(path)

    assert "root.shell" in caplog.text
    assert "colour" in caplog.text


@pytest.mark.unit
@pytest.mark.parametrize("factory", ["no_colon", ":build", "module:"])
def test_invalid_backend_factory(factory):
    with pytest.raises(ValidationError, match="Invalid backend factory"):
        BackendConfig(factory=factory)


@pytest.mark.unit
@pytest.mark.parametrize("threshold", [-0.1, 1.5])
def test_confidence_threshold_must_be_a_probability(threshold):
    with pytest.raises(ValidationError):
        LLMConfig(confidence_threshold=threshold)


@pytest.mark.unit
def test_parse_timeout_must_be_positive():
    with pytest.raises(ValidationError):
        LLMConfig(parse_timeout_ms=0)


@pytest.mark.unit
def test_invalid_log_level():
    with pytest.raises(ValidationError, match="Invalid log level"):
        LoggingConfig(level="chatty")


@pytest.mark.unit
def test_get_config_caches_until_reset(tmp_path, monkeypatch):
    path = _write(tmp_path / "config.yml", "shell:\n  history_limit: 10\n")
    monkeypatch.setenv("KAIROS_CONFIG", str(path))
    reset_config()

    first = get_config()
    _write(path, "shell:\n  history_limit: 20\n")

    assert get_config() is first
    reset_config()
    assert get_config().shell.history_limit == 20
