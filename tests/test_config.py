from pathlib import Path

import pytest

from config import load_config

ENV_VARS = (
    "ALARM_STORE_PATH",
    "ALARM_CHECK_INTERVAL_S",
    "LEARNING_RATE",
    "EXPLORATION_RATE",
    "LEARNING_TIME_BUCKET_MIN",
    "LEARNING_SEED",
    "LOG_LEVEL",
    "DEBUG",
)


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    for name in ENV_VARS:
        monkeypatch.delenv(name, raising=False)


def test_defaults(tmp_path):
    config = load_config(tmp_path / ".env")
    assert config.store_path == Path("data/store.json")
    assert config.check_interval_s == 60.0
    assert (config.learning_rate, config.discount_factor, config.exploration_rate) == (0.1, 0.9, 0.2)
    assert config.time_bucket_min == 1
    assert config.learning_seed is None
    assert config.log_level == "INFO"


def test_env_file_is_loaded(tmp_path):
    env_path = tmp_path / ".env"
    env_path.write_text("LEARNING_TIME_BUCKET_MIN=5\nLEARNING_SEED=42\nDEBUG=1\n", encoding="utf-8")
    config = load_config(env_path)
    assert config.time_bucket_min == 5
    assert config.learning_seed == 42
    assert config.debug is True
    assert config.log_level == "DEBUG"


def test_malformed_numbers_raise(tmp_path, monkeypatch):
    monkeypatch.setenv("ALARM_CHECK_INTERVAL_S", "soon")
    with pytest.raises(ValueError, match="ALARM_CHECK_INTERVAL_S"):
        load_config(tmp_path / ".env")


def test_rates_must_be_probabilities(tmp_path, monkeypatch):
    monkeypatch.setenv("EXPLORATION_RATE", "1.5")
    with pytest.raises(ValueError, match="EXPLORATION_RATE"):
        load_config(tmp_path / ".env")
