"""Unit tests for environment-based configuration"""

import pytest

import config
from config import load_config

_VARS = [
    "DISCORD_TOKEN",
    "DEV_GUILD_ID",
    "COMMAND_PREFIX",
    "LOG_LEVEL",
    "BRACKET_RNG_SEED",
    "DB_HOST",
    "DB_PORT",
    "DB_USER",
    "DB_PASSWORD",
    "DB_NAME",
    "DB_POOL_MIN",
    "DB_POOL_MAX",
    "DB_CONNECT_TIMEOUT",
    "DB_QUERY_TIMEOUT",
]


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    """No .env file and no inherited settings"""
    monkeypatch.setattr(config, "_maybe_load_env_file", lambda: None)
    for name in _VARS:
        monkeypatch.delenv(name, raising=False)


def test_defaults(monkeypatch):
    monkeypatch.setenv("DISCORD_TOKEN", "abc")
    cfg = load_config()

    assert cfg.token == "abc"
    assert cfg.dev_guild_id is None
    assert cfg.command_prefix == "!"
    assert cfg.log_level == "INFO"
    assert cfg.bracket_rng_seed is None
    assert cfg.mysql.database == "weekly_cup"
    assert cfg.mysql.port == 3306
    assert cfg.mysql.connect_timeout == 5
    assert cfg.mysql.query_timeout == 5.0


def test_missing_token():
    with pytest.raises(RuntimeError):
        load_config()
    assert load_config(require_token=False).token == ""


def test_overrides(monkeypatch):
    monkeypatch.setenv("DISCORD_TOKEN", "abc")
    monkeypatch.setenv("DEV_GUILD_ID", "1234")
    monkeypatch.setenv("LOG_LEVEL", "debug")
    monkeypatch.setenv("BRACKET_RNG_SEED", "42")
    monkeypatch.setenv("DB_QUERY_TIMEOUT", "2.5")
    monkeypatch.setenv("DB_POOL_MAX", "10")
    cfg = load_config()

    assert cfg.dev_guild_id == 1234
    assert cfg.log_level == "DEBUG"
    assert cfg.bracket_rng_seed == 42
    assert cfg.mysql.query_timeout == 2.5
    assert cfg.mysql.maxsize == 10


@pytest.mark.parametrize(
    "name,value",
    [
        ("DB_PORT", "abc"),
        ("DB_POOL_MIN", "0"),
        ("DB_QUERY_TIMEOUT", "0"),
        ("DB_CONNECT_TIMEOUT", "0"),
        ("BRACKET_RNG_SEED", "x"),
    ],
)
def test_invalid_values(monkeypatch, name, value):
    monkeypatch.setenv(name, value)
    with pytest.raises(ValueError):
        load_config(require_token=False)


def test_pool_max_below_min(monkeypatch):
    monkeypatch.setenv("DB_POOL_MIN", "4")
    monkeypatch.setenv("DB_POOL_MAX", "2")
    with pytest.raises(ValueError):
        load_config(require_token=False)
